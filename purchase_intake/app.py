# purchase_intake/app.py
import os
import time
import json

# Load .env BEFORE any package imports (they read env vars at import time)
from dotenv import load_dotenv
load_dotenv(override=True)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from purchase_intake import monitoring
from purchase_intake.fallback_store import InMemoryFallbackStore
from purchase_intake.handler import PurchaseRequestHandler
from purchase_intake.relay import SheetsRelay
from purchase_intake.schemas import E_VALIDATION, form_options
from purchase_intake.validation import MSG_NOT_AN_OBJECT

app = FastAPI(title="Purchase Request Intake API")

# instantiate the pipeline once; tests patch these
fallback_store = InMemoryFallbackStore()
relay = SheetsRelay(fallback_store)
handler = PurchaseRequestHandler(relay, fallback_store)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Metrics middleware
# ---------------------------------------------------------------------------
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    endpoint = request.url.path
    method = request.method
    status = "500"
    try:
        response = await call_next(request)
        status = str(response.status_code)
        return response
    except Exception:
        monitoring.logger.exception("Unhandled exception in request", extra={"path": endpoint})
        raise
    finally:
        monitoring.observe_request(start, endpoint, method, status)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@app.post("/api/purchase-request")
async def submit_purchase_request(request: Request):
    """
    POST /api/purchase-request
    Body: { "name", "position", "department", "site", "requestType",
            "justification", "products": [{"name", "quantity", "specification"?}] }
    The body is validated here, on the raw JSON, not through a pydantic
    request model, so malformed input gets a 400 with the rule's message.
    """
    try:
        raw = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(status_code=400, content={"message": MSG_NOT_AN_OBJECT, "error_code": E_VALIDATION})

    # relay may block up to its timeout; keep it off the event loop
    status_code, body = await run_in_threadpool(handler.handle_submission, raw)
    return JSONResponse(status_code=status_code, content=body)


@app.get("/api/cached-requests")
def get_cached_requests():
    """
    GET /api/cached-requests
    Everything currently held in the fallback store, for manual recovery.
    """
    return JSONResponse(status_code=200, content=handler.list_cached())


@app.get("/api/status")
def get_status():
    return JSONResponse(status_code=200, content=handler.status())


@app.get("/api/form-options")
def get_form_options():
    return form_options()


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    if not monitoring.PROMETHEUS_ENABLED:
        return PlainTextResponse("Prometheus disabled", status_code=404)
    payload, content_type = monitoring.prometheus_metrics_response()
    return Response(content=payload, media_type=content_type)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
