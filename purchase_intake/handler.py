# purchase_intake/handler.py
from typing import Any, Dict, Tuple

# Import modules (not bare functions) so monkeypatching in tests works correctly
from purchase_intake import validation as _validation
from purchase_intake import monitoring
from purchase_intake.fallback_store import FallbackStore
from purchase_intake.relay import RelayError, SheetsRelay, now_iso
from purchase_intake.schemas import E_RECORDED_LOCALLY, E_VALIDATION, PurchaseRequest

MSG_SUBMITTED = "Purchase request submitted successfully"
MSG_RECORDED_LOCALLY = (
    "Your request has been recorded locally, but could not be submitted to the "
    "spreadsheet at this time. An administrator will process it later."
)


class PurchaseRequestHandler:
    """Server-side authority for purchase submissions."""

    def __init__(self, relay: SheetsRelay, store: FallbackStore):
        self.relay = relay
        self.store = store

    def handle_submission(self, raw: Any) -> Tuple[int, Dict[str, Any]]:
        """
        Re-validate the raw body, then relay.
        Returns (http_status, body):
          200 {message, success: true}
          400 {message, error_code}                         (no relay attempted)
          500 {message, error, error_code, success: false}  (kept in fallback store)
        """
        ok, message = _validation.validate_purchase_request(raw)
        if not ok:
            monitoring.inc_submission("invalid")
            monitoring.logger.info("Rejected purchase request", extra={"reason": message})
            return 400, {"message": message, "error_code": E_VALIDATION}

        request = PurchaseRequest.model_validate(raw)

        try:
            self.relay.submit(request)
        except RelayError as e:
            monitoring.inc_submission("recorded_locally")
            monitoring.logger.error("Error submitting purchase request", extra={"error": str(e)})
            return 500, {
                "message": MSG_RECORDED_LOCALLY,
                "error": str(e) or "Unknown error",
                "error_code": E_RECORDED_LOCALLY,
                "success": False,
            }

        monitoring.inc_submission("accepted")
        return 200, {"message": MSG_SUBMITTED, "success": True}

    def list_cached(self) -> Dict[str, Any]:
        records = self.store.list()
        return {
            "count": len(records),
            "requests": [r.to_payload() for r in records],
        }

    def status(self) -> Dict[str, Any]:
        return {
            "status": "online",
            "timestamp": now_iso(),
            "googleSheets": "configured" if self.relay.is_configured else "not configured",
        }
