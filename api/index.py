# api/index.py
"""
Vercel Serverless Function adapter.

Vercel's Python runtime looks for a variable named `app` (ASGI) or `handler` (WSGI).
FastAPI is ASGI, so we just re-export it as `app`.

The fallback store is per-process memory; on a serverless runtime each
instance keeps its own, so /api/cached-requests only shows that instance.
"""
import sys
import os

# Ensure project root is on the Python path so `purchase_intake.*` imports resolve.
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Serverless instances are not scraped
os.environ.setdefault("PROMETHEUS_ENABLED", "false")

# Load .env if present (Vercel injects env vars natively, but this helps local testing)
from dotenv import load_dotenv
load_dotenv(os.path.join(ROOT, ".env"), override=True)

from purchase_intake.app import app  # noqa: F401 (Vercel uses this)
