# purchase_intake/monitoring.py
"""
Centralized monitoring: Prometheus metrics, structured JSON logging, optional Sentry.

Env vars:
- PROMETHEUS_ENABLED (default: true)
- SENTRY_DSN (optional)
- LOG_AS_JSON (default: true)
- LOG_LEVEL (default: INFO)
- ENVIRONMENT (default: development)
"""

import os
import logging
import time
from typing import Tuple

import sentry_sdk
from prometheus_client import (
    Counter, Histogram, Gauge,
    generate_latest, CONTENT_TYPE_LATEST, REGISTRY,
)
from pythonjsonlogger.json import JsonFormatter

# --- ENV flags
PROMETHEUS_ENABLED = os.getenv("PROMETHEUS_ENABLED", "true").lower() in ("1", "true", "yes")
SENTRY_DSN = os.getenv("SENTRY_DSN", None)
LOG_AS_JSON = os.getenv("LOG_AS_JSON", "true").lower() in ("1", "true", "yes")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")


# --- Logger setup
def setup_logger(name: str = "purchase-intake", level: int = None) -> logging.Logger:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO")) if level is None else level
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        if LOG_AS_JSON:
            handler.setFormatter(JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.addHandler(handler)
    return logger


logger = setup_logger()

# --- Sentry (optional)
if SENTRY_DSN:
    sentry_sdk.init(dsn=SENTRY_DSN, environment=ENVIRONMENT)
    logger.info("Sentry initialized")


# --- Prometheus metrics
REQUEST_COUNT = Counter(
    "purchase_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "purchase_http_request_latency_seconds",
    "Request latency in seconds",
    ["endpoint"],
)

SUBMISSIONS = Counter(
    "purchase_submissions_total",
    "Purchase request submissions by outcome",
    ["outcome"],
)

RELAY_ATTEMPTS = Counter(
    "purchase_relay_attempts_total",
    "Relay attempts to the spreadsheet service",
    ["outcome"],
)

RELAY_LATENCY = Histogram(
    "purchase_relay_latency_seconds",
    "Outbound relay call latency",
)

FALLBACK_STORE_SIZE = Gauge(
    "purchase_fallback_store_size",
    "Requests currently held in the local fallback store",
)


# --- Helper wrappers (never crash the app)
def observe_request(start_ts: float, endpoint: str, method: str, status: str):
    try:
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.time() - start_ts)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
    except Exception:
        pass


def inc_submission(outcome: str):
    try:
        SUBMISSIONS.labels(outcome=outcome).inc()
    except Exception:
        pass


def observe_relay(start_ts: float, outcome: str):
    try:
        if outcome != "offline":
            RELAY_LATENCY.observe(time.time() - start_ts)
        RELAY_ATTEMPTS.labels(outcome=outcome).inc()
    except Exception:
        pass


def set_fallback_store_size(n: int):
    try:
        FALLBACK_STORE_SIZE.set(n)
    except Exception:
        pass


def prometheus_metrics_response() -> Tuple[bytes, str]:
    """Return (body_bytes, content_type) for Prometheus scrape."""
    try:
        return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
    except Exception:
        return b"", CONTENT_TYPE_LATEST
