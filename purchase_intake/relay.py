# purchase_intake/relay.py
"""
Relay of validated purchase requests to the external spreadsheet web app.

Configuration (env vars):
  GOOGLE_SHEETS_APP_URL=...     (unset/empty: offline mode, requests are kept locally)
  RELAY_TIMEOUT_SECONDS=30

Usage:
  relay = SheetsRelay(store)
  record = relay.submit(purchase_request)   # raises RelayError on failure

Outcomes:
  - offline mode: record appended to the fallback store, no network call, no error
  - HTTP 200:     nothing stored locally, the spreadsheet owns the record
  - anything else (non-200, network error, timeout, malformed URL): record appended,
    RelayError raised
"""

import datetime
import os
import time
from typing import Optional

import httpx

from purchase_intake import monitoring
from purchase_intake.fallback_store import FallbackStore
from purchase_intake.schemas import PurchaseRequest, RelayRecord

GOOGLE_SHEETS_APP_URL = os.getenv("GOOGLE_SHEETS_APP_URL", "").strip()
RELAY_TIMEOUT_SECONDS = float(os.getenv("RELAY_TIMEOUT_SECONDS", "30"))


class RelayError(RuntimeError):
    """The request could not be delivered; a copy is in the fallback store."""


def now_iso() -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SheetsRelay:
    def __init__(self, store: FallbackStore, target_url: Optional[str] = None,
                 timeout: float = RELAY_TIMEOUT_SECONDS):
        self.store = store
        self.target_url = GOOGLE_SHEETS_APP_URL if target_url is None else target_url
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.target_url)

    def _keep_locally(self, record: RelayRecord, reason: str) -> None:
        total = self.store.append(record)
        monitoring.set_fallback_store_size(total)
        monitoring.logger.info(
            "Request stored locally",
            extra={"reason": reason, "site": record.site, "cached_total": total},
        )

    def submit(self, request: PurchaseRequest) -> RelayRecord:
        record = RelayRecord.from_request(request, timestamp=now_iso())
        payload = record.to_payload()

        monitoring.logger.info(
            "Relaying purchase request",
            extra={
                "target_configured": self.is_configured,
                "requester": record.name,
                "site": record.site,
                "products": len(record.products),
            },
        )

        if not self.is_configured:
            self._keep_locally(record, reason="not_configured")
            monitoring.observe_relay(time.time(), "offline")
            return record

        start = time.time()
        try:
            with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                resp = client.post(
                    self.target_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        # InvalidURL (malformed target) is not an HTTPError subclass
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            monitoring.observe_relay(start, "failure")
            monitoring.logger.error(
                "Error submitting to spreadsheet",
                extra={"error": str(e) or e.__class__.__name__},
            )
            self._keep_locally(record, reason="network_error")
            raise RelayError(f"Failed to submit to spreadsheet: {str(e) or e.__class__.__name__}") from e

        monitoring.logger.info("Spreadsheet response", extra={"http_status": resp.status_code})

        if resp.status_code != 200:
            monitoring.observe_relay(start, "failure")
            monitoring.logger.error(
                "Spreadsheet rejected request",
                extra={"http_status": resp.status_code, "body_preview": resp.text[:500]},
            )
            self._keep_locally(record, reason=f"http_{resp.status_code}")
            raise RelayError(
                f"Failed to submit to spreadsheet: {resp.status_code} {resp.reason_phrase}".strip()
            )

        monitoring.observe_relay(start, "success")
        return record
