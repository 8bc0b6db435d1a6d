# purchase_intake/client/confirmation.py
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError

from purchase_intake import monitoring
from purchase_intake.client.formatting import format_date_time
from purchase_intake.client.session_store import CONFIRMATION_KEY, SessionStore
from purchase_intake.client.submission import FORM_VIEW
from purchase_intake.schemas import ConfirmationSnapshot


class ConfirmationView:
    """Follow-up page shown after a successful submission."""

    def __init__(self, session_store: SessionStore, on_navigate: Optional[Callable[[str], None]] = None):
        self.session_store = session_store
        self.on_navigate = on_navigate
        self.snapshot: Optional[ConfirmationSnapshot] = None

    def load(self) -> Optional[ConfirmationSnapshot]:
        """Read the snapshot; without a readable one, go back to the form."""
        raw = self.session_store.get_item(CONFIRMATION_KEY)
        if raw is None:
            self._navigate(FORM_VIEW)
            return None
        try:
            snapshot = ConfirmationSnapshot.model_validate_json(raw)
        except ValidationError as e:
            monitoring.logger.warning("Unreadable confirmation data", extra={"error": str(e)})
            self._navigate(FORM_VIEW)
            return None
        if not snapshot.date:
            snapshot.date = format_date_time()
        self.snapshot = snapshot
        return snapshot

    def rows(self) -> List[Tuple[str, str, str]]:
        if self.snapshot is None:
            return []
        return [(p.name, p.quantity, p.specification or "-") for p in self.snapshot.products]

    def start_new_request(self):
        self.session_store.remove_item(CONFIRMATION_KEY)
        self.snapshot = None
        self._navigate(FORM_VIEW)

    def _navigate(self, view: str):
        if self.on_navigate is not None:
            self.on_navigate(view)
