# purchase_intake/client/submission.py
"""
Submission client for the purchase intake form.

Holds the in-progress form (scalar fields, line items, item-entry fields),
validates locally with the same rules the server applies, sends one POST to
/api/purchase-request per submit and turns the answer into notices, a
confirmation snapshot and view changes.

Usage:
  client = SubmissionClient(base_url="http://localhost:5000")
  client.add_line_item("Guantes", "10")
  client.submit({"name": "Ana", "position": "Aux", ...})
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

import httpx

from purchase_intake import monitoring
from purchase_intake.client.formatting import format_date_time
from purchase_intake.client.session_store import CONFIRMATION_KEY, SessionStore
from purchase_intake.client.state_machine import (
    SubmissionStateMachine,
    SubmissionStatus,
    TimerFactory,
)
from purchase_intake.schemas import E_RECORDED_LOCALLY, ConfirmationSnapshot, LineItem
from purchase_intake.validation import (
    REQUIRED_FIELDS,
    validate_form_fields,
    validate_line_item,
    validate_purchase_request,
)

SUBMIT_PATH = "/api/purchase-request"
FORM_VIEW = "/"
CONFIRMATION_VIEW = "/confirmation"

MSG_GENERIC_ERROR = "Se produjo un error al enviar su solicitud. Por favor, inténtelo de nuevo."


@dataclass
class Notice:
    level: str  # "info" | "success" | "warning" | "error"
    title: str
    message: str


def _empty_form() -> Dict[str, str]:
    return {f: "" for f in REQUIRED_FIELDS}


def _empty_item_entry() -> Dict[str, str]:
    return {"name": "", "quantity": "", "specification": ""}


class SubmissionClient:
    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        http_client: Optional[httpx.Client] = None,
        session_store: Optional[SessionStore] = None,
        timer_factory: Optional[TimerFactory] = None,
        on_notice: Optional[Callable[[Notice], None]] = None,
        on_navigate: Optional[Callable[[str], None]] = None,
        success_reset_delay: float = 1.0,
        local_reset_delay: float = 5.0,
        timeout: float = 60.0,
    ):
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self.session_store = session_store or SessionStore()
        self.state = SubmissionStateMachine(timer_factory)
        self.on_notice = on_notice
        self.on_navigate = on_navigate
        self.success_reset_delay = success_reset_delay
        self.local_reset_delay = local_reset_delay

        self.form_fields: Dict[str, str] = _empty_form()
        self.item_entry: Dict[str, str] = _empty_item_entry()
        self.products: List[LineItem] = []
        self.notices: List[Notice] = []
        self.view = FORM_VIEW

    @property
    def status(self) -> SubmissionStatus:
        return self.state.status

    def close(self):
        self.state.cancel_pending_reset()
        if self._owns_http:
            self._http.close()

    # --- line items
    def add_line_item(self, name: Optional[str] = None, quantity: Optional[str] = None,
                      specification: Optional[str] = None) -> bool:
        """Add a product; arguments left as None are taken from `item_entry`."""
        if name is None:
            name = self.item_entry.get("name", "")
        if quantity is None:
            quantity = self.item_entry.get("quantity", "")
        if specification is None:
            specification = self.item_entry.get("specification")
        item = {"name": name, "quantity": quantity, "specification": specification or None}
        ok, _ = validate_line_item(item)
        if not ok:
            message = "Nombre del producto es obligatorio" if not name else "Cantidad es obligatoria"
            self._notify("error", "Datos del producto inválidos", message)
            return False

        product = LineItem(**item)
        self.products.append(product)
        self.item_entry = _empty_item_entry()
        self._notify("info", "Producto agregado", f"{product.name} ha sido agregado a su solicitud.")
        return True

    def remove_line_item(self, index: int) -> Optional[LineItem]:
        # out-of-range positions are ignored
        if not 0 <= index < len(self.products):
            return None
        return self.products.pop(index)

    # --- submission
    def submit(self, form_fields: Mapping[str, Any]) -> SubmissionStatus:
        if self.state.status == SubmissionStatus.LOADING:
            return self.state.status

        self.form_fields = {f: form_fields.get(f, "") for f in REQUIRED_FIELDS}

        ok, _ = validate_form_fields(self.form_fields)
        if not ok:
            self._notify("error", "Formulario incompleto", "Por favor complete todos los campos obligatorios")
            return self.state.status

        if not self.products:
            self._notify("error", "Sin productos", "Por favor agregue al menos un producto antes de enviar")
            return self.state.status

        payload = dict(self.form_fields)
        payload["products"] = [p.model_dump(exclude_none=True) for p in self.products]
        ok, message = validate_purchase_request(payload)
        if not ok:
            self._notify("error", "Solicitud inválida", message)
            return self.state.status

        self.state.begin()
        try:
            resp = self._http.post(SUBMIT_PATH, json=payload)
        except httpx.HTTPError as e:
            monitoring.logger.error("Purchase request could not be sent", extra={"error": str(e)})
            self.state.fail()
            self._notify("error", "Estado de Solicitud", MSG_GENERIC_ERROR)
            return self.state.status

        body = _json_body(resp)
        if resp.is_success:
            self._handle_success(body)
        else:
            self._handle_failure(resp.status_code, body)
        return self.state.status

    def _handle_success(self, body: Dict[str, Any]):
        self.state.succeed()
        self._notify("success", "¡Éxito!", body.get("message") or "Solicitud de compra enviada con éxito.")

        snapshot = ConfirmationSnapshot(
            name=self.form_fields["name"],
            date=format_date_time(),
            products=list(self.products),
        )
        self.session_store.set_item(CONFIRMATION_KEY, snapshot.model_dump_json(exclude_none=True))

        def _finish():
            self._reset_form()
            self._navigate(CONFIRMATION_VIEW)

        self.state.schedule_reset(self.success_reset_delay, on_reset=_finish)

    def _handle_failure(self, status_code: int, body: Dict[str, Any]):
        self.state.fail()
        message = body.get("message") or MSG_GENERIC_ERROR
        monitoring.logger.warning(
            "Purchase request not accepted",
            extra={"http_status": status_code, "error_code": body.get("error_code")},
        )

        if body.get("error_code") == E_RECORDED_LOCALLY:
            self._notify("warning", "Estado de Solicitud", message)
            self.state.schedule_reset(self.local_reset_delay, on_reset=self._reset_form)
        else:
            self._notify("error", "Estado de Solicitud", message)

    # --- helpers
    def _reset_form(self):
        self.form_fields = _empty_form()
        self.item_entry = _empty_item_entry()
        self.products = []

    def _navigate(self, view: str):
        self.view = view
        if self.on_navigate is not None:
            self.on_navigate(view)

    def _notify(self, level: str, title: str, message: str):
        notice = Notice(level=level, title=title, message=message)
        self.notices.append(notice)
        if self.on_notice is not None:
            self.on_notice(notice)


def _json_body(resp: httpx.Response) -> Dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
