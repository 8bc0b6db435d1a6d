# tests/test_submission_client.py
"""
Submission client against the real app (TestClient as transport).
Timers are fake and fired by hand; the relay runs in offline mode unless a
test patches the handler.
"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from purchase_intake.app import app
from purchase_intake import app as app_module
from purchase_intake.client.session_store import CONFIRMATION_KEY, SessionStore
from purchase_intake.client.state_machine import SubmissionStatus
from purchase_intake.client.submission import CONFIRMATION_VIEW, FORM_VIEW, SubmissionClient
from purchase_intake.handler import MSG_RECORDED_LOCALLY

FORM = {
    "name": "Ana",
    "position": "Aux",
    "department": "Calidad",
    "site": "Planta",
    "requestType": "Orden de Compra",
    "justification": "Reposición",
}


@pytest.fixture(autouse=True)
def offline_relay(monkeypatch):
    monkeypatch.setattr(app_module.relay, "target_url", "")
    app_module.fallback_store.reset()
    yield
    app_module.fallback_store.reset()


@pytest.fixture
def navigations():
    return []


@pytest.fixture
def form_client(timers, navigations):
    c = SubmissionClient(
        http_client=TestClient(app),
        session_store=SessionStore(),
        timer_factory=timers,
        on_navigate=navigations.append,
    )
    yield c
    c.close()


def test_add_line_item_appends_and_clears_entry(form_client):
    form_client.item_entry = {"name": "Guantes", "quantity": "10", "specification": "Nitrilo"}
    assert form_client.add_line_item() is True
    assert len(form_client.products) == 1
    assert form_client.products[0].name == "Guantes"
    assert form_client.products[0].quantity == "10"
    assert form_client.products[0].specification == "Nitrilo"
    assert form_client.item_entry == {"name": "", "quantity": "", "specification": ""}
    assert form_client.notices[-1].level == "info"
    assert "Guantes" in form_client.notices[-1].message


@pytest.mark.parametrize("name,quantity,expected", [
    ("", "10", "Nombre del producto es obligatorio"),
    ("Guantes", "", "Cantidad es obligatoria"),
])
def test_add_line_item_rejects_incomplete_item(form_client, name, quantity, expected):
    assert form_client.add_line_item(name, quantity) is False
    assert form_client.products == []
    assert form_client.notices[-1].level == "error"
    assert form_client.notices[-1].message == expected


def test_remove_line_item_by_position(form_client):
    form_client.add_line_item("Guantes", "10")
    form_client.add_line_item("Cascos", "2")
    form_client.add_line_item("Botas", "4")
    removed = form_client.remove_line_item(1)
    assert removed.name == "Cascos"
    assert [p.name for p in form_client.products] == ["Guantes", "Botas"]


def test_incomplete_item_entry_is_kept_for_correction(form_client):
    form_client.item_entry = {"name": "Guantes", "quantity": "", "specification": ""}
    assert form_client.add_line_item() is False
    assert form_client.products == []
    assert form_client.notices[-1].message == "Cantidad es obligatoria"
    assert form_client.item_entry["name"] == "Guantes"


def test_remove_line_item_from_empty_list_is_ignored(form_client):
    assert form_client.remove_line_item(0) is None
    assert form_client.products == []


@pytest.mark.parametrize("index", [1, 5, -1])
def test_remove_line_item_out_of_range_is_ignored(form_client, index):
    form_client.add_line_item("Guantes", "10")
    assert form_client.remove_line_item(index) is None
    assert [p.name for p in form_client.products] == ["Guantes"]


def test_submit_without_products_never_hits_network(form_client):
    status = form_client.submit(FORM)
    assert status == SubmissionStatus.IDLE
    assert form_client.notices[-1].title == "Sin productos"
    assert app_module.fallback_store.count() == 0


def test_submit_with_missing_field_is_blocked_locally(form_client):
    form_client.add_line_item("Guantes", "10")
    status = form_client.submit({**FORM, "site": ""})
    assert status == SubmissionStatus.IDLE
    assert form_client.notices[-1].level == "error"
    assert app_module.fallback_store.count() == 0


def test_successful_submission_stores_snapshot_then_resets_and_navigates(form_client, timers, navigations):
    form_client.add_line_item("Guantes", "10", "Talla M")

    status = form_client.submit(FORM)

    assert status == SubmissionStatus.SUCCESS
    assert form_client.notices[-1].level == "success"
    assert app_module.fallback_store.count() == 1

    snapshot = json.loads(form_client.session_store.get_item(CONFIRMATION_KEY))
    assert snapshot["name"] == "Ana"
    assert snapshot["date"]
    assert snapshot["products"] == [{"name": "Guantes", "quantity": "10", "specification": "Talla M"}]

    # nothing is reset until the timer fires
    assert form_client.products
    assert timers.last.delay == 1.0
    timers.last.fire()

    assert form_client.status == SubmissionStatus.IDLE
    assert form_client.products == []
    assert form_client.form_fields["name"] == ""
    assert form_client.view == CONFIRMATION_VIEW
    assert navigations == [CONFIRMATION_VIEW]


def test_recorded_locally_is_a_warning_with_delayed_reset(form_client, timers, navigations, monkeypatch):
    monkeypatch.setattr(
        app_module.handler,
        "handle_submission",
        lambda raw: (500, {
            "message": MSG_RECORDED_LOCALLY,
            "error": "Failed to submit to spreadsheet: 503",
            "error_code": "E_RECORDED_LOCALLY",
            "success": False,
        }),
    )
    form_client.add_line_item("Guantes", "10")

    status = form_client.submit(FORM)

    assert status == SubmissionStatus.ERROR
    assert form_client.notices[-1].level == "warning"
    assert form_client.notices[-1].message == MSG_RECORDED_LOCALLY
    assert form_client.session_store.get_item(CONFIRMATION_KEY) is None

    assert timers.last.delay == 5.0
    timers.last.fire()
    assert form_client.status == SubmissionStatus.IDLE
    assert form_client.products == []
    assert navigations == []
    assert form_client.view == FORM_VIEW


def test_hard_error_keeps_form_for_retry(form_client, timers, monkeypatch):
    monkeypatch.setattr(
        app_module.handler,
        "handle_submission",
        lambda raw: (500, {"message": "Something broke", "success": False}),
    )
    form_client.add_line_item("Guantes", "10")

    status = form_client.submit(FORM)

    assert status == SubmissionStatus.ERROR
    assert form_client.notices[-1].level == "error"
    assert form_client.notices[-1].message == "Something broke"
    assert timers.created == []
    assert [p.name for p in form_client.products] == ["Guantes"]
    assert form_client.form_fields["name"] == "Ana"


def test_message_text_alone_does_not_trigger_soft_failure(form_client, timers, monkeypatch):
    monkeypatch.setattr(
        app_module.handler,
        "handle_submission",
        lambda raw: (500, {"message": "recorded locally, maybe", "success": False}),
    )
    form_client.add_line_item("Guantes", "10")
    form_client.submit(FORM)
    assert form_client.notices[-1].level == "error"
    assert timers.created == []


def test_transport_error_is_hard_error(timers):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    c = SubmissionClient(
        http_client=httpx.Client(base_url="http://intake.local", transport=httpx.MockTransport(refuse)),
        timer_factory=timers,
    )
    c.add_line_item("Guantes", "10")

    status = c.submit(FORM)

    assert status == SubmissionStatus.ERROR
    assert c.notices[-1].level == "error"
    assert len(c.products) == 1


def test_retry_after_soft_failure_cancels_stale_reset(form_client, timers, monkeypatch):
    responses = [
        (500, {"message": MSG_RECORDED_LOCALLY, "error_code": "E_RECORDED_LOCALLY", "success": False}),
        (200, {"message": "Purchase request submitted successfully", "success": True}),
    ]
    monkeypatch.setattr(app_module.handler, "handle_submission", lambda raw: responses.pop(0))
    form_client.add_line_item("Guantes", "10")

    form_client.submit(FORM)
    stale = timers.last
    form_client.submit(FORM)

    assert stale.cancelled
    assert form_client.status == SubmissionStatus.SUCCESS
    stale.fn()
    assert form_client.status == SubmissionStatus.SUCCESS
    assert [p.name for p in form_client.products] == ["Guantes"]
