"""Stripe 웹훅 엔드포인트 통합 테스트"""
import json
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.middleware import setup_exception_handlers
from routers import webhook_router
from schemas import OrderStatus
from services.event_processor import EventProcessor
from services.event_router import EventRouter
from services.event_verifier import StripeEventVerifier, build_signature_header
from services.handlers import build_default_handlers
from services.ledger_store import InMemoryLedgerStore


SECRET = "whsec_router_test"


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def client(store):
    app = FastAPI()
    setup_exception_handlers(app)
    app.include_router(webhook_router.router)

    verifier = StripeEventVerifier(SECRET)
    processor = EventProcessor(EventRouter(build_default_handlers(store)))
    app.dependency_overrides[webhook_router.get_event_verifier] = lambda: verifier
    app.dependency_overrides[webhook_router.get_event_processor] = lambda: processor

    return TestClient(app)


def _body(event_type: str, obj: dict, event_id: str = "evt_test") -> bytes:
    return json.dumps({"id": event_id, "type": event_type, "data": {"object": obj}}).encode("utf-8")


def _post(client: TestClient, raw: bytes, secret: str = SECRET):
    return client.post(
        "/webhook/stripe",
        content=raw,
        headers={"Stripe-Signature": build_signature_header(raw, secret), "Content-Type": "application/json"},
    )


def test_unknown_payment_succeeded_creates_completed_order(client, store):
    raw = _body(
        "payment_intent.succeeded",
        {"id": "pi_123", "amount": 2000, "currency": "usd", "customer": "cus_A"},
    )

    response = _post(client, raw)

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["data"] == {"received": True, "event_id": "evt_test", "event_type": "payment_intent.succeeded"}

    order = store.find_by_external_payment_id("pi_123")
    assert order.status is OrderStatus.COMPLETED
    assert order.amount == 2000
    assert store.get_customer(order.customer_id).external_customer_id == "cus_A"


def test_pending_order_is_marked_paid(client, store):
    pending = store.create_pending_order(2000, "usd", "widget", external_payment_id="pi_456")
    raw = _body(
        "payment_intent.succeeded",
        {"id": "pi_456", "amount": 2000, "currency": "usd", "metadata": {"orderId": "pending-1700000000000"}},
    )

    assert _post(client, raw).status_code == 200
    assert _post(client, raw).status_code == 200

    assert store.get_order(pending.id).status is OrderStatus.PAID
    assert len([o for o in store.list_orders() if o.external_payment_id == "pi_456"]) == 1


def test_unregistered_event_type_is_acknowledged(client, store, caplog):
    caplog.set_level(logging.WARNING)
    before = store.stats()

    response = _post(client, _body("unknown.event", {"id": "obj_1"}))

    assert response.status_code == 200
    assert store.stats() == before
    assert any("no handler for event type" in r.getMessage() for r in caplog.records)


def test_invalid_signature_returns_400(client, store):
    before = store.stats()
    raw = _body("payment_intent.succeeded", {"id": "pi_789", "amount": 100})

    response = _post(client, raw, secret="whsec_wrong")

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_SIGNATURE"
    assert store.stats() == before


def test_missing_signature_header_returns_400(client):
    response = client.post("/webhook/stripe", content=_body("charge.succeeded", {"id": "ch_1"}))

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_SIGNATURE"


def test_malformed_json_returns_400(client):
    response = _post(client, b"{not-json")

    assert response.status_code == 400
    assert response.json()["error_code"] == "MALFORMED_PAYLOAD"


def test_handler_failure_still_acknowledged(client, store):
    raw = _body("charge.succeeded", {"id": "ch_neg", "amount": -500})

    response = _post(client, raw)

    assert response.status_code == 200
    assert store.find_by_external_payment_id("ch_neg") is None


def test_refund_for_unknown_charge_is_acknowledged(client, store):
    before = store.stats()

    response = _post(client, _body("charge.refunded", {"id": "ch_unknown", "amount_refunded": 100}))

    assert response.status_code == 200
    assert store.stats() == before


def test_webhook_get_liveness(client):
    response = client.get("/webhook/stripe")

    assert response.status_code == 200
    assert response.json()["data"] == {"ok": True}
