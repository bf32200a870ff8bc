"""Stripe 이벤트 핸들러 테스트 - 원장 조정 시나리오"""
import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from schemas import OrderStatus
from services.handlers import (
    ChargeEventHandler,
    CustomerEventHandler,
    InvoiceEventHandler,
    PaymentIntentEventHandler,
    SubscriptionEventHandler,
)
from services.ledger_store import InMemoryLedgerStore


@pytest.fixture
def store():
    return InMemoryLedgerStore(seed_sample_data=False)


def _intent(payment_id: str = "pi_123", amount: int = 2000, **extra):
    return {"id": payment_id, "object": "payment_intent", "amount": amount, "currency": "usd", **extra}


def test_succeeded_without_prior_order_creates_completed(store):
    handler = PaymentIntentEventHandler(store)

    result = handler.handle("payment_intent.succeeded", "evt_1", _intent(customer="cus_A"))

    assert result.action == "created"
    order = store.find_by_external_payment_id("pi_123")
    assert order.status is OrderStatus.COMPLETED
    assert order.amount == 2000
    assert order.currency == "usd"
    assert order.description == "PaymentIntent payment for pi_123"
    assert store.get_customer(order.customer_id).external_customer_id == "cus_A"


def test_succeeded_marks_pending_order_paid(store):
    pending = store.create_pending_order(2000, "usd", "widget", external_payment_id="pi_123")
    handler = PaymentIntentEventHandler(store)

    result = handler.handle(
        "payment_intent.succeeded",
        "evt_1",
        _intent(metadata={"orderId": "pending-1700000000000"}),
    )

    assert result.action == "marked_paid"
    assert result.order_id == pending.id
    assert store.get_order(pending.id).status is OrderStatus.PAID
    assert store.stats()["orders"] == 1


def test_succeeded_redelivery_is_noop(store):
    pending = store.create_pending_order(2000, external_payment_id="pi_123")
    handler = PaymentIntentEventHandler(store)

    handler.handle("payment_intent.succeeded", "evt_1", _intent())
    after_first = store.get_order(pending.id)
    second = handler.handle("payment_intent.succeeded", "evt_1", _intent())

    assert second.action == "logged"
    assert store.get_order(pending.id) == after_first
    assert store.stats()["orders"] == 1


def test_succeeded_redelivery_after_fallback_create_keeps_completed(store):
    handler = PaymentIntentEventHandler(store)

    handler.handle("payment_intent.succeeded", "evt_1", _intent())
    handler.handle("payment_intent.succeeded", "evt_1", _intent())

    assert store.stats()["orders"] == 1
    assert store.find_by_external_payment_id("pi_123").status is OrderStatus.COMPLETED


def test_concurrent_succeeded_deliveries_create_one_order(store):
    handler = PaymentIntentEventHandler(store)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda i: handler.handle("payment_intent.succeeded", f"evt_{i}", _intent()), range(24)))

    assert store.stats() == {"orders": 1, "customers": 0, "indexed_payments": 1}


def test_payment_failed_without_prior_order_creates_failed(store):
    handler = PaymentIntentEventHandler(store)
    payload = _intent(last_payment_error={"message": "card declined"})

    result = handler.handle("payment_intent.payment_failed", "evt_2", payload)

    assert result.action == "created"
    order = store.find_by_external_payment_id("pi_123")
    assert order.status is OrderStatus.FAILED
    assert order.description == "Failed PaymentIntent: card declined"


def test_payment_failed_transitions_existing_order(store):
    pending = store.create_pending_order(2000, external_payment_id="pi_123")

    result = PaymentIntentEventHandler(store).handle("payment_intent.payment_failed", "evt_2", _intent())

    assert result.action == "updated"
    assert store.get_order(pending.id).status is OrderStatus.FAILED
    assert store.stats()["orders"] == 1


def test_negative_amount_is_rejected_by_store(store):
    from services.ledger_store import InvalidOrderError

    with pytest.raises(InvalidOrderError):
        PaymentIntentEventHandler(store).handle("payment_intent.succeeded", "evt_3", _intent(amount=-5))

    assert store.stats()["orders"] == 0


def test_missing_amount_defaults_to_zero(store):
    PaymentIntentEventHandler(store).handle("payment_intent.succeeded", "evt_3", {"id": "pi_noamt"})

    order = store.find_by_external_payment_id("pi_noamt")
    assert order.amount == 0
    assert order.currency == "usd"


@pytest.mark.parametrize(
    "event_type",
    ["payment_intent.created", "payment_intent.canceled", "payment_intent.requires_action"],
)
def test_payment_intent_log_only_types(store, event_type):
    result = PaymentIntentEventHandler(store).handle(event_type, "evt_4", _intent())

    assert result.action == "logged"
    assert store.stats()["orders"] == 0


def test_charge_succeeded_and_refunded(store):
    handler = ChargeEventHandler(store)
    charge = {"id": "ch_1", "amount": 3000, "currency": "EUR", "customer": "cus_B", "amount_refunded": 3000}

    handler.handle("charge.succeeded", "evt_5", charge)
    result = handler.handle("charge.refunded", "evt_6", charge)

    assert result.action == "updated"
    order = store.find_by_external_payment_id("ch_1")
    assert order.status is OrderStatus.REFUNDED
    assert order.currency == "eur"


def test_succeeded_redelivered_after_refund_keeps_refunded(store):
    """환불 뒤 늦게 재전송된 성공 이벤트가 환불 상태를 되돌리지 않는다"""

    handler = ChargeEventHandler(store)
    charge = {"id": "ch_r", "amount": 3000, "currency": "usd", "amount_refunded": 3000}

    handler.handle("charge.succeeded", "evt_1", charge)
    handler.handle("charge.refunded", "evt_2", charge)
    result = handler.handle("charge.succeeded", "evt_1", charge)

    assert result.action == "logged"
    assert store.find_by_external_payment_id("ch_r").status is OrderStatus.REFUNDED
    assert store.stats()["orders"] == 1


def test_refund_for_unknown_payment_logs_reconciliation_miss(store, caplog):
    caplog.set_level(logging.WARNING)

    result = ChargeEventHandler(store).handle("charge.refunded", "evt_7", {"id": "ch_missing"})

    assert result.action == "reconciliation_miss"
    assert store.stats()["orders"] == 0
    assert any("reconciliation miss" in r.getMessage() and "ch_missing" in r.getMessage() for r in caplog.records)


def test_charge_failed_description(store):
    ChargeEventHandler(store).handle("charge.failed", "evt_8", {"id": "ch_f", "amount": 100})

    order = store.find_by_external_payment_id("ch_f")
    assert order.status is OrderStatus.FAILED
    assert order.description == "Failed Charge: Unknown error"


def test_invoice_lifecycle(store):
    handler = InvoiceEventHandler(store)
    invoice = {"id": "in_1", "number": "INV-0001", "total": 4200, "currency": "usd", "customer": "cus_C"}

    created = handler.handle("invoice.created", "evt_9", invoice)
    finalized = handler.handle("invoice.finalized", "evt_10", invoice)
    paid = handler.handle("invoice.paid", "evt_11", invoice)

    assert created.action == "created"
    assert finalized.action == "updated"
    assert paid.action == "marked_paid"
    order = store.find_by_external_payment_id("in_1")
    assert order.amount == 4200
    assert order.status is OrderStatus.PAID
    assert order.description == "Invoice: INV-0001"
    assert store.stats()["orders"] == 1


def test_invoice_created_twice_keeps_single_pending_order(store):
    handler = InvoiceEventHandler(store)
    invoice = {"id": "in_2", "total": 100}

    handler.handle("invoice.created", "evt_12", invoice)
    second = handler.handle("invoice.created", "evt_12", invoice)

    assert second.action == "logged"
    assert store.stats()["orders"] == 1


def test_invoice_finalized_without_prior_order_creates_one(store):
    InvoiceEventHandler(store).handle("invoice.finalized", "evt_13", {"id": "in_3", "total": 900})

    order = store.find_by_external_payment_id("in_3")
    assert order.status is OrderStatus.FINALIZED
    assert order.description == "Finalized Invoice: in_3"


def test_invoice_payment_failed_creates_failed_order(store):
    InvoiceEventHandler(store).handle("invoice.payment_failed", "evt_14", {"id": "in_4", "total": 900})

    assert store.find_by_external_payment_id("in_4").status is OrderStatus.FAILED


@pytest.mark.parametrize(
    "handler_cls, event_type, payload",
    [
        (SubscriptionEventHandler, "subscription.created", {"id": "sub_1", "customer": "cus_1"}),
        (SubscriptionEventHandler, "subscription.deleted", {"id": "sub_1"}),
        (CustomerEventHandler, "customer.created", {"id": "cus_1", "email": "a@example.com"}),
        (CustomerEventHandler, "customer.deleted", {"id": "cus_1"}),
        (InvoiceEventHandler, "invoice.voided", {"id": "in_5"}),
        (ChargeEventHandler, "charge.captured", {"id": "ch_2"}),
    ],
)
def test_log_only_events_never_touch_store(store, handler_cls, event_type, payload):
    before = store.stats()

    result = handler_cls(store).handle(event_type, "evt_15", payload)

    assert result.action == "logged"
    assert store.stats() == before


def test_missing_object_id_is_skipped(store):
    result = ChargeEventHandler(store).handle("charge.succeeded", "evt_16", {"amount": 100})

    assert result.action == "logged"
    assert result.detail == "missing object id"
    assert store.stats()["orders"] == 0


def test_supported_types_are_disjoint(store):
    handlers = [
        PaymentIntentEventHandler(store),
        ChargeEventHandler(store),
        InvoiceEventHandler(store),
        SubscriptionEventHandler(store),
        CustomerEventHandler(store),
    ]

    seen = set()
    for handler in handlers:
        types = handler.supported_types()
        assert not (types & seen)
        seen |= types
    assert "payment_intent.succeeded" in seen
    assert "customer.updated" in seen
