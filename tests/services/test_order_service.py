"""OrderService 테스트"""
import pytest

from core.responses import ExternalServiceException, ValidationException
from schemas import CreateOrderRequest, CreatePendingOrderRequest, OrderStatus
from services.ledger_store import InMemoryLedgerStore
from services.order_service import OrderService


class DummyPaymentProvider:
    def __init__(self, response=None):
        self.response = response if response is not None else {"id": "pi_new", "client_secret": "pi_new_secret"}
        self.calls = []

    async def create_payment_intent(self, amount, currency, *, description=None, metadata=None):  # noqa: D401 - 테스트 스텁
        self.calls.append(
            {"amount": amount, "currency": currency, "description": description, "metadata": metadata}
        )
        return self.response


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.mark.asyncio
async def test_create_order_registers_pending_order_under_real_payment_id(store):
    provider = DummyPaymentProvider()
    service = OrderService(store, provider, publishable_key="pk_test")

    response = await service.create_order(
        CreateOrderRequest(amount=2500, currency="USD", description="widget", customer_email="a@example.com")
    )

    assert response.payment_intent_id == "pi_new"
    assert response.client_secret == "pi_new_secret"
    assert response.status is OrderStatus.PENDING
    assert response.currency == "usd"

    call = provider.calls[0]
    assert call["amount"] == 2500
    assert call["metadata"]["orderId"].startswith("pending-")
    assert call["metadata"]["customerEmail"] == "a@example.com"

    order = store.find_by_external_payment_id("pi_new")
    assert order.id == response.order_id
    assert order.description == "widget"


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -100])
async def test_create_order_rejects_non_positive_amount(store, amount):
    provider = DummyPaymentProvider()
    service = OrderService(store, provider)

    with pytest.raises(ValidationException):
        await service.create_order(CreateOrderRequest(amount=amount))

    assert provider.calls == []


@pytest.mark.asyncio
async def test_create_order_without_provider(store):
    with pytest.raises(ExternalServiceException):
        await OrderService(store).create_order(CreateOrderRequest(amount=100))


@pytest.mark.asyncio
async def test_create_order_requires_payment_intent_id(store):
    service = OrderService(store, DummyPaymentProvider(response={"client_secret": "x"}))

    with pytest.raises(ExternalServiceException):
        await service.create_order(CreateOrderRequest(amount=100))

    assert store.stats()["orders"] == 1


def test_create_pending_order_uses_default_currency(store):
    service = OrderService(store, default_currency="eur")

    order = service.create_pending_order(CreatePendingOrderRequest(amount=300))

    assert order.currency == "eur"
    assert order.status is OrderStatus.PENDING


def test_publishable_key():
    assert OrderService(InMemoryLedgerStore(), publishable_key="pk_live").get_publishable_key() == "pk_live"
