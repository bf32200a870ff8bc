"""
주문 생성 서비스

1. 임시 주문 ID(``pending-<millis>``)를 만들어 PaymentIntent 메타데이터에 심는다
2. Stripe PaymentIntent 를 생성한다
3. 실제 PaymentIntent ID 로 원장에 대기 주문을 등록한다
4. 프론트엔드가 결제를 확정할 수 있도록 client_secret 을 돌려준다

이후 도착하는 payment_intent.succeeded 웹훅은 결제 ID 인덱스로 이 주문을 찾아 paid 로 전환한다.
"""
import logging
import time
from typing import Optional

from core.interfaces import ILedgerStore, IPaymentProvider
from core.responses import ExternalServiceException, ValidationException
from schemas import CreateOrderRequest, CreateOrderResponse, CreatePendingOrderRequest, Order


logger = logging.getLogger(__name__)


def placeholder_order_id() -> str:
    return f"pending-{int(time.time() * 1000)}"


class OrderService:
    def __init__(
        self,
        store: ILedgerStore,
        payment_provider: Optional[IPaymentProvider] = None,
        *,
        publishable_key: str = "",
        default_currency: str = "usd",
    ) -> None:
        self.store = store
        self.payment_provider = payment_provider
        self.publishable_key = publishable_key
        self.default_currency = default_currency

    async def create_order(self, request: CreateOrderRequest) -> CreateOrderResponse:
        """PaymentIntent 와 함께 대기 주문 생성"""

        self._validate_amount(request.amount)
        if self.payment_provider is None:
            raise ExternalServiceException("Stripe", "Stripe API 키가 설정되지 않아 결제를 생성할 수 없습니다")

        currency = (request.currency or self.default_currency).lower()
        temp_order_id = placeholder_order_id()

        logger.info(
            "[ORDER] creating order - amount: %s, currency: %s, placeholder: %s",
            request.amount,
            currency,
            temp_order_id,
        )

        metadata = {"orderId": temp_order_id}
        if request.customer_email:
            metadata["customerEmail"] = request.customer_email

        intent = await self.payment_provider.create_payment_intent(
            request.amount,
            currency,
            description=request.description,
            metadata=metadata,
        )

        payment_intent_id = intent.get("id")
        if not payment_intent_id:
            raise ExternalServiceException("Stripe", "PaymentIntent 응답에 id 가 없습니다")

        order = self.store.create_pending_order(
            request.amount,
            currency,
            request.description,
            external_payment_id=payment_intent_id,
        )

        logger.info("[ORDER] order created - orderId: %s, paymentIntentId: %s", order.id, payment_intent_id)

        return CreateOrderResponse(
            order_id=order.id,
            status=order.status,
            amount=order.amount,
            currency=order.currency,
            client_secret=intent.get("client_secret"),
            payment_intent_id=payment_intent_id,
        )

    def create_pending_order(self, request: CreatePendingOrderRequest) -> Order:
        """Stripe 호출 없이 대기 주문만 생성 (데모/관리용)"""

        self._validate_amount(request.amount)
        return self.store.create_pending_order(
            request.amount,
            (request.currency or self.default_currency).lower(),
            request.description,
        )

    def get_publishable_key(self) -> str:
        return self.publishable_key

    @staticmethod
    def _validate_amount(amount: Optional[int]) -> None:
        if amount is None or amount <= 0:
            logger.warning("[ORDER] invalid order request: amount must be positive (got %s)", amount)
            raise ValidationException("Amount must be positive")
