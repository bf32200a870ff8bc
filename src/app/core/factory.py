"""
서비스 팩토리 - 의존성 주입 설정
"""
import logging
from typing import Optional

from core.config import Settings, settings as default_settings
from core.container import container
from core.interfaces import ILedgerStore, IPaymentProvider
from services.event_processor import EventProcessor
from services.event_router import EventRouter
from services.event_verifier import StripeEventVerifier
from services.handlers import build_default_handlers
from services.ledger_store import InMemoryLedgerStore
from services.order_service import OrderService
from services.stripe_client import StripeClient

logger = logging.getLogger(__name__)

class ServiceFactory:
    """서비스 의존성 등록 및 초기화"""

    @staticmethod
    def configure_dependencies(config: Optional[Settings] = None):
        """의존성 주입 컨테이너 설정

        핸들러 타입 중복은 여기서 EventRouter 생성 시 HandlerConflictError 로 드러난다.
        """
        config = config or default_settings
        container.clear()

        store = InMemoryLedgerStore(
            order_prefix=config.LEDGER_ORDER_PREFIX,
            customer_prefix=config.LEDGER_CUSTOMER_PREFIX,
            default_currency=config.DEFAULT_CURRENCY,
            seed_sample_data=config.LEDGER_SEED_SAMPLE_DATA,
        )
        container.register_singleton(ILedgerStore, store)

        verifier = StripeEventVerifier(
            config.STRIPE_WEBHOOK_SECRET,
            verify_signature=config.STRIPE_WEBHOOK_VERIFY_SIGNATURE,
            tolerance_seconds=config.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
        )
        container.register_singleton(StripeEventVerifier, verifier)

        router = EventRouter(build_default_handlers(store))
        container.register_singleton(EventRouter, router)
        container.register_singleton(EventProcessor, EventProcessor(router))

        # Stripe API 클라이언트 설정
        payment_provider: Optional[IPaymentProvider] = None
        if config.STRIPE_API_KEY:
            payment_provider = StripeClient(api_key=config.STRIPE_API_KEY, base_url=config.STRIPE_API_BASE_URL)
            container.register_singleton(IPaymentProvider, payment_provider)
        else:
            logger.warning("[STRIPE] STRIPE_API_KEY가 설정되지 않아 StripeClient를 초기화하지 않습니다.")

        container.register_factory(
            OrderService,
            lambda: OrderService(
                store,
                payment_provider,
                publishable_key=config.STRIPE_PUBLISHABLE_KEY,
                default_currency=config.DEFAULT_CURRENCY,
            ),
        )

        logger.info("[STRIPE] registered webhook event types: %s", ", ".join(router.registered_types()))

    @staticmethod
    def get_ledger_store() -> ILedgerStore:
        """원장 저장소 조회"""
        return container.get(ILedgerStore)

    @staticmethod
    def get_event_verifier() -> StripeEventVerifier:
        """웹훅 서명 검증기 조회"""
        return container.get(StripeEventVerifier)

    @staticmethod
    def get_event_router() -> EventRouter:
        return container.get(EventRouter)

    @staticmethod
    def get_event_processor() -> EventProcessor:
        """웹훅 이벤트 처리기 조회"""
        return container.get(EventProcessor)

    @staticmethod
    def get_order_service() -> OrderService:
        """주문 서비스 조회"""
        return container.get(OrderService)

    @staticmethod
    def get_payment_provider() -> IPaymentProvider | None:
        """Stripe 클라이언트 조회"""
        try:
            return container.get(IPaymentProvider)
        except ValueError:
            return None
