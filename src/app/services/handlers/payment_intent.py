"""PaymentIntent 이벤트 핸들러"""
import logging
from typing import Any, Dict

from schemas import OrderDetails, OrderStatus
from services.handlers.base import ActionFunc, EventHandler, HandlerResult, get_nested


logger = logging.getLogger(__name__)

# 주문 생성 플로우가 메타데이터에 심는 임시 주문 ID 접두사
PLACEHOLDER_PREFIX = "pending-"


class PaymentIntentEventHandler(EventHandler):
    name = "payment_intent"

    def _build_actions(self) -> Dict[str, ActionFunc]:
        return {
            "payment_intent.succeeded": self.handle_succeeded,
            "payment_intent.payment_failed": self.record_failure,
            "payment_intent.created": self.log_only,
            "payment_intent.canceled": self.log_only,
            "payment_intent.requires_action": self.log_only,
        }

    def handle_succeeded(self, event_type: str, event_id: str, payload: Dict[str, Any]) -> HandlerResult:
        placeholder = get_nested(payload, "metadata", "orderId")
        if isinstance(placeholder, str) and placeholder.startswith(PLACEHOLDER_PREFIX):
            logger.info(
                "[STRIPE] PaymentIntent %s carries placeholder order id %s; reconciling by payment id",
                payload.get("id"),
                placeholder,
            )
        return self.record_success(event_type, event_id, payload)

    def order_details(self, event_type: str, payload: Dict[str, Any], status: OrderStatus) -> OrderDetails:
        if status is OrderStatus.FAILED:
            reason = get_nested(payload, "last_payment_error", "message") or "Unknown error"
            description = f"Failed PaymentIntent: {reason}"
        else:
            description = f"PaymentIntent payment for {payload.get('id')}"
        return self.build_details(payload, status, description)
