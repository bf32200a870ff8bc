"""Charge 이벤트 핸들러"""
from typing import Any, Dict

from schemas import OrderDetails, OrderStatus
from services.handlers.base import ActionFunc, EventHandler


class ChargeEventHandler(EventHandler):
    name = "charge"

    def _build_actions(self) -> Dict[str, ActionFunc]:
        return {
            "charge.succeeded": self.record_success,
            "charge.failed": self.record_failure,
            "charge.refunded": self.record_refund,
            # 승인 후 매입(captured), 변경, 분쟁은 아직 원장 반영 규칙이 없다
            "charge.captured": self.log_only,
            "charge.updated": self.log_only,
            "charge.dispute.created": self.log_only,
        }

    def order_details(self, event_type: str, payload: Dict[str, Any], status: OrderStatus) -> OrderDetails:
        if status is OrderStatus.FAILED:
            description = f"Failed Charge: {payload.get('failure_message') or 'Unknown error'}"
        else:
            description = f"Charge payment for {payload.get('id')}"
        return self.build_details(payload, status, description)
