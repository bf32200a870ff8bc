"""Invoice 이벤트 핸들러

인보이스 금액은 ``total`` 필드를 사용하고, 통화가 없으면 저장소 기본 통화(usd)를 따른다.
"""
from typing import Any, Dict

from schemas import OrderDetails, OrderStatus
from services.handlers.base import ActionFunc, EventHandler


_DESCRIPTION_PREFIX = {
    OrderStatus.PENDING: "Invoice",
    OrderStatus.FINALIZED: "Finalized Invoice",
    OrderStatus.COMPLETED: "Paid Invoice",
    OrderStatus.FAILED: "Failed Invoice",
}


class InvoiceEventHandler(EventHandler):
    name = "invoice"

    def _build_actions(self) -> Dict[str, ActionFunc]:
        return {
            "invoice.created": self.record_pending,
            "invoice.finalized": self.record_finalized,
            "invoice.paid": self.record_success,
            "invoice.payment_failed": self.record_failure,
            "invoice.voided": self.log_only,
            "invoice.deleted": self.log_only,
            "invoice.marked_uncollectible": self.log_only,
            "invoice.payment_action_required": self.log_only,
        }

    def order_details(self, event_type: str, payload: Dict[str, Any], status: OrderStatus) -> OrderDetails:
        prefix = _DESCRIPTION_PREFIX.get(status, "Invoice")
        number = payload.get("number") or payload.get("id")
        return self.build_details(payload, status, f"{prefix}: {number}", amount_field="total")
