"""Customer 이벤트 핸들러 - 고객 동기화 규칙이 정해지기 전까지 기록만 한다"""
from typing import Dict

from services.handlers.base import ActionFunc, EventHandler


CUSTOMER_EVENTS = (
    "customer.created",
    "customer.updated",
    "customer.deleted",
)


class CustomerEventHandler(EventHandler):
    name = "customer"

    def _build_actions(self) -> Dict[str, ActionFunc]:
        return {name: self.log_only for name in CUSTOMER_EVENTS}
