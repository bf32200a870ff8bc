"""
Stripe 이벤트 핸들러 공통 기반

각 핸들러는 ``{이벤트 타입: 액션}`` 테이블을 선언하고, 지원 타입 집합은 그 테이블의 키다.
액션은 원장 저장소에 최대 한 번만 쓰기를 수행하며, 기대한 주문이 없어도 예외를 던지지 않는다.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Optional

from core.interfaces import ILedgerStore
from schemas import OrderDetails, OrderStatus
from services.ledger_store import DuplicateOrderError


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HandlerResult:
    action: str  # created | updated | marked_paid | logged | reconciliation_miss
    order_id: Optional[str] = None
    status: Optional[str] = None
    detail: Optional[str] = None


ActionFunc = Callable[[str, str, Dict[str, Any]], HandlerResult]

# 성공 이벤트가 다시 와도 상태를 바꾸지 않는 상태 (환불 이후 재전송된 성공 이벤트 포함)
SETTLED_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.COMPLETED, OrderStatus.REFUNDED})


def get_nested(d: Dict[str, Any], *keys: str, default=None):
    cur: Any = d
    for k in keys:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def to_minor_amount(value: Any) -> int:
    """최소 통화 단위 정수로 변환. 해석할 수 없으면 0"""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return 0


def reference_id(value: Any) -> Optional[str]:
    """문자열 ID 또는 확장(expand)된 객체의 id 를 반환"""
    if isinstance(value, str) and value:
        return value
    if isinstance(value, dict):
        inner = value.get("id")
        return inner if isinstance(inner, str) and inner else None
    return None


class EventHandler(ABC):
    """Stripe 도메인 객체별 이벤트 핸들러"""

    name: str = "event"

    def __init__(self, store: ILedgerStore) -> None:
        self.store = store
        self._actions: Dict[str, ActionFunc] = self._build_actions()

    @abstractmethod
    def _build_actions(self) -> Dict[str, ActionFunc]:
        """이벤트 타입 → 액션 테이블"""

    def order_details(self, event_type: str, payload: Dict[str, Any], status: OrderStatus) -> OrderDetails:
        """페이로드에서 주문 생성 정보를 추출"""
        raise NotImplementedError(f"{self.name} events never create orders")

    def supported_types(self) -> FrozenSet[str]:
        return frozenset(self._actions)

    def handle(self, event_type: str, event_id: str, payload: Dict[str, Any]) -> HandlerResult:
        action = self._actions.get(event_type)
        if action is None:
            logger.info("[STRIPE] %s handler has no action for %s (event %s)", self.name, event_type, event_id)
            return HandlerResult("logged", detail="unsupported event type")
        return action(event_type, event_id, payload)

    # ------------------------------------------------------------------
    # shared actions
    # ------------------------------------------------------------------
    def log_only(self, event_type: str, event_id: str, payload: Dict[str, Any]) -> HandlerResult:
        logger.info(
            "[STRIPE] %s event logged without ledger action - type: %s, eventId: %s, objectId: %s",
            self.name,
            event_type,
            event_id,
            payload.get("id"),
        )
        return HandlerResult("logged", detail="no ledger action for this event type")

    def record_success(self, event_type: str, event_id: str, payload: Dict[str, Any]) -> HandlerResult:
        """성공/결제 완료: 기존 주문은 paid 로 조정, 없으면 completed 로 생성"""
        payment_id = reference_id(payload.get("id"))
        if payment_id is None:
            return self._missing_object_id(event_type, event_id)

        existing = self.store.find_by_external_payment_id(payment_id)
        if existing is None:
            try:
                order = self.store.create_order(self.order_details(event_type, payload, OrderStatus.COMPLETED))
            except DuplicateOrderError as exc:
                logger.info("[STRIPE] concurrent create detected for %s; reconciling instead", payment_id)
                existing = self.store.get_order(exc.existing_order_id)
            else:
                logger.info(
                    "[STRIPE] %s (fallback create) - eventId: %s, orderId: %s, amount: %s, currency: %s",
                    event_type,
                    event_id,
                    order.id,
                    order.amount,
                    order.currency,
                )
                return HandlerResult("created", order.id, order.status.value)

        if existing is not None and existing.status in SETTLED_STATUSES:
            logger.info(
                "[STRIPE] %s - order %s already %s; redelivery ignored (event %s)",
                event_type,
                existing.id,
                existing.status.value,
                event_id,
            )
            return HandlerResult("logged", existing.id, existing.status.value, detail="already settled")

        order = self.store.mark_paid(payment_id)
        if order is None:
            return self._reconciliation_miss(event_type, event_id, payment_id)

        logger.info(
            "[STRIPE] %s - eventId: %s, orderId: %s, amount: %s, currency: %s, status: %s",
            event_type,
            event_id,
            order.id,
            order.amount,
            order.currency,
            order.status.value,
        )
        return HandlerResult("marked_paid", order.id, order.status.value)

    def record_failure(self, event_type: str, event_id: str, payload: Dict[str, Any]) -> HandlerResult:
        return self._transition_or_create(event_type, event_id, payload, OrderStatus.FAILED)

    def record_finalized(self, event_type: str, event_id: str, payload: Dict[str, Any]) -> HandlerResult:
        return self._transition_or_create(event_type, event_id, payload, OrderStatus.FINALIZED)

    def record_refund(self, event_type: str, event_id: str, payload: Dict[str, Any]) -> HandlerResult:
        """환불: 관찰한 적 없는 주문의 환불은 여기서 복구할 수 없으므로 기록만 남긴다"""
        payment_id = reference_id(payload.get("id"))
        if payment_id is None:
            return self._missing_object_id(event_type, event_id)

        existing = self.store.find_by_external_payment_id(payment_id)
        order = self.store.update_status(existing.id, OrderStatus.REFUNDED) if existing else None
        if order is None:
            return self._reconciliation_miss(event_type, event_id, payment_id)

        logger.info(
            "[STRIPE] %s - eventId: %s, orderId: %s, amount: %s, refundedAmount: %s",
            event_type,
            event_id,
            order.id,
            order.amount,
            payload.get("amount_refunded"),
        )
        return HandlerResult("updated", order.id, order.status.value)

    def record_pending(self, event_type: str, event_id: str, payload: Dict[str, Any]) -> HandlerResult:
        """대기 주문 등록. 이미 추적 중인 결제 ID 면 건드리지 않는다"""
        payment_id = reference_id(payload.get("id"))
        if payment_id is None:
            return self._missing_object_id(event_type, event_id)

        existing = self.store.find_by_external_payment_id(payment_id)
        if existing is None:
            try:
                order = self.store.create_order(self.order_details(event_type, payload, OrderStatus.PENDING))
            except DuplicateOrderError as exc:
                existing = self.store.get_order(exc.existing_order_id)
            else:
                logger.info(
                    "[STRIPE] %s - eventId: %s, orderId: %s, amount: %s, currency: %s",
                    event_type,
                    event_id,
                    order.id,
                    order.amount,
                    order.currency,
                )
                return HandlerResult("created", order.id, order.status.value)

        logger.info("[STRIPE] %s - order already tracked for %s; left unchanged (event %s)", event_type, payment_id, event_id)
        return HandlerResult(
            "logged",
            existing.id if existing else None,
            existing.status.value if existing else None,
            detail="order already tracked",
        )

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _transition_or_create(
        self,
        event_type: str,
        event_id: str,
        payload: Dict[str, Any],
        status: OrderStatus,
    ) -> HandlerResult:
        payment_id = reference_id(payload.get("id"))
        if payment_id is None:
            return self._missing_object_id(event_type, event_id)

        existing = self.store.find_by_external_payment_id(payment_id)
        if existing is None:
            try:
                order = self.store.create_order(self.order_details(event_type, payload, status))
            except DuplicateOrderError as exc:
                existing = self.store.get_order(exc.existing_order_id)
            else:
                logger.info(
                    "[STRIPE] %s (no prior order) - eventId: %s, orderId: %s, amount: %s, status: %s",
                    event_type,
                    event_id,
                    order.id,
                    order.amount,
                    order.status.value,
                )
                return HandlerResult("created", order.id, order.status.value)

        order = self.store.update_status(existing.id, status) if existing else None
        if order is None:
            return self._reconciliation_miss(event_type, event_id, payment_id)

        logger.info(
            "[STRIPE] %s - eventId: %s, orderId: %s, status: %s",
            event_type,
            event_id,
            order.id,
            order.status.value,
        )
        return HandlerResult("updated", order.id, order.status.value)

    def build_details(
        self,
        payload: Dict[str, Any],
        status: OrderStatus,
        description: str,
        *,
        amount_field: str = "amount",
    ) -> OrderDetails:
        currency = payload.get("currency")
        return OrderDetails(
            external_payment_id=reference_id(payload.get("id")) or "",
            external_customer_id=reference_id(payload.get("customer")),
            amount=to_minor_amount(payload.get(amount_field)),
            currency=currency.lower() if isinstance(currency, str) and currency else None,
            description=description,
            status=status,
        )

    def _reconciliation_miss(self, event_type: str, event_id: str, payment_id: str) -> HandlerResult:
        logger.warning(
            "[STRIPE] reconciliation miss - no order for paymentId: %s (type: %s, eventId: %s)",
            payment_id,
            event_type,
            event_id,
        )
        return HandlerResult("reconciliation_miss", detail=f"no order for {payment_id}")

    def _missing_object_id(self, event_type: str, event_id: str) -> HandlerResult:
        logger.warning("[STRIPE] %s event %s has no object id; skipped", event_type, event_id)
        return HandlerResult("logged", detail="missing object id")
