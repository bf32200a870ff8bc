"""
검증된 이벤트를 핸들러로 전달하는 처리기

웹훅 응답이 이미 나간 뒤 백그라운드에서 실행되므로 어떤 실패도 호출자에게 전파하지 않는다.
결과는 로그와 반환값(테스트/진단용)으로만 남는다.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from schemas import StripeEvent
from services.event_router import EventRouter
from services.handlers import HandlerResult
from services.ledger_store import StoreInvariantViolation


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProcessingOutcome:
    event_id: str
    event_type: str
    status: str  # processed | skipped | failed
    handler: Optional[str] = None
    result: Optional[HandlerResult] = None
    error: Optional[str] = None


class EventProcessor:
    def __init__(self, router: EventRouter) -> None:
        self.router = router

    def process(self, event: StripeEvent) -> ProcessingOutcome:
        logger.info("[STRIPE] processing event type: %s, eventId: %s", event.type, event.id)

        handler = self.router.route(event.type)
        if handler is None:
            logger.warning("[STRIPE] no handler for event type: %s (eventId: %s); acknowledged", event.type, event.id)
            return ProcessingOutcome(event.id, event.type, "skipped")

        try:
            result = handler.handle(event.type, event.id, event.payload)
        except StoreInvariantViolation as exc:
            logger.error(
                "[STRIPE] ledger rejected %s (eventId: %s): %s",
                event.type,
                event.id,
                exc.message,
            )
            return ProcessingOutcome(event.id, event.type, "failed", handler.name, error=exc.message)
        except Exception as exc:
            logger.error(
                "[STRIPE] handler %s failed for %s (eventId: %s): %s",
                handler.name,
                event.type,
                event.id,
                exc,
                exc_info=True,
            )
            return ProcessingOutcome(event.id, event.type, "failed", handler.name, error=str(exc))

        logger.info(
            "[STRIPE] event %s handled by %s: action=%s orderId=%s",
            event.id,
            handler.name,
            result.action,
            result.order_id,
        )
        return ProcessingOutcome(event.id, event.type, "processed", handler.name, result)
