"""
이벤트 타입 → 핸들러 라우팅

레지스트리는 시작 시 한 번 만들어지는 ``{타입 문자열: 핸들러}`` 맵이다.
두 핸들러가 같은 타입을 선언하면 요청 시점이 아니라 구성 시점에 실패한다.
"""
import logging
from typing import Dict, Iterable, List, Optional

from services.handlers import EventHandler


logger = logging.getLogger(__name__)


class HandlerConflictError(RuntimeError):
    """두 핸들러가 같은 이벤트 타입을 선언"""

    def __init__(self, event_type: str, first: str, second: str) -> None:
        super().__init__(f"event type {event_type!r} claimed by both {first} and {second}")
        self.event_type = event_type
        self.handler_names = (first, second)


class EventRouter:
    """정확한(대소문자 구분) 타입 일치로 단일 핸들러를 찾는다"""

    def __init__(self, handlers: Iterable[EventHandler]) -> None:
        self._handlers: List[EventHandler] = list(handlers)
        self._registry: Dict[str, EventHandler] = {}

        for handler in self._handlers:
            for event_type in sorted(handler.supported_types()):
                claimed = self._registry.get(event_type)
                if claimed is not None:
                    raise HandlerConflictError(event_type, claimed.name, handler.name)
                self._registry[event_type] = handler

        logger.info(
            "[STRIPE] event router built: %s handlers, %s event types",
            len(self._handlers),
            len(self._registry),
        )

    @property
    def handlers(self) -> List[EventHandler]:
        return list(self._handlers)

    def registered_types(self) -> List[str]:
        return sorted(self._registry)

    def route(self, event_type: str) -> Optional[EventHandler]:
        handler = self._registry.get(event_type)
        logger.debug("[STRIPE] route %s -> %s", event_type, handler.name if handler else None)
        return handler
