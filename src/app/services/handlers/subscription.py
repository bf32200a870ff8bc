"""Subscription 이벤트 핸들러 - 현재는 모든 이벤트를 기록만 한다"""
from typing import Dict

from services.handlers.base import ActionFunc, EventHandler


SUBSCRIPTION_EVENTS = (
    "subscription.created",
    "subscription.updated",
    "subscription.deleted",
    "subscription.paused",
    "subscription.resumed",
    "subscription.trial_will_end",
)


class SubscriptionEventHandler(EventHandler):
    name = "subscription"

    def _build_actions(self) -> Dict[str, ActionFunc]:
        return {name: self.log_only for name in SUBSCRIPTION_EVENTS}
