# Stripe event handlers package
from typing import List

from core.interfaces import ILedgerStore
from .base import EventHandler, HandlerResult
from .charge import ChargeEventHandler
from .customer import CustomerEventHandler
from .invoice import InvoiceEventHandler
from .payment_intent import PaymentIntentEventHandler
from .subscription import SubscriptionEventHandler


def build_default_handlers(store: ILedgerStore) -> List[EventHandler]:
    """기본 핸들러 세트 (등록 순서 = 라우터 조회 순서)"""
    return [
        PaymentIntentEventHandler(store),
        ChargeEventHandler(store),
        InvoiceEventHandler(store),
        SubscriptionEventHandler(store),
        CustomerEventHandler(store),
    ]


__all__ = [
    "EventHandler",
    "HandlerResult",
    "ChargeEventHandler",
    "CustomerEventHandler",
    "InvoiceEventHandler",
    "PaymentIntentEventHandler",
    "SubscriptionEventHandler",
    "build_default_handlers",
]
