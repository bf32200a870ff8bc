# Routers package
from . import (
    ledger_router,
    order_router,
    webhook_router,
)

__all__ = [
    "ledger_router",
    "order_router",
    "webhook_router",
]
