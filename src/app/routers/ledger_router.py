"""
원장(mock ledger) 조회/관리 API 라우터
데모와 테스트를 위한 얇은 접근자 - 비즈니스 로직 없음
"""
import logging

from fastapi import APIRouter, Depends, Query

from core.factory import ServiceFactory
from core.interfaces import ILedgerStore
from core.responses import NotFoundException, success_response
from schemas import CreatePendingOrderRequest, OrderStatus
from services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mock", tags=["ledger"])


def get_ledger_store() -> ILedgerStore:
    return ServiceFactory.get_ledger_store()


def get_order_service() -> OrderService:
    return ServiceFactory.get_order_service()


@router.get("/orders")
async def list_orders(store: ILedgerStore = Depends(get_ledger_store)):
    logger.info("GET /mock/orders - retrieving all orders")
    return success_response(data=store.list_orders())


@router.get("/orders/{order_id}")
async def get_order(order_id: str, store: ILedgerStore = Depends(get_ledger_store)):
    order = store.get_order(order_id)
    if order is None:
        raise NotFoundException(f"주문을 찾을 수 없습니다: {order_id}")
    return success_response(data=order)


@router.patch("/orders/{order_id}/status")
async def update_order_status(
    order_id: str,
    status: OrderStatus = Query(..., description="새 주문 상태"),
    store: ILedgerStore = Depends(get_ledger_store),
):
    logger.info("PATCH /mock/orders/%s/status - new status: %s", order_id, status.value)
    order = store.update_status(order_id, status)
    if order is None:
        raise NotFoundException(f"주문을 찾을 수 없습니다: {order_id}")
    return success_response(data=order, message="order status updated")


@router.post("/orders/pending", status_code=201)
async def create_pending_order(
    request: CreatePendingOrderRequest,
    order_service: OrderService = Depends(get_order_service),
):
    logger.info("POST /mock/orders/pending - amount: %s, currency: %s", request.amount, request.currency)
    order = order_service.create_pending_order(request)
    return success_response(data=order, message="pending order created")


@router.get("/customers")
async def list_customers(store: ILedgerStore = Depends(get_ledger_store)):
    return success_response(data=store.list_customers())


@router.get("/customers/{customer_id}")
async def get_customer(customer_id: str, store: ILedgerStore = Depends(get_ledger_store)):
    customer = store.get_customer(customer_id)
    if customer is None:
        raise NotFoundException(f"고객을 찾을 수 없습니다: {customer_id}")
    return success_response(data=customer)


@router.delete("/data")
async def reset_data(store: ILedgerStore = Depends(get_ledger_store)):
    logger.info("DELETE /mock/data - clearing ledger data")
    store.reset()
    return success_response(data={"reset": True}, message="ledger data cleared and reinitialized")


@router.get("/health")
async def ledger_health(store: ILedgerStore = Depends(get_ledger_store)):
    return success_response(data={"service": "MockLedger", "status": "UP", **store.stats()})
