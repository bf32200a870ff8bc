"""
주문 생성 API 라우터
백엔드가 PaymentIntent 를 만들고 client_secret 을 돌려주면 프론트엔드가 Stripe.js 로 결제를 확정한다.
"""
import logging

from fastapi import APIRouter, Depends

from core.factory import ServiceFactory
from core.responses import success_response
from schemas import CreateOrderRequest
from services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])


def get_order_service() -> OrderService:
    return ServiceFactory.get_order_service()


@router.post("/create", status_code=201)
async def create_order(
    request: CreateOrderRequest,
    order_service: OrderService = Depends(get_order_service),
):
    """PaymentIntent 와 함께 주문 생성 (금액은 양수여야 한다)"""
    logger.info("POST /api/orders/create - amount: %s, currency: %s", request.amount, request.currency)

    response = await order_service.create_order(request)
    return success_response(data=response, message="order created")


@router.get("/config")
async def get_stripe_config(order_service: OrderService = Depends(get_order_service)):
    """프론트엔드 초기화용 publishable key"""
    return success_response(data={"publishable_key": order_service.get_publishable_key()})
