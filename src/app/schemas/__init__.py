"""
원장(ledger) 주문/고객 모델과 Stripe 이벤트 스키마 정의
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, Enum):
    """원장 주문 상태"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    FINALIZED = "finalized"
    PAID = "paid"


class StripeEvent(BaseModel):
    """검증/파싱이 끝난 웹훅 이벤트 (불변)"""
    id: str = Field(..., description="Stripe 이벤트 ID (evt_...)")
    type: str = Field(..., description="점으로 구분된 이벤트 타입 (예: payment_intent.succeeded)")
    payload: Dict[str, Any] = Field(default_factory=dict, description="data.object 도메인 객체")
    created: Optional[int] = Field(None, description="이벤트 생성 시각 (unix seconds)")
    livemode: bool = Field(False, description="라이브 모드 여부")
    api_version: Optional[str] = Field(None, description="이벤트 API 버전")

    # frozen 은 최상위 필드만 고정한다. payload 는 일반 dict 이므로 핸들러는 읽기만 한다.
    class Config:
        frozen = True


class Customer(BaseModel):
    """원장 고객"""
    id: str = Field(..., description="원장 고객 ID (예: MOCK-CUST-001)")
    name: str
    email: str
    external_customer_id: Optional[str] = Field(None, description="Stripe 고객 ID (cus_...)")


class Order(BaseModel):
    """원장 주문 (저장소가 돌려주는 스냅샷)"""
    id: str = Field(..., description="원장 주문 ID (예: MOCK-ORDER-001)")
    status: OrderStatus = OrderStatus.PENDING
    amount: int = Field(..., ge=0, description="최소 통화 단위 금액 (cents)")
    currency: str = Field("usd", description="소문자 ISO-4217 통화 코드")
    customer_id: Optional[str] = None
    external_payment_id: str = Field(..., description="Stripe 결제 객체 ID (조정 키)")
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class OrderDetails(BaseModel):
    """핸들러가 저장소에 요청하는 주문 생성 정보"""
    external_payment_id: str
    external_customer_id: Optional[str] = None
    amount: int = 0
    currency: Optional[str] = None
    description: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING


class CreateOrderRequest(BaseModel):
    """결제 의도(PaymentIntent)와 함께 주문 생성 요청"""
    amount: int = Field(..., description="결제 금액 (cents)")
    currency: Optional[str] = Field(None, description="통화 코드, 기본 usd")
    description: Optional[str] = Field(None, description="주문 설명")
    customer_email: Optional[str] = Field(None, description="고객 이메일")


class CreatePendingOrderRequest(BaseModel):
    """Stripe 호출 없이 대기 주문만 생성 (데모용)"""
    amount: int = Field(..., description="결제 금액 (cents)")
    currency: Optional[str] = Field(None, description="통화 코드, 기본 usd")
    description: Optional[str] = Field(None, description="주문 설명")


class CreateOrderResponse(BaseModel):
    """주문 생성 결과 - 프론트엔드는 client_secret 으로 결제를 확정한다"""
    order_id: str
    status: OrderStatus
    amount: int
    currency: str
    client_secret: Optional[str] = None
    payment_intent_id: str


__all__ = [
    "OrderStatus",
    "StripeEvent",
    "Customer",
    "Order",
    "OrderDetails",
    "CreateOrderRequest",
    "CreatePendingOrderRequest",
    "CreateOrderResponse",
]
