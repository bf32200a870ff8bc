"""
서비스 인터페이스 정의
"""
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List

from schemas import Customer, Order, OrderDetails, OrderStatus


class ILedgerStore(ABC):
    """원장 주문 저장소 인터페이스

    핸들러는 이 인터페이스로만 주문을 생성/변경한다.
    """

    @abstractmethod
    def create_order(self, details: OrderDetails) -> Order:
        """주문 생성 (음수 금액, 중복 결제 ID 거부)"""
        pass

    @abstractmethod
    def create_pending_order(
        self,
        amount: int,
        currency: Optional[str] = None,
        description: Optional[str] = None,
        external_payment_id: Optional[str] = None,
    ) -> Order:
        """결제 전 대기 주문 생성"""
        pass

    @abstractmethod
    def update_status(self, order_id: str, status: OrderStatus) -> Optional[Order]:
        """주문 상태 변경"""
        pass

    @abstractmethod
    def find_by_external_payment_id(self, external_payment_id: str) -> Optional[Order]:
        """Stripe 결제 ID로 주문 조회"""
        pass

    @abstractmethod
    def mark_paid(self, external_payment_id: str) -> Optional[Order]:
        """결제 ID로 주문을 찾아 paid 로 전환"""
        pass

    @abstractmethod
    def get_order(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    def list_orders(self) -> List[Order]:
        pass

    @abstractmethod
    def get_customer(self, customer_id: str) -> Optional[Customer]:
        pass

    @abstractmethod
    def list_customers(self) -> List[Customer]:
        pass

    @abstractmethod
    def reset(self) -> None:
        """전체 데이터 초기화 후 샘플 데이터 재적재"""
        pass

    @abstractmethod
    def stats(self) -> Dict[str, int]:
        """저장소 건수 요약"""
        pass


class IPaymentProvider(ABC):
    """결제 대행사 API 인터페이스"""

    @abstractmethod
    async def create_payment_intent(
        self,
        amount: int,
        currency: str,
        *,
        description: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """결제 의도 생성 - id 와 client_secret 을 포함한 객체 반환"""
        pass
