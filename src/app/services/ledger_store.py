"""
인메모리 원장(ledger) 주문 저장소

주문 맵, 결제 ID 인덱스, 고객 맵/인덱스, ID 카운터를 하나의 RLock 으로 보호한다.
ID 발급과 두 맵에 대한 삽입은 같은 임계 구역 안에서 일어나므로 동시 웹훅 처리 중에도
ID 충돌이나 반쯤 기록된 인덱스가 관찰되지 않는다.
"""
from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from core.interfaces import ILedgerStore
from core.responses import ValidationException
from schemas import Customer, Order, OrderDetails, OrderStatus


logger = logging.getLogger(__name__)


class StoreInvariantViolation(ValidationException):
    """저장소 불변식 위반"""


class InvalidOrderError(StoreInvariantViolation):
    """잘못된 주문 입력 (예: 음수 금액)"""

    def __init__(self, message: str = "주문 금액은 0 이상이어야 합니다") -> None:
        super().__init__(message)
        self.error_code = "INVALID_ORDER"


class DuplicateOrderError(StoreInvariantViolation):
    """같은 결제 ID 로 이미 주문이 존재"""

    def __init__(self, external_payment_id: str, existing_order_id: str) -> None:
        super().__init__(f"결제 ID {external_payment_id} 에 대한 주문이 이미 존재합니다: {existing_order_id}")
        self.error_code = "DUPLICATE_ORDER"
        self.status_code = 409
        self.external_payment_id = external_payment_id
        self.existing_order_id = existing_order_id


class InMemoryLedgerStore(ILedgerStore):
    """프로세스 메모리 기반 원장 저장소"""

    SAMPLE_CUSTOMERS = (
        ("John Doe", "john.doe@example.com", "cus_1234567890"),
        ("Jane Smith", "jane.smith@example.com", "cus_0987654321"),
    )

    def __init__(
        self,
        *,
        order_prefix: str = "MOCK-ORDER",
        customer_prefix: str = "MOCK-CUST",
        default_currency: str = "usd",
        seed_sample_data: bool = True,
    ) -> None:
        self.order_prefix = order_prefix
        self.customer_prefix = customer_prefix
        self.default_currency = default_currency.lower()
        self.seed_sample_data = seed_sample_data

        self._lock = threading.RLock()
        self._orders: Dict[str, Order] = {}
        self._orders_by_payment_id: Dict[str, str] = {}
        self._customers: Dict[str, Customer] = {}
        self._customers_by_external_id: Dict[str, str] = {}
        self._order_counter = 0
        self._customer_counter = 0

        with self._lock:
            self._initialize()

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def _initialize(self) -> None:
        self._orders.clear()
        self._orders_by_payment_id.clear()
        self._customers.clear()
        self._customers_by_external_id.clear()
        self._order_counter = 0
        self._customer_counter = 0

        if not self.seed_sample_data:
            logger.info("[LEDGER] store initialized without sample data")
            return

        for name, email, external_id in self.SAMPLE_CUSTOMERS:
            self._insert_customer(name, email, external_id)

        first_customer = self._customer_id(1)
        self._insert_order(
            status=OrderStatus.PENDING,
            amount=5000,
            currency="usd",
            customer_id=first_customer,
            external_payment_id="pi_1234567890",
            description="Sample order from Stripe payment",
        )

        logger.info(
            "[LEDGER] sample data initialized: %s customers, %s orders",
            len(self._customers),
            len(self._orders),
        )

    def reset(self) -> None:
        with self._lock:
            self._initialize()
        logger.info("[LEDGER] all data cleared and reinitialized")

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------
    def create_order(self, details: OrderDetails) -> Order:
        if details.amount < 0:
            raise InvalidOrderError(f"주문 금액은 0 이상이어야 합니다: {details.amount}")
        if not details.external_payment_id:
            raise InvalidOrderError("external_payment_id 가 필요합니다")

        with self._lock:
            existing_id = self._orders_by_payment_id.get(details.external_payment_id)
            if existing_id is not None:
                raise DuplicateOrderError(details.external_payment_id, existing_id)

            customer_id = None
            if details.external_customer_id:
                customer_id = self._resolve_customer(details.external_customer_id)

            order = self._insert_order(
                status=details.status,
                amount=details.amount,
                currency=details.currency,
                customer_id=customer_id,
                external_payment_id=details.external_payment_id,
                description=details.description,
            )

        logger.info(
            "[LEDGER] action: create, paymentId: %s, orderId: %s, amount: %s, currency: %s, status: %s",
            order.external_payment_id,
            order.id,
            order.amount,
            order.currency,
            order.status.value,
        )
        return order

    def create_pending_order(
        self,
        amount: int,
        currency: Optional[str] = None,
        description: Optional[str] = None,
        external_payment_id: Optional[str] = None,
    ) -> Order:
        if amount < 0:
            raise InvalidOrderError(f"주문 금액은 0 이상이어야 합니다: {amount}")

        payment_id = external_payment_id or f"pi_{uuid.uuid4().hex[:24]}"

        with self._lock:
            existing_id = self._orders_by_payment_id.get(payment_id)
            if existing_id is not None:
                raise DuplicateOrderError(payment_id, existing_id)

            default_customer = self._customer_id(1)
            order = self._insert_order(
                status=OrderStatus.PENDING,
                amount=amount,
                currency=currency,
                customer_id=default_customer if default_customer in self._customers else None,
                external_payment_id=payment_id,
                description=description,
            )

        logger.info(
            "[LEDGER] action: createPending, orderId: %s, amount: %s, currency: %s, status: pending, paymentId: %s",
            order.id,
            order.amount,
            order.currency,
            payment_id,
        )
        return order

    def update_status(self, order_id: str, status: OrderStatus) -> Optional[Order]:
        status = OrderStatus(status)
        with self._lock:
            current = self._orders.get(order_id)
            if current is None:
                logger.warning("[LEDGER] action: update, orderId: %s - NOT FOUND", order_id)
                return None
            updated = self._replace_status(current, status)

        logger.info(
            "[LEDGER] action: update, orderId: %s, oldStatus: %s, newStatus: %s",
            order_id,
            current.status.value,
            status.value,
        )
        return updated

    def mark_paid(self, external_payment_id: str) -> Optional[Order]:
        with self._lock:
            order_id = self._orders_by_payment_id.get(external_payment_id)
            current = self._orders.get(order_id) if order_id else None
            if current is None:
                logger.warning("[LEDGER] action: markPaid - order not found for paymentId: %s", external_payment_id)
                return None
            updated = self._replace_status(current, OrderStatus.PAID)

        logger.info(
            "[LEDGER] action: markPaid, orderId: %s, oldStatus: %s, newStatus: paid",
            updated.id,
            current.status.value,
        )
        return updated

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def find_by_external_payment_id(self, external_payment_id: str) -> Optional[Order]:
        with self._lock:
            order_id = self._orders_by_payment_id.get(external_payment_id)
            return self._orders.get(order_id) if order_id else None

    def get_order(self, order_id: str) -> Optional[Order]:
        with self._lock:
            return self._orders.get(order_id)

    def list_orders(self) -> List[Order]:
        with self._lock:
            return list(self._orders.values())

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        with self._lock:
            customer = self._customers.get(customer_id)
        if customer is None:
            logger.warning("[LEDGER] customer not found: %s", customer_id)
        return customer

    def list_customers(self) -> List[Customer]:
        with self._lock:
            return list(self._customers.values())

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "orders": len(self._orders),
                "customers": len(self._customers),
                "indexed_payments": len(self._orders_by_payment_id),
            }

    # ------------------------------------------------------------------
    # internals (호출자는 반드시 _lock 을 잡고 있어야 한다)
    # ------------------------------------------------------------------
    def _order_id(self, number: int) -> str:
        return f"{self.order_prefix}-{number:03d}"

    def _customer_id(self, number: int) -> str:
        return f"{self.customer_prefix}-{number:03d}"

    def _insert_order(
        self,
        *,
        status: OrderStatus,
        amount: int,
        currency: Optional[str],
        customer_id: Optional[str],
        external_payment_id: str,
        description: Optional[str],
    ) -> Order:
        self._order_counter += 1
        order = Order(
            id=self._order_id(self._order_counter),
            status=status,
            amount=amount,
            currency=(currency or self.default_currency).lower(),
            customer_id=customer_id,
            external_payment_id=external_payment_id,
            description=description,
        )
        self._orders[order.id] = order
        self._orders_by_payment_id[external_payment_id] = order.id
        return order

    def _insert_customer(self, name: Optional[str], email: Optional[str], external_customer_id: str) -> Customer:
        self._customer_counter += 1
        customer_id = self._customer_id(self._customer_counter)
        customer = Customer(
            id=customer_id,
            name=name or f"Customer {customer_id}",
            email=email or f"customer{self._customer_counter}@example.com",
            external_customer_id=external_customer_id,
        )
        self._customers[customer_id] = customer
        self._customers_by_external_id[external_customer_id] = customer_id
        return customer

    def _resolve_customer(self, external_customer_id: str) -> str:
        customer_id = self._customers_by_external_id.get(external_customer_id)
        if customer_id is not None:
            return customer_id

        customer = self._insert_customer(None, None, external_customer_id)
        logger.info(
            "[LEDGER] created new customer: %s, externalCustomerId: %s",
            customer.id,
            external_customer_id,
        )
        return customer.id

    def _replace_status(self, current: Order, status: OrderStatus) -> Order:
        updated = current.model_copy(update={"status": status, "updated_at": datetime.now(timezone.utc)})
        self._orders[current.id] = updated
        return updated
