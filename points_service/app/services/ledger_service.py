"""포인트 원장 서비스.

잔액 조회/조정과 트랜잭션 로깅을 처리한다. 잔액 갱신은 compare-and-swap 으로 쓰므로
두 탭이나 관리자와 동시에 조정해도 갱신이 유실되지 않는다.
"""

from __future__ import annotations

import logging

from ..exceptions import (
    ConcurrentUpdateError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from ..models.customer import Customer
from ..models.transaction import Transaction, TransactionType
from ..repositories.interfaces import (
    CustomerRepositoryInterface,
    TransactionRepositoryInterface,
)
from .scheduler import Clock, SystemClock


logger = logging.getLogger(__name__)


class PointsLedger:
    """고객 잔액 + append-only 트랜잭션 이력."""

    def __init__(
        self,
        customer_repo: CustomerRepositoryInterface,
        transaction_repo: TransactionRepositoryInterface,
        clock: Clock | None = None,
        max_attempts: int = 3,
    ) -> None:
        self._customer_repo = customer_repo
        self._transaction_repo = transaction_repo
        self._clock = clock or SystemClock()
        self._max_attempts = max_attempts

    def get_customer(self, username: str) -> Customer:
        customer = self._customer_repo.find_by_username(username)
        if customer is None:
            raise NotFoundError(f"Username not found: {username}")
        return customer

    def get_balance(self, username: str) -> int:
        return self.get_customer(username).points

    def adjust(
        self,
        username: str,
        delta: int,
        reason: str,
        actor: str | None = None,
    ) -> int:
        """잔액을 delta 만큼 조정하고 새 잔액을 반환한다.

        - delta < 0 은 차감(redeem), 결과가 음수면 InsufficientBalanceError (잔액 변화 없음)
        - 읽은 뒤 다른 쓰기가 끼어들면 다시 읽어서 max_attempts 번까지 재계산한다.
        """
        if delta == 0:
            raise ValidationError("Points amount must not be zero")
        reason = reason.strip()
        if not reason:
            raise ValidationError("Please enter a description")

        for attempt in range(1, self._max_attempts + 1):
            current = self.get_balance(username)
            new_balance = current + delta
            if new_balance < 0:
                raise InsufficientBalanceError(username, current, -delta)

            if self._customer_repo.compare_and_set_points(username, current, new_balance):
                break
            logger.warning(
                "balance changed concurrently, retrying (attempt=%d)",
                attempt,
                extra={"username": username},
            )
        else:
            raise ConcurrentUpdateError(
                f"Balance for {username} changed concurrently, please retry"
            )

        # 잔액 갱신과 트랜잭션 기록은 별개의 쓰기다. 기록 실패 시 잔액은 이미 반영돼 있다.
        self._transaction_repo.create(
            Transaction(
                customer_username=username,
                points=abs(delta),
                type=TransactionType.ADD if delta > 0 else TransactionType.REDEEM,
                description=reason,
                timestamp=self._clock.now(),
                admin_user_id=actor,
            )
        )
        logger.info(
            "points adjusted (delta=%d, balance=%d)",
            delta,
            new_balance,
            extra={"username": username},
        )
        return new_balance

    def record_session_summary(
        self, username: str, points_earned: int, description: str
    ) -> Transaction:
        """세션 종료 요약 트랜잭션. 잔액은 바꾸지 않는다."""

        return self._transaction_repo.create(
            Transaction(
                customer_username=username,
                points=points_earned,
                type=TransactionType.SESSION,
                description=description,
                timestamp=self._clock.now(),
            )
        )

    def history(self, username: str, limit: int | None = None) -> list[Transaction]:
        """최신순 트랜잭션 이력."""
        self.get_customer(username)
        return self._transaction_repo.list_by_customer(username, limit)

    def list_customers(self, term: str | None = None) -> list[Customer]:
        customers = self._customer_repo.list_all()
        if not term:
            return customers
        return [c for c in customers if c.matches(term)]
