from __future__ import annotations

import random
from datetime import datetime, timezone

import pytest

from points_service.app.exceptions import (
    ConcurrentUpdateError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from points_service.app.models.customer import Customer
from points_service.app.models.transaction import TransactionType
from points_service.app.repositories.factory import Repositories
from points_service.app.repositories.memory_repository import (
    MemoryCustomerRepository,
    MemoryStore,
    MemoryTransactionRepository,
)
from points_service.app.services.ledger_service import PointsLedger


def _customer(username: str = "player_one", points: int = 0) -> Customer:
    return Customer(
        username=username,
        name="Player One",
        points=points,
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def ledger(repositories: Repositories, clock) -> PointsLedger:
    repositories.customers.insert(_customer(points=10))
    return PointsLedger(repositories.customers, repositories.transactions, clock=clock)


def test_get_balance_unknown_customer_raises_not_found(ledger: PointsLedger) -> None:
    with pytest.raises(NotFoundError):
        ledger.get_balance("nobody")


def test_adjust_add_updates_balance_and_appends_transaction(
    ledger: PointsLedger, repositories: Repositories, clock
) -> None:
    balance = ledger.adjust("player_one", 5, " Free time reward ", actor="admin:1")

    assert balance == 15
    assert ledger.get_balance("player_one") == 15
    [tx] = repositories.transactions.list_by_customer("player_one")
    assert tx.type == TransactionType.ADD
    assert tx.points == 5
    assert tx.description == "Free time reward"
    assert tx.admin_user_id == "admin:1"
    assert tx.timestamp == clock.now()


def test_redeem_more_than_balance_fails_and_leaves_balance(
    ledger: PointsLedger, repositories: Repositories
) -> None:
    with pytest.raises(InsufficientBalanceError) as exc_info:
        ledger.adjust("player_one", -11, "Internet usage")

    assert exc_info.value.balance == 10
    assert exc_info.value.requested == 11
    assert ledger.get_balance("player_one") == 10
    assert repositories.transactions.list_by_customer("player_one") == []


def test_redeem_exact_balance_results_in_zero(
    ledger: PointsLedger, repositories: Repositories
) -> None:
    assert ledger.adjust("player_one", -10, "Internet usage") == 0

    [tx] = repositories.transactions.list_by_customer("player_one")
    assert tx.type == TransactionType.REDEEM
    assert tx.points == 10


def test_adjust_rejects_zero_delta_and_blank_reason(ledger: PointsLedger) -> None:
    with pytest.raises(ValidationError):
        ledger.adjust("player_one", 0, "nothing")
    with pytest.raises(ValidationError):
        ledger.adjust("player_one", 3, "   ")


def test_balance_never_negative_after_accepted_adjustments(
    ledger: PointsLedger,
) -> None:
    rng = random.Random(20250101)
    for _ in range(300):
        delta = rng.choice([-7, -3, -1, 1, 2, 5])
        try:
            balance = ledger.adjust("player_one", delta, "random walk")
        except InsufficientBalanceError:
            continue
        assert balance >= 0
        assert ledger.get_balance("player_one") == balance


def test_history_is_newest_first(ledger: PointsLedger, clock) -> None:
    ledger.adjust("player_one", 1, "first")
    clock.advance(60)
    ledger.adjust("player_one", 2, "second")
    clock.advance(60)
    ledger.adjust("player_one", -1, "third")

    assert [tx.description for tx in ledger.history("player_one")] == [
        "third",
        "second",
        "first",
    ]
    assert [tx.description for tx in ledger.history("player_one", limit=1)] == ["third"]


class InterleavingCustomerRepository(MemoryCustomerRepository):
    """compare-and-set 직전에 다른 탭이 먼저 쓰는 상황을 흉내 낸다."""

    def __init__(self, store: MemoryStore, interleaved_writes: int) -> None:
        super().__init__(store)
        self.remaining = interleaved_writes
        self.cas_calls = 0

    def compare_and_set_points(
        self, username: str, expected: int, new_points: int
    ) -> bool:
        self.cas_calls += 1
        if self.remaining > 0:
            self.remaining -= 1
            current = self.find_by_username(username)
            assert current is not None
            super().compare_and_set_points(username, current.points, current.points + 1)
        return super().compare_and_set_points(username, expected, new_points)


def test_adjust_rereads_balance_when_another_writer_interleaves(clock) -> None:
    store = MemoryStore()
    customers = InterleavingCustomerRepository(store, interleaved_writes=1)
    customers.insert(_customer(points=10))
    ledger = PointsLedger(customers, MemoryTransactionRepository(store), clock=clock)

    balance = ledger.adjust("player_one", 1, "auto")

    # 다른 쓰기(+1)가 유실되지 않고 두 조정이 모두 반영된다.
    assert balance == 12
    assert customers.cas_calls == 2


def test_adjust_gives_up_after_max_attempts(clock) -> None:
    store = MemoryStore()
    customers = InterleavingCustomerRepository(store, interleaved_writes=10)
    customers.insert(_customer(points=10))
    transactions = MemoryTransactionRepository(store)
    ledger = PointsLedger(customers, transactions, clock=clock, max_attempts=3)

    with pytest.raises(ConcurrentUpdateError):
        ledger.adjust("player_one", 1, "auto")

    assert customers.cas_calls == 3
    assert transactions.list_by_customer("player_one") == []


def test_list_customers_filters_by_search_term(
    ledger: PointsLedger, repositories: Repositories
) -> None:
    repositories.customers.insert(
        Customer(
            username="maria_cruz",
            name="Maria Cruz",
            phone="0917-555",
            email="maria@example.com",
            created_at=datetime(2025, 1, 2, tzinfo=timezone.utc),
        )
    )

    assert [c.username for c in ledger.list_customers()] == ["player_one", "maria_cruz"]
    assert [c.username for c in ledger.list_customers("CRUZ")] == ["maria_cruz"]
    assert [c.username for c in ledger.list_customers("0917")] == ["maria_cruz"]
    assert [c.username for c in ledger.list_customers("example.com")] == ["maria_cruz"]
    assert ledger.list_customers("zzz") == []
