from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ..models.active_session import ActiveSession
from ..models.customer import Customer
from ..models.error_log import ErrorLog, ErrorSeverity
from ..models.transaction import Transaction


class CustomerRepositoryInterface(Protocol):
    """customers 저장소가 따라야 할 최소한의 계약.

    Service 레이어는 이 인터페이스에만 의존하고, 구체 구현(Mongo, 메모리)은 몰라도 된다.
    """

    def find_by_username(
        self, username: str
    ) -> Customer | None:  # pragma: no cover - Protocol
        ...

    def insert(self, customer: Customer) -> bool:  # pragma: no cover - Protocol
        """새 고객을 저장한다. username 이 이미 있으면 False."""
        ...

    def compare_and_set_points(
        self, username: str, expected: int, new_points: int
    ) -> bool:  # pragma: no cover - Protocol
        """현재 잔액이 expected 일 때만 new_points 로 바꾼다."""
        ...

    def list_all(self) -> list[Customer]:  # pragma: no cover - Protocol
        ...


class TransactionRepositoryInterface(Protocol):
    def create(self, tx: Transaction) -> Transaction:  # pragma: no cover - Protocol
        ...

    def list_by_customer(
        self, username: str, limit: int | None = None
    ) -> list[Transaction]:  # pragma: no cover - Protocol
        """최신순 정렬된 트랜잭션 목록."""
        ...


class ActiveSessionRepositoryInterface(Protocol):
    """activeSessions 저장소. username 당 레코드 하나 (last writer wins)."""

    def upsert(
        self, session: ActiveSession
    ) -> ActiveSession:  # pragma: no cover - Protocol
        ...

    def touch(
        self, username: str, session_id: str | None, now: datetime
    ) -> ActiveSession | None:  # pragma: no cover - Protocol
        """last_heartbeat 갱신. 레코드가 없거나 session_id 가 다르면 None."""
        ...

    def delete(
        self, username: str, session_id: str | None = None
    ) -> bool:  # pragma: no cover - Protocol
        ...

    def find(self, username: str) -> ActiveSession | None:  # pragma: no cover - Protocol
        ...

    def list_all(self) -> dict[str, ActiveSession]:  # pragma: no cover - Protocol
        ...


class ErrorLogRepositoryInterface(Protocol):
    def create(self, log: ErrorLog) -> ErrorLog:  # pragma: no cover - Protocol
        ...

    def list_recent(
        self,
        limit: int,
        error_type: str | None = None,
        severity: ErrorSeverity | None = None,
        text: str | None = None,
    ) -> list[ErrorLog]:  # pragma: no cover - Protocol
        """조건에 맞는 로그를 최신순으로 limit 개까지. 필터를 먼저 적용한 뒤 자른다."""
        ...
