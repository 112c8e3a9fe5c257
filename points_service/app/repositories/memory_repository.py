"""프로세스 메모리 기반 저장소 구현 (데모 모드, 테스트).

MongoDB 구현과 같은 인터페이스를 따르며, 프로세스가 종료되면 데이터는 사라진다.
모든 레포지토리는 하나의 MemoryStore 와 락을 공유한다.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from ..models.active_session import ActiveSession
from ..models.customer import Customer
from ..models.error_log import ErrorLog, ErrorSeverity
from ..models.transaction import Transaction
from .interfaces import (
    ActiveSessionRepositoryInterface,
    CustomerRepositoryInterface,
    ErrorLogRepositoryInterface,
    TransactionRepositoryInterface,
)


@dataclass
class MemoryStore:
    customers: dict[str, Customer] = field(default_factory=dict)
    # username -> 삽입 순서대로 쌓인 트랜잭션
    transactions: dict[str, list[Transaction]] = field(default_factory=dict)
    active_sessions: dict[str, ActiveSession] = field(default_factory=dict)
    error_logs: list[ErrorLog] = field(default_factory=list)
    lock: threading.RLock = field(default_factory=threading.RLock)


class MemoryCustomerRepository(CustomerRepositoryInterface):
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    def find_by_username(self, username: str) -> Customer | None:
        with self._store.lock:
            customer = self._store.customers.get(username)
            return customer.model_copy() if customer else None

    def insert(self, customer: Customer) -> bool:
        with self._store.lock:
            if customer.username in self._store.customers:
                return False
            self._store.customers[customer.username] = customer.model_copy()
            return True

    def compare_and_set_points(
        self, username: str, expected: int, new_points: int
    ) -> bool:
        with self._store.lock:
            customer = self._store.customers.get(username)
            if customer is None or customer.points != expected:
                return False
            self._store.customers[username] = customer.model_copy(
                update={"points": new_points}
            )
            return True

    def list_all(self) -> list[Customer]:
        with self._store.lock:
            customers = list(self._store.customers.values())
        return sorted(customers, key=lambda c: c.created_at)


class MemoryTransactionRepository(TransactionRepositoryInterface):
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    def create(self, tx: Transaction) -> Transaction:
        created = tx.model_copy(update={"id": uuid4().hex})
        with self._store.lock:
            self._store.transactions.setdefault(tx.customer_username, []).append(created)
        return created

    def list_by_customer(
        self, username: str, limit: int | None = None
    ) -> list[Transaction]:
        with self._store.lock:
            items = list(self._store.transactions.get(username, []))
        # 같은 timestamp 라면 나중에 쌓인 것이 먼저 오도록 역순 후 안정 정렬
        items.reverse()
        items.sort(key=lambda tx: tx.timestamp, reverse=True)
        if limit:
            items = items[:limit]
        return items


class MemoryActiveSessionRepository(ActiveSessionRepositoryInterface):
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    def upsert(self, session: ActiveSession) -> ActiveSession:
        with self._store.lock:
            self._store.active_sessions[session.username] = session
        return session

    def touch(
        self, username: str, session_id: str | None, now: datetime
    ) -> ActiveSession | None:
        with self._store.lock:
            session = self._store.active_sessions.get(username)
            if session is None:
                return None
            if session_id is not None and session.session_id != session_id:
                return None
            updated = session.model_copy(update={"last_heartbeat": now})
            self._store.active_sessions[username] = updated
            return updated

    def delete(self, username: str, session_id: str | None = None) -> bool:
        with self._store.lock:
            session = self._store.active_sessions.get(username)
            if session is None:
                return False
            if session_id is not None and session.session_id != session_id:
                return False
            del self._store.active_sessions[username]
            return True

    def find(self, username: str) -> ActiveSession | None:
        with self._store.lock:
            return self._store.active_sessions.get(username)

    def list_all(self) -> dict[str, ActiveSession]:
        with self._store.lock:
            return dict(self._store.active_sessions)


class MemoryErrorLogRepository(ErrorLogRepositoryInterface):
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    def create(self, log: ErrorLog) -> ErrorLog:
        created = log.model_copy(update={"id": uuid4().hex})
        with self._store.lock:
            self._store.error_logs.append(created)
        return created

    def list_recent(
        self,
        limit: int,
        error_type: str | None = None,
        severity: ErrorSeverity | None = None,
        text: str | None = None,
    ) -> list[ErrorLog]:
        with self._store.lock:
            logs = list(reversed(self._store.error_logs))
        if error_type:
            logs = [log for log in logs if log.error_type == error_type]
        if severity:
            logs = [log for log in logs if log.severity == severity]
        if text:
            logs = [log for log in logs if log.matches(text)]
        logs.sort(key=lambda log: log.timestamp, reverse=True)
        return logs[:limit]
