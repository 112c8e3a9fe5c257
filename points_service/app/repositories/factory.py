from __future__ import annotations

import logging
from dataclasses import dataclass

from pymongo.database import Database

from common.mongo.client import get_database

from ..config import STORE_BACKEND_MEMORY, STORE_BACKEND_MONGO, StoreConfig
from .active_session_repository import ActiveSessionRepository
from .customer_repository import CustomerRepository
from .error_log_repository import ErrorLogRepository
from .interfaces import (
    ActiveSessionRepositoryInterface,
    CustomerRepositoryInterface,
    ErrorLogRepositoryInterface,
    TransactionRepositoryInterface,
)
from .memory_repository import (
    MemoryActiveSessionRepository,
    MemoryCustomerRepository,
    MemoryErrorLogRepository,
    MemoryStore,
    MemoryTransactionRepository,
)
from .transaction_repository import TransactionRepository


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Repositories:
    backend: str
    customers: CustomerRepositoryInterface
    transactions: TransactionRepositoryInterface
    sessions: ActiveSessionRepositoryInterface
    error_logs: ErrorLogRepositoryInterface


def build_memory_repositories(store: MemoryStore | None = None) -> Repositories:
    store = store or MemoryStore()
    return Repositories(
        backend=STORE_BACKEND_MEMORY,
        customers=MemoryCustomerRepository(store),
        transactions=MemoryTransactionRepository(store),
        sessions=MemoryActiveSessionRepository(store),
        error_logs=MemoryErrorLogRepository(store),
    )


def build_mongo_repositories(database: Database) -> Repositories:
    return Repositories(
        backend=STORE_BACKEND_MONGO,
        customers=CustomerRepository(database),
        transactions=TransactionRepository(database),
        sessions=ActiveSessionRepository(database),
        error_logs=ErrorLogRepository(database),
    )


def build_repositories(config: StoreConfig) -> Repositories:
    """기동 시 한 번만 저장소 구현을 고른다. 요청마다 다시 판단하지 않는다."""

    if config.backend == STORE_BACKEND_MEMORY:
        logger.info("using in-memory store (demo mode)")
        return build_memory_repositories()

    # 연결 시도는 여기서만 일어난다.
    try:
        database = get_database()
    except RuntimeError:
        if not config.fallback_to_memory:
            raise
        logger.exception("MongoDB unavailable, falling back to in-memory store")
        return build_memory_repositories()

    return build_mongo_repositories(database)
