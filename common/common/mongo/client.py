from __future__ import annotations

import logging
import threading
from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from .config import (
    get_mongo_db_name,
    get_mongo_uri,
    get_server_selection_timeout_ms,
)


logger = logging.getLogger(__name__)


_client: Optional[MongoClient] = None
_db: Optional[Database] = None
_lock = threading.Lock()


def get_client() -> MongoClient:
    """전역 MongoClient 싱글톤을 반환한다.

    - MONGO_URI 에서 URI 를 읽어온다.
    - ping 으로 연결을 검증하고, 실패하면 RuntimeError 를 발생시킨다.
    - 로열티 컬렉션에 필요한 인덱스를 한 번만 생성한다.
    """

    global _client, _db

    if _client is not None:
        return _client

    with _lock:
        if _client is not None:
            return _client

        client: MongoClient = MongoClient(
            get_mongo_uri(),
            serverSelectionTimeoutMS=get_server_selection_timeout_ms(),
            tz_aware=True,
        )

        try:
            client.admin.command("ping")
        except PyMongoError as exc:
            client.close()
            raise RuntimeError(f"failed to connect to MongoDB: {exc}") from exc

        db = client[get_mongo_db_name()]

        try:
            _ensure_indexes(db)
        except PyMongoError as exc:
            logger.error("failed to ensure MongoDB indexes (db=%s)", db.name)
            client.close()
            raise RuntimeError(f"failed to ensure MongoDB indexes: {exc}") from exc

        _client = client
        _db = db
        logger.info("MongoDB connected and indexes ensured (db=%s)", db.name)
        return _client


def get_database() -> Database:
    """전역 기본 Database 객체를 반환한다."""

    if _db is None:
        get_client()
    assert _db is not None  # get_client 가 실패했다면 예외가 이미 발생했어야 한다.
    return _db


def close_client() -> None:
    """애플리케이션 종료 시 커넥션 풀을 정리한다."""

    global _client, _db

    with _lock:
        if _client is not None:
            _client.close()
        _client = None
        _db = None


def _ensure_indexes(db: Database) -> None:
    """필수 인덱스를 생성한다. 중복 생성은 MongoDB 가 무시하므로 idempotent 하다."""

    db["customers"].create_index(
        [("username", 1)],
        name="uniq_username",
        unique=True,
    )

    # 고객별 최신순 이력 조회
    db["transactions"].create_index(
        [("customer_username", 1), ("timestamp", -1)],
        name="idx_customer_timestamp_desc",
    )

    # 세션은 username 당 하나 (last writer wins)
    db["active_sessions"].create_index(
        [("username", 1)],
        name="uniq_session_username",
        unique=True,
    )

    db["error_logs"].create_index(
        [("timestamp", -1)],
        name="idx_timestamp_desc",
    )
