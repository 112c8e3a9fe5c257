from __future__ import annotations

import re
from typing import Any

from pymongo.database import Database

from common.mongo.types import from_object_id

from ..models.error_log import ErrorLog, ErrorSeverity
from .documents.error_log_document import ErrorLogDocument
from .errors import store_call
from .interfaces import ErrorLogRepositoryInterface


# 텍스트 검색 대상 필드 (ErrorLog.matches 와 동일)
TEXT_SEARCH_FIELDS = ("message", "username", "error_type")


def build_error_log_query(
    error_type: str | None = None,
    severity: ErrorSeverity | None = None,
    text: str | None = None,
) -> dict[str, Any]:
    """관리자 필터를 Mongo 쿼리로 변환한다. 텍스트는 대소문자 무시 부분 일치."""

    query: dict[str, Any] = {}
    if error_type:
        query["error_type"] = error_type
    if severity:
        query["severity"] = ErrorSeverity(severity).value
    needle = (text or "").strip()
    if needle:
        pattern = {"$regex": re.escape(needle), "$options": "i"}
        query["$or"] = [{field: pattern} for field in TEXT_SEARCH_FIELDS]
    return query


class ErrorLogRepository(ErrorLogRepositoryInterface):
    """error_logs 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["error_logs"]

    def create(self, log: ErrorLog) -> ErrorLog:
        payload = ErrorLogDocument.from_domain(log).to_mongo_record()
        with store_call("error_logs.insert_one"):
            result = self._col.insert_one(payload)
        return log.model_copy(update={"id": from_object_id(result.inserted_id)})

    def list_recent(
        self,
        limit: int,
        error_type: str | None = None,
        severity: ErrorSeverity | None = None,
        text: str | None = None,
    ) -> list[ErrorLog]:
        query = build_error_log_query(error_type, severity, text)
        with store_call("error_logs.find"):
            docs = list(self._col.find(query, sort=[("timestamp", -1)], limit=limit))
        return [ErrorLogDocument.model_validate(doc).to_domain() for doc in docs]
