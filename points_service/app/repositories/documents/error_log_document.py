from __future__ import annotations

from typing import Any

from pydantic import Field

from common.mongo.types import BaseDocument, MongoDateTime, from_object_id

from ...models.error_log import ErrorLog, ErrorSeverity


class ErrorLogDocument(BaseDocument):
    """MongoDB error_logs 컬렉션 도큐먼트 모델."""

    username: str | None = None
    error_type: str
    severity: str
    message: str
    timestamp: MongoDateTime
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, log: ErrorLog) -> "ErrorLogDocument":
        data = log.model_dump(mode="python", exclude={"id"})
        data["severity"] = log.severity.value
        return cls.model_validate(data)

    def to_domain(self) -> ErrorLog:
        try:
            severity = ErrorSeverity(self.severity)
        except ValueError:
            severity = ErrorSeverity.MEDIUM
        return ErrorLog(
            id=from_object_id(self.id),
            username=self.username,
            error_type=self.error_type,
            severity=severity,
            message=self.message,
            timestamp=self.timestamp,
            details=self.details,
        )
