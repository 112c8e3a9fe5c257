from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorLog(BaseModel):
    id: str | None = None
    username: str | None = None
    error_type: str
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    message: str
    timestamp: datetime
    details: dict[str, Any] = Field(default_factory=dict)

    def matches(self, text: str) -> bool:
        needle = text.strip().lower()
        if not needle:
            return True
        haystack = (self.message, self.username or "", self.error_type)
        return any(needle in value.lower() for value in haystack)
