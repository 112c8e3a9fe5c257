from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

from common.types.datetime import UtcDateTime

from ...models.error_log import ErrorLog


class AdminLoginRequest(BaseModel):
    password: str


class AdminLoginResponse(BaseModel):
    token: str


class PointsAdjustRequest(BaseModel):
    """관리자 수동 포인트 조정. points 는 항상 양수, 방향은 action 으로 정한다."""

    action: Literal["add", "redeem"] = "add"
    points: int
    description: str


class PointsAdjustResponse(BaseModel):
    username: str
    action: str
    points: int
    balance: int


class DashboardStatsResponse(BaseModel):
    total_customers: int
    total_points: int
    active_sessions: int


class ErrorLogResponse(BaseModel):
    id: str | None
    username: str | None
    error_type: str
    severity: str
    message: str
    timestamp: UtcDateTime
    details: dict[str, Any]

    @classmethod
    def from_domain(cls, log: ErrorLog) -> "ErrorLogResponse":
        return cls(
            id=log.id,
            username=log.username,
            error_type=log.error_type,
            severity=log.severity.value,
            message=log.message,
            timestamp=log.timestamp,
            details=log.details,
        )


class ListErrorLogsResponse(BaseModel):
    total: int
    items: list[ErrorLogResponse]
