from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class TransactionType(StrEnum):
    ADD = "add"
    REDEEM = "redeem"
    # 세션 종료 요약 (잔액에는 영향 없음)
    SESSION = "session"


class Transaction(BaseModel):
    """포인트 트랜잭션 로그 도메인 모델. append-only."""

    id: str | None = None
    customer_username: str
    points: int = Field(gt=0)
    type: TransactionType
    description: str
    timestamp: datetime
    admin_user_id: str | None = None
