from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class Customer(BaseModel):
    """플레이어(고객) 도메인 모델.

    - username 이 유일 키이며 등록 이후 바뀌지 않는다.
    - points 는 Points Ledger 를 통해서만 변경된다.
    """

    username: str
    name: str
    phone: str | None = None
    email: str | None = None
    points: int = Field(default=0, ge=0)
    created_at: datetime

    def matches(self, term: str) -> bool:
        """관리자 검색: 이름/username/전화/이메일 부분 일치 (대소문자 무시)."""

        needle = term.strip().lower()
        if not needle:
            return True
        fields = (self.name, self.username, self.phone or "", self.email or "")
        return any(needle in value.lower() for value in fields)


class DashboardStats(BaseModel):
    total_customers: int
    total_points: int
    active_sessions: int
