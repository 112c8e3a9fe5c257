from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ActiveSession(BaseModel):
    """공유 저장소에 기록되는 진행 중 세션 레코드.

    활성 여부는 저장하지 않고 last_heartbeat 로부터 계산한다.
    """

    username: str
    session_id: str
    tab_id: str
    start_time: datetime
    last_heartbeat: datetime


class LiveSession(BaseModel):
    """관리자 세션 목록 한 줄."""

    session: ActiveSession
    active: bool
    elapsed_seconds: int
    seconds_since_heartbeat: int
