from __future__ import annotations

from pydantic import BaseModel

from common.types.datetime import UtcDateTime

from ...models.active_session import LiveSession
from ...models.session_state import SessionSnapshot
from ...services.accrual_controller import Notice


class TimerDisplayResponse(BaseModel):
    elapsed: str
    next_point: str
    elapsed_seconds: int
    seconds_until_next_point: int


class NoticeResponse(BaseModel):
    level: str
    message: str
    created_at: UtcDateTime


class SessionStatusResponse(BaseModel):
    username: str
    state: str
    session_id: str | None
    started_at: UtcDateTime | None
    last_heartbeat: UtcDateTime | None
    points_awarded: int
    balance: int | None
    display: TimerDisplayResponse
    notices: list[NoticeResponse]

    @classmethod
    def from_snapshot(
        cls, snapshot: SessionSnapshot, notices: list[Notice] | None = None
    ) -> "SessionStatusResponse":
        return cls(
            username=snapshot.username,
            state=snapshot.state.value,
            session_id=snapshot.session_id,
            started_at=snapshot.started_at,
            last_heartbeat=snapshot.last_heartbeat,
            points_awarded=snapshot.points_awarded,
            balance=snapshot.balance,
            display=TimerDisplayResponse(**snapshot.display.model_dump()),
            notices=[NoticeResponse(**n.model_dump()) for n in notices or []],
        )


class StopSessionResponse(BaseModel):
    stopped: bool


class LiveSessionResponse(BaseModel):
    username: str
    session_id: str
    tab_id: str
    start_time: UtcDateTime
    last_heartbeat: UtcDateTime
    active: bool
    elapsed_seconds: int
    seconds_since_heartbeat: int

    @classmethod
    def from_domain(cls, row: LiveSession) -> "LiveSessionResponse":
        return cls(
            username=row.session.username,
            session_id=row.session.session_id,
            tab_id=row.session.tab_id,
            start_time=row.session.start_time,
            last_heartbeat=row.session.last_heartbeat,
            active=row.active,
            elapsed_seconds=row.elapsed_seconds,
            seconds_since_heartbeat=row.seconds_since_heartbeat,
        )


class ListLiveSessionsResponse(BaseModel):
    liveness_threshold_seconds: float
    items: list[LiveSessionResponse]
