"""세션 적립 타이머 상태 머신.

Idle -> Running -> Stopped 전이를 불변 스냅샷 위의 순수 함수로 표현한다.
타이머/스케줄링은 SessionAccrualController 가 담당하고, 여기서는 시간을 인자로만 받는다.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from ..exceptions import SessionStateError


class SessionState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class TimerDisplay(BaseModel):
    model_config = ConfigDict(frozen=True)

    elapsed: str
    next_point: str
    elapsed_seconds: int
    seconds_until_next_point: int


class SessionSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: SessionState = SessionState.IDLE
    username: str
    session_id: str | None = None
    tab_id: str | None = None
    started_at: datetime | None = None
    last_heartbeat: datetime | None = None
    points_awarded: int = 0
    balance: int | None = None
    stop_reason: str | None = None
    display: TimerDisplay

    @property
    def running(self) -> bool:
        return self.state == SessionState.RUNNING


def format_mmss(seconds: int) -> str:
    """초를 MM:SS 로 변환. 60분을 넘으면 분 자리가 그대로 늘어난다 (예: 125:03)."""

    seconds = max(0, int(seconds))
    minutes, rest = divmod(seconds, 60)
    return f"{minutes:02d}:{rest:02d}"


def compute_timer_display(
    started_at: datetime, now: datetime, interval_seconds: int
) -> TimerDisplay:
    elapsed = max(0, int((now - started_at).total_seconds()))
    remaining = interval_seconds - (elapsed % interval_seconds)
    return TimerDisplay(
        elapsed=format_mmss(elapsed),
        next_point=format_mmss(remaining),
        elapsed_seconds=elapsed,
        seconds_until_next_point=remaining,
    )


def idle_display(interval_seconds: int) -> TimerDisplay:
    return TimerDisplay(
        elapsed=format_mmss(0),
        next_point=format_mmss(interval_seconds),
        elapsed_seconds=0,
        seconds_until_next_point=interval_seconds,
    )


def initial_snapshot(
    username: str, interval_seconds: int, balance: int | None = None
) -> SessionSnapshot:
    return SessionSnapshot(
        username=username,
        balance=balance,
        display=idle_display(interval_seconds),
    )


def start_session(
    snapshot: SessionSnapshot,
    *,
    session_id: str,
    tab_id: str,
    now: datetime,
    interval_seconds: int,
    balance: int | None = None,
) -> SessionSnapshot:
    if snapshot.running:
        raise SessionStateError("Session already active")
    return SessionSnapshot(
        state=SessionState.RUNNING,
        username=snapshot.username,
        session_id=session_id,
        tab_id=tab_id,
        started_at=now,
        last_heartbeat=now,
        points_awarded=0,
        balance=balance if balance is not None else snapshot.balance,
        display=compute_timer_display(now, now, interval_seconds),
    )


def tick(
    snapshot: SessionSnapshot, now: datetime, interval_seconds: int
) -> SessionSnapshot:
    """1초 표시 갱신. 실행 중이 아니면 스냅샷을 그대로 돌려준다."""

    if not snapshot.running or snapshot.started_at is None:
        return snapshot
    display = compute_timer_display(snapshot.started_at, now, interval_seconds)
    return snapshot.model_copy(update={"display": display})


def record_award(snapshot: SessionSnapshot, balance: int) -> SessionSnapshot:
    return snapshot.model_copy(
        update={"points_awarded": snapshot.points_awarded + 1, "balance": balance}
    )


def record_heartbeat(snapshot: SessionSnapshot, now: datetime) -> SessionSnapshot:
    if not snapshot.running:
        return snapshot
    return snapshot.model_copy(update={"last_heartbeat": now})


def stop_session(
    snapshot: SessionSnapshot, reason: str, interval_seconds: int
) -> SessionSnapshot:
    """실행 중 세션을 종료 상태로 전이한다. 표시값은 00:00 으로 초기화된다."""

    if not snapshot.running:
        raise SessionStateError("No active session")
    return snapshot.model_copy(
        update={
            "state": SessionState.STOPPED,
            "stop_reason": reason,
            "display": idle_display(interval_seconds),
        }
    )
