from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from points_service.app.exceptions import SessionStateError
from points_service.app.models.session_state import (
    SessionState,
    compute_timer_display,
    format_mmss,
    initial_snapshot,
    record_award,
    start_session,
    stop_session,
    tick,
)


INTERVAL = 1800
T0 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _running():
    return start_session(
        initial_snapshot("player_one", INTERVAL),
        session_id="s-1",
        tab_id="t-1",
        now=T0,
        interval_seconds=INTERVAL,
        balance=4,
    )


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, "00:00"), (65, "01:05"), (1800, "30:00"), (3600, "60:00"), (7503, "125:03")],
)
def test_format_mmss(seconds: int, expected: str) -> None:
    assert format_mmss(seconds) == expected


def test_timer_display_counts_down_to_next_boundary() -> None:
    display = compute_timer_display(T0, T0 + timedelta(seconds=65), INTERVAL)

    assert display.elapsed == "01:05"
    assert display.next_point == "28:55"

    just_before = compute_timer_display(T0, T0 + timedelta(seconds=1799), INTERVAL)
    assert just_before.next_point == "00:01"

    on_boundary = compute_timer_display(T0, T0 + timedelta(seconds=1800), INTERVAL)
    assert on_boundary.elapsed == "30:00"
    assert on_boundary.next_point == "30:00"


def test_start_sets_running_state_and_zero_display() -> None:
    snapshot = _running()

    assert snapshot.state == SessionState.RUNNING
    assert snapshot.started_at == T0
    assert snapshot.last_heartbeat == T0
    assert snapshot.balance == 4
    assert snapshot.display.elapsed == "00:00"
    assert snapshot.display.next_point == "30:00"


def test_start_twice_is_rejected() -> None:
    with pytest.raises(SessionStateError):
        start_session(
            _running(),
            session_id="s-2",
            tab_id="t-2",
            now=T0,
            interval_seconds=INTERVAL,
        )


def test_tick_is_noop_when_idle() -> None:
    idle = initial_snapshot("player_one", INTERVAL)

    assert tick(idle, T0 + timedelta(seconds=30), INTERVAL) is idle


def test_stop_resets_display_and_keeps_award_count() -> None:
    snapshot = record_award(tick(_running(), T0 + timedelta(seconds=1900), INTERVAL), 5)

    stopped = stop_session(snapshot, "player", INTERVAL)

    assert stopped.state == SessionState.STOPPED
    assert stopped.stop_reason == "player"
    assert stopped.points_awarded == 1
    assert stopped.display.elapsed == "00:00"
    assert stopped.display.next_point == "30:00"
    # 스냅샷은 불변이다.
    assert snapshot.state == SessionState.RUNNING

    with pytest.raises(SessionStateError):
        stop_session(stopped, "player", INTERVAL)
