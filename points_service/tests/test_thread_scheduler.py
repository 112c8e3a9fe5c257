from __future__ import annotations

import threading
import time

from points_service.app.scheduler import session_sweeper
from points_service.app.services.scheduler import ThreadScheduler


INTERVAL = 0.05
WAIT_TIMEOUT = 2.0


class CallCounter:
    """target 번 호출되면 reached 이벤트를 세운다."""

    def __init__(self, target: int) -> None:
        self.target = target
        self.count = 0
        self.reached = threading.Event()
        self._lock = threading.Lock()

    def __call__(self) -> None:
        with self._lock:
            self.count += 1
            if self.count >= self.target:
                self.reached.set()


def test_task_fires_repeatedly_until_cancelled() -> None:
    counter = CallCounter(target=3)
    task = ThreadScheduler().schedule_interval(INTERVAL, counter, name="test-repeat")

    assert counter.reached.wait(WAIT_TIMEOUT)
    task.cancel()
    fired = counter.count
    time.sleep(INTERVAL * 4)

    assert counter.count == fired


def test_task_can_cancel_itself_from_its_callback() -> None:
    done = threading.Event()
    holder: dict[str, object] = {}
    calls: list[int] = []

    def cancel_self() -> None:
        calls.append(1)
        holder["task"].cancel()  # type: ignore[attr-defined]
        done.set()

    holder["task"] = ThreadScheduler().schedule_interval(
        INTERVAL, cancel_self, name="test-self-cancel"
    )

    assert done.wait(WAIT_TIMEOUT)
    time.sleep(INTERVAL * 4)
    assert calls == [1]


def test_failing_callback_does_not_stop_the_loop() -> None:
    counter = CallCounter(target=3)

    def flaky() -> None:
        counter()
        if counter.count == 1:
            raise RuntimeError("first run fails")

    task = ThreadScheduler().schedule_interval(INTERVAL, flaky, name="test-flaky")
    try:
        assert counter.reached.wait(WAIT_TIMEOUT)
    finally:
        task.cancel()


class RecordingRegistry:
    def __init__(self) -> None:
        self.purges = CallCounter(target=2)

    def purge_expired(self) -> list[str]:
        self.purges()
        return []


def test_session_sweeper_starts_and_stops() -> None:
    registry = RecordingRegistry()

    session_sweeper.start_session_sweeper(registry, INTERVAL)  # type: ignore[arg-type]
    try:
        assert registry.purges.reached.wait(WAIT_TIMEOUT)
    finally:
        session_sweeper.stop_session_sweeper()

    assert session_sweeper._SWEEPER_THREAD is None
    purged = registry.purges.count
    time.sleep(INTERVAL * 4)
    assert registry.purges.count == purged


def test_session_sweeper_disabled_with_non_positive_interval() -> None:
    registry = RecordingRegistry()

    session_sweeper.start_session_sweeper(registry, 0)  # type: ignore[arg-type]

    assert session_sweeper._SWEEPER_THREAD is None
    session_sweeper.stop_session_sweeper()
