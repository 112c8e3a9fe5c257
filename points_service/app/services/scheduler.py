"""주기 작업 스케줄러와 시계.

세션 컨트롤러는 이 인터페이스만 알고, 운영에서는 스레드 기반 구현을,
테스트에서는 수동으로 시간을 진행시키는 구현을 주입한다.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from common.types.datetime import utc_now


logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> datetime:  # pragma: no cover - Protocol
        ...


class SystemClock:
    def now(self) -> datetime:
        return utc_now()


class ScheduledTask(Protocol):
    def cancel(self) -> None:  # pragma: no cover - Protocol
        ...


class Scheduler(Protocol):
    def schedule_interval(
        self, interval_seconds: float, callback: Callable[[], None], name: str
    ) -> ScheduledTask:  # pragma: no cover - Protocol
        """interval 마다 callback 을 호출한다. 첫 호출은 interval 이 지난 뒤."""
        ...


class _ThreadTask:
    def __init__(
        self, interval_seconds: float, callback: Callable[[], None], name: str
    ) -> None:
        self._interval = interval_seconds
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self._callback()
            except Exception:  # noqa: BLE001
                # 한 번의 실패가 주기 작업 전체를 멈추지 않게 한다.
                logger.exception("scheduled task failed (%s)", self._thread.name)

    def cancel(self) -> None:
        self._stop_event.set()
        # 콜백 안에서 자기 자신을 취소하는 경우 join 하면 교착된다.
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=5.0)


class ThreadScheduler:
    """작업마다 daemon 스레드를 하나씩 띄우는 스케줄러."""

    def schedule_interval(
        self, interval_seconds: float, callback: Callable[[], None], name: str
    ) -> ScheduledTask:
        task = _ThreadTask(interval_seconds, callback, name)
        task.start()
        return task
