from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

from points_service.app.config import AdminConfig, AppConfig, SessionConfig
from points_service.app.repositories.factory import (
    Repositories,
    build_memory_repositories,
)
from points_service.app.services.container import ServiceContainer, build_container


ADMIN_PASSWORD = "letmein"


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)


class ManualTask:
    def __init__(
        self,
        interval: float,
        callback: Callable[[], object],
        name: str,
        next_due: datetime,
    ) -> None:
        self.interval = interval
        self.callback = callback
        self.name = name
        self.next_due = next_due
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """advance() 로 시간을 진행시키며 만기된 콜백을 순서대로 실행한다."""

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self.tasks: list[ManualTask] = []

    def schedule_interval(
        self, interval_seconds: float, callback: Callable[[], object], name: str
    ) -> ManualTask:
        task = ManualTask(
            interval_seconds,
            callback,
            name,
            self._clock.now() + timedelta(seconds=interval_seconds),
        )
        self.tasks.append(task)
        return task

    def active_tasks(self) -> list[ManualTask]:
        return [task for task in self.tasks if not task.cancelled]

    def advance(self, seconds: float) -> None:
        target = self._clock.now() + timedelta(seconds=seconds)
        while True:
            due = [t for t in self.active_tasks() if t.next_due <= target]
            if not due:
                break
            task = min(due, key=lambda t: t.next_due)
            self._clock.set(task.next_due)
            task.next_due += timedelta(seconds=task.interval)
            task.callback()
        self._clock.set(target)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler(clock: FakeClock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture
def repositories() -> Repositories:
    return build_memory_repositories()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        session=SessionConfig(expiry_sweep_seconds=0),
        admin=AdminConfig(password=ADMIN_PASSWORD),
    )


@pytest.fixture
def container(
    app_config: AppConfig,
    repositories: Repositories,
    clock: FakeClock,
    scheduler: ManualScheduler,
) -> ServiceContainer:
    return build_container(
        app_config, repositories=repositories, clock=clock, scheduler=scheduler
    )
