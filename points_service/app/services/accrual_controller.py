"""세션 적립 컨트롤러.

플레이어 한 명의 세션 수명주기(시작, 주기적 포인트 지급, 하트비트, 종료)를 관리한다.

- 지급은 시간 기반이며 누적되지 않는다. 프로세스가 멈췄다 재개되어도 놓친 지급을 몰아서
  하지 않고, 경과 시간을 저장하지 않으므로 재시작하면 다음 포인트까지의 진행분은 사라진다.
- 지급 실패는 알림으로만 남기고 타이머는 계속 돈다 (재시도/백로그 없음, at-most-once).
- 하트비트 시 레코드가 없거나 다른 세션 소유라면 관리자 강제 종료로 보고 스스로 멈춘다.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel

from ..config import PointsConfig, SessionConfig
from ..exceptions import NotFoundError, PointsServiceError, SessionStateError
from ..models.active_session import ActiveSession
from ..models.error_log import ErrorSeverity
from ..models.session_state import (
    SessionSnapshot,
    TimerDisplay,
    format_mmss,
    initial_snapshot,
    record_award,
    record_heartbeat,
    start_session,
    stop_session,
    tick,
)
from .error_log_service import ErrorLogService
from .ledger_service import PointsLedger
from .scheduler import Clock, ScheduledTask, Scheduler
from .session_registry import SessionRegistry


logger = logging.getLogger(__name__)


MAX_PENDING_NOTICES = 50

STOP_REASON_PLAYER = "player"
STOP_REASON_FORCED = "forced"
STOP_REASON_SHUTDOWN = "shutdown"

FORCED_STOP_NOTICE = "Your session was ended by an administrator."


def describe_interval(seconds: int) -> str:
    minutes, rest = divmod(seconds, 60)
    if minutes and not rest:
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds} seconds"


class Notice(BaseModel):
    """플레이어 화면에 띄울 일회성 알림 (토스트)."""

    level: str  # "success" | "error" | "info"
    message: str
    created_at: datetime


class SessionAccrualController:
    def __init__(
        self,
        username: str,
        ledger: PointsLedger,
        registry: SessionRegistry,
        scheduler: Scheduler,
        clock: Clock,
        points_config: PointsConfig,
        session_config: SessionConfig,
        error_logs: ErrorLogService | None = None,
    ) -> None:
        self._username = username
        self._ledger = ledger
        self._registry = registry
        self._scheduler = scheduler
        self._clock = clock
        self._points_config = points_config
        self._session_config = session_config
        self._error_logs = error_logs

        self._interval = points_config.accrual_interval_seconds
        self._lock = threading.RLock()
        self._snapshot = initial_snapshot(username, self._interval)
        self._tasks: list[ScheduledTask] = []
        self._notices: deque[Notice] = deque(maxlen=MAX_PENDING_NOTICES)

    @property
    def username(self) -> str:
        return self._username

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def running(self) -> bool:
        return self._snapshot.running

    # -------- transitions --------

    def start(self) -> SessionSnapshot:
        with self._lock:
            # 거절은 예외로만 알린다. 알림 큐는 백그라운드에서 생긴 일에만 쓴다.
            if self._snapshot.running:
                raise SessionStateError("Session already active")

            customer = self._ledger.get_customer(self._username)

            now = self._clock.now()
            session_id = uuid4().hex
            tab_id = uuid4().hex
            # 레코드 생성이 실패하면 로컬 상태는 Idle 그대로 둔다.
            self._registry.upsert(
                self._username,
                ActiveSession(
                    username=self._username,
                    session_id=session_id,
                    tab_id=tab_id,
                    start_time=now,
                    last_heartbeat=now,
                ),
            )
            self._snapshot = start_session(
                self._snapshot,
                session_id=session_id,
                tab_id=tab_id,
                now=now,
                interval_seconds=self._interval,
                balance=customer.points,
            )
            self._tasks = [
                self._schedule(self._session_config.display_tick_seconds, self.tick, "display"),
                self._schedule(self._interval, self.award_point, "award"),
                self._schedule(
                    self._session_config.heartbeat_interval_seconds,
                    self.send_heartbeat,
                    "heartbeat",
                ),
            ]

        logger.info(
            "session started",
            extra={"username": self._username, "session_id": session_id},
        )
        self.notify(
            "success",
            f"Session started! You'll earn 1 point every {describe_interval(self._interval)}.",
        )
        return self._snapshot

    def tick(self) -> TimerDisplay:
        with self._lock:
            self._snapshot = tick(self._snapshot, self._clock.now(), self._interval)
            return self._snapshot.display

    def award_point(self) -> bool:
        with self._lock:
            if not self._snapshot.running:
                return False
            session_id = self._snapshot.session_id
            try:
                balance = self._ledger.adjust(
                    self._username,
                    1,
                    self._points_config.auto_accrual_description,
                )
            except PointsServiceError as exc:
                logger.warning(
                    "failed to award session point: %s",
                    exc,
                    extra={"username": self._username, "session_id": session_id},
                )
                self.notify("error", f"Error awarding point: {exc.message}")
                if self._error_logs is not None:
                    self._error_logs.record(
                        "session_award_failed",
                        exc.message,
                        severity=ErrorSeverity.HIGH,
                        username=self._username,
                        session_id=session_id,
                        error_code=exc.code,
                    )
                return False

            self._snapshot = record_award(self._snapshot, balance)

        self.notify(
            "success",
            f"You earned 1 point! ({describe_interval(self._interval)} completed)",
        )
        return True

    def send_heartbeat(self) -> bool:
        with self._lock:
            if not self._snapshot.running:
                return False
            session_id = self._snapshot.session_id
            try:
                alive = self._registry.heartbeat(self._username, session_id)
            except PointsServiceError as exc:
                # 한 번 놓친 하트비트는 다음 주기에 다시 시도된다.
                logger.warning(
                    "heartbeat failed: %s",
                    exc,
                    extra={"username": self._username, "session_id": session_id},
                )
                return False

            if alive:
                self._snapshot = record_heartbeat(self._snapshot, self._clock.now())
                return True

        logger.info(
            "session record gone, stopping locally",
            extra={"username": self._username, "session_id": session_id},
        )
        if self.stop(reason=STOP_REASON_FORCED, remove_record=False):
            self.notify("info", FORCED_STOP_NOTICE)
        return False

    def stop(self, reason: str = STOP_REASON_PLAYER, remove_record: bool = True) -> bool:
        """세션 종료. 이미 멈춘 세션이면 아무것도 하지 않고 False."""

        with self._lock:
            if not self._snapshot.running:
                return False
            previous = self._snapshot
            self._snapshot = stop_session(previous, reason, self._interval)
            tasks, self._tasks = self._tasks, []

        # 콜백이 락을 기다리고 있을 수 있으므로 락 밖에서 취소한다.
        for task in tasks:
            task.cancel()

        if remove_record:
            try:
                self._registry.remove(self._username, previous.session_id)
            except PointsServiceError as exc:
                # 삭제 실패 시 하트비트 만료 정리에 맡긴다.
                logger.warning(
                    "failed to remove session record: %s",
                    exc,
                    extra={"username": self._username, "session_id": previous.session_id},
                )

        if self._session_config.record_summary and previous.points_awarded > 0:
            self._record_summary(previous)

        logger.info(
            "session stopped (reason=%s, points_awarded=%d)",
            reason,
            previous.points_awarded,
            extra={"username": self._username, "session_id": previous.session_id},
        )
        if reason != STOP_REASON_FORCED:
            self.notify("success", "Session stopped.")
        return True

    # -------- notices --------

    def drain_notices(self) -> list[Notice]:
        with self._lock:
            notices = list(self._notices)
            self._notices.clear()
        return notices

    # -------- internals --------

    def _schedule(
        self, interval: float, callback: Callable[[], object], kind: str
    ) -> ScheduledTask:
        return self._scheduler.schedule_interval(
            interval,
            callback,
            name=f"session-{kind}:{self._username}",
        )

    def _record_summary(self, previous: SessionSnapshot) -> None:
        elapsed = 0
        if previous.started_at is not None:
            elapsed = int((self._clock.now() - previous.started_at).total_seconds())
        plural = "point" if previous.points_awarded == 1 else "points"
        try:
            self._ledger.record_session_summary(
                self._username,
                previous.points_awarded,
                f"Session {format_mmss(elapsed)}: {previous.points_awarded} {plural} earned",
            )
        except PointsServiceError as exc:
            logger.warning(
                "failed to record session summary: %s",
                exc,
                extra={"username": self._username},
            )

    def notify(self, level: str, message: str) -> None:
        with self._lock:
            self._notices.append(
                Notice(level=level, message=message, created_at=self._clock.now())
            )


ControllerFactory = Callable[[str], SessionAccrualController]


class SessionHub:
    """username -> 컨트롤러 매핑. HTTP 레이어는 이 허브를 통해서만 세션을 다룬다."""

    def __init__(self, factory: ControllerFactory, registry: SessionRegistry) -> None:
        self._factory = factory
        self._registry = registry
        self._controllers: dict[str, SessionAccrualController] = {}
        self._lock = threading.Lock()

    def _get_or_create(self, username: str) -> SessionAccrualController:
        with self._lock:
            controller = self._controllers.get(username)
            if controller is None:
                controller = self._factory(username)
                self._controllers[username] = controller
            return controller

    def get(self, username: str) -> SessionAccrualController | None:
        with self._lock:
            return self._controllers.get(username)

    def start(self, username: str) -> SessionSnapshot:
        controller = self._get_or_create(username)
        try:
            return controller.start()
        except NotFoundError:
            # 등록되지 않은 username 으로 컨트롤러가 쌓이지 않게 한다.
            with self._lock:
                if self._controllers.get(username) is controller and not controller.running:
                    del self._controllers[username]
            raise

    def stop(self, username: str) -> bool:
        controller = self.get(username)
        if controller is None:
            return False
        return controller.stop(reason=STOP_REASON_PLAYER)

    def status(self, username: str) -> tuple[SessionSnapshot, list[Notice]]:
        controller = self._get_or_create(username)
        controller.tick()
        return controller.snapshot, controller.drain_notices()

    def force_stop(self, username: str) -> bool:
        """관리자 강제 종료. 레코드를 지우고, 이 프로세스의 컨트롤러도 멈춘다.

        다른 프로세스에서 도는 세션은 다음 하트비트에서 레코드가 없는 것을 보고 멈춘다.
        """

        removed = self._registry.remove(username)
        controller = self.get(username)
        stopped = False
        if controller is not None:
            stopped = controller.stop(reason=STOP_REASON_FORCED, remove_record=False)
            if stopped:
                controller.notify("info", FORCED_STOP_NOTICE)
        return removed or stopped

    def running_usernames(self) -> list[str]:
        with self._lock:
            controllers = list(self._controllers.values())
        return sorted(c.username for c in controllers if c.running)

    def shutdown(self) -> None:
        with self._lock:
            controllers = list(self._controllers.values())
        for controller in controllers:
            controller.stop(reason=STOP_REASON_SHUTDOWN)
