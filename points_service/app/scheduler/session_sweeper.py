from __future__ import annotations

import logging
import threading

from ..exceptions import PointsServiceError
from ..services.session_registry import SessionRegistry


logger = logging.getLogger(__name__)


_SWEEPER_THREAD: threading.Thread | None = None
_SWEEPER_STOP_EVENT: threading.Event | None = None


def _run_sweeper_loop(
    registry: SessionRegistry, interval: float, stop_event: threading.Event
) -> None:
    logger.info("session expiry sweeper started (interval=%.0f seconds)", interval)
    try:
        while not stop_event.wait(interval):
            try:
                registry.purge_expired()
            except PointsServiceError:
                logger.exception("session expiry sweep failed")
    finally:
        logger.info("session expiry sweeper stopped")


def start_session_sweeper(registry: SessionRegistry, interval_seconds: float) -> None:
    """하트비트가 끊긴 세션 레코드를 주기적으로 지우는 스레드를 시작한다.

    FastAPI lifespan 에서 호출된다. interval 이 0 이하면 아무것도 하지 않는다.
    """

    global _SWEEPER_THREAD, _SWEEPER_STOP_EVENT

    if interval_seconds <= 0:
        return
    if _SWEEPER_THREAD and _SWEEPER_THREAD.is_alive():
        return

    stop_event = threading.Event()
    thread = threading.Thread(
        target=_run_sweeper_loop,
        args=(registry, interval_seconds, stop_event),
        name="session-expiry-sweeper",
        daemon=True,
    )

    _SWEEPER_STOP_EVENT = stop_event
    _SWEEPER_THREAD = thread
    thread.start()


def stop_session_sweeper() -> None:
    global _SWEEPER_THREAD, _SWEEPER_STOP_EVENT

    if _SWEEPER_THREAD is None or _SWEEPER_STOP_EVENT is None:
        return

    _SWEEPER_STOP_EVENT.set()
    _SWEEPER_THREAD.join(timeout=10.0)

    _SWEEPER_THREAD = None
    _SWEEPER_STOP_EVENT = None
