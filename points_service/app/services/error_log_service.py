from __future__ import annotations

import logging
from typing import Any

from ..models.error_log import ErrorLog, ErrorSeverity
from ..repositories.interfaces import ErrorLogRepositoryInterface
from .scheduler import Clock, SystemClock


logger = logging.getLogger(__name__)


DEFAULT_LIST_LIMIT = 200


class ErrorLogService:
    """관리자가 열람하는 에러 로그. 기록은 best-effort 이며 실패해도 예외를 올리지 않는다."""

    def __init__(
        self,
        repo: ErrorLogRepositoryInterface,
        clock: Clock | None = None,
    ) -> None:
        self._repo = repo
        self._clock = clock or SystemClock()

    def record(
        self,
        error_type: str,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        username: str | None = None,
        **details: Any,
    ) -> ErrorLog | None:
        log = ErrorLog(
            username=username,
            error_type=error_type,
            severity=severity,
            message=message,
            timestamp=self._clock.now(),
            details={key: str(value) for key, value in details.items()},
        )
        try:
            return self._repo.create(log)
        except Exception:  # noqa: BLE001
            # 에러 로그 기록 실패는 삼킨다 (원래 작업의 실패를 가리지 않도록)
            logger.warning(
                "failed to record error log (type=%s)",
                error_type,
                exc_info=True,
                extra={"username": username},
            )
            return None

    def list(
        self,
        error_type: str | None = None,
        severity: ErrorSeverity | None = None,
        text: str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[ErrorLog]:
        # 저장소가 필터를 적용한 뒤 limit 개를 자른다.
        return self._repo.list_recent(
            limit, error_type=error_type, severity=severity, text=text
        )
