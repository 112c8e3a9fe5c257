"""진행 중 세션 레코드(activeSessions) 관리.

레코드는 세션 시작 시 생성, 하트비트마다 갱신, 종료 시 삭제된다.
활성 여부는 저장하지 않고 now - last_heartbeat < threshold 로 판단한다.
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..models.active_session import ActiveSession, LiveSession
from ..repositories.interfaces import ActiveSessionRepositoryInterface
from .scheduler import Clock, SystemClock


logger = logging.getLogger(__name__)


def is_session_active(
    last_heartbeat: datetime, now: datetime, threshold_seconds: float
) -> bool:
    """경계값(정확히 threshold)은 비활성이다."""

    return (now - last_heartbeat).total_seconds() < threshold_seconds


class SessionRegistry:
    def __init__(
        self,
        repo: ActiveSessionRepositoryInterface,
        liveness_threshold_seconds: float,
        clock: Clock | None = None,
    ) -> None:
        self._repo = repo
        self._threshold = liveness_threshold_seconds
        self._clock = clock or SystemClock()

    @property
    def liveness_threshold_seconds(self) -> float:
        return self._threshold

    def upsert(self, username: str, session: ActiveSession) -> ActiveSession:
        if session.username != username:
            session = session.model_copy(update={"username": username})
        return self._repo.upsert(session)

    def heartbeat(self, username: str, session_id: str | None = None) -> bool:
        """last_heartbeat 갱신. 레코드가 사라졌거나 다른 세션 소유면 False."""

        return self._repo.touch(username, session_id, self._clock.now()) is not None

    def remove(self, username: str, session_id: str | None = None) -> bool:
        removed = self._repo.delete(username, session_id)
        if removed:
            logger.info("active session removed", extra={"username": username})
        return removed

    def get(self, username: str) -> ActiveSession | None:
        return self._repo.find(username)

    def list(self) -> dict[str, ActiveSession]:
        return self._repo.list_all()

    def live_sessions(self, include_stale: bool = True) -> list[LiveSession]:
        """관리자 화면용 목록. 시작 시각 오름차순."""

        now = self._clock.now()
        rows: list[LiveSession] = []
        for session in self._repo.list_all().values():
            active = is_session_active(session.last_heartbeat, now, self._threshold)
            if not active and not include_stale:
                continue
            rows.append(
                LiveSession(
                    session=session,
                    active=active,
                    elapsed_seconds=max(0, int((now - session.start_time).total_seconds())),
                    seconds_since_heartbeat=max(
                        0, int((now - session.last_heartbeat).total_seconds())
                    ),
                )
            )
        rows.sort(key=lambda row: row.session.start_time)
        return rows

    def count_active(self) -> int:
        return sum(1 for row in self.live_sessions() if row.active)

    def purge_expired(self) -> list[str]:
        """하트비트가 끊긴 레코드 정리 (탭 종료, 크래시 등 비정상 종료 대비)."""

        now = self._clock.now()
        purged: list[str] = []
        for username, session in self._repo.list_all().items():
            if is_session_active(session.last_heartbeat, now, self._threshold):
                continue
            # 그 사이 새 세션이 시작됐다면 session_id 가 달라 삭제되지 않는다.
            if self._repo.delete(username, session.session_id):
                purged.append(username)
        if purged:
            logger.info("purged %d expired sessions", len(purged))
        return purged
