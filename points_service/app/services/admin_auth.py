from __future__ import annotations

import hmac
import logging
import secrets
import threading

from ..exceptions import AdminAuthError


logger = logging.getLogger(__name__)


class AdminAuthenticator:
    """공유 비밀번호 하나로 관리자 화면을 여는 단순 인증.

    로그인에 성공하면 불투명 토큰을 발급하고, 로그아웃하거나 프로세스가 재시작될 때까지
    메모리에만 보관한다.
    """

    def __init__(self, password: str | None) -> None:
        self._password = password
        self._tokens: set[str] = set()
        self._lock = threading.Lock()

    def login(self, password: str) -> str:
        if not self._password:
            raise AdminAuthError("Admin login is disabled (no password configured)")
        if not hmac.compare_digest(password.encode(), self._password.encode()):
            logger.warning("admin login rejected")
            raise AdminAuthError("Invalid admin password")

        token = secrets.token_urlsafe(32)
        with self._lock:
            self._tokens.add(token)
        logger.info("admin logged in")
        return token

    def logout(self, token: str) -> None:
        with self._lock:
            self._tokens.discard(token)

    def verify(self, token: str | None) -> str:
        """유효한 토큰이면 트랜잭션 기록에 쓸 관리자 식별자를 반환한다."""

        if not token:
            raise AdminAuthError("Admin login required")
        with self._lock:
            valid = token in self._tokens
        if not valid:
            raise AdminAuthError("Admin session expired, please login again")
        return f"admin:{token[:8]}"
