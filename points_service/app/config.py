"""points-service 설정.

레포지토리 루트의 config.yaml 을 읽고, 배포 환경마다 달라지는 값은 환경 변수로 덮어쓴다.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


DEFAULT_CONFIG_FILE_NAME = "config.yaml"

# 30분마다 1포인트
DEFAULT_ACCRUAL_INTERVAL_SECONDS = 30 * 60
DEFAULT_DISPLAY_TICK_SECONDS = 1
DEFAULT_HEARTBEAT_INTERVAL_SECONDS = 60
# 관측된 값(60초, 720초) 중 하트비트 주기보다 충분히 긴 720초를 기본값으로 둔다.
DEFAULT_LIVENESS_THRESHOLD_SECONDS = 720
DEFAULT_EXPIRY_SWEEP_SECONDS = 60
DEFAULT_MAX_ADJUST_ATTEMPTS = 3

STORE_BACKEND_MONGO = "mongo"
STORE_BACKEND_MEMORY = "memory"
STORE_BACKENDS = (STORE_BACKEND_MONGO, STORE_BACKEND_MEMORY)

STORE_BACKEND_ENV = "STORE_BACKEND"
ADMIN_PASSWORD_ENV = "ADMIN_PASSWORD"


@dataclass(slots=True)
class PointsConfig:
    accrual_interval_seconds: int = DEFAULT_ACCRUAL_INTERVAL_SECONDS
    max_adjust_attempts: int = DEFAULT_MAX_ADJUST_ATTEMPTS

    @property
    def auto_accrual_description(self) -> str:
        """자동 적립 트랜잭션의 description 태그. 관리자 수동 지급과 구분하는 용도."""

        minutes = self.accrual_interval_seconds // 60
        if minutes:
            return f"Auto-earned from {minutes}min session"
        return f"Auto-earned from {self.accrual_interval_seconds}s session"


@dataclass(slots=True)
class SessionConfig:
    display_tick_seconds: int = DEFAULT_DISPLAY_TICK_SECONDS
    heartbeat_interval_seconds: int = DEFAULT_HEARTBEAT_INTERVAL_SECONDS
    liveness_threshold_seconds: int = DEFAULT_LIVENESS_THRESHOLD_SECONDS
    # 0 이하이면 만료 세션 정리 스레드를 띄우지 않는다.
    expiry_sweep_seconds: int = DEFAULT_EXPIRY_SWEEP_SECONDS
    record_summary: bool = True


@dataclass(slots=True)
class StoreConfig:
    backend: str = STORE_BACKEND_MONGO
    # Mongo 연결 실패 시 메모리 저장소(데모 모드)로 기동할지 여부
    fallback_to_memory: bool = False


@dataclass(slots=True)
class AdminConfig:
    password: str | None = None


@dataclass(slots=True)
class AppConfig:
    """points-service 전체 설정 루트."""

    points: PointsConfig = field(default_factory=PointsConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    admin: AdminConfig = field(default_factory=AdminConfig)


def _find_config_path() -> Path:
    """현재 작업 디렉토리 기준으로 상위로 올라가며 config.yaml 을 찾는다."""

    current = Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate

    raise RuntimeError(
        f"{DEFAULT_CONFIG_FILE_NAME} not found. Place config.yaml in project root.",
    )


def _positive_int(section: dict[str, Any], key: str, default: int, path: Path) -> int:
    raw = section.get(key, default)
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise RuntimeError(f"invalid {key} in {path}: {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{key} must be positive in {path}: {raw!r}")
    return value


def parse_config(data: dict[str, Any], path: Path) -> AppConfig:
    points_raw = data.get("points") or {}
    session_raw = data.get("session") or {}
    store_raw = data.get("store") or {}
    admin_raw = data.get("admin") or {}

    points = PointsConfig(
        accrual_interval_seconds=_positive_int(
            points_raw,
            "accrual_interval_seconds",
            DEFAULT_ACCRUAL_INTERVAL_SECONDS,
            path,
        ),
        max_adjust_attempts=_positive_int(
            points_raw, "max_adjust_attempts", DEFAULT_MAX_ADJUST_ATTEMPTS, path
        ),
    )

    sweep_raw = session_raw.get("expiry_sweep_seconds", DEFAULT_EXPIRY_SWEEP_SECONDS)
    try:
        sweep = int(sweep_raw)
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise RuntimeError(
            f"invalid expiry_sweep_seconds in {path}: {sweep_raw!r}"
        ) from exc

    session = SessionConfig(
        display_tick_seconds=_positive_int(
            session_raw, "display_tick_seconds", DEFAULT_DISPLAY_TICK_SECONDS, path
        ),
        heartbeat_interval_seconds=_positive_int(
            session_raw,
            "heartbeat_interval_seconds",
            DEFAULT_HEARTBEAT_INTERVAL_SECONDS,
            path,
        ),
        liveness_threshold_seconds=_positive_int(
            session_raw,
            "liveness_threshold_seconds",
            DEFAULT_LIVENESS_THRESHOLD_SECONDS,
            path,
        ),
        expiry_sweep_seconds=sweep,
        record_summary=bool(session_raw.get("record_summary", True)),
    )

    backend = str(
        os.getenv(STORE_BACKEND_ENV) or store_raw.get("backend") or STORE_BACKEND_MONGO
    ).strip().lower()
    if backend not in STORE_BACKENDS:
        raise RuntimeError(f"unknown store backend {backend!r} (expected one of {STORE_BACKENDS})")

    store = StoreConfig(
        backend=backend,
        fallback_to_memory=bool(store_raw.get("fallback_to_memory", False)),
    )

    password = os.getenv(ADMIN_PASSWORD_ENV) or admin_raw.get("password") or None
    admin = AdminConfig(password=str(password) if password else None)

    return AppConfig(points=points, session=session, store=store, admin=admin)


def load_config() -> AppConfig:
    """config.yaml 을 로드하여 AppConfig 로 반환한다."""

    path = _find_config_path()
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return parse_config(data, path)
