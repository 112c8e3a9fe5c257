from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logger import setup_logger
from common.middleware.request_trace import RequestTraceMiddleware
from common.mongo.client import close_client

from .api.health import router as health_router
from .api.v1 import api_router
from .config import STORE_BACKEND_MONGO, load_config
from .exceptions import (
    AdminAuthError,
    ConcurrentUpdateError,
    InsufficientBalanceError,
    NotFoundError,
    PointsServiceError,
    RemoteStoreError,
    SessionStateError,
    ValidationError,
)
from .models.error_log import ErrorSeverity
from .scheduler.session_sweeper import start_session_sweeper, stop_session_sweeper
from .services.container import ServiceContainer, build_container


logger = logging.getLogger(__name__)


ERROR_STATUS_CODES: dict[type[PointsServiceError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AdminAuthError: status.HTTP_401_UNAUTHORIZED,
    InsufficientBalanceError: status.HTTP_402_PAYMENT_REQUIRED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    SessionStateError: status.HTTP_409_CONFLICT,
    ConcurrentUpdateError: status.HTTP_409_CONFLICT,
    RemoteStoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_code_for(exc: PointsServiceError) -> int:
    for error_type in type(exc).__mro__:
        code = ERROR_STATUS_CODES.get(error_type)  # type: ignore[arg-type]
        if code is not None:
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_points_service_error(
    request: Request, exc: PointsServiceError
) -> JSONResponse:
    """도메인 예외를 {"detail": {"code", "message"}} 응답으로 바꾼다."""

    code = status_code_for(exc)
    if isinstance(exc, RemoteStoreError):
        logger.error(
            "store failure while handling request: %s",
            exc.message,
            extra={"path": request.url.path, "method": request.method},
        )
        container: ServiceContainer | None = getattr(request.app.state, "container", None)
        if container is not None:
            container.error_logs.record(
                "remote_store_error",
                exc.message,
                severity=ErrorSeverity.HIGH,
                operation=exc.operation,
                path=request.url.path,
                method=request.method,
            )
    elif code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("unhandled service error: %s", exc.message)

    return JSONResponse(
        status_code=code,
        content={"detail": {"code": exc.code, "message": exc.message}},
    )


def _build_lifespan(container: ServiceContainer | None):
    @asynccontextmanager
    async def lifespan(app: FastAPI):  # pragma: no cover - framework hook
        """컨테이너 조립과 만료 세션 정리 스레드를 관리한다."""

        active = container or build_container(load_config())
        app.state.container = active
        start_session_sweeper(active.registry, active.config.session.expiry_sweep_seconds)
        try:
            yield
        finally:
            stop_session_sweeper()
            active.sessions.shutdown()
            if active.repositories.backend == STORE_BACKEND_MONGO:
                close_client()

    return lifespan


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """컨테이너를 넘기면 그대로 사용하고 (테스트), 없으면 기동 시 설정에서 조립한다."""

    setup_logger(name="points-service")
    app = FastAPI(
        title="PlayPoints Service",
        version="0.1.0",
        lifespan=_build_lifespan(container),
    )
    if container is not None:
        app.state.container = container

    app.add_middleware(RequestTraceMiddleware)
    app.add_exception_handler(PointsServiceError, handle_points_service_error)  # type: ignore[arg-type]

    app.include_router(health_router, tags=["health"])
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


def main() -> None:
    import uvicorn

    port = int(os.getenv("POINTS_SERVICE_PORT", "8003"))
    uvicorn.run(
        "points_service.app.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
        access_log=False,
    )


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
