"""관리자 화면용 API.

로그인을 제외한 모든 엔드포인트는 X-Admin-Token 헤더가 필요하다.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Header, status

from ...exceptions import NotFoundError, ValidationError
from ...models.error_log import ErrorSeverity
from ..dependencies import ADMIN_TOKEN_HEADER, AdminActor, Container
from ..schemas.admin import (
    AdminLoginRequest,
    AdminLoginResponse,
    DashboardStatsResponse,
    ErrorLogResponse,
    ListErrorLogsResponse,
    PointsAdjustRequest,
    PointsAdjustResponse,
)
from ..schemas.customers import CustomerResponse, ListCustomersResponse
from ..schemas.sessions import ListLiveSessionsResponse, LiveSessionResponse


router = APIRouter()


@router.post("/login", response_model=AdminLoginResponse, summary="관리자 로그인")
def admin_login(body: AdminLoginRequest, container: Container) -> AdminLoginResponse:
    return AdminLoginResponse(token=container.admin_auth.login(body.password))


@router.post(
    "/logout", status_code=status.HTTP_204_NO_CONTENT, summary="관리자 로그아웃"
)
def admin_logout(
    container: Container,
    x_admin_token: Annotated[str | None, Header(alias=ADMIN_TOKEN_HEADER)] = None,
) -> None:
    if x_admin_token:
        container.admin_auth.logout(x_admin_token)


@router.get("/stats", response_model=DashboardStatsResponse, summary="대시보드 통계")
def dashboard_stats(container: Container, _: AdminActor) -> DashboardStatsResponse:
    stats = container.dashboard_stats()
    return DashboardStatsResponse(**stats.model_dump())


@router.get(
    "/customers",
    response_model=ListCustomersResponse,
    summary="플레이어 목록/검색 (이름, username, 전화, 이메일)",
)
def list_customers(
    container: Container, _: AdminActor, q: str | None = None
) -> ListCustomersResponse:
    customers = container.ledger.list_customers()
    matched = [c for c in customers if c.matches(q)] if q else customers
    return ListCustomersResponse(
        total=len(customers),
        matched=len(matched),
        items=[CustomerResponse.from_domain(c) for c in matched],
    )


@router.post(
    "/customers/{username}/points",
    response_model=PointsAdjustResponse,
    summary="수동 포인트 지급/차감",
)
def adjust_points(
    username: str,
    body: PointsAdjustRequest,
    container: Container,
    actor: AdminActor,
) -> PointsAdjustResponse:
    username = username.strip()
    if body.points <= 0:
        raise ValidationError("Please select a customer and enter valid points amount")
    delta = body.points if body.action == "add" else -body.points
    balance = container.ledger.adjust(username, delta, body.description, actor=actor)
    return PointsAdjustResponse(
        username=username,
        action=body.action,
        points=body.points,
        balance=balance,
    )


@router.get(
    "/sessions",
    response_model=ListLiveSessionsResponse,
    summary="진행 중 세션 목록 (하트비트 기준 활성 여부 포함)",
)
def list_sessions(
    container: Container, _: AdminActor, include_stale: bool = True
) -> ListLiveSessionsResponse:
    rows = container.registry.live_sessions(include_stale=include_stale)
    return ListLiveSessionsResponse(
        liveness_threshold_seconds=container.registry.liveness_threshold_seconds,
        items=[LiveSessionResponse.from_domain(row) for row in rows],
    )


@router.delete(
    "/sessions/{username}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="세션 강제 종료",
)
def force_stop_session(username: str, container: Container, _: AdminActor) -> None:
    username = username.strip()
    if not container.sessions.force_stop(username):
        raise NotFoundError(f"No active session for {username}")


@router.get(
    "/error-logs",
    response_model=ListErrorLogsResponse,
    summary="에러 로그 조회 (유형/심각도/텍스트 필터)",
)
def list_error_logs(
    container: Container,
    _: AdminActor,
    error_type: str | None = None,
    severity: ErrorSeverity | None = None,
    q: str | None = None,
) -> ListErrorLogsResponse:
    logs = container.error_logs.list(error_type=error_type, severity=severity, text=q)
    return ListErrorLogsResponse(
        total=len(logs),
        items=[ErrorLogResponse.from_domain(log) for log in logs],
    )
