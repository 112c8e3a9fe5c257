from __future__ import annotations

from fastapi import APIRouter

from ..dependencies import Container
from ..schemas.sessions import SessionStatusResponse, StopSessionResponse


router = APIRouter()


@router.post(
    "/{username}/start",
    response_model=SessionStatusResponse,
    summary="세션 시작 (포인트 적립 타이머 가동)",
)
def start_session(username: str, container: Container) -> SessionStatusResponse:
    username = username.strip()
    snapshot = container.sessions.start(username)
    controller = container.sessions.get(username)
    notices = controller.drain_notices() if controller else []
    return SessionStatusResponse.from_snapshot(snapshot, notices)


@router.post(
    "/{username}/stop",
    response_model=StopSessionResponse,
    summary="세션 종료 (이미 종료된 경우에도 성공)",
)
def stop_session(username: str, container: Container) -> StopSessionResponse:
    username = username.strip()
    return StopSessionResponse(stopped=container.sessions.stop(username))


@router.get(
    "/{username}/status",
    response_model=SessionStatusResponse,
    summary="타이머 표시값, 잔액, 대기 중인 알림",
)
def session_status(username: str, container: Container) -> SessionStatusResponse:
    username = username.strip()
    # 등록되지 않은 username 으로 컨트롤러가 쌓이지 않도록 먼저 확인한다.
    customer = container.ledger.get_customer(username)
    snapshot, notices = container.sessions.status(username)
    if not snapshot.running:
        snapshot = snapshot.model_copy(update={"balance": customer.points})
    return SessionStatusResponse.from_snapshot(snapshot, notices)
