from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Request

from ..services.container import ServiceContainer


ADMIN_TOKEN_HEADER = "X-Admin-Token"


def get_container(request: Request) -> ServiceContainer:
    """lifespan(또는 create_app 인자)에서 조립된 컨테이너를 꺼낸다."""

    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("service container is not initialised")
    return container


def require_admin(
    container: Annotated[ServiceContainer, Depends(get_container)],
    x_admin_token: Annotated[str | None, Header(alias=ADMIN_TOKEN_HEADER)] = None,
) -> str:
    """관리자 토큰 검증. 트랜잭션에 남길 관리자 식별자를 반환한다."""

    return container.admin_auth.verify(x_admin_token)


Container = Annotated[ServiceContainer, Depends(get_container)]
AdminActor = Annotated[str, Depends(require_admin)]
