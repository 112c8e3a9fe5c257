from __future__ import annotations

from fastapi import APIRouter

from .dependencies import Container


router = APIRouter()


@router.get("/health", summary="헬스 체크")
async def health(container: Container) -> dict[str, str]:
    return {"status": "ok", "store": container.repositories.backend}
