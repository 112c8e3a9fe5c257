from fastapi import APIRouter

from .admin import router as admin_router
from .customers import router as customers_router
from .sessions import router as sessions_router

api_router = APIRouter()
api_router.include_router(customers_router, prefix="/customers", tags=["customers"])
api_router.include_router(sessions_router, prefix="/sessions", tags=["sessions"])
api_router.include_router(admin_router, prefix="/admin", tags=["admin"])
