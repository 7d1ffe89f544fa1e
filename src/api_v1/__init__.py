from fastapi import APIRouter

from .health.views import router as health_router
from .picker.views import router as picker_router

router = APIRouter()
router.include_router(router=health_router)
router.include_router(router=picker_router, prefix="/picker")
