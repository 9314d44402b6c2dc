from fastapi import APIRouter

from opshub.api.v1.endpoints.health import router as health_router
from opshub.api.v1.endpoints.auth import router as auth_router
from opshub.api.v1.endpoints.me import router as me_router
from opshub.api.v1.endpoints.internal import router as internal_router
from opshub.api.v1.endpoints.admin import router as admin_router
from opshub.api.v1.endpoints.team import router as team_router
from opshub.api.v1.endpoints.resources import router as resources_router
from opshub.api.v1.endpoints.returns import router as returns_router
from opshub.api.v1.endpoints.revenue import router as revenue_router


router = APIRouter(prefix="/v1")
router.include_router(health_router, tags=["health"])
router.include_router(auth_router, tags=["auth"])
router.include_router(me_router, tags=["me"])
router.include_router(internal_router, tags=["internal"])
router.include_router(admin_router, tags=["admin"])
router.include_router(team_router, tags=["team"])
router.include_router(returns_router, tags=["returns"])
router.include_router(resources_router, tags=["resources"])
router.include_router(revenue_router, tags=["revenue"])
