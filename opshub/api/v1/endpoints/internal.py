import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.core.db import get_db
from opshub.models.enums import Role
from opshub.schemas.auth import BootstrapAdminIn
from opshub.schemas.profile import ProfileOut
from opshub.services import accounts
from opshub.services.internal_admin import require_internal_admin

log = logging.getLogger(__name__)
router = APIRouter(prefix="/internal")


@router.post(
    "/bootstrap-admin",
    response_model=ProfileOut,
    status_code=201,
    dependencies=[Depends(require_internal_admin)],
)
async def bootstrap_admin(payload: BootstrapAdminIn, db: AsyncSession = Depends(get_db)) -> ProfileOut:
    """
    Creates an admin account directly, skipping the approval queue.
    Internal-only: protected by the X-Internal-Admin-Key header.
    """
    profile = await accounts.create_profile(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=Role.ADMIN,
        created_by="internal",
    )
    await db.commit()
    log.info("bootstrapped admin %s", profile.id)
    return ProfileOut(id=profile.id, name=profile.name, email=profile.email, role=profile.role, team_id=None)
