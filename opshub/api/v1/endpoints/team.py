from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.core.db import get_db
from opshub.models.enums import Role
from opshub.schemas.auth import SignupIn
from opshub.schemas.profile import ProfileOut
from opshub.services import accounts
from opshub.services.auth import Actor, require_team_leader

router = APIRouter(prefix="/team")


@router.get("/mailers", response_model=list[ProfileOut])
async def list_team_mailers(
    actor: Actor = Depends(require_team_leader),
    db: AsyncSession = Depends(get_db),
) -> list[ProfileOut]:
    rows = await accounts.list_team_members(db, team_id=actor.team_id, role=Role.MAILER)
    return [ProfileOut(id=p.id, name=p.name, email=p.email, role=p.role, team_id=p.team_id) for p in rows]


@router.post("/mailers", response_model=ProfileOut, status_code=201)
async def create_team_mailer(
    payload: SignupIn,
    actor: Actor = Depends(require_team_leader),
    db: AsyncSession = Depends(get_db),
) -> ProfileOut:
    """New mailers join the leader's own team, already approved."""
    p = await accounts.create_member(
        db,
        actor=actor,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=Role.MAILER,
        team_id=actor.team_id,
    )
    await db.commit()
    return ProfileOut(id=p.id, name=p.name, email=p.email, role=p.role, team_id=p.team_id)
