from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.core.db import get_db
from opshub.models.enums import Role
from opshub.schemas.allowed_ip import AllowedIpCreate, AllowedIpOut
from opshub.schemas.auth import SignupIn
from opshub.schemas.profile import ProfileOut, UserApproval
from opshub.schemas.team import TeamCreate, TeamOut
from opshub.services import accounts, ip_whitelist
from opshub.services.auth import Actor, require_admin

router = APIRouter(prefix="/admin")


def _profile_out(p) -> ProfileOut:
    return ProfileOut(id=p.id, name=p.name, email=p.email, role=p.role, team_id=p.team_id)


@router.get("/users/pending", response_model=list[ProfileOut])
async def list_pending_users(
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[ProfileOut]:
    return [_profile_out(p) for p in await accounts.list_pending_users(db)]


@router.post("/users/{user_id}/approve", response_model=ProfileOut)
async def approve_user(
    user_id: str,
    payload: UserApproval,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ProfileOut:
    profile = await accounts.approve_user(db, actor=actor, user_id=user_id, role=Role(payload.role), team_id=payload.team_id)
    await db.commit()
    return _profile_out(profile)


@router.delete("/users/{user_id}")
async def deny_user(
    user_id: str,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await accounts.deny_user(db, actor=actor, user_id=user_id)
    await db.commit()
    return {"status": "denied", "user_id": user_id}


@router.get("/teams", response_model=list[TeamOut])
async def list_teams(
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[TeamOut]:
    return [TeamOut(id=t.id, name=t.name) for t in await accounts.list_teams(db)]


@router.post("/teams", response_model=TeamOut, status_code=201)
async def create_team(
    payload: TeamCreate,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> TeamOut:
    team = await accounts.create_team(db, actor=actor, name=payload.name)
    await db.commit()
    return TeamOut(id=team.id, name=team.name)


@router.patch("/teams/{team_id}", response_model=TeamOut)
async def rename_team(
    team_id: str,
    payload: TeamCreate,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> TeamOut:
    team = await accounts.rename_team(db, actor=actor, team_id=team_id, name=payload.name)
    await db.commit()
    return TeamOut(id=team.id, name=team.name)


@router.delete("/teams/{team_id}")
async def delete_team(
    team_id: str,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await accounts.delete_team(db, actor=actor, team_id=team_id)
    await db.commit()
    return {"status": "deleted", "team_id": team_id}


@router.get("/teams/{team_id}/members", response_model=list[ProfileOut])
async def list_team_members(
    team_id: str,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[ProfileOut]:
    return [_profile_out(p) for p in await accounts.list_team_members(db, team_id=team_id)]


@router.post("/teams/{team_id}/leaders", response_model=ProfileOut, status_code=201)
async def create_team_leader(
    team_id: str,
    payload: SignupIn,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ProfileOut:
    profile = await accounts.create_member(
        db,
        actor=actor,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=Role.TEAM_LEADER,
        team_id=team_id,
    )
    await db.commit()
    return _profile_out(profile)


def _allowed_ip_out(row) -> AllowedIpOut:
    return AllowedIpOut(
        id=row.id, ip_address=row.ip_address, description=row.description, added_by_admin_id=row.added_by_admin_id
    )


@router.get("/allowed-ips", response_model=list[AllowedIpOut])
async def list_allowed_ips(
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[AllowedIpOut]:
    return [_allowed_ip_out(r) for r in await ip_whitelist.list_allowed_ips(db)]


@router.post("/allowed-ips", response_model=AllowedIpOut, status_code=201)
async def add_allowed_ip(
    payload: AllowedIpCreate,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AllowedIpOut:
    row = await ip_whitelist.add_allowed_ip(db, actor=actor, ip_address=payload.ip_address, description=payload.description)
    await db.commit()
    return _allowed_ip_out(row)


@router.delete("/allowed-ips/{entry_id}")
async def delete_allowed_ip(
    entry_id: str,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await ip_whitelist.delete_allowed_ip(db, actor=actor, entry_id=entry_id)
    await db.commit()
    return {"status": "deleted", "id": entry_id}
