from __future__ import annotations

import datetime as dt
import logging

from fastapi import HTTPException
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.core.config import settings
from opshub.core.security import generate_session_token, hash_password, verify_password
from opshub.models.daily_revenue import DailyRevenue
from opshub.models.enums import Role
from opshub.models.profile import Profile
from opshub.models.session_token import SessionToken
from opshub.models.team import Team
from opshub.services.audit import audit
from opshub.services.auth import Actor
from opshub.services.resource_kinds import KINDS

log = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def create_profile(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    role: Role = Role.PENDING_APPROVAL,
    team_id: str | None = None,
    created_by: str = "signup",
) -> Profile:
    profile = Profile(
        name=name.strip(),
        email=_normalize_email(email),
        password_hash=hash_password(password),
        role=role.value,
        team_id=team_id,
        created_by=created_by,
        updated_by=created_by,
    )
    db.add(profile)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="An account with this email already exists")
    return profile


async def login(db: AsyncSession, *, email: str, password: str) -> tuple[Profile, str, dt.datetime]:
    profile = (
        await db.execute(select(Profile).where(Profile.email == _normalize_email(email)))
    ).scalar_one_or_none()
    if not profile or not verify_password(password, profile.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = generate_session_token()
    expires_at = dt.datetime.now(dt.timezone.utc) + dt.timedelta(hours=settings.session_ttl_hours)
    db.add(SessionToken(
        profile_id=profile.id,
        token_prefix=token.prefix,
        token_hash=token.hashed,
        is_active=True,
        expires_at=expires_at,
    ))
    await db.flush()
    log.info("session opened for %s", profile.id)
    return profile, token.plain, expires_at


async def logout(db: AsyncSession, *, actor: Actor) -> None:
    if not actor.session_id:
        return
    await db.execute(
        update(SessionToken).where(SessionToken.id == actor.session_id).values(is_active=False)
    )


async def list_pending_users(db: AsyncSession) -> list[Profile]:
    stmt = (
        select(Profile)
        .where(Profile.role == Role.PENDING_APPROVAL.value)
        .order_by(Profile.created_at.asc())
    )
    return list((await db.execute(stmt)).scalars().all())


async def _get_team_or_404(db: AsyncSession, team_id: str) -> Team:
    team = (await db.execute(select(Team).where(Team.id == team_id))).scalar_one_or_none()
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


async def approve_user(db: AsyncSession, *, actor: Actor, user_id: str, role: Role, team_id: str) -> Profile:
    if role not in (Role.MAILER, Role.TEAM_LEADER):
        raise HTTPException(status_code=400, detail="Approved users must become mailer or team-leader")
    await _get_team_or_404(db, team_id)

    # conditional: only a still-pending profile can be approved
    result = await db.execute(
        update(Profile)
        .where(Profile.id == user_id, Profile.role == Role.PENDING_APPROVAL.value)
        .values(role=role.value, team_id=team_id, updated_by=actor.user_id)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        exists = (await db.execute(select(Profile.role).where(Profile.id == user_id))).scalar_one_or_none()
        if exists is None:
            raise HTTPException(status_code=404, detail="User not found")
        raise HTTPException(status_code=409, detail=f"User is not pending approval (role is '{exists}')")

    await audit(
        db,
        team_id=team_id,
        actor_profile_id=actor.user_id,
        action="profile.approved",
        target_type="profile",
        target_id=user_id,
        detail={"role": role.value},
    )
    profile = (
        await db.execute(
            select(Profile).where(Profile.id == user_id).execution_options(populate_existing=True)
        )
    ).scalar_one()
    log.info("profile %s approved as %s in %s by %s", user_id, role.value, team_id, actor.user_id)
    return profile


async def deny_user(db: AsyncSession, *, actor: Actor, user_id: str) -> None:
    profile = (await db.execute(select(Profile).where(Profile.id == user_id))).scalar_one_or_none()
    if not profile:
        raise HTTPException(status_code=404, detail="User not found")
    if profile.role != Role.PENDING_APPROVAL.value:
        raise HTTPException(status_code=409, detail="Only pending users can be denied")

    await db.execute(update(SessionToken).where(SessionToken.profile_id == user_id).values(is_active=False))
    await db.delete(profile)
    await audit(
        db,
        team_id=None,
        actor_profile_id=actor.user_id,
        action="profile.denied",
        target_type="profile",
        target_id=user_id,
        detail={"email": profile.email},
    )
    await db.flush()


async def list_team_members(db: AsyncSession, *, team_id: str, role: Role | None = None) -> list[Profile]:
    stmt = select(Profile).where(Profile.team_id == team_id)
    if role is not None:
        stmt = stmt.where(Profile.role == role.value)
    return list((await db.execute(stmt.order_by(Profile.name))).scalars().all())


async def create_team(db: AsyncSession, *, actor: Actor, name: str) -> Team:
    team = Team(name=name.strip(), created_by=actor.user_id, updated_by=actor.user_id)
    db.add(team)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="A team with this name already exists")
    await audit(db, team_id=team.id, actor_profile_id=actor.user_id, action="team.created", target_type="team", target_id=team.id)
    return team


async def list_teams(db: AsyncSession) -> list[Team]:
    return list((await db.execute(select(Team).order_by(Team.name))).scalars().all())


async def rename_team(db: AsyncSession, *, actor: Actor, team_id: str, name: str) -> Team:
    team = await _get_team_or_404(db, team_id)
    team.name = name.strip()
    team.updated_by = actor.user_id
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="A team with this name already exists")
    return team


async def delete_team(db: AsyncSession, *, actor: Actor, team_id: str) -> None:
    team = await _get_team_or_404(db, team_id)

    members = (await db.execute(select(func.count()).select_from(Profile).where(Profile.team_id == team_id))).scalar_one()
    if members:
        raise HTTPException(status_code=409, detail=f"Team still has {members} member(s)")

    for kind_spec in KINDS.values():
        count = (
            await db.execute(select(func.count()).select_from(kind_spec.model).where(kind_spec.model.team_id == team_id))
        ).scalar_one()
        if count:
            raise HTTPException(status_code=409, detail=f"Team still owns {count} {kind_spec.label.lower()} row(s)")

    revenue = (
        await db.execute(select(func.count()).select_from(DailyRevenue).where(DailyRevenue.team_id == team_id))
    ).scalar_one()
    if revenue:
        raise HTTPException(status_code=409, detail="Team still has revenue entries")

    await db.delete(team)
    await audit(db, team_id=team_id, actor_profile_id=actor.user_id, action="team.deleted", target_type="team", target_id=team_id)
    await db.flush()


async def create_member(
    db: AsyncSession,
    *,
    actor: Actor,
    name: str,
    email: str,
    password: str,
    role: Role,
    team_id: str,
) -> Profile:
    """Accounts made by an admin or team leader skip the approval queue."""
    await _get_team_or_404(db, team_id)
    profile = await create_profile(
        db, name=name, email=email, password=password, role=role, team_id=team_id, created_by=actor.user_id
    )
    await audit(
        db,
        team_id=team_id,
        actor_profile_id=actor.user_id,
        action="profile.created",
        target_type="profile",
        target_id=profile.id,
        detail={"role": role.value},
    )
    log.info("%s %s created in %s by %s", role.value, profile.id, team_id, actor.user_id)
    return profile
