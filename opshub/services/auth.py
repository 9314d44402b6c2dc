import datetime as dt
import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.core.db import get_db
from opshub.core.security import hash_session_token
from opshub.models.enums import Role, UnknownEnumValue, parse_role
from opshub.models.profile import Profile
from opshub.models.session_token import SessionToken

log = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: Role
    team_id: str | None
    name: str
    email: str
    session_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_team_leader(self) -> bool:
        return self.role == Role.TEAM_LEADER


class Unauthenticated(Exception):
    pass


async def resolve_actor(db: AsyncSession, token: str | None) -> Actor:
    """
    Resolve a bearer token to the caller's current profile.
    Role and team always come from the profile row, never from the request.
    Raises Unauthenticated for missing/expired/revoked tokens and
    UnknownEnumValue if the stored role is not one we recognise.
    """
    if not token:
        raise Unauthenticated("Missing bearer token")

    now = dt.datetime.now(dt.timezone.utc)
    stmt = (
        select(SessionToken, Profile)
        .join(Profile, Profile.id == SessionToken.profile_id)
        .where(
            SessionToken.token_hash == hash_session_token(token),
            SessionToken.is_active.is_(True),
            SessionToken.expires_at > now,
        )
    )
    row = (await db.execute(stmt)).one_or_none()
    if not row:
        raise Unauthenticated("Invalid or expired session")

    session, profile = row
    return Actor(
        user_id=profile.id,
        role=parse_role(profile.role),
        team_id=profile.team_id,
        name=profile.name,
        email=profile.email,
        session_id=session.id,
    )


async def get_actor(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Actor:
    token = credentials.credentials if credentials else None
    try:
        return await resolve_actor(db, token)
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))
    except UnknownEnumValue:
        log.warning("rejected session with unrecognised role")
        raise HTTPException(status_code=403, detail="Unrecognized role")


async def get_optional_actor(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Actor | None:
    # Lifecycle endpoints report "unauthenticated" in their result body
    # instead of failing inside the dependency.
    token = credentials.credentials if credentials else None
    try:
        return await resolve_actor(db, token)
    except Unauthenticated:
        return None
    except UnknownEnumValue:
        log.warning("rejected session with unrecognised role")
        raise HTTPException(status_code=403, detail="Unrecognized role")


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if actor.role != Role.ADMIN:
        raise HTTPException(status_code=403, detail="Admin role required")
    return actor


def require_team_leader(actor: Actor = Depends(get_actor)) -> Actor:
    if actor.role != Role.TEAM_LEADER:
        raise HTTPException(status_code=403, detail="Team leader role required")
    if not actor.team_id:
        raise HTTPException(status_code=403, detail="Team leader is not assigned to a team")
    return actor


def require_member(actor: Actor = Depends(get_actor)) -> Actor:
    """Any approved account: admin, team leader or mailer."""
    if actor.role == Role.PENDING_APPROVAL:
        raise HTTPException(status_code=403, detail="Account is awaiting admin approval")
    if actor.role != Role.ADMIN and not actor.team_id:
        raise HTTPException(status_code=403, detail="Account is not assigned to a team")
    return actor
