from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.core.db import get_db
from opshub.schemas.auth import LoginIn, SessionOut, SignupIn
from opshub.schemas.profile import ProfileOut
from opshub.services import accounts
from opshub.services.auth import Actor, get_actor
from opshub.services.ip_whitelist import ensure_ip_allowed, get_client_ip, is_ip_allowed

router = APIRouter(prefix="/auth")


@router.post("/signup", response_model=ProfileOut, status_code=201)
async def signup(payload: SignupIn, request: Request, db: AsyncSession = Depends(get_db)) -> ProfileOut:
    """New accounts start as pending_approval until an admin approves them."""
    await ensure_ip_allowed(db, get_client_ip(request))
    profile = await accounts.create_profile(db, name=payload.name, email=payload.email, password=payload.password)
    await db.commit()
    return ProfileOut(id=profile.id, name=profile.name, email=profile.email, role=profile.role, team_id=profile.team_id)


@router.post("/login", response_model=SessionOut)
async def login(payload: LoginIn, request: Request, db: AsyncSession = Depends(get_db)) -> SessionOut:
    await ensure_ip_allowed(db, get_client_ip(request))
    profile, token, expires_at = await accounts.login(db, email=payload.email, password=payload.password)
    await db.commit()
    return SessionOut(
        access_token=token,
        expires_at=expires_at.isoformat(),
        user_id=profile.id,
        role=profile.role,
    )


@router.post("/logout")
async def logout(actor: Actor = Depends(get_actor), db: AsyncSession = Depends(get_db)) -> dict:
    await accounts.logout(db, actor=actor)
    await db.commit()
    return {"status": "logged_out"}


@router.get("/ip-check")
async def ip_check(request: Request, db: AsyncSession = Depends(get_db)) -> dict:
    """Lets the login form tell a blocked visitor up front."""
    ip = get_client_ip(request)
    return {"ip": ip, "allowed": await is_ip_allowed(db, ip)}
