"""Signup/login IP allow-list.

While the list is empty every address may sign up and log in. Once an
admin adds the first entry, only listed addresses may.
"""
from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.core.config import settings
from opshub.models.allowed_ip import AllowedSignupIp
from opshub.services.audit import audit
from opshub.services.auth import Actor

log = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str | None:
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # "client, proxy1, proxy2"
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    return request.client.host if request.client else None


async def is_ip_allowed(db: AsyncSession, ip: str | None) -> bool:
    any_listed = (await db.execute(select(AllowedSignupIp.id).limit(1))).scalar_one_or_none()
    if any_listed is None:
        return True
    if ip is None:
        return False
    match = (
        await db.execute(select(AllowedSignupIp.id).where(AllowedSignupIp.ip_address == ip))
    ).scalar_one_or_none()
    return match is not None


async def ensure_ip_allowed(db: AsyncSession, ip: str | None) -> None:
    if await is_ip_allowed(db, ip):
        return
    log.warning("blocked signup/login from non-whitelisted address %s", ip)
    raise HTTPException(status_code=403, detail="Access from your IP address is not allowed")


async def list_allowed_ips(db: AsyncSession) -> list[AllowedSignupIp]:
    stmt = select(AllowedSignupIp).order_by(AllowedSignupIp.created_at.desc(), AllowedSignupIp.ip_address)
    return list((await db.execute(stmt)).scalars().all())


async def add_allowed_ip(db: AsyncSession, *, actor: Actor, ip_address: str, description: str | None) -> AllowedSignupIp:
    row = AllowedSignupIp(
        ip_address=ip_address,
        description=description.strip() if description else None,
        added_by_admin_id=actor.user_id,
    )
    db.add(row)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="This IP address is already whitelisted")

    await audit(
        db,
        team_id=None,
        actor_profile_id=actor.user_id,
        action="allowed_ip.added",
        target_type="allowed_ip",
        target_id=row.id,
        detail={"ip_address": ip_address},
    )
    return row


async def delete_allowed_ip(db: AsyncSession, *, actor: Actor, entry_id: str) -> None:
    row = (await db.execute(select(AllowedSignupIp).where(AllowedSignupIp.id == entry_id))).scalar_one_or_none()
    if row is None:
        raise HTTPException(status_code=404, detail="Whitelist entry not found")

    ip_address = row.ip_address
    await db.delete(row)
    await audit(
        db,
        team_id=None,
        actor_profile_id=actor.user_id,
        action="allowed_ip.removed",
        target_type="allowed_ip",
        target_id=entry_id,
        detail={"ip_address": ip_address},
    )
    await db.flush()
    log.info("allowed ip %s removed by %s", ip_address, actor.user_id)
