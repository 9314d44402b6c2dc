from __future__ import annotations

import datetime as dt
from decimal import Decimal

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.models.daily_revenue import DailyRevenue
from opshub.models.enums import Role
from opshub.services.audit import audit
from opshub.services.auth import Actor


async def log_revenue(db: AsyncSession, *, actor: Actor, date: dt.date, amount: Decimal) -> tuple[DailyRevenue, bool]:
    """
    Upsert the caller's revenue for ``date``.
    Returns (row, created).
    """
    if actor.role != Role.MAILER:
        raise HTTPException(status_code=403, detail="Only mailers log daily revenue")

    stmt = select(DailyRevenue).where(DailyRevenue.mailer_id == actor.user_id, DailyRevenue.date == date)
    row = (await db.execute(stmt)).scalar_one_or_none()

    created = row is None
    if row is None:
        row = DailyRevenue(
            mailer_id=actor.user_id,
            team_id=actor.team_id,
            date=date,
            amount=amount,
            created_by=actor.user_id,
            updated_by=actor.user_id,
        )
        db.add(row)
    else:
        row.amount = amount
        row.updated_by = actor.user_id

    try:
        await db.flush()
    except IntegrityError:
        # a concurrent request logged the same day first
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"Revenue for {date.isoformat()} was logged concurrently; retry")

    await audit(
        db,
        team_id=actor.team_id,
        actor_profile_id=actor.user_id,
        action="revenue.logged",
        target_type="daily_revenue",
        target_id=row.id,
        detail={"date": date.isoformat(), "amount": str(amount), "created": created},
    )
    return row, created


async def _get_scoped(db: AsyncSession, actor: Actor, revenue_id: str) -> DailyRevenue:
    row = (await db.execute(select(DailyRevenue).where(DailyRevenue.id == revenue_id))).scalar_one_or_none()
    if not row:
        raise HTTPException(status_code=404, detail="Revenue entry not found")
    if actor.is_admin:
        return row
    if row.team_id != actor.team_id:
        raise HTTPException(status_code=403, detail="Revenue entry does not belong to your team")
    if actor.role == Role.MAILER and row.mailer_id != actor.user_id:
        raise HTTPException(status_code=403, detail="Revenue entry belongs to another mailer")
    return row


async def update_revenue(
    db: AsyncSession,
    *,
    actor: Actor,
    revenue_id: str,
    date: dt.date | None,
    amount: Decimal | None,
) -> DailyRevenue:
    row = await _get_scoped(db, actor, revenue_id)
    if date is not None:
        row.date = date
    if amount is not None:
        row.amount = amount
    row.updated_by = actor.user_id
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Another entry already exists for that date")
    return row


async def delete_revenue(db: AsyncSession, *, actor: Actor, revenue_id: str) -> None:
    row = await _get_scoped(db, actor, revenue_id)
    team_id = row.team_id
    await db.delete(row)
    await audit(
        db,
        team_id=team_id,
        actor_profile_id=actor.user_id,
        action="revenue.deleted",
        target_type="daily_revenue",
        target_id=revenue_id,
    )
    await db.flush()


async def list_revenue(
    db: AsyncSession,
    *,
    actor: Actor,
    mailer_id: str | None = None,
    team_id: str | None = None,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
) -> list[DailyRevenue]:
    stmt = select(DailyRevenue)
    if actor.role == Role.MAILER:
        stmt = stmt.where(DailyRevenue.mailer_id == actor.user_id)
    elif actor.role == Role.TEAM_LEADER:
        stmt = stmt.where(DailyRevenue.team_id == actor.team_id)
    elif team_id:
        stmt = stmt.where(DailyRevenue.team_id == team_id)

    if mailer_id and actor.role != Role.MAILER:
        stmt = stmt.where(DailyRevenue.mailer_id == mailer_id)
    if date_from:
        stmt = stmt.where(DailyRevenue.date >= date_from)
    if date_to:
        stmt = stmt.where(DailyRevenue.date <= date_to)

    stmt = stmt.order_by(DailyRevenue.date.desc(), DailyRevenue.mailer_id)
    return list((await db.execute(stmt)).scalars().all())
