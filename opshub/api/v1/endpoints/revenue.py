import datetime as dt

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.core.db import get_db
from opshub.schemas.revenue import RevenueLog, RevenueOut, RevenueUpdate
from opshub.services import revenue as revenue_service
from opshub.services.auth import Actor, require_member

router = APIRouter(prefix="/revenue")


def _out(r) -> RevenueOut:
    return RevenueOut(id=r.id, mailer_id=r.mailer_id, team_id=r.team_id, date=r.date, amount=r.amount)


@router.put("", response_model=RevenueOut)
async def log_revenue(
    payload: RevenueLog,
    actor: Actor = Depends(require_member),
    db: AsyncSession = Depends(get_db),
):
    """Log (or overwrite) the caller's revenue for one day."""
    row, created = await revenue_service.log_revenue(db, actor=actor, date=payload.date, amount=payload.amount)
    await db.commit()
    out = _out(row)
    return JSONResponse(status_code=201 if created else 200, content=out.model_dump(mode="json"))


@router.get("", response_model=list[RevenueOut])
async def list_revenue(
    mailer_id: str | None = None,
    team_id: str | None = None,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
    actor: Actor = Depends(require_member),
    db: AsyncSession = Depends(get_db),
) -> list[RevenueOut]:
    rows = await revenue_service.list_revenue(
        db, actor=actor, mailer_id=mailer_id, team_id=team_id, date_from=date_from, date_to=date_to
    )
    return [_out(r) for r in rows]


@router.patch("/{revenue_id}", response_model=RevenueOut)
async def update_revenue(
    revenue_id: str,
    payload: RevenueUpdate,
    actor: Actor = Depends(require_member),
    db: AsyncSession = Depends(get_db),
) -> RevenueOut:
    row = await revenue_service.update_revenue(
        db, actor=actor, revenue_id=revenue_id, date=payload.date, amount=payload.amount
    )
    await db.commit()
    return _out(row)


@router.delete("/{revenue_id}")
async def delete_revenue(
    revenue_id: str,
    actor: Actor = Depends(require_member),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await revenue_service.delete_revenue(db, actor=actor, revenue_id=revenue_id)
    await db.commit()
    return {"status": "deleted", "id": revenue_id}
