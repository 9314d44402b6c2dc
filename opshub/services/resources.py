from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException
from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.models.enums import Role
from opshub.models.team import Team
from opshub.services.audit import audit, audit_status_change
from opshub.services.auth import Actor
from opshub.services.resource_kinds import ACTIVE, WORKFLOW_STATUSES, KindSpec

log = logging.getLogger(__name__)


def isp_from_email(email: str) -> str:
    # "someone@gmail.com" -> "Gmail"
    domain = email.rsplit("@", 1)[-1] if "@" in email else ""
    head = domain.split(".")[0] if domain else ""
    return head[:1].upper() + head[1:] if head else "Unknown"


def ensure_can_modify(actor: Actor, row: Any, label: str) -> None:
    """Owner mailer, team leader of the row's team, or admin."""
    if actor.is_admin:
        return
    if row.team_id != actor.team_id:
        raise HTTPException(status_code=403, detail=f"{label} does not belong to your team")
    if actor.role == Role.MAILER and row.owner_mailer_id != actor.user_id:
        raise HTTPException(status_code=403, detail=f"Only the owning mailer can modify this {label.lower()}")


def check_editable_status(kind_spec: KindSpec, status: str | None) -> str | None:
    if status is None:
        return None
    if status in WORKFLOW_STATUSES and status in kind_spec.statuses:
        raise HTTPException(
            status_code=409,
            detail=f"Status '{status}' can only be reached through the return workflow",
        )
    if status not in kind_spec.editable_statuses:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {kind_spec.kind.value} status '{status}'; expected one of {kind_spec.editable_statuses}",
        )
    return status


async def resolve_target_team(db: AsyncSession, actor: Actor, team_id: str | None) -> str:
    """Team a new row is created in: the caller's own, or the named team for admins."""
    if not actor.is_admin:
        if team_id and team_id != actor.team_id:
            raise HTTPException(status_code=403, detail="Cannot create resources for another team")
        return actor.team_id

    if not team_id:
        raise HTTPException(status_code=400, detail="team_id is required for admin-created resources")
    if (await db.execute(select(Team.id).where(Team.id == team_id))).scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="Team not found")
    return team_id


def build_row(kind_spec: KindSpec, actor: Actor, team_id: str, payload: BaseModel) -> Any:
    values = payload.model_dump(exclude={"status"})
    status = check_editable_status(kind_spec, getattr(payload, "status", None)) or ACTIVE

    if "isp" in kind_spec.model.__table__.columns and not values.get("isp"):
        values["isp"] = isp_from_email(values["email_address"])

    return kind_spec.model(
        **values,
        status=status,
        owner_mailer_id=actor.user_id,
        team_id=team_id,
        created_by=actor.user_id,
        updated_by=actor.user_id,
    )


async def create_resource(
    db: AsyncSession,
    *,
    actor: Actor,
    kind_spec: KindSpec,
    payload: BaseModel,
    team_id: str | None = None,
) -> Any:
    target_team = await resolve_target_team(db, actor, team_id)
    row = build_row(kind_spec, actor, target_team, payload)
    db.add(row)
    await db.flush()

    await audit(
        db,
        team_id=target_team,
        actor_profile_id=actor.user_id,
        action=f"{kind_spec.kind.value}.created",
        target_type=kind_spec.kind.value,
        target_id=row.id,
    )
    return row


async def list_resources(
    db: AsyncSession,
    *,
    actor: Actor,
    kind_spec: KindSpec,
    mailer_id: str | None = None,
    status: str | None = None,
    team_id: str | None = None,
) -> list[Any]:
    model = kind_spec.model
    stmt = select(model)

    if actor.role == Role.MAILER:
        stmt = stmt.where(model.team_id == actor.team_id, model.owner_mailer_id == actor.user_id)
    elif actor.role == Role.TEAM_LEADER:
        stmt = stmt.where(model.team_id == actor.team_id)
        if mailer_id:
            stmt = stmt.where(model.owner_mailer_id == mailer_id)
    else:
        if team_id:
            stmt = stmt.where(model.team_id == team_id)
        if mailer_id:
            stmt = stmt.where(model.owner_mailer_id == mailer_id)

    if status:
        if status not in kind_spec.statuses:
            raise HTTPException(status_code=400, detail=f"Unknown {kind_spec.kind.value} status '{status}'")
        stmt = stmt.where(model.status == status)

    stmt = stmt.order_by(model.created_at.desc(), model.id)
    return list((await db.execute(stmt)).scalars().all())


async def get_resource(db: AsyncSession, *, actor: Actor, kind_spec: KindSpec, resource_id: str) -> Any:
    row = (await db.execute(select(kind_spec.model).where(kind_spec.model.id == resource_id))).scalar_one_or_none()
    if row is None:
        raise HTTPException(status_code=404, detail=f"{kind_spec.label} not found")
    ensure_can_modify(actor, row, kind_spec.label)
    return row


async def _write_status(
    db: AsyncSession,
    *,
    actor: Actor,
    kind_spec: KindSpec,
    row: Any,
    new_status: str,
) -> None:
    """Status edits are written only if the row still holds the status we read."""
    current = row.status
    if current in WORKFLOW_STATUSES:
        raise HTTPException(
            status_code=409,
            detail=f"{kind_spec.label} is '{current}'; its status is managed by the return workflow",
        )

    result = await db.execute(
        update(kind_spec.model)
        .where(
            kind_spec.model.id == row.id,
            kind_spec.model.team_id == row.team_id,
            kind_spec.model.status == current,
        )
        .values(status=new_status, updated_by=actor.user_id)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        log.warning("status edit on %s %s lost a race (expected %r)", kind_spec.kind.value, row.id, current)
        raise HTTPException(status_code=409, detail=f"{kind_spec.label} status changed concurrently; reload and retry")

    await audit_status_change(
        db,
        team_id=row.team_id,
        actor_profile_id=actor.user_id,
        kind=kind_spec.kind.value,
        resource_id=row.id,
        from_status=current,
        to_status=new_status,
        action=f"{kind_spec.kind.value}.status_changed",
    )


async def update_resource(
    db: AsyncSession,
    *,
    actor: Actor,
    kind_spec: KindSpec,
    resource_id: str,
    patch: BaseModel,
) -> Any:
    row = await get_resource(db, actor=actor, kind_spec=kind_spec, resource_id=resource_id)

    changes: dict[str, Any] = patch.model_dump(exclude_unset=True)
    new_status = check_editable_status(kind_spec, changes.pop("status", None))

    columns = kind_spec.model.__table__.columns
    for field, value in changes.items():
        if value is None and not columns[field].nullable:
            raise HTTPException(status_code=400, detail=f"{field} cannot be cleared")

    if new_status is not None and new_status != row.status:
        await _write_status(db, actor=actor, kind_spec=kind_spec, row=row, new_status=new_status)

    for field, value in changes.items():
        setattr(row, field, value)
    row.updated_by = actor.user_id
    await db.flush()
    if new_status is not None:
        changes["status"] = new_status

    await audit(
        db,
        team_id=row.team_id,
        actor_profile_id=actor.user_id,
        action=f"{kind_spec.kind.value}.updated",
        target_type=kind_spec.kind.value,
        target_id=row.id,
        detail={"fields": sorted(changes)},
    )
    return await _reload(db, kind_spec, row.id)


async def _reload(db: AsyncSession, kind_spec: KindSpec, resource_id: str) -> Any:
    stmt = (
        select(kind_spec.model)
        .where(kind_spec.model.id == resource_id)
        .execution_options(populate_existing=True)
    )
    return (await db.execute(stmt)).scalar_one()


async def delete_resource(db: AsyncSession, *, actor: Actor, kind_spec: KindSpec, resource_id: str) -> None:
    row = await get_resource(db, actor=actor, kind_spec=kind_spec, resource_id=resource_id)
    team_id = row.team_id
    await db.delete(row)
    await db.flush()

    await audit(
        db,
        team_id=team_id,
        actor_profile_id=actor.user_id,
        action=f"{kind_spec.kind.value}.deleted",
        target_type=kind_spec.kind.value,
        target_id=resource_id,
    )
    log.info("%s %s deleted by %s", kind_spec.kind.value, resource_id, actor.user_id)
