"""Return workflow for shared resources.

Transitions::

    server:         active -> pending_return_approval -> returned
                                                   \\-> active   (rejected)
    proxy/rdp/seed: active -> returned

Every operation re-checks the caller's role and team against the stored
profile and the stored resource, then writes with a conditional UPDATE
whose WHERE clause repeats the id, the team and the expected status. When
that UPDATE touches no row another caller got there first: the row is
re-read and reported back as ``already_processed`` with its real status.

Guard failures are returned as ``ActionResult`` values, never raised.
"""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.models.enums import ResourceKind, Role, UnknownEnumValue, parse_status
from opshub.schemas.common import ActionResult, ResultCode
from opshub.services.audit import audit_status_change
from opshub.services.auth import Actor
from opshub.services.resource_kinds import (
    ACTIVE,
    PENDING_RETURN_APPROVAL,
    RETURNED,
    KindSpec,
    get_kind,
    revalidation_tags,
)

log = logging.getLogger(__name__)


def _fail(code: ResultCode, message: str, *, data: dict[str, Any] | None = None, revalidate: list[str] | None = None) -> ActionResult:
    return ActionResult(success=False, code=code, message=message, data=data, revalidate=revalidate or [])


async def _load_resource(db: AsyncSession, kind_spec: KindSpec, resource_id: str) -> Any | None:
    # populate_existing: always reflect the committed row, not a cached identity
    stmt = (
        select(kind_spec.model)
        .where(kind_spec.model.id == resource_id)
        .execution_options(populate_existing=True)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def _conditional_transition(
    db: AsyncSession,
    kind_spec: KindSpec,
    *,
    resource_id: str,
    team_id: str,
    from_status: str,
    to_status: str,
    actor: Actor,
) -> int:
    result = await db.execute(
        update(kind_spec.model)
        .where(
            kind_spec.model.id == resource_id,
            kind_spec.model.team_id == team_id,
            kind_spec.model.status == from_status,
        )
        .values(status=to_status, updated_by=actor.user_id)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount or 0)


async def _report_lost_race(
    db: AsyncSession,
    kind_spec: KindSpec,
    resource_id: str,
    *,
    attempted: str,
    actor: Actor,
) -> ActionResult:
    await db.rollback()
    current = await _load_resource(db, kind_spec, resource_id)
    if current is None:
        log.warning(
            "%s %s vanished during %s by %s", kind_spec.kind.value, resource_id, attempted, actor.user_id
        )
        return _fail(ResultCode.NOT_FOUND, f"{kind_spec.label} not found.", revalidate=revalidation_tags(None, returns=True))

    log.warning(
        "lost race on %s %s during %s by %s: status is now %r",
        kind_spec.kind.value, resource_id, attempted, actor.user_id, current.status,
    )
    return _fail(
        ResultCode.ALREADY_PROCESSED,
        f"Already processed: {kind_spec.label.lower()} is now '{current.status}'.",
        data=kind_spec.serialize(current),
        revalidate=revalidation_tags(current.team_id, returns=True),
    )


async def _finish_transition(
    db: AsyncSession,
    kind_spec: KindSpec,
    *,
    resource_id: str,
    team_id: str,
    from_status: str,
    to_status: str,
    actor: Actor,
    action: str,
    message: str,
) -> ActionResult:
    affected = await _conditional_transition(
        db, kind_spec,
        resource_id=resource_id,
        team_id=team_id,
        from_status=from_status,
        to_status=to_status,
        actor=actor,
    )
    if affected == 0:
        return await _report_lost_race(db, kind_spec, resource_id, attempted=action, actor=actor)

    await audit_status_change(
        db,
        team_id=team_id,
        actor_profile_id=actor.user_id,
        kind=kind_spec.kind.value,
        resource_id=resource_id,
        from_status=from_status,
        to_status=to_status,
        action=action,
    )
    await db.commit()

    fresh = await _load_resource(db, kind_spec, resource_id)
    log.info("%s %s: %s -> %s by %s", kind_spec.kind.value, resource_id, from_status, to_status, actor.user_id)
    return ActionResult(
        success=True,
        code=ResultCode.OK,
        message=message,
        data=kind_spec.serialize(fresh) if fresh is not None else None,
        revalidate=revalidation_tags(team_id, returns=True),
    )


async def request_return(
    db: AsyncSession,
    actor: Actor | None,
    kind: ResourceKind | str,
    resource_id: str,
) -> ActionResult:
    """
    Mark an active resource as returned.
    Servers go to pending_return_approval and wait for their team leader;
    the other kinds are returned immediately.
    """
    if actor is None:
        return _fail(ResultCode.UNAUTHENTICATED, "Unauthenticated: sign in to request a return.")
    if actor.role not in (Role.ADMIN, Role.TEAM_LEADER, Role.MAILER):
        return _fail(ResultCode.FORBIDDEN, "Forbidden: role")

    kind_spec = get_kind(kind)
    try:
        resource = await _load_resource(db, kind_spec, resource_id)
        if resource is None:
            return _fail(ResultCode.NOT_FOUND, f"{kind_spec.label} not found.")

        if not actor.is_admin:
            if resource.team_id != actor.team_id:
                return _fail(ResultCode.FORBIDDEN, "Forbidden: team mismatch")
            if actor.role == Role.MAILER and resource.owner_mailer_id != actor.user_id:
                return _fail(ResultCode.FORBIDDEN, f"Forbidden: only the owning mailer can return this {kind_spec.label.lower()}.")

        try:
            status = parse_status(kind_spec.kind, resource.status)
        except UnknownEnumValue:
            log.error("%s %s has unrecognised status %r", kind_spec.kind.value, resource_id, resource.status)
            return _fail(ResultCode.INVALID_STATE, f"Invalid state: unrecognized status '{resource.status}'.")

        if status != ACTIVE:
            return _fail(
                ResultCode.INVALID_STATE,
                f"Invalid state: {kind_spec.label.lower()} is '{status}'; a return can only be requested while '{ACTIVE}'.",
                data={"id": resource_id, "status": status},
            )

        target = kind_spec.return_target
        message = (
            f"{kind_spec.label} return requested; awaiting team leader approval."
            if kind_spec.requires_approval
            else f"{kind_spec.label} returned."
        )
        return await _finish_transition(
            db, kind_spec,
            resource_id=resource_id,
            team_id=resource.team_id,
            from_status=ACTIVE,
            to_status=target,
            actor=actor,
            action=f"{kind_spec.kind.value}.return_requested" if kind_spec.requires_approval else f"{kind_spec.kind.value}.returned",
            message=message,
        )
    except SQLAlchemyError as e:
        await db.rollback()
        log.exception("request_return failed for %s %s", kind_spec.kind.value, resource_id)
        return _fail(ResultCode.PERSISTENCE_ERROR, str(e.orig) if getattr(e, "orig", None) else str(e))


async def _decide_return(
    db: AsyncSession,
    actor: Actor | None,
    kind: ResourceKind | str,
    resource_id: str,
    *,
    to_status: str,
    verb: str,
) -> ActionResult:
    # Guard order matters: each failure short-circuits with its own code.
    if actor is None:
        return _fail(ResultCode.UNAUTHENTICATED, f"Unauthenticated: sign in to {verb} returns.")
    if actor.role != Role.TEAM_LEADER or not actor.team_id:
        return _fail(ResultCode.FORBIDDEN, f"Forbidden: role; only team leaders can {verb} returns.")

    kind_spec = get_kind(kind)
    try:
        resource = await _load_resource(db, kind_spec, resource_id)
        if resource is None:
            return _fail(ResultCode.NOT_FOUND, f"{kind_spec.label} not found.")

        if resource.team_id != actor.team_id:
            return _fail(ResultCode.FORBIDDEN, f"Forbidden: team mismatch; this {kind_spec.label.lower()} does not belong to your team.")

        try:
            status = parse_status(kind_spec.kind, resource.status)
        except UnknownEnumValue:
            log.error("%s %s has unrecognised status %r", kind_spec.kind.value, resource_id, resource.status)
            return _fail(ResultCode.INVALID_STATE, f"Invalid state: unrecognized status '{resource.status}'.")

        if status != PENDING_RETURN_APPROVAL:
            return _fail(
                ResultCode.INVALID_STATE,
                f"Invalid state: {kind_spec.label.lower()} is '{status}', not '{PENDING_RETURN_APPROVAL}'.",
                data={"id": resource_id, "status": status},
            )

        past = "accepted" if to_status == RETURNED else "rejected"
        return await _finish_transition(
            db, kind_spec,
            resource_id=resource_id,
            # scoped to the caller's team, not the row's
            team_id=actor.team_id,
            from_status=PENDING_RETURN_APPROVAL,
            to_status=to_status,
            actor=actor,
            action=f"{kind_spec.kind.value}.return_{past}",
            message=f"{kind_spec.label} return {past} successfully.",
        )
    except SQLAlchemyError as e:
        await db.rollback()
        log.exception("%s return failed for %s %s", verb, kind_spec.kind.value, resource_id)
        return _fail(ResultCode.PERSISTENCE_ERROR, str(e.orig) if getattr(e, "orig", None) else str(e))


async def approve_return(
    db: AsyncSession,
    actor: Actor | None,
    kind: ResourceKind | str,
    resource_id: str,
) -> ActionResult:
    return await _decide_return(db, actor, kind, resource_id, to_status=RETURNED, verb="approve")


async def reject_return(
    db: AsyncSession,
    actor: Actor | None,
    kind: ResourceKind | str,
    resource_id: str,
) -> ActionResult:
    return await _decide_return(db, actor, kind, resource_id, to_status=ACTIVE, verb="reject")


async def list_pending_returns(db: AsyncSession, actor: Actor, kind: ResourceKind | str = ResourceKind.SERVER) -> list:
    """Team leaders see their own team's queue; admins see every team."""
    kind_spec = get_kind(kind)
    stmt = select(kind_spec.model).where(kind_spec.model.status == PENDING_RETURN_APPROVAL)
    if not actor.is_admin:
        stmt = stmt.where(kind_spec.model.team_id == actor.team_id)
    stmt = stmt.order_by(kind_spec.model.updated_at.asc())
    return list((await db.execute(stmt)).scalars().all())
