from __future__ import annotations
from sqlalchemy.ext.asyncio import AsyncSession
from opshub.models.audit_log import AuditLog

async def audit(
    db: AsyncSession,
    *,
    team_id: str | None,
    actor_profile_id: str | None,
    action: str,
    target_type: str | None = None,
    target_id: str | None = None,
    detail: dict | None = None,
) -> None:
    db.add(AuditLog(
        team_id=team_id,
        actor_profile_id=actor_profile_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        detail=detail or {},
    ))


async def audit_status_change(
    db: AsyncSession,
    *,
    team_id: str,
    actor_profile_id: str,
    kind: str,
    resource_id: str,
    from_status: str,
    to_status: str,
    action: str,
) -> None:
    """Status moves of a resource, from the return workflow or a field edit."""
    await audit(
        db,
        team_id=team_id,
        actor_profile_id=actor_profile_id,
        action=action,
        target_type=kind,
        target_id=resource_id,
        detail={"kind": kind, "from": from_status, "to": to_status},
    )
