from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.core.db import get_db
from opshub.models.enums import ResourceKind
from opshub.schemas.resource import BulkImportIn, BulkImportOut
from opshub.services import resources as resource_service
from opshub.services.auth import Actor, require_member
from opshub.services.bulk_import import bulk_import
from opshub.services.resource_kinds import get_kind

router = APIRouter(prefix="/resources")


def _parse(schema: type[BaseModel], body: dict[str, Any]) -> BaseModel:
    try:
        return schema.model_validate(body)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))


@router.post("/{kind}", status_code=201)
async def create_resource(
    kind: ResourceKind,
    body: dict[str, Any] = Body(...),
    team_id: str | None = Query(default=None, description="admins only: team to create the row in"),
    actor: Actor = Depends(require_member),
    db: AsyncSession = Depends(get_db),
) -> dict:
    kind_spec = get_kind(kind)
    payload = _parse(kind_spec.create_schema, body)
    row = await resource_service.create_resource(db, actor=actor, kind_spec=kind_spec, payload=payload, team_id=team_id)
    await db.commit()
    return kind_spec.serialize(row)


@router.get("/{kind}")
async def list_resources(
    kind: ResourceKind,
    mailer_id: str | None = None,
    status: str | None = None,
    team_id: str | None = None,
    actor: Actor = Depends(require_member),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    kind_spec = get_kind(kind)
    rows = await resource_service.list_resources(
        db, actor=actor, kind_spec=kind_spec, mailer_id=mailer_id, status=status, team_id=team_id
    )
    return [kind_spec.serialize(r) for r in rows]


@router.post("/{kind}/bulk", response_model=BulkImportOut)
async def bulk_import_resources(
    kind: ResourceKind,
    payload: BulkImportIn,
    team_id: str | None = Query(default=None, description="admins only: team to import into"),
    actor: Actor = Depends(require_member),
    db: AsyncSession = Depends(get_db),
) -> BulkImportOut:
    kind_spec = get_kind(kind)
    report = await bulk_import(
        db,
        actor=actor,
        kind_spec=kind_spec,
        rows=payload.rows,
        group_name=payload.group_name,
        team_id=team_id,
    )
    await db.commit()
    return report


@router.get("/{kind}/{resource_id}")
async def get_resource(
    kind: ResourceKind,
    resource_id: str,
    actor: Actor = Depends(require_member),
    db: AsyncSession = Depends(get_db),
) -> dict:
    kind_spec = get_kind(kind)
    row = await resource_service.get_resource(db, actor=actor, kind_spec=kind_spec, resource_id=resource_id)
    return kind_spec.serialize(row)


@router.patch("/{kind}/{resource_id}")
async def update_resource(
    kind: ResourceKind,
    resource_id: str,
    body: dict[str, Any] = Body(...),
    actor: Actor = Depends(require_member),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Field edits and maintenance/problem-style status changes. Returns go through /return."""
    kind_spec = get_kind(kind)
    patch = _parse(kind_spec.update_schema, body)
    row = await resource_service.update_resource(db, actor=actor, kind_spec=kind_spec, resource_id=resource_id, patch=patch)
    await db.commit()
    return kind_spec.serialize(row)


@router.delete("/{kind}/{resource_id}")
async def delete_resource(
    kind: ResourceKind,
    resource_id: str,
    actor: Actor = Depends(require_member),
    db: AsyncSession = Depends(get_db),
) -> dict:
    kind_spec = get_kind(kind)
    await resource_service.delete_resource(db, actor=actor, kind_spec=kind_spec, resource_id=resource_id)
    await db.commit()
    return {"status": "deleted", "id": resource_id}
