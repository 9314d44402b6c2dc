from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.core.db import get_db
from opshub.models.enums import ResourceKind
from opshub.schemas.common import ActionResult, ResultCode
from opshub.services import resource_lifecycle
from opshub.services.auth import Actor, get_optional_actor, require_member
from opshub.services.resource_kinds import get_kind

router = APIRouter()

RESULT_STATUS = {
    ResultCode.OK: 200,
    ResultCode.UNAUTHENTICATED: 401,
    ResultCode.FORBIDDEN: 403,
    ResultCode.NOT_FOUND: 404,
    ResultCode.INVALID_STATE: 409,
    ResultCode.ALREADY_PROCESSED: 409,
    ResultCode.PERSISTENCE_ERROR: 503,
}


def _respond(result: ActionResult) -> JSONResponse:
    return JSONResponse(status_code=RESULT_STATUS[result.code], content=result.model_dump(mode="json"))


@router.post("/resources/{kind}/{resource_id}/return", response_model=ActionResult)
async def request_return(
    kind: ResourceKind,
    resource_id: str,
    actor: Actor | None = Depends(get_optional_actor),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    return _respond(await resource_lifecycle.request_return(db, actor, kind, resource_id))


@router.post("/returns/{kind}/{resource_id}/approve", response_model=ActionResult)
async def approve_return(
    kind: ResourceKind,
    resource_id: str,
    actor: Actor | None = Depends(get_optional_actor),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    return _respond(await resource_lifecycle.approve_return(db, actor, kind, resource_id))


@router.post("/returns/{kind}/{resource_id}/reject", response_model=ActionResult)
async def reject_return(
    kind: ResourceKind,
    resource_id: str,
    actor: Actor | None = Depends(get_optional_actor),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    return _respond(await resource_lifecycle.reject_return(db, actor, kind, resource_id))


@router.get("/returns/pending")
async def list_pending_returns(
    kind: ResourceKind = ResourceKind.SERVER,
    actor: Actor = Depends(require_member),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    if not (actor.is_team_leader or actor.is_admin):
        raise HTTPException(status_code=403, detail="Team leader or admin role required")
    kind_spec = get_kind(kind)
    rows = await resource_lifecycle.list_pending_returns(db, actor, kind)
    return [kind_spec.serialize(r) for r in rows]
