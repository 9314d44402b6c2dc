from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from opshub.models.enums import ResourceKind
from opshub.schemas.resource import BulkImportOut, BulkRowError, BulkSkipped
from opshub.services.audit import audit
from opshub.services.auth import Actor
from opshub.services.resource_kinds import KindSpec
from opshub.services.resources import build_row, check_editable_status, resolve_target_team

log = logging.getLogger(__name__)


def _validation_message(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "row"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


async def _existing_keys(
    db: AsyncSession,
    kind_spec: KindSpec,
    team_id: str,
    candidates: list[dict[str, Any]],
) -> dict[str, str | None]:
    """
    Natural keys already present in the team, mapped to the row's group name
    (seed emails only; None for the other kinds).
    """
    if not candidates:
        return {}

    model = kind_spec.model
    first_col = kind_spec.natural_key_columns[0]
    column = getattr(model, first_col)
    cols = [getattr(model, c) for c in kind_spec.natural_key_columns]
    has_group = kind_spec.kind == ResourceKind.SEED_EMAIL
    if has_group:
        cols.append(model.group_name)

    if kind_spec.kind == ResourceKind.SEED_EMAIL:
        values = sorted({str(c[first_col]).strip().lower() for c in candidates})
        where = func.lower(column).in_(values)
    else:
        values = sorted({str(c[first_col]).strip() for c in candidates})
        where = column.in_(values)

    rows = (await db.execute(select(*cols).where(model.team_id == team_id, where))).all()

    existing: dict[str, str | None] = {}
    for r in rows:
        mapping = dict(zip(kind_spec.natural_key_columns, r))
        existing[kind_spec.natural_key(mapping)] = r[-1] if has_group else None
    return existing


async def bulk_import(
    db: AsyncSession,
    *,
    actor: Actor,
    kind_spec: KindSpec,
    rows: list[dict[str, Any]],
    group_name: str | None = None,
    team_id: str | None = None,
) -> BulkImportOut:
    """
    Validate, de-duplicate and insert many resources at once.

    Rows are checked one by one; invalid rows and duplicates (within the
    batch or against the team's existing rows) are reported per row and
    never abort the rest of the batch. Row numbers are 1-based.
    """
    target_team = await resolve_target_team(db, actor, team_id)

    errors: list[BulkRowError] = []
    skipped: list[BulkSkipped] = []
    accepted: list[tuple[int, str, Any]] = []
    seen: dict[str, int] = {}

    for idx, raw in enumerate(rows, start=1):
        data = dict(raw)
        if kind_spec.kind == ResourceKind.SEED_EMAIL and group_name and not data.get("group_name"):
            data["group_name"] = group_name

        try:
            payload = kind_spec.create_schema.model_validate(data)
            check_editable_status(kind_spec, getattr(payload, "status", None))
        except ValidationError as e:
            errors.append(BulkRowError(row=idx, message=_validation_message(e)))
            continue
        except HTTPException as e:
            errors.append(BulkRowError(row=idx, message=str(e.detail)))
            continue

        key = kind_spec.natural_key(payload.model_dump())
        if key in seen:
            skipped.append(BulkSkipped(row=idx, key=key, reason=f"Duplicate of row {seen[key]} in this batch."))
            continue
        seen[key] = idx
        accepted.append((idx, key, payload))

    existing = await _existing_keys(db, kind_spec, target_team, [p.model_dump() for _, _, p in accepted])

    to_insert = []
    for idx, key, payload in accepted:
        if key in existing:
            skipped.append(BulkSkipped(
                row=idx,
                key=key,
                reason="Already exists in database for this team.",
                existing_group_name=existing[key],
            ))
            continue
        to_insert.append(build_row(kind_spec, actor, target_team, payload))

    created: list[Any] = []
    if to_insert:
        try:
            db.add_all(to_insert)
            await db.flush()
            created = to_insert
        except SQLAlchemyError as e:
            await db.rollback()
            log.exception("bulk insert of %d %s rows failed", len(to_insert), kind_spec.kind.value)
            msg = str(e.orig) if getattr(e, "orig", None) else str(e)
            errors.append(BulkRowError(row=0, message=f"Error adding new {kind_spec.label.lower()} rows: {msg}"))

    if created:
        await audit(
            db,
            team_id=target_team,
            actor_profile_id=actor.user_id,
            action=f"{kind_spec.kind.value}.bulk_imported",
            target_type=kind_spec.kind.value,
            detail={"created": len(created), "skipped": len(skipped), "errors": len(errors)},
        )

    skipped.sort(key=lambda s: s.row)
    label = kind_spec.label.lower()
    if created and (errors or skipped):
        message = f"Imported {len(created)} {label} rows; {len(skipped)} skipped, {len(errors)} failed."
    elif created:
        message = f"Successfully imported {len(created)} {label} rows."
    elif skipped and not errors:
        message = f"All {len(skipped)} provided rows already exist. Nothing added."
    else:
        message = f"All {label} entries were invalid or failed to import."

    log.info(
        "bulk import %s team=%s created=%d skipped=%d errors=%d",
        kind_spec.kind.value, target_team, len(created), len(skipped), len(errors),
    )
    return BulkImportOut(
        kind=kind_spec.kind.value,
        message=message,
        created=[kind_spec.serialize(r) for r in created],
        skipped=skipped,
        errors=errors,
    )
