"""Per-kind wiring for the resource tables.

Each resource kind maps to its ORM model, its create/update/output schemas,
its status enum and the lifecycle rules that differ between kinds. Only
servers go through the pending-approval sub-state; the other kinds return
directly from ``active`` to ``returned``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel

from opshub.models.enums import ResourceKind, STATUS_ENUMS
from opshub.models.proxy import Proxy
from opshub.models.rdp import Rdp
from opshub.models.seed_email import SeedEmail
from opshub.models.server import Server
from opshub.schemas.resource import (
    ProxyCreate,
    ProxyOut,
    ProxyUpdate,
    RdpCreate,
    RdpOut,
    RdpUpdate,
    SeedEmailCreate,
    SeedEmailOut,
    SeedEmailUpdate,
    ServerCreate,
    ServerOut,
    ServerUpdate,
)

ACTIVE = "active"
PENDING_RETURN_APPROVAL = "pending_return_approval"
RETURNED = "returned"

# Statuses only the return workflow may write.
WORKFLOW_STATUSES = frozenset({PENDING_RETURN_APPROVAL, RETURNED})


@dataclass(frozen=True)
class KindSpec:
    kind: ResourceKind
    model: type
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    out_schema: type[BaseModel]
    label: str
    # status written by request_return
    return_target: str
    # builds the per-team de-duplication key from a validated create payload
    natural_key: Callable[[dict[str, Any]], str]
    natural_key_columns: tuple[str, ...]

    @property
    def requires_approval(self) -> bool:
        return self.return_target == PENDING_RETURN_APPROVAL

    @property
    def statuses(self) -> list[str]:
        return [s.value for s in STATUS_ENUMS[self.kind]]

    @property
    def editable_statuses(self) -> list[str]:
        return [s for s in self.statuses if s not in WORKFLOW_STATUSES]

    def serialize(self, row: Any) -> dict[str, Any]:
        return self.out_schema.model_validate(row).model_dump(mode="json")


KINDS: dict[ResourceKind, KindSpec] = {
    ResourceKind.SERVER: KindSpec(
        kind=ResourceKind.SERVER,
        model=Server,
        create_schema=ServerCreate,
        update_schema=ServerUpdate,
        out_schema=ServerOut,
        label="Server",
        return_target=PENDING_RETURN_APPROVAL,
        natural_key=lambda d: str(d["ip_address"]).strip(),
        natural_key_columns=("ip_address",),
    ),
    ResourceKind.PROXY: KindSpec(
        kind=ResourceKind.PROXY,
        model=Proxy,
        create_schema=ProxyCreate,
        update_schema=ProxyUpdate,
        out_schema=ProxyOut,
        label="Proxy",
        return_target=RETURNED,
        natural_key=lambda d: str(d["proxy_string"]).strip(),
        natural_key_columns=("proxy_string",),
    ),
    ResourceKind.RDP: KindSpec(
        kind=ResourceKind.RDP,
        model=Rdp,
        create_schema=RdpCreate,
        update_schema=RdpUpdate,
        out_schema=RdpOut,
        label="RDP",
        return_target=RETURNED,
        natural_key=lambda d: f"{str(d['ip_address']).strip()}|{str(d['username']).strip()}",
        natural_key_columns=("ip_address", "username"),
    ),
    ResourceKind.SEED_EMAIL: KindSpec(
        kind=ResourceKind.SEED_EMAIL,
        model=SeedEmail,
        create_schema=SeedEmailCreate,
        update_schema=SeedEmailUpdate,
        out_schema=SeedEmailOut,
        label="Seed email",
        return_target=RETURNED,
        natural_key=lambda d: str(d["email_address"]).strip().lower(),
        natural_key_columns=("email_address",),
    ),
}


def get_kind(kind: ResourceKind | str) -> KindSpec:
    try:
        return KINDS[ResourceKind(kind)]
    except ValueError:
        raise KeyError(f"Unknown resource kind: {kind}") from None


def revalidation_tags(team_id: str | None, *, returns: bool = False) -> list[str]:
    """Cache tags a client should refresh after a resource of ``team_id`` changes."""
    tags = [f"teams/{team_id}/resources"] if team_id else []
    if returns:
        tags += [f"teams/{team_id}/returns", "returns/pending"] if team_id else ["returns/pending"]
    return tags
