from __future__ import annotations

import datetime as dt
import ipaddress
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
)


def _check_ip(v: str) -> str:
    v = v.strip()
    try:
        ipaddress.ip_address(v)
    except ValueError:
        raise ValueError("Invalid IP address") from None
    return v


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


def _blank_to_none(v: Any) -> Any:
    # an empty string clears an optional field
    if isinstance(v, str) and not v.strip():
        return None
    return v


IpAddress = Annotated[str, AfterValidator(_check_ip)]
NonBlank = Annotated[str, AfterValidator(_strip_required)]
Name = Annotated[str, StringConstraints(max_length=200), AfterValidator(_strip_required)]
OptionalEmail = Annotated[EmailStr | None, BeforeValidator(_blank_to_none)]
OptionalName = Annotated[
    Annotated[str, StringConstraints(strip_whitespace=True, max_length=200)] | None,
    BeforeValidator(_blank_to_none),
]


# Server

class ServerCreate(BaseModel):
    provider: Name
    ip_address: IpAddress
    status: str | None = None


class ServerUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    provider: Name | None = None
    ip_address: IpAddress | None = None
    status: str | None = None


# Proxy

class ProxyCreate(BaseModel):
    proxy_string: NonBlank
    status: str | None = None


class ProxyUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    proxy_string: NonBlank | None = None
    status: str | None = None


# RDP

class RdpCreate(BaseModel):
    ip_address: IpAddress
    username: Name
    password_alias: Name
    entry_date: dt.date | None = None
    status: str | None = None


class RdpUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ip_address: IpAddress | None = None
    username: Name | None = None
    password_alias: Name | None = None
    entry_date: dt.date | None = None
    status: str | None = None


# Seed email

class SeedEmailCreate(BaseModel):
    email_address: EmailStr
    password_alias: Name
    recovery_email: OptionalEmail = None
    isp: OptionalName = None
    group_name: OptionalName = None
    status: str | None = None


class SeedEmailUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email_address: EmailStr | None = None
    password_alias: Name | None = None
    recovery_email: OptionalEmail = None
    isp: Name | None = None
    group_name: OptionalName = None
    status: str | None = None


# Responses

class ResourceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_mailer_id: str
    team_id: str
    status: str
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class ServerOut(ResourceOut):
    provider: str
    ip_address: str


class ProxyOut(ResourceOut):
    proxy_string: str


class RdpOut(ResourceOut):
    ip_address: str
    username: str
    password_alias: str
    entry_date: dt.date | None


class SeedEmailOut(ResourceOut):
    email_address: str
    password_alias: str
    recovery_email: str | None
    isp: str
    group_name: str | None


# Bulk import

class BulkImportIn(BaseModel):
    rows: list[dict[str, Any]] = Field(min_length=1, max_length=5000)
    # seed emails only: applied to every row that has no group of its own
    group_name: OptionalName = None


class BulkSkipped(BaseModel):
    row: int
    key: str
    reason: str
    existing_group_name: str | None = None


class BulkRowError(BaseModel):
    row: int
    message: str


class BulkImportOut(BaseModel):
    kind: str
    message: str
    created: list[dict[str, Any]] = Field(default_factory=list)
    skipped: list[BulkSkipped] = Field(default_factory=list)
    errors: list[BulkRowError] = Field(default_factory=list)
