"""Closed enums for roles, resource kinds and resource statuses.

Values are stored as plain strings; every read from the database goes
through ``parse_role`` / ``parse_status`` so unknown strings are rejected
instead of passed through.
"""

from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    TEAM_LEADER = "team-leader"
    MAILER = "mailer"
    PENDING_APPROVAL = "pending_approval"


class ResourceKind(str, Enum):
    SERVER = "server"
    PROXY = "proxy"
    RDP = "rdp"
    SEED_EMAIL = "seed_email"


class ServerStatus(str, Enum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    PROBLEM = "problem"
    PENDING_RETURN_APPROVAL = "pending_return_approval"
    RETURNED = "returned"


class ProxyStatus(str, Enum):
    ACTIVE = "active"
    BANNED = "banned"
    SLOW = "slow"
    RETURNED = "returned"


class RdpStatus(str, Enum):
    ACTIVE = "active"
    PROBLEM = "problem"
    RETURNED = "returned"


class SeedEmailStatus(str, Enum):
    ACTIVE = "active"
    WARMUP = "warmup"
    BANNED = "banned"
    COOLDOWN = "cooldown"
    RETURNED = "returned"


STATUS_ENUMS: dict[ResourceKind, type[Enum]] = {
    ResourceKind.SERVER: ServerStatus,
    ResourceKind.PROXY: ProxyStatus,
    ResourceKind.RDP: RdpStatus,
    ResourceKind.SEED_EMAIL: SeedEmailStatus,
}


class UnknownEnumValue(ValueError):
    pass


def parse_role(raw: str | None) -> Role:
    try:
        return Role(raw)
    except ValueError:
        raise UnknownEnumValue(f"unknown role: {raw!r}") from None


def parse_status(kind: ResourceKind, raw: str | None) -> str:
    enum_cls = STATUS_ENUMS[kind]
    try:
        return enum_cls(raw).value
    except ValueError:
        raise UnknownEnumValue(f"unknown {kind.value} status: {raw!r}") from None


def status_values(kind: ResourceKind) -> list[str]:
    return [s.value for s in STATUS_ENUMS[kind]]


def status_check(kind: ResourceKind, column: str = "status") -> str:
    # SQL fragment for a CHECK constraint over the kind's status column
    values = ", ".join(f"'{v}'" for v in status_values(kind))
    return f"{column} IN ({values})"
