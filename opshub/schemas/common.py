from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ResultCode(str, Enum):
    OK = "ok"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    ALREADY_PROCESSED = "already_processed"
    PERSISTENCE_ERROR = "persistence_error"


class ActionResult(BaseModel):
    """Outcome of a lifecycle operation.

    Guard failures are reported here instead of raised. ``revalidate`` lists
    the cached views a client should refresh; it is filled for successes and
    for lost races alike.
    """

    success: bool
    code: ResultCode
    message: str
    data: dict[str, Any] | None = None
    revalidate: list[str] = Field(default_factory=list)
