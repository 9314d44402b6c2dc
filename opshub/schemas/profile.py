from typing import Literal

from pydantic import BaseModel


class ProfileOut(BaseModel):
    id: str
    name: str
    email: str
    role: str
    team_id: str | None


class UserApproval(BaseModel):
    role: Literal["mailer", "team-leader"] = "mailer"
    team_id: str
