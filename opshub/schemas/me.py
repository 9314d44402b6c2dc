from pydantic import BaseModel


class MeOut(BaseModel):
    user_id: str
    name: str
    email: str
    role: str
    team_id: str | None
