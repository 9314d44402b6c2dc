import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field


class RevenueLog(BaseModel):
    date: dt.date
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class RevenueUpdate(BaseModel):
    date: dt.date | None = None
    amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)


class RevenueOut(BaseModel):
    id: str
    mailer_id: str
    team_id: str
    date: dt.date
    amount: Decimal
