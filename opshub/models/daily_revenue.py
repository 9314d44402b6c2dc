import datetime as dt
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from opshub.core.ids import gen_id
from opshub.models.base import Base, AuditMixin


class DailyRevenue(AuditMixin, Base):
    __tablename__ = "daily_revenue"
    __table_args__ = (
        # one entry per mailer per day; logging again overwrites the amount
        UniqueConstraint("mailer_id", "date", name="uq_daily_revenue_mailer_date"),
        CheckConstraint("amount >= 0", name="ck_daily_revenue_amount"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("rev"))

    mailer_id: Mapped[str] = mapped_column(String, ForeignKey("profiles.id"), nullable=False, index=True)
    team_id: Mapped[str] = mapped_column(String, ForeignKey("teams.id"), nullable=False, index=True)

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
