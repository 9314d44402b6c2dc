import datetime as dt

from sqlalchemy import CheckConstraint, Date, String
from sqlalchemy.orm import Mapped, mapped_column

from opshub.core.ids import gen_id
from opshub.models.base import Base, AuditMixin
from opshub.models.enums import ResourceKind, status_check
from opshub.models.resource_base import ResourceMixin


class Rdp(ResourceMixin, AuditMixin, Base):
    __tablename__ = "rdps"
    __table_args__ = (
        CheckConstraint(status_check(ResourceKind.RDP), name="ck_rdps_status"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("rdp"))

    ip_address: Mapped[str] = mapped_column(String(64), nullable=False)
    username: Mapped[str] = mapped_column(String(200), nullable=False)
    # name of the credential in the team vault, never the password itself
    password_alias: Mapped[str] = mapped_column(String(200), nullable=False)
    entry_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
