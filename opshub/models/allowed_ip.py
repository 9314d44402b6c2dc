import datetime as dt

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from opshub.core.ids import gen_id
from opshub.models.base import Base


class AllowedSignupIp(Base):
    """An address allowed to sign up and log in. An empty table allows everyone."""
    __tablename__ = "allowed_signup_ips"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("aip"))
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    added_by_admin_id: Mapped[str | None] = mapped_column(String, ForeignKey("profiles.id"), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
