from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from opshub.core.ids import gen_id
from opshub.models.base import Base, AuditMixin
from opshub.models.enums import ResourceKind, status_check
from opshub.models.resource_base import ResourceMixin


class SeedEmail(ResourceMixin, AuditMixin, Base):
    __tablename__ = "seed_emails"
    __table_args__ = (
        CheckConstraint(status_check(ResourceKind.SEED_EMAIL), name="ck_seed_emails_status"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("seed"))

    email_address: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    password_alias: Mapped[str] = mapped_column(String(200), nullable=False)
    recovery_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    isp: Mapped[str] = mapped_column(String(120), nullable=False, default="Unknown")
    group_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
