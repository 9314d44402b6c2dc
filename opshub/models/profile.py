from sqlalchemy import CheckConstraint, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from opshub.core.ids import gen_id
from opshub.models.base import Base, AuditMixin


class Profile(AuditMixin, Base):
    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'team-leader', 'mailer', 'pending_approval')",
            name="ck_profiles_role",
        ),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("usr"))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    # "admin" | "team-leader" | "mailer" | "pending_approval"
    role: Mapped[str] = mapped_column(String(30), nullable=False, default="pending_approval")

    # null for admins and users still awaiting approval
    team_id: Mapped[str | None] = mapped_column(String, ForeignKey("teams.id"), nullable=True, index=True)
