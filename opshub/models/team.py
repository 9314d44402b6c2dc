from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from opshub.core.ids import gen_id
from opshub.models.base import Base, AuditMixin


class Team(AuditMixin, Base):
    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("team"))
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
