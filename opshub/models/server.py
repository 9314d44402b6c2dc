from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from opshub.core.ids import gen_id
from opshub.models.base import Base, AuditMixin
from opshub.models.enums import ResourceKind, status_check
from opshub.models.resource_base import ResourceMixin


class Server(ResourceMixin, AuditMixin, Base):
    __tablename__ = "servers"
    __table_args__ = (
        CheckConstraint(status_check(ResourceKind.SERVER), name="ck_servers_status"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("srv"))

    provider: Mapped[str] = mapped_column(String(200), nullable=False)
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False)
