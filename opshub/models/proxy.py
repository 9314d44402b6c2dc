from sqlalchemy import CheckConstraint, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from opshub.core.ids import gen_id
from opshub.models.base import Base, AuditMixin
from opshub.models.enums import ResourceKind, status_check
from opshub.models.resource_base import ResourceMixin


class Proxy(ResourceMixin, AuditMixin, Base):
    __tablename__ = "proxies"
    __table_args__ = (
        CheckConstraint(status_check(ResourceKind.PROXY), name="ck_proxies_status"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("prx"))

    # host:port[:user:pass] as pasted by the mailer
    proxy_string: Mapped[str] = mapped_column(Text, nullable=False)
