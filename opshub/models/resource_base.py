from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column


class ResourceMixin:
    """Ownership, team scope and status shared by every resource table."""

    # mailer who added the row; never rewritten after insert
    owner_mailer_id: Mapped[str] = mapped_column(String, ForeignKey("profiles.id"), nullable=False, index=True)
    # immutable after insert
    team_id: Mapped[str] = mapped_column(String, ForeignKey("teams.id"), nullable=False, index=True)

    status: Mapped[str] = mapped_column(String(40), nullable=False, default="active")
