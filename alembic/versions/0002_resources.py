from alembic import op
import sqlalchemy as sa

revision = "0002_resources"
down_revision = "0001_accounts_and_teams"
branch_labels = None
depends_on = None


# status values per table; keep in sync with opshub.models.enums
STATUSES = {
    "servers": ("active", "maintenance", "problem", "pending_return_approval", "returned"),
    "proxies": ("active", "banned", "slow", "returned"),
    "rdps": ("active", "problem", "returned"),
    "seed_emails": ("active", "warmup", "banned", "cooldown", "returned"),
}


def _common_columns(table: str):
    values = ", ".join(f"'{s}'" for s in STATUSES[table])
    return [
        sa.Column("owner_mailer_id", sa.String(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("team_id", sa.String(), sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("status", sa.String(length=40), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),
        sa.CheckConstraint(f"status IN ({values})", name=f"ck_{table}_status"),
    ]


def _indexes(table: str):
    op.create_index(f"ix_{table}_owner_mailer_id", table, ["owner_mailer_id"])
    op.create_index(f"ix_{table}_team_id", table, ["team_id"])
    op.create_index(f"ix_{table}_team_status", table, ["team_id", "status"])


def upgrade():
    op.create_table(
        "servers",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("provider", sa.String(length=200), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=False),
        *_common_columns("servers"),
    )
    _indexes("servers")

    op.create_table(
        "proxies",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("proxy_string", sa.Text(), nullable=False),
        *_common_columns("proxies"),
    )
    _indexes("proxies")

    op.create_table(
        "rdps",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("ip_address", sa.String(length=64), nullable=False),
        sa.Column("username", sa.String(length=200), nullable=False),
        sa.Column("password_alias", sa.String(length=200), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=True),
        *_common_columns("rdps"),
    )
    _indexes("rdps")

    op.create_table(
        "seed_emails",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email_address", sa.String(length=320), nullable=False),
        sa.Column("password_alias", sa.String(length=200), nullable=False),
        sa.Column("recovery_email", sa.String(length=320), nullable=True),
        sa.Column("isp", sa.String(length=120), nullable=False, server_default="Unknown"),
        sa.Column("group_name", sa.String(length=200), nullable=True),
        *_common_columns("seed_emails"),
    )
    _indexes("seed_emails")
    op.create_index("ix_seed_emails_email_address", "seed_emails", ["email_address"])


def downgrade():
    op.drop_index("ix_seed_emails_email_address", table_name="seed_emails")
    for table in ("seed_emails", "rdps", "proxies", "servers"):
        op.drop_index(f"ix_{table}_team_status", table_name=table)
        op.drop_index(f"ix_{table}_team_id", table_name=table)
        op.drop_index(f"ix_{table}_owner_mailer_id", table_name=table)
        op.drop_table(table)
