from alembic import op
import sqlalchemy as sa

revision = "0001_accounts_and_teams"
down_revision = None
branch_labels = None
depends_on = None


def _audit_columns():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),
    ]


def upgrade():
    op.create_table(
        "teams",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        *_audit_columns(),
        sa.UniqueConstraint("name", name="uq_teams_name"),
    )

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", sa.String(length=30), nullable=False, server_default="pending_approval"),
        sa.Column("team_id", sa.String(), sa.ForeignKey("teams.id"), nullable=True),
        *_audit_columns(),
        sa.CheckConstraint(
            "role IN ('admin', 'team-leader', 'mailer', 'pending_approval')",
            name="ck_profiles_role",
        ),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)
    op.create_index("ix_profiles_team_id", "profiles", ["team_id"])

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("profile_id", sa.String(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_prefix", sa.String(length=16), nullable=False),
        sa.Column("token_hash", sa.Text(), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_session_tokens_profile_id", "session_tokens", ["profile_id"])
    op.create_index("ix_session_tokens_token_prefix", "session_tokens", ["token_prefix"])


def downgrade():
    op.drop_index("ix_session_tokens_token_prefix", table_name="session_tokens")
    op.drop_index("ix_session_tokens_profile_id", table_name="session_tokens")
    op.drop_table("session_tokens")

    op.drop_index("ix_profiles_team_id", table_name="profiles")
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_table("profiles")

    op.drop_table("teams")
