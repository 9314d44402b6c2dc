from alembic import op
import sqlalchemy as sa

revision = "0004_allowed_signup_ips"
down_revision = "0003_revenue_and_audit"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "allowed_signup_ips",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("ip_address", sa.String(length=64), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("added_by_admin_id", sa.String(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("ip_address", name="uq_allowed_signup_ips_ip_address"),
    )


def downgrade():
    op.drop_table("allowed_signup_ips")
