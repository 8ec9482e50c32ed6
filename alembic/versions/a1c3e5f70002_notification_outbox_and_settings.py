"""notifications: webhook outbox columns, per-user notification settings"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "a1c3e5f70002"
down_revision = "a1c3e5f70001"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("notifications") as batch:
        batch.add_column(
            sa.Column(
                "push_status",
                sa.Enum("PENDING", "SENT", "FAILED", name="push_status", native_enum=False),
                nullable=True,
            )
        )
        batch.add_column(sa.Column("push_attempts", sa.Integer(), nullable=False, server_default="0"))
        batch.add_column(sa.Column("push_error", sa.Text(), nullable=True))
        batch.add_column(sa.Column("pushed_at", sa.DateTime(timezone=True), nullable=True))
    op.create_index("ix_notifications_push_status", "notifications", ["push_status"])

    op.create_table(
        "notification_settings",
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("reservation_updates", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("inventory_updates", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("system", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade():
    op.drop_table("notification_settings")
    op.drop_index("ix_notifications_push_status", table_name="notifications")
    with op.batch_alter_table("notifications") as batch:
        batch.drop_column("pushed_at")
        batch.drop_column("push_error")
        batch.drop_column("push_attempts")
        batch.drop_column("push_status")
