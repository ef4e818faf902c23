"""add room lifecycle status and tiebreaker detail

Revision ID: 7a4e2c58d9f3
Revises: 3f1c9a7d2b10
Create Date: 2026-10-06 21:40:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "7a4e2c58d9f3"
down_revision = "3f1c9a7d2b10"
branch_labels = None
depends_on = None


def upgrade():
    op.add_column(
        "rooms",
        sa.Column(
            "status", sa.String(length=20), nullable=False, server_default="WAITING"
        ),
    )
    op.add_column("rooms", sa.Column("tiebreaker_detail", sa.JSON(), nullable=True))
    op.execute(
        sa.text(
            """
            UPDATE rooms
            SET status = 'COMPLETED'
            WHERE is_completed = true
            """
        )
    )


def downgrade():
    op.drop_column("rooms", "tiebreaker_detail")
    op.drop_column("rooms", "status")
