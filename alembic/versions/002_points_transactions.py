"""Loyalty points ledger

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

Adds points_transactions: one row per change to a member's points balance.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TRANSACTION_TYPES = ("earned", "redeemed", "bonus")


def upgrade() -> None:
    transaction_type = postgresql.ENUM(*TRANSACTION_TYPES, name="points_transaction_type", create_type=False)
    transaction_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "points_transactions",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("type", transaction_type, nullable=False),
        sa.Column("reason", sa.String(255), server_default="", nullable=False),
        sa.Column("order_id", sa.UUID(), sa.ForeignKey("orders.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        "ix_points_transactions_user_id_created_at",
        "points_transactions",
        ["user_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("points_transactions")
    postgresql.ENUM(name="points_transaction_type").drop(op.get_bind(), checkfirst=True)
