"""Accounts table — one row per player with JSON upgrades and referrals.

Revision ID: 001_accounts
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_accounts"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("display_name", sa.String(64), nullable=True),
        sa.Column("first_name", sa.String(64), nullable=True),
        sa.Column("last_name", sa.String(64), nullable=True),
        sa.Column("registered_at", sa.Float, nullable=False),
        sa.Column("upgrades", sa.JSON, nullable=False),
        sa.Column("language", sa.String(16), nullable=False),
        sa.Column("balance", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("rate_per_hour", sa.BigInteger, nullable=False),
        sa.Column("last_accrual_at", sa.Float, nullable=False),
        sa.Column("referral_code", sa.String(16), nullable=False),
        sa.Column("referred_accounts", sa.JSON, nullable=False),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
    )
    op.create_index(
        "ix_accounts_referral_code", "accounts", ["referral_code"],
    )


def downgrade() -> None:
    op.drop_index("ix_accounts_referral_code", table_name="accounts")
    op.drop_table("accounts")
