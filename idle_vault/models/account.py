"""Account ORM — persists one AccountRecord per player.

Invariants:
    - id is the string form of the external account id (primary key, never reassigned)
    - referral_code is indexed (not unique: 6-hex-char codes can collide and the
      first registered match wins), so lookups never scan the table
    - upgrades and referred_accounts are JSON columns written whole on every replace
    - version is the optimistic-concurrency counter (see AccountRepository.replace)

Design Decisions:
    - JSON columns over child tables: the record is always read and replaced as
      one document, exactly as the game client sees it
    - Timestamps stored as float unix seconds, not DateTime: accrual math works
      on elapsed seconds and clients already speak unix time
    - BigInteger balances: long-running accounts outgrow 32-bit ints
"""

from sqlalchemy import BigInteger, Float, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from idle_vault.db.base import Base


class Account(Base):
    """Per-player economy state."""
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    display_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    registered_at: Mapped[float] = mapped_column(Float, nullable=False)
    upgrades: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    language: Mapped[str] = mapped_column(String(16), nullable=False)
    balance: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0,
    )
    rate_per_hour: Mapped[int] = mapped_column(BigInteger, nullable=False)
    last_accrual_at: Mapped[float] = mapped_column(Float, nullable=False)
    referral_code: Mapped[str] = mapped_column(
        String(16), nullable=False, index=True,
    )
    referred_accounts: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
