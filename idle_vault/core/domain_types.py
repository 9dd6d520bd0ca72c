"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - AccountId is the canonical decimal string form of the external unsigned
      64-bit account id (0..MAX_ACCOUNT_ID, no sign, no leading zeros)
    - ReferralCode is exactly REFERRAL_CODE_LENGTH lowercase hex characters
    - Upgrade slots are encoded as an Enum — no raw string matching in core logic
    - Every new account starts with DEFAULT_UPGRADES (vault slot always present)

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: slot names are stored as-is in the upgrades JSON column
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

AccountId = NewType("AccountId", str)
ReferralCode = NewType("ReferralCode", str)


# ─── Value Types ─────────────────────────────────────────────────

Tier = NewType("Tier", int)                 # 1..max configured tier
UnixSeconds = NewType("UnixSeconds", float)


# ─── Enums ───────────────────────────────────────────────────────

class UpgradeSlot(str, Enum):
    """Upgrade slots stored in AccountRecord.upgrades."""
    MINER = "miner_1"
    VAULT = "vault_main"

    @property
    def kind(self) -> str:
        """Cost-table section for this slot ("miner" or "vault")."""
        return "vault" if self is UpgradeSlot.VAULT else "miner"


# ─── Constants ───────────────────────────────────────────────────

SECONDS_PER_HOUR = 3600
REFERRAL_CODE_LENGTH = 6
MAX_ACCOUNT_ID = 2**64 - 1          # external ids are unsigned 64-bit

DEFAULT_UPGRADES: dict[str, int] = {
    UpgradeSlot.MINER.value: 1,
    UpgradeSlot.VAULT.value: 1,
}
