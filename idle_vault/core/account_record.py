"""Account Record — the per-player aggregate the economy engines operate on.

Invariants:
    - id and referral_code never change after creation
    - balance, rate_per_hour are non-negative integers
    - upgrades always contains the vault slot (capacity lookup depends on it)
    - referred_accounts is append-only
    - version increases by one on every persisted replace

Design Decisions:
    - Plain dataclass decoupled from the ORM row: core never sees SQLAlchemy
    - Engines return updated copies (dataclasses.replace) instead of mutating,
      so a failed operation never leaves a half-updated record in memory
    - balance may exceed the current vault capacity if capacities are reconfigured
      downward; capping only applies to newly accrued amounts
"""

from dataclasses import dataclass, field

from idle_vault.core.domain_types import (
    AccountId, ReferralCode, Tier, UnixSeconds, UpgradeSlot,
)


@dataclass
class AccountRecord:
    """One player's persisted economy state."""
    id: AccountId
    registered_at: UnixSeconds
    language: str
    balance: int
    rate_per_hour: int
    last_accrual_at: UnixSeconds
    referral_code: ReferralCode
    upgrades: dict[str, Tier] = field(default_factory=dict)
    referred_accounts: list[AccountId] = field(default_factory=list)
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    version: int = 1

    def tier(self, slot: UpgradeSlot) -> Tier | None:
        """Current tier of an upgrade slot, or None if the slot is absent."""
        return self.upgrades.get(slot.value)

    @property
    def referral_count(self) -> int:
        return len(self.referred_accounts)

    def to_public_dict(self) -> dict:
        """Record fields for API responses (version is internal)."""
        return {
            "id": self.id,
            "display_name": self.display_name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "registered_at": self.registered_at,
            "upgrades": dict(self.upgrades),
            "language": self.language,
            "balance": self.balance,
            "rate_per_hour": self.rate_per_hour,
            "last_accrual_at": self.last_accrual_at,
            "referral_code": self.referral_code,
            "referred_accounts": list(self.referred_accounts),
        }
