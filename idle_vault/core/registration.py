"""Registration — builds the initial AccountRecord for a new player.

Invariants:
    - registered_at == last_accrual_at == now at creation
    - balance starts at 0 (the referral bonus is applied afterwards, if any)
    - upgrades start at DEFAULT_UPGRADES; referred_accounts starts empty
    - Account ids are canonical unsigned 64-bit decimals; anything else is a
      ValidationError before a record exists
    - The not-registered -> registered transition is one-way; uniqueness is
      enforced by the service and the store, not here
"""

from dataclasses import dataclass

from idle_vault.core.account_record import AccountRecord
from idle_vault.core.domain_types import (
    DEFAULT_UPGRADES, MAX_ACCOUNT_ID, AccountId, UnixSeconds,
)
from idle_vault.core.economy_rules import EconomyRules
from idle_vault.core.errors import ErrorContext, ValidationError
from idle_vault.core.referral import derive_referral_code


@dataclass(frozen=True)
class PlayerProfile:
    """Pass-through profile fields supplied at registration."""
    language: str
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None


def to_account_id(raw: str | int) -> AccountId:
    """Normalize an external id; "007", "-1" and values above u64 are rejected."""
    text = str(raw)
    if (
        not (text.isascii() and text.isdigit())
        or str(int(text)) != text
        or int(text) > MAX_ACCOUNT_ID
    ):
        raise ValidationError(
            f"Account id must be a decimal integer in 0..{MAX_ACCOUNT_ID}",
            "id",
            ErrorContext(account_id=text[:32], operation="register"),
        )
    return AccountId(text)


def build_new_account(
    account_id: AccountId,
    profile: PlayerProfile,
    now: UnixSeconds,
    rules: EconomyRules,
) -> AccountRecord:
    """Fresh record with default upgrades, starting rate and derived referral code."""
    return AccountRecord(
        id=account_id,
        display_name=profile.display_name,
        first_name=profile.first_name,
        last_name=profile.last_name,
        registered_at=now,
        upgrades=dict(DEFAULT_UPGRADES),
        language=profile.language,
        balance=0,
        rate_per_hour=rules.default_rate_per_hour,
        last_accrual_at=now,
        referral_code=derive_referral_code(account_id),
        referred_accounts=[],
    )
