"""Referral Engine — referral code derivation and the one-time referral bonus.

Invariants:
    - derive_referral_code() is deterministic: same id, same code, forever
    - Codes are the last 6 hex chars of sha256(sha256(id).hexdigest()), so codes
      already stored by earlier deployments keep resolving
    - apply_referral_bonus() credits the same bonus to both parties exactly once
      and appends the new id to the referrer's referred_accounts

Design Decisions:
    - Pure: the service decides when the bonus applies (only at registration)
      and persists both records in one transaction
    - No self-referral or collision checks here; a new account has no stored
      code yet, and code collisions resolve to the first matching account
"""

import hashlib
from dataclasses import replace

from idle_vault.core.account_record import AccountRecord
from idle_vault.core.domain_types import REFERRAL_CODE_LENGTH, AccountId, ReferralCode


def derive_referral_code(account_id: AccountId) -> ReferralCode:
    """Short public code for an account id (double SHA-256, last 6 hex chars)."""
    first = hashlib.sha256(account_id.encode("utf-8")).hexdigest()
    second = hashlib.sha256(first.encode("utf-8")).hexdigest()
    return ReferralCode(second[-REFERRAL_CODE_LENGTH:])


def apply_referral_bonus(
    referrer: AccountRecord, new_account: AccountRecord, bonus: int,
) -> tuple[AccountRecord, AccountRecord]:
    """Return (referrer, new_account) with the relationship recorded and both credited."""
    credited_referrer = replace(
        referrer,
        balance=referrer.balance + bonus,
        referred_accounts=[*referrer.referred_accounts, new_account.id],
    )
    credited_new = replace(new_account, balance=new_account.balance + bonus)
    return credited_referrer, credited_new
