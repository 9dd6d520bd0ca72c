"""Accrual Engine — pure computation of elapsed-time accrual, capacity capping and settling.

Invariants:
    - pending = floor(elapsed_seconds / 3600 * rate_per_hour), then min(pending, capacity)
    - 0 <= pending <= capacity, always
    - peek_account() never mutates; settle_account() returns a new record
    - Settling twice at the same instant adds nothing the second time
    - last_accrual_at never moves backwards (clock skew yields pending = 0)

Design Decisions:
    - rate_per_hour on the record is the authoritative rate; new accounts start
      at EconomyRules.default_rate_per_hour
    - Truncation, not rounding: fractional units are dropped at every settle and
      no remainder is carried over (accepted lossy behavior)
    - Capping applies to the newly accrued amount only, never to stored balance
"""

import math
from dataclasses import dataclass, replace

from idle_vault.core.account_record import AccountRecord
from idle_vault.core.domain_types import SECONDS_PER_HOUR, UnixSeconds
from idle_vault.core.economy_rules import EconomyRules


@dataclass(frozen=True)
class AccrualSnapshot:
    """Derived vault figures returned by both peek and settle."""
    pending_accrual: int
    vault_capacity: int
    vault_usage_percent: int


def compute_pending_accrual(
    last_accrual_at: UnixSeconds,
    now: UnixSeconds,
    rate_per_hour: int,
    capacity: int,
) -> int:
    """Accrued units since last_accrual_at, truncated and capped at capacity."""
    elapsed = max(now - last_accrual_at, 0.0)
    raw = math.floor(elapsed / SECONDS_PER_HOUR * rate_per_hour)
    return min(raw, capacity)


def vault_usage_percent(balance: int, capacity: int) -> int:
    """floor(balance / capacity * 100). Not clamped: may exceed 100 after a capacity cut."""
    return balance * 100 // capacity


def peek_account(
    record: AccountRecord, now: UnixSeconds, rules: EconomyRules,
) -> AccrualSnapshot:
    """Read-only poll: what would a claim add right now."""
    capacity = rules.capacity_for(record)
    pending = compute_pending_accrual(
        record.last_accrual_at, now, record.rate_per_hour, capacity,
    )
    return AccrualSnapshot(
        pending_accrual=pending,
        vault_capacity=capacity,
        vault_usage_percent=vault_usage_percent(record.balance, capacity),
    )


def settle_account(
    record: AccountRecord, now: UnixSeconds, rules: EconomyRules,
) -> tuple[AccountRecord, AccrualSnapshot]:
    """Move pending accrual into balance and stamp last_accrual_at.

    Returns the settled record and a snapshot whose pending_accrual is the
    amount that was just added and whose usage reflects the new balance.
    """
    capacity = rules.capacity_for(record)
    pending = compute_pending_accrual(
        record.last_accrual_at, now, record.rate_per_hour, capacity,
    )
    settled = replace(
        record,
        balance=record.balance + pending,
        last_accrual_at=max(now, record.last_accrual_at),
    )
    return settled, AccrualSnapshot(
        pending_accrual=pending,
        vault_capacity=capacity,
        vault_usage_percent=vault_usage_percent(settled.balance, capacity),
    )
