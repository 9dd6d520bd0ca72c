"""Upgrade Engine — spend balance to raise a miner's hourly rate or a vault's tier.

Invariants:
    - Pending accrual is settled at the OLD rate/capacity before the purchase
    - The next tier must exist in the cost table; vault tiers must also exist in
      the capacity table, otherwise UpgradeUnavailableError
    - balance < price raises InsufficientBalanceError and nothing changes
    - Miner upgrades add tokens_add to rate_per_hour; vault upgrades only change tier

Design Decisions:
    - Separate from accrual and referral: orthogonal operation with its own
      cost-table lookup and error types
    - Result carries the following tier's price so clients can render the next step
"""

from dataclasses import dataclass, replace

from idle_vault.core.account_record import AccountRecord
from idle_vault.core.accrual import AccrualSnapshot, settle_account, vault_usage_percent
from idle_vault.core.domain_types import Tier, UnixSeconds, UpgradeSlot
from idle_vault.core.economy_rules import EconomyRules, UpgradeCost
from idle_vault.core.errors import (
    ErrorContext, InsufficientBalanceError, UpgradeUnavailableError,
    InternalInconsistencyError,
)


@dataclass(frozen=True)
class UpgradeOutcome:
    """Upgraded record plus what was settled and paid."""
    record: AccountRecord
    snapshot: AccrualSnapshot
    slot: UpgradeSlot
    new_tier: Tier
    price_paid: int
    next_cost: UpgradeCost | None


def _next_cost(
    slot: UpgradeSlot, tier: Tier, rules: EconomyRules,
) -> UpgradeCost | None:
    cost = rules.upgrade_costs.cost_for(slot, tier)
    if cost is None:
        return None
    if slot is UpgradeSlot.VAULT and tier not in rules.capacities:
        return None
    return cost


def purchase_upgrade(
    record: AccountRecord, slot: UpgradeSlot, now: UnixSeconds, rules: EconomyRules,
) -> UpgradeOutcome:
    """Settle, then buy one tier of slot. Pure; raises on any rule violation."""
    context = ErrorContext(account_id=record.id, operation="upgrade")
    current_tier = record.tier(slot)
    if current_tier is None:
        raise InternalInconsistencyError(
            f"Account '{record.id}' has no '{slot.value}' upgrade slot", context,
        )

    target_tier = Tier(current_tier + 1)
    cost = _next_cost(slot, target_tier, rules)
    if cost is None:
        raise UpgradeUnavailableError(slot.value, current_tier, context)

    settled, _ = settle_account(record, now, rules)
    if settled.balance < cost.buy_price:
        raise InsufficientBalanceError(settled.balance, cost.buy_price, context)

    upgraded = replace(
        settled,
        balance=settled.balance - cost.buy_price,
        rate_per_hour=settled.rate_per_hour + cost.tokens_add,
        upgrades={**settled.upgrades, slot.value: target_tier},
    )
    capacity = rules.capacity_for(upgraded)
    return UpgradeOutcome(
        record=upgraded,
        snapshot=AccrualSnapshot(
            pending_accrual=settled.balance - record.balance,
            vault_capacity=capacity,
            vault_usage_percent=vault_usage_percent(upgraded.balance, capacity),
        ),
        slot=slot,
        new_tier=target_tier,
        price_paid=cost.buy_price,
        next_cost=_next_cost(slot, Tier(target_tier + 1), rules),
    )
