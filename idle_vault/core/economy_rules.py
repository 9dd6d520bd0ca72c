"""Economy Rules — immutable tuning tables consumed by the accrual, referral and upgrade engines.

Invariants:
    - EconomyRules is frozen; built once at startup from Settings + the cost file
    - capacity_for() never defaults: a missing vault slot or tier raises
      InternalInconsistencyError
    - Cost table tiers are the tier being bought (tier 2 = price to go from 1 to 2)

Design Decisions:
    - Tables as MappingProxyType over dicts: read-only views, hashable container not needed
    - from_raw_costs() accepts the JSON shape of config/upgrades.json so the
      infrastructure loader stays a thin file reader
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from idle_vault.core.account_record import AccountRecord
from idle_vault.core.domain_types import Tier, UpgradeSlot
from idle_vault.core.errors import ErrorContext, InternalInconsistencyError


@dataclass(frozen=True)
class UpgradeCost:
    """Price of one tier and the hourly rate it adds (0 for vault tiers)."""
    buy_price: int
    tokens_add: int = 0


@dataclass(frozen=True)
class UpgradeCostTable:
    """Per-kind cost entries: {"miner": {tier: cost}, "vault": {tier: cost}}."""
    miner: Mapping[Tier, UpgradeCost] = field(default_factory=dict)
    vault: Mapping[Tier, UpgradeCost] = field(default_factory=dict)

    def cost_for(self, slot: UpgradeSlot, tier: Tier) -> UpgradeCost | None:
        return getattr(self, slot.kind).get(tier)

    @classmethod
    def from_raw_costs(cls, raw: Mapping[str, Mapping]) -> "UpgradeCostTable":
        """Build from the JSON document shape.

        Expected shape::

            {"miner": {"2": {"buy_price": 2500, "tokens_add": 500}},
             "vault": {"2": {"buy_price": 4000}}}
        """
        sections = {}
        for kind in ("miner", "vault"):
            entries = raw.get(kind, {})
            sections[kind] = MappingProxyType({
                Tier(int(tier)): UpgradeCost(
                    buy_price=int(entry["buy_price"]),
                    tokens_add=int(entry.get("tokens_add", 0)),
                )
                for tier, entry in entries.items()
            })
        return cls(miner=sections["miner"], vault=sections["vault"])


@dataclass(frozen=True)
class EconomyRules:
    """Everything the engines need besides the account and the clock."""
    capacities: Mapping[Tier, int]
    default_rate_per_hour: int
    referral_bonus: int
    upgrade_costs: UpgradeCostTable = field(default_factory=UpgradeCostTable)

    def __post_init__(self):
        object.__setattr__(
            self, "capacities", MappingProxyType(dict(self.capacities)),
        )

    def capacity_for(self, record: AccountRecord) -> int:
        """Vault capacity for the record's current vault tier."""
        tier = record.tier(UpgradeSlot.VAULT)
        if tier is None:
            raise InternalInconsistencyError(
                f"Account '{record.id}' has no '{UpgradeSlot.VAULT.value}' upgrade slot",
                ErrorContext(account_id=record.id, operation="capacity_lookup"),
            )
        capacity = self.capacities.get(tier)
        if capacity is None:
            raise InternalInconsistencyError(
                f"Vault tier {tier} of account '{record.id}' has no capacity entry",
                ErrorContext(account_id=record.id, operation="capacity_lookup"),
            )
        return capacity
