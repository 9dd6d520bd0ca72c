"""Economy Config Loader — reads the upgrade cost file and assembles EconomyRules.

Invariants:
    - Loaded once at startup; a missing or malformed cost file fails startup
    - Capacities, starting rate and referral bonus come from Settings

Design Decisions:
    - Cost table kept in a JSON file (config/upgrades.json): designers tune prices
      without touching environment variables
"""

import json
import logging
from pathlib import Path

from idle_vault.config import Settings
from idle_vault.core.economy_rules import EconomyRules, UpgradeCostTable

logger = logging.getLogger(__name__)


def load_upgrade_costs(path: str | Path) -> UpgradeCostTable:
    """Parse the upgrade cost JSON file into an UpgradeCostTable."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        return UpgradeCostTable.from_raw_costs(raw)
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.error(f"Failed to load upgrade costs from {path}: {e}")
        raise


def build_economy_rules(settings: Settings) -> EconomyRules:
    """Combine Settings with the cost file into the immutable rules object."""
    return EconomyRules(
        capacities=settings.vault_capacities,
        default_rate_per_hour=settings.default_rate_per_hour,
        referral_bonus=settings.referral_bonus,
        upgrade_costs=load_upgrade_costs(settings.upgrade_costs_path),
    )
