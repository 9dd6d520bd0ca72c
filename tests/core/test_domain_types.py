"""Domain Types — verifies slot enum values and default upgrades."""

from idle_vault.core.domain_types import DEFAULT_UPGRADES, UpgradeSlot


def test_slot_values_match_stored_keys():
    assert UpgradeSlot.MINER.value == "miner_1"
    assert UpgradeSlot.VAULT.value == "vault_main"


def test_slot_kind_selects_cost_section():
    assert UpgradeSlot.MINER.kind == "miner"
    assert UpgradeSlot.VAULT.kind == "vault"


def test_default_upgrades_include_vault_slot():
    assert DEFAULT_UPGRADES[UpgradeSlot.VAULT.value] == 1
    assert DEFAULT_UPGRADES[UpgradeSlot.MINER.value] == 1
