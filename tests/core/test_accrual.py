"""Accrual Engine — verifies pending accrual math, capping, peek and settle.

Tests:
    - Reference examples: 2h at 1000/h → 2000; 10h → capped at 5000
    - Truncation (never rounding) of fractional units
    - Peek is side-effect free and repeatable
    - Settle at the same instant twice adds nothing the second time
    - rate_per_hour on the record drives the rate
    - Missing vault tier is an InternalInconsistencyError, not zero capacity
"""

import pytest

from idle_vault.core.accrual import (
    compute_pending_accrual, peek_account, settle_account, vault_usage_percent,
)
from idle_vault.core.errors import InternalInconsistencyError
from tests.factories import HOUR, NOW, make_account, make_rules


def test_two_hours_accrue_two_thousand():
    record = make_account(last_accrual_at=NOW - 2 * HOUR)
    snapshot = peek_account(record, NOW, make_rules())
    assert snapshot.pending_accrual == 2_000
    assert snapshot.vault_capacity == 5_000


def test_ten_hours_capped_at_vault_capacity():
    record = make_account(last_accrual_at=NOW - 10 * HOUR)
    snapshot = peek_account(record, NOW, make_rules())
    assert snapshot.pending_accrual == 5_000


def test_settle_adds_pending_and_stamps_now():
    record = make_account(balance=300, last_accrual_at=NOW - 2 * HOUR)
    settled, snapshot = settle_account(record, NOW, make_rules())
    assert snapshot.pending_accrual == 2_000
    assert settled.balance == 2_300
    assert settled.last_accrual_at == NOW


def test_settle_does_not_mutate_input_record():
    record = make_account(last_accrual_at=NOW - HOUR)
    settle_account(record, NOW, make_rules())
    assert record.balance == 0
    assert record.last_accrual_at == NOW - HOUR


def test_second_settle_at_same_instant_adds_nothing():
    rules = make_rules()
    record = make_account(last_accrual_at=NOW - 3 * HOUR)
    once, first = settle_account(record, NOW, rules)
    twice, second = settle_account(once, NOW, rules)
    assert first.pending_accrual == 3_000
    assert second.pending_accrual == 0
    assert twice.balance == once.balance


def test_peek_is_repeatable_and_read_only():
    rules = make_rules()
    record = make_account(balance=1_000, last_accrual_at=NOW - 1.5 * HOUR)
    first = peek_account(record, NOW, rules)
    second = peek_account(record, NOW, rules)
    assert first == second
    assert record.balance == 1_000
    assert record.last_accrual_at == NOW - 1.5 * HOUR


def test_fractional_units_are_truncated():
    # 1 second at 1000/h = 0.277… units
    assert compute_pending_accrual(NOW - 1, NOW, 1_000, 5_000) == 0
    # 5399 seconds at 1000/h = 1499.72… units
    assert compute_pending_accrual(NOW - 5_399, NOW, 1_000, 5_000) == 1_499


def test_fraction_lost_between_settles_is_not_carried_over():
    rules = make_rules()
    record = make_account(last_accrual_at=NOW - 5_399)
    settled, _ = settle_account(record, NOW, rules)
    _, later = settle_account(settled, NOW + 1, rules)
    assert settled.balance == 1_499
    assert later.pending_accrual == 0


def test_rate_per_hour_drives_accrual():
    record = make_account(rate_per_hour=1_500, last_accrual_at=NOW - 2 * HOUR)
    assert peek_account(record, NOW, make_rules()).pending_accrual == 3_000


def test_capacity_follows_vault_tier():
    record = make_account(
        upgrades={"miner_1": 1, "vault_main": 2},
        last_accrual_at=NOW - 20 * HOUR,
    )
    snapshot = peek_account(record, NOW, make_rules())
    assert snapshot.pending_accrual == 12_000
    assert snapshot.vault_capacity == 12_000


@pytest.mark.parametrize("elapsed_hours", [0, 1, 4.99, 5, 6, 100, 10_000])
def test_pending_never_exceeds_capacity(elapsed_hours):
    record = make_account(last_accrual_at=NOW - elapsed_hours * HOUR)
    snapshot = peek_account(record, NOW, make_rules())
    assert 0 <= snapshot.pending_accrual <= snapshot.vault_capacity


def test_clock_behind_last_accrual_yields_zero_and_keeps_timestamp():
    record = make_account(last_accrual_at=NOW + 60)
    settled, snapshot = settle_account(record, NOW, make_rules())
    assert snapshot.pending_accrual == 0
    assert settled.last_accrual_at == NOW + 60


def test_vault_usage_percent_floors():
    assert vault_usage_percent(0, 5_000) == 0
    assert vault_usage_percent(2_499, 5_000) == 49
    assert vault_usage_percent(5_000, 5_000) == 100


def test_usage_percent_can_exceed_100_after_capacity_cut():
    record = make_account(balance=10_000)
    snapshot = peek_account(record, NOW, make_rules())
    assert snapshot.vault_usage_percent == 200


def test_settle_snapshot_reports_usage_of_new_balance():
    record = make_account(balance=500, last_accrual_at=NOW - 2 * HOUR)
    _, snapshot = settle_account(record, NOW, make_rules())
    assert snapshot.vault_usage_percent == 50  # 2500 / 5000


def test_unknown_vault_tier_is_internal_inconsistency():
    record = make_account(upgrades={"miner_1": 1, "vault_main": 99})
    with pytest.raises(InternalInconsistencyError):
        peek_account(record, NOW, make_rules())


def test_missing_vault_slot_is_internal_inconsistency():
    record = make_account(upgrades={"miner_1": 1})
    with pytest.raises(InternalInconsistencyError):
        settle_account(record, NOW, make_rules())
