"""Economy Service — async orchestration of registration, peek, claim and upgrades.

Invariants:
    - Every mutating operation holds the per-account lock(s) of every account it writes
    - Every mutating operation ends in exactly one commit(); on any exception the
      repository is rolled back and the error propagates unchanged
    - Registration with a known referral code commits the new account and the
      credited referrer together, or neither
    - peek() takes no lock and never writes
    - register() rejects a non-canonical account id (ValidationError) before
      touching the store
    - Errors are never retried here and never turned into zero/default results

Design Decisions:
    - Clock injected (Callable[[], float]) so accrual is testable without sleeping
    - Referrer resolved by code BEFORE locking, then both ids locked in sorted
      order and the referrer re-read under the lock (the code-lookup copy may be stale)
    - Shared secret compared with hmac.compare_digest; this is a gate for a
      trusted bot frontend, not a user auth scheme
"""

import hmac
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from typing import AsyncIterator, Callable

from idle_vault.core.account_record import AccountRecord
from idle_vault.core.accrual import AccrualSnapshot, peek_account, settle_account
from idle_vault.core.domain_types import (
    AccountId, ReferralCode, UnixSeconds, UpgradeSlot,
)
from idle_vault.core.economy_rules import EconomyRules
from idle_vault.core.errors import (
    AuthError, ConflictError, ErrorContext, InternalInconsistencyError,
    ResourceNotFoundError,
)
from idle_vault.core.referral import apply_referral_bonus
from idle_vault.core.registration import (
    PlayerProfile, build_new_account, to_account_id,
)
from idle_vault.core.repository_protocols import AccountRepository
from idle_vault.core.upgrades import UpgradeOutcome, purchase_upgrade
from idle_vault.services.account_locks import AccountLocks, account_locks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountStatus:
    """A record together with its derived vault figures."""
    record: AccountRecord
    snapshot: AccrualSnapshot

    def to_response(self) -> dict:
        return {
            **self.record.to_public_dict(),
            "pending_accrual": self.snapshot.pending_accrual,
            "vault_usage_percent": self.snapshot.vault_usage_percent,
            "vault_capacity": self.snapshot.vault_capacity,
            "referral_count": self.record.referral_count,
        }


class EconomyService:
    """Request-scoped facade over the economy core and one AccountRepository."""

    def __init__(
        self,
        repository: AccountRepository,
        rules: EconomyRules,
        registration_secret: str,
        clock: Callable[[], float] = time.time,
        locks: AccountLocks = account_locks,
    ):
        self._repo = repository
        self._rules = rules
        self._secret = registration_secret
        self._clock = clock
        self._locks = locks

    @asynccontextmanager
    async def _unit_of_work(self) -> AsyncIterator[None]:
        try:
            yield
            await self._repo.commit()
        except Exception:
            await self._repo.rollback()
            raise

    def _now(self) -> UnixSeconds:
        return UnixSeconds(self._clock())

    async def _load(self, account_id: AccountId, operation: str) -> AccountRecord:
        record = await self._repo.get(account_id)
        if record is None:
            raise ResourceNotFoundError(
                "Account", account_id,
                ErrorContext(account_id=account_id, operation=operation),
            )
        return record

    # ─── Register ───────────────────────────────────────────────

    async def register(
        self,
        secret: str,
        account_id: str,
        profile: PlayerProfile,
        referral_code: ReferralCode | None = None,
    ) -> AccountRecord:
        """Create an account, crediting the referral bonus when the code matches."""
        if not hmac.compare_digest(secret.encode(), self._secret.encode()):
            logger.warning(
                "Registration rejected: bad secret",
                extra={"account_id": account_id, "operation": "register"},
            )
            raise AuthError(ErrorContext(account_id=account_id, operation="register"))
        account_id = to_account_id(account_id)

        referrer_id = None
        if referral_code:
            candidate = await self._repo.get_by_referral_code(referral_code)
            if candidate is None:
                logger.info(
                    f"Referral code {referral_code!r} matched no account",
                    extra={"account_id": account_id, "operation": "register"},
                )
            else:
                referrer_id = candidate.id

        lock_ids = [account_id] + ([referrer_id] if referrer_id else [])
        async with self._locks.hold(*lock_ids), self._unit_of_work():
            context = ErrorContext(account_id=account_id, operation="register")
            new_account = build_new_account(
                account_id, profile, self._now(), self._rules,
            )
            referrer = None
            if referrer_id:
                referrer = await self._repo.get(referrer_id)
                if referrer is None:
                    raise InternalInconsistencyError(
                        f"Referrer '{referrer_id}' could not be reloaded", context,
                    )
                referrer, new_account = apply_referral_bonus(
                    referrer, new_account, self._rules.referral_bonus,
                )
            if not await self._repo.insert_if_absent(new_account):
                raise ConflictError(account_id, context)
            if referrer is not None:
                await self._repo.replace(referrer)

        if referrer is not None:
            logger.info(
                "Referral bonus credited",
                extra={
                    "account_id": account_id, "referrer_id": referrer.id,
                    "amount": self._rules.referral_bonus, "operation": "register",
                },
            )
        logger.info(
            "Account registered",
            extra={"account_id": account_id, "operation": "register"},
        )
        return new_account

    # ─── Peek / Claim ───────────────────────────────────────────

    async def peek(self, account_id: AccountId) -> AccountStatus:
        """Current record plus what a claim would add now. Never writes."""
        record = await self._load(account_id, "peek")
        return AccountStatus(
            record, peek_account(record, self._now(), self._rules),
        )

    async def claim(self, account_id: AccountId) -> AccountStatus:
        """Settle pending accrual into balance and persist the record."""
        async with self._locks.hold(account_id), self._unit_of_work():
            record = await self._load(account_id, "claim")
            settled, snapshot = settle_account(record, self._now(), self._rules)
            stored = await self._repo.replace(settled)
        logger.info(
            "Accrual claimed",
            extra={
                "account_id": account_id, "operation": "claim",
                "amount": snapshot.pending_accrual,
            },
        )
        return AccountStatus(stored, snapshot)

    # ─── Upgrades ───────────────────────────────────────────────

    async def purchase_upgrade(
        self, account_id: AccountId, slot: UpgradeSlot,
    ) -> UpgradeOutcome:
        """Settle and buy the next tier of slot."""
        async with self._locks.hold(account_id), self._unit_of_work():
            record = await self._load(account_id, "upgrade")
            outcome = purchase_upgrade(record, slot, self._now(), self._rules)
            stored = await self._repo.replace(outcome.record)
        logger.info(
            "Upgrade purchased",
            extra={
                "account_id": account_id, "operation": "upgrade",
                "slot": slot.value, "tier": outcome.new_tier,
                "amount": outcome.price_paid,
            },
        )
        return replace(outcome, record=stored)
