"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All store IO is accessed through AccountRepository
    - Writes are staged until commit(); rollback() discards everything staged

Design Decisions:
    - Protocol over ABC: structural subtyping, the test fake needs no inheritance
    - Async in Protocol: implementations do IO, but the core functions that
      produce the records being written are never async themselves
    - Unit of work on the repository: the referral bonus touches two accounts and
      must commit both or neither
"""

from typing import Protocol

from idle_vault.core.account_record import AccountRecord
from idle_vault.core.domain_types import AccountId, ReferralCode


class AccountRepository(Protocol):
    """Contract for account persistence — implemented by shell."""

    async def get(self, account_id: AccountId) -> AccountRecord | None: ...

    async def get_by_referral_code(self, code: ReferralCode) -> AccountRecord | None: ...

    async def insert_if_absent(self, record: AccountRecord) -> bool:
        """Stage an insert. Returns False (and stages nothing) if the id exists."""
        ...

    async def replace(self, record: AccountRecord) -> AccountRecord:
        """Stage a full replace guarded by record.version; returns the bumped record.

        Raises ConcurrencyError if the stored version no longer matches.
        """
        ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
