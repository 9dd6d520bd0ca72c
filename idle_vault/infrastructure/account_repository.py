"""SQL Account Repository — AccountRepository implementation over one AsyncSession.

Invariants:
    - One repository per request session; nothing is visible to other sessions
      until commit()
    - replace() is update-if-version-matches: a lost race raises ConcurrencyError
      instead of overwriting another writer's balance
    - insert_if_absent() re-checks the primary key at flush time; a concurrent
      insert of the same id surfaces as ConflictError
    - Every SQLAlchemy exception leaves as StorageError

Design Decisions:
    - ORM rows converted to AccountRecord at the boundary: core never sees Account
    - Referral lookups ordered by registered_at so a code collision always
      resolves to the oldest account
"""

import logging
from dataclasses import replace as dc_replace

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from idle_vault.core.account_record import AccountRecord
from idle_vault.core.domain_types import AccountId, ReferralCode
from idle_vault.core.errors import ConcurrencyError, ConflictError, ErrorContext
from idle_vault.infrastructure.database import map_storage_errors
from idle_vault.models.account import Account

logger = logging.getLogger(__name__)


def _to_record(row: Account) -> AccountRecord:
    return AccountRecord(
        id=row.id,
        display_name=row.display_name,
        first_name=row.first_name,
        last_name=row.last_name,
        registered_at=row.registered_at,
        upgrades=dict(row.upgrades or {}),
        language=row.language,
        balance=row.balance,
        rate_per_hour=row.rate_per_hour,
        last_accrual_at=row.last_accrual_at,
        referral_code=row.referral_code,
        referred_accounts=list(row.referred_accounts or []),
        version=row.version,
    )


def _mutable_columns(record: AccountRecord) -> dict:
    return {
        "display_name": record.display_name,
        "first_name": record.first_name,
        "last_name": record.last_name,
        "upgrades": dict(record.upgrades),
        "language": record.language,
        "balance": record.balance,
        "rate_per_hour": record.rate_per_hour,
        "last_accrual_at": record.last_accrual_at,
        "referred_accounts": list(record.referred_accounts),
    }


class SqlAccountRepository:
    """Account persistence backed by SQLAlchemy async ORM."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, account_id: AccountId) -> AccountRecord | None:
        with map_storage_errors("get"):
            result = await self._session.execute(
                select(Account)
                .where(Account.id == account_id)
                .execution_options(populate_existing=True),
            )
            row = result.scalar_one_or_none()
        return _to_record(row) if row else None

    async def get_by_referral_code(self, code: ReferralCode) -> AccountRecord | None:
        with map_storage_errors("get_by_referral_code"):
            result = await self._session.execute(
                select(Account)
                .where(Account.referral_code == code)
                .order_by(Account.registered_at)
                .limit(1),
            )
            row = result.scalars().first()
        return _to_record(row) if row else None

    async def insert_if_absent(self, record: AccountRecord) -> bool:
        with map_storage_errors("insert"):
            existing = await self._session.execute(
                select(Account.id).where(Account.id == record.id),
            )
            if existing.scalar_one_or_none() is not None:
                return False
        self._session.add(Account(
            id=record.id,
            registered_at=record.registered_at,
            referral_code=record.referral_code,
            version=record.version,
            **_mutable_columns(record),
        ))
        with map_storage_errors("insert"):
            try:
                await self._session.flush()
            except IntegrityError as e:
                await self._session.rollback()
                logger.warning(
                    f"Concurrent registration of {record.id}: {e}",
                    extra={"account_id": record.id, "operation": "insert"},
                )
                raise ConflictError(
                    record.id,
                    ErrorContext(account_id=record.id, operation="insert"),
                ) from e
        return True

    async def replace(self, record: AccountRecord) -> AccountRecord:
        with map_storage_errors("replace"):
            result = await self._session.execute(
                update(Account)
                .where(Account.id == record.id, Account.version == record.version)
                .values(version=record.version + 1, **_mutable_columns(record))
                .execution_options(synchronize_session=False),
            )
        if result.rowcount != 1:
            raise ConcurrencyError(
                f"Account '{record.id}' changed since version {record.version}",
                ErrorContext(account_id=record.id, operation="replace"),
            )
        return dc_replace(record, version=record.version + 1)

    async def commit(self) -> None:
        with map_storage_errors("commit"):
            await self._session.commit()

    async def rollback(self) -> None:
        with map_storage_errors("rollback"):
            await self._session.rollback()
