"""API Dependencies — wires request-scoped EconomyService instances.

Invariants:
    - One SqlAccountRepository per request DB session
    - EconomyRules built once per process and shared read-only

Design Decisions:
    - Rules cached in a module-level singleton set by init_economy() in lifespan,
      mirroring db_manager; tests may call init_economy() with their own rules
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from idle_vault.config import get_settings
from idle_vault.core.economy_rules import EconomyRules
from idle_vault.infrastructure.account_repository import SqlAccountRepository
from idle_vault.infrastructure.database import get_db
from idle_vault.infrastructure.economy_config import build_economy_rules
from idle_vault.services.economy_service import EconomyService

# Singleton (initialized on startup)
economy_rules: EconomyRules | None = None


def init_economy(rules: EconomyRules | None = None) -> EconomyRules:
    global economy_rules
    economy_rules = rules or build_economy_rules(get_settings())
    return economy_rules


def get_economy_rules() -> EconomyRules:
    if economy_rules is None:
        return init_economy()
    return economy_rules


async def get_economy_service(
    db: AsyncSession = Depends(get_db),
    rules: EconomyRules = Depends(get_economy_rules),
) -> EconomyService:
    return EconomyService(
        SqlAccountRepository(db),
        rules,
        registration_secret=get_settings().registration_secret,
    )
