"""Health & Readiness Probes — liveness plus database and economy readiness.

Invariants:
    - GET /health/ returns 200 while the process is up (liveness)
    - GET /health/ready returns 200 only when the database answers AND the
      economy rules (capacities, cost table) are loaded; otherwise 503 with
      the failing checks listed
    - Readiness never loads the rules itself: a cold instance stays not-ready
      until lifespan has run init_economy()
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import idle_vault.api.dependencies as dependencies
import idle_vault.infrastructure.database as database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {"status": "healthy", "service": "idle-vault-api", "version": "1.0.0"}


async def _database_ready() -> bool:
    manager = database.db_manager
    return await manager.health_check() if manager else False


def _economy_summary() -> dict | None:
    rules = dependencies.economy_rules
    if rules is None:
        return None
    return {
        "vault_tiers": len(rules.capacities),
        "miner_tiers_for_sale": len(rules.upgrade_costs.miner),
        "vault_tiers_for_sale": len(rules.upgrade_costs.vault),
    }


@router.get("/ready")
async def readiness_check():
    """Ready when the store is reachable and the economy is configured."""
    economy = _economy_summary()
    checks = {
        "database": "healthy" if await _database_ready() else "unavailable",
        "economy": "loaded" if economy else "not_loaded",
    }
    failing = [
        name for name, state in checks.items()
        if state not in ("healthy", "loaded")
    ]
    if failing:
        logger.warning(f"Readiness failed: {', '.join(failing)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks, "failing": failing},
        )
    return {"status": "ready", "checks": checks, "economy": economy}
