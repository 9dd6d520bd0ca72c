"""Account Routes — end-to-end HTTP behavior over SQLite.

Invariants:
    - Register returns 201 with the derived referral code
    - Status poll never changes the stored record
    - Claim moves pending accrual into balance (2h at 1000/h → 2000)
    - Each error kind maps to its own status code and error code
    - Ids outside the unsigned 64-bit range are rejected with 400, never stored
    - Readiness requires both the database and the loaded economy rules
"""

import time

from sqlalchemy import select, update

import idle_vault.api.dependencies as dependencies
import idle_vault.infrastructure.database as db_module
from idle_vault.core.referral import derive_referral_code
from idle_vault.models.account import Account

SECRET = "test-secret"
HOUR = 3600


def _register_body(account_id=1001, **extra):
    return {"secret": SECRET, "id": account_id, "language": "en", **extra}


async def _set_columns(factory, account_id, **values):
    async with factory() as session:
        await session.execute(
            update(Account).where(Account.id == account_id).values(**values),
        )
        await session.commit()


async def _load(factory, account_id):
    async with factory() as session:
        result = await session.execute(
            select(Account).where(Account.id == account_id),
        )
        return result.scalar_one_or_none()


# ─── Register ───────────────────────────────────────────────────

async def test_register_returns_201_and_code(client):
    res = await client.post("/api/v1/accounts", json=_register_body())
    assert res.status_code == 201
    body = res.json()
    assert body["code"] == 1
    assert body["msg"] == "OK"
    assert body["account_id"] == "1001"
    assert body["referral_code"] == derive_referral_code("1001")


async def test_register_persists_defaults(client, test_session_factory):
    await client.post(
        "/api/v1/accounts",
        json=_register_body(display_name="  neo  ", first_name=""),
    )
    row = await _load(test_session_factory, "1001")
    assert row.balance == 0
    assert row.rate_per_hour == 1_000
    assert row.upgrades == {"miner_1": 1, "vault_main": 1}
    assert row.referred_accounts == []
    assert row.display_name == "neo"
    assert row.first_name is None


async def test_register_bad_secret_returns_401(client, test_session_factory):
    res = await client.post(
        "/api/v1/accounts", json={**_register_body(), "secret": "nope"},
    )
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "AUTH_ERROR"
    assert await _load(test_session_factory, "1001") is None


async def test_register_twice_returns_409(client, test_session_factory):
    await client.post("/api/v1/accounts", json=_register_body())
    before = await _load(test_session_factory, "1001")

    res = await client.post(
        "/api/v1/accounts", json=_register_body(language="de"),
    )

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "ACCOUNT_EXISTS"
    after = await _load(test_session_factory, "1001")
    assert after.language == before.language == "en"


async def test_register_with_referral_credits_both(client, test_session_factory):
    first = await client.post("/api/v1/accounts", json=_register_body(1))
    code = first.json()["referral_code"]

    res = await client.post(
        "/api/v1/accounts", json=_register_body(2, referral_code=code.upper()),
    )

    assert res.status_code == 201
    referrer = await _load(test_session_factory, "1")
    newcomer = await _load(test_session_factory, "2")
    assert referrer.referred_accounts == ["2"]
    assert referrer.balance == 25_000
    assert newcomer.balance == 25_000


async def test_register_with_unknown_code_grants_nothing(client, test_session_factory):
    await client.post("/api/v1/accounts", json=_register_body(1))
    res = await client.post(
        "/api/v1/accounts", json=_register_body(2, referral_code="000000"),
    )
    assert res.status_code == 201
    assert (await _load(test_session_factory, "2")).balance == 0
    assert (await _load(test_session_factory, "1")).balance == 0


async def test_register_negative_id_is_validation_error(client):
    res = await client.post("/api/v1/accounts", json=_register_body(-5))
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_register_largest_u64_id(client, test_session_factory):
    res = await client.post("/api/v1/accounts", json=_register_body(2**64 - 1))
    assert res.status_code == 201
    assert res.json()["account_id"] == "18446744073709551615"
    assert await _load(test_session_factory, "18446744073709551615") is not None


async def test_register_id_beyond_u64_is_validation_error(client, test_session_factory):
    res = await client.post("/api/v1/accounts", json=_register_body(10**40))
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"
    assert await _load(test_session_factory, str(10**40)) is None


async def test_status_id_beyond_u64_is_validation_error(client):
    res = await client.post("/api/v1/accounts/status", json={"id": 2**64})
    assert res.status_code == 400


async def test_claim_path_id_beyond_u64_is_validation_error(client):
    res = await client.post(f"/api/v1/accounts/{2**64}/claim")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_register_missing_language_is_validation_error(client):
    res = await client.post(
        "/api/v1/accounts", json={"secret": SECRET, "id": 1},
    )
    assert res.status_code == 400
    fields = [d["field"] for d in res.json()["error"]["details"]]
    assert "body.language" in fields


# ─── Status (peek) ──────────────────────────────────────────────

async def test_status_reports_pending_without_writing(client, test_session_factory):
    await client.post("/api/v1/accounts", json=_register_body())
    last = time.time() - 2 * HOUR
    await _set_columns(test_session_factory, "1001", last_accrual_at=last)

    first = await client.post("/api/v1/accounts/status", json={"id": 1001})
    second = await client.post("/api/v1/accounts/status", json={"id": 1001})

    assert first.status_code == 200
    body = first.json()
    assert body["pending_accrual"] == 2_000
    assert body["vault_capacity"] == 5_000
    assert body["vault_usage_percent"] == 0
    assert body["referral_count"] == 0
    assert second.json()["pending_accrual"] == 2_000
    row = await _load(test_session_factory, "1001")
    assert row.balance == 0
    assert row.last_accrual_at == last


async def test_status_unknown_account_returns_404(client):
    res = await client.post("/api/v1/accounts/status", json={"id": 77})
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_status_with_unknown_vault_tier_returns_500(client, test_session_factory):
    await client.post("/api/v1/accounts", json=_register_body())
    await _set_columns(
        test_session_factory, "1001", upgrades={"miner_1": 1, "vault_main": 42},
    )
    res = await client.post("/api/v1/accounts/status", json={"id": 1001})
    assert res.status_code == 500
    assert res.json()["error"]["code"] == "INTERNAL_INCONSISTENCY"


# ─── Claim ──────────────────────────────────────────────────────

async def test_claim_moves_pending_into_balance(client, test_session_factory):
    await client.post("/api/v1/accounts", json=_register_body())
    await _set_columns(
        test_session_factory, "1001",
        balance=100, last_accrual_at=time.time() - 2 * HOUR,
    )

    res = await client.post("/api/v1/accounts/1001/claim")

    assert res.status_code == 200
    body = res.json()
    assert body["pending_accrual"] == 2_000
    assert body["balance"] == 2_100
    assert body["vault_usage_percent"] == 42
    row = await _load(test_session_factory, "1001")
    assert row.balance == 2_100
    assert row.version == 2


async def test_claim_is_capped_at_capacity(client, test_session_factory):
    await client.post("/api/v1/accounts", json=_register_body())
    await _set_columns(
        test_session_factory, "1001", last_accrual_at=time.time() - 10 * HOUR,
    )
    res = await client.post("/api/v1/accounts/1001/claim")
    assert res.json()["pending_accrual"] == 5_000
    assert res.json()["balance"] == 5_000


async def test_claim_unknown_account_returns_404(client):
    res = await client.post("/api/v1/accounts/999/claim")
    assert res.status_code == 404


# ─── Upgrades ───────────────────────────────────────────────────

async def test_upgrade_miner(client, test_session_factory):
    await client.post("/api/v1/accounts", json=_register_body())
    await _set_columns(test_session_factory, "1001", balance=3_000)

    res = await client.post(
        "/api/v1/accounts/1001/upgrades", json={"slot": "miner_1"},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["new_tier"] == 2
    assert body["price_paid"] == 2_500
    assert body["rate_per_hour"] == 1_500
    assert body["next_price"] == 7_500
    assert body["next_tokens_add"] == 1_000
    row = await _load(test_session_factory, "1001")
    assert row.upgrades["miner_1"] == 2


async def test_upgrade_insufficient_balance_returns_400(client):
    await client.post("/api/v1/accounts", json=_register_body())
    res = await client.post(
        "/api/v1/accounts/1001/upgrades", json={"slot": "vault_main"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INSUFFICIENT_BALANCE"


async def test_upgrade_unknown_slot_is_validation_error(client):
    await client.post("/api/v1/accounts", json=_register_body())
    res = await client.post(
        "/api/v1/accounts/1001/upgrades", json={"slot": "laser_9"},
    )
    assert res.status_code == 400


# ─── Health ─────────────────────────────────────────────────────

async def test_health_liveness(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


async def test_health_readiness_with_db(client):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["database"] == "healthy"


async def test_readiness_reports_loaded_economy(client):
    res = await client.get("/api/v1/health/ready")
    body = res.json()
    assert body["checks"]["economy"] == "loaded"
    assert body["economy"]["vault_tiers"] == 3
    assert body["economy"]["miner_tiers_for_sale"] == 2


async def test_readiness_without_economy_returns_503(client, monkeypatch):
    monkeypatch.setattr(dependencies, "economy_rules", None)
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 503
    assert res.json()["failing"] == ["economy"]


async def test_readiness_without_database_returns_503(client, monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", None)
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 503
    assert res.json()["checks"]["database"] == "unavailable"
