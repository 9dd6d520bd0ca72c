"""Account Routes — registration, status poll, claim and upgrade purchase.

Invariants:
    - Routes only translate HTTP <-> EconomyService calls; no economy math here
    - Every IdleVaultError propagates to the global handler (distinct status per kind)
    - Status and claim responses share one shape (AccountStatusResponse)

Design Decisions:
    - Status poll is POST with a JSON body, as the existing game client sends it
    - Claim and upgrade are POST on the account resource: they mutate state
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from idle_vault.core.domain_types import MAX_ACCOUNT_ID, AccountId
from idle_vault.core.registration import PlayerProfile
from idle_vault.schemas.account import (
    AccountQuery, AccountStatusResponse, RegisterRequest, RegisterResponse,
    UpgradeRequest, UpgradeResponse,
)
from idle_vault.api.dependencies import get_economy_service
from idle_vault.services.economy_service import EconomyService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/accounts", tags=["accounts"])

AccountIdPath = Annotated[int, Path(ge=0, le=MAX_ACCOUNT_ID)]


@router.post(
    "", response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_account(
    body: RegisterRequest,
    service: EconomyService = Depends(get_economy_service),
):
    """Register a new account, optionally via a referral code."""
    record = await service.register(
        secret=body.secret,
        account_id=str(body.id),
        profile=PlayerProfile(
            language=body.language,
            display_name=body.display_name,
            first_name=body.first_name,
            last_name=body.last_name,
        ),
        referral_code=body.referral_code,
    )
    return RegisterResponse(
        account_id=record.id, referral_code=record.referral_code,
    )


@router.post("/status", response_model=AccountStatusResponse)
async def account_status(
    body: AccountQuery,
    service: EconomyService = Depends(get_economy_service),
):
    """Poll account state and pending accrual without changing anything."""
    account = await service.peek(AccountId(str(body.id)))
    return account.to_response()


@router.post("/{account_id}/claim", response_model=AccountStatusResponse)
async def claim_accrual(
    account_id: AccountIdPath,
    service: EconomyService = Depends(get_economy_service),
):
    """Move pending accrual into balance."""
    account = await service.claim(AccountId(str(account_id)))
    return account.to_response()


@router.post("/{account_id}/upgrades", response_model=UpgradeResponse)
async def buy_upgrade(
    account_id: AccountIdPath,
    body: UpgradeRequest,
    service: EconomyService = Depends(get_economy_service),
):
    """Buy the next tier of a miner or vault slot."""
    outcome = await service.purchase_upgrade(
        AccountId(str(account_id)), body.slot,
    )
    return {
        **outcome.record.to_public_dict(),
        "pending_accrual": outcome.snapshot.pending_accrual,
        "vault_usage_percent": outcome.snapshot.vault_usage_percent,
        "vault_capacity": outcome.snapshot.vault_capacity,
        "referral_count": outcome.record.referral_count,
        "slot": outcome.slot,
        "new_tier": outcome.new_tier,
        "price_paid": outcome.price_paid,
        "next_price": outcome.next_cost.buy_price if outcome.next_cost else None,
        "next_tokens_add": (
            outcome.next_cost.tokens_add if outcome.next_cost else None
        ),
    }
