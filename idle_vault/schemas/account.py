"""Account Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - Account ids arrive as unsigned 64-bit integers and are stored as decimal strings
    - Optional profile names are stripped; blank becomes None
    - Referral codes are normalized to lowercase hex before lookup

Design Decisions:
    - Response models mirror AccountStatus.to_response() so OpenAPI documents the shape
    - Literal-free slot field: UpgradeSlot enum gives validation and docs together
"""

from pydantic import BaseModel, Field, field_validator

from idle_vault.core.domain_types import MAX_ACCOUNT_ID, UpgradeSlot


class RegisterRequest(BaseModel):
    """New account registration from the game frontend."""
    secret: str = Field(min_length=1, max_length=256)
    id: int = Field(ge=0, le=MAX_ACCOUNT_ID)
    display_name: str | None = Field(None, max_length=64)
    first_name: str | None = Field(None, max_length=64)
    last_name: str | None = Field(None, max_length=64)
    language: str = Field(min_length=1, max_length=16)
    referral_code: str | None = Field(None, max_length=16)

    @field_validator("display_name", "first_name", "last_name")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("referral_code")
    @classmethod
    def normalize_code(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip().lower()
        return v or None


class RegisterResponse(BaseModel):
    code: int = 1
    msg: str = "OK"
    account_id: str
    referral_code: str


class AccountQuery(BaseModel):
    """Account lookup body for the status poll."""
    id: int = Field(ge=0, le=MAX_ACCOUNT_ID)


class UpgradeRequest(BaseModel):
    slot: UpgradeSlot


class AccountStatusResponse(BaseModel):
    """Public account state plus derived vault figures."""
    id: str
    display_name: str | None
    first_name: str | None
    last_name: str | None
    registered_at: float
    upgrades: dict[str, int]
    language: str
    balance: int
    rate_per_hour: int
    last_accrual_at: float
    referral_code: str
    referred_accounts: list[str]
    pending_accrual: int
    vault_usage_percent: int
    vault_capacity: int
    referral_count: int


class UpgradeResponse(AccountStatusResponse):
    """Account state after an upgrade, with the following tier's price."""
    slot: UpgradeSlot
    new_tier: int
    price_paid: int
    next_price: int | None
    next_tokens_add: int | None
