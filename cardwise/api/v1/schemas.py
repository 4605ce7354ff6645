"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field, model_validator
from datetime import date
from typing import List, Literal, Optional

from cardwise.config import settings


def _require_rate_for_foreign_currency(currency: str, exchange_rate: Optional[float]) -> None:
    if currency != settings.base_currency and exchange_rate is None:
        raise ValueError(f"exchange_rate is required for amounts in {currency}")


class CardCreate(BaseModel):
    """Request body for POST /v1/cards"""

    bank_id: str = Field(..., min_length=1, description="Issuing bank identifier, e.g. 'bca'")
    alias: str = ""
    credit_limit: int = Field(..., ge=0)
    current_usage: int = 0
    due_day: int = Field(..., ge=1, le=31)
    billing_cycle_day: int = Field(1, ge=1, le=31)
    use_shared_limit: bool = False
    is_paid: bool = False
    annual_fee_reminder_enabled: bool = False
    expiry_month: Optional[int] = Field(None, ge=1, le=12)
    annual_fee_amount: Optional[int] = Field(None, ge=0)
    limit_increase_reminder_enabled: bool = False
    next_limit_increase_date: Optional[date] = None


class CardResponse(CardCreate):
    """Stored card"""

    id: str
    is_archived: bool = False
    paid_for_cycle: Optional[str] = None


class PaymentCreate(BaseModel):
    """Request body for POST /v1/cards/{card_id}/payments"""

    paid_on: date
    amount: Optional[int] = Field(None, gt=0, description="Defaults to the full current usage")
    payment_type: Literal["full", "minimal"] = "full"
    notes: Optional[str] = None


class PaymentRecordSchema(BaseModel):
    """Entry of a card's payment history"""

    id: str
    card_id: str
    paid_on: date
    amount: int
    billing_cycle: str
    payment_type: str
    notes: Optional[str] = None


class LimitIncreaseCreate(BaseModel):
    """Request body for POST /v1/cards/{card_id}/limit-increases"""

    request_date: date
    action_date: Optional[date] = None
    frequency: int = Field(..., gt=0, description="Months until the next eligible request")
    amount: int = Field(0, ge=0)
    type: Literal["permanent", "temporary"] = "permanent"
    status: Literal["pending", "approved", "rejected"] = "pending"


class LimitIncreaseResponse(LimitIncreaseCreate):
    id: str
    card_id: str


class SubscriptionCreate(BaseModel):
    """Request body for POST /v1/subscriptions"""

    card_id: str
    name: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0, description="Amount in `currency`")
    currency: str = "IDR"
    exchange_rate: Optional[float] = Field(None, gt=0)
    billing_cycle: Literal["monthly", "yearly"] = "monthly"
    billing_day: int = Field(..., ge=1, le=31)
    category: str = "Langganan"
    today: date

    @model_validator(mode="after")
    def require_rate_for_foreign_currency(self):
        _require_rate_for_foreign_currency(self.currency, self.exchange_rate)
        return self


class SubscriptionUpdate(BaseModel):
    """Request body for PATCH /v1/subscriptions/{subscription_id}; omitted fields stay unchanged"""

    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0, description="New amount in the subscription currency")
    exchange_rate: Optional[float] = Field(None, gt=0)
    billing_cycle: Optional[Literal["monthly", "yearly"]] = None
    billing_day: Optional[int] = Field(None, ge=1, le=31)
    is_active: Optional[bool] = None
    today: date


class SubscriptionResponse(BaseModel):
    id: str
    card_id: str
    name: str
    amount: int
    billing_cycle: str
    billing_day: int
    next_billing_date: date
    is_active: bool
    currency: str


class ChargeSchema(BaseModel):
    """Card transaction"""

    id: str
    card_id: str
    amount: int
    date: date
    description: str
    category: str
    installment_id: Optional[str] = None
    installment_number: Optional[int] = None
    installment_total: Optional[int] = None


class SubscriptionBillResponse(BaseModel):
    """Response for POST /v1/subscriptions/bill"""

    charges: List[ChargeSchema]
    subscriptions: List[SubscriptionResponse]


class InstallmentCreate(BaseModel):
    """Request body for POST /v1/installments"""

    card_id: str
    description: str = ""
    total_amount: float = Field(..., gt=0, description="Purchase total in `currency`")
    total_months: int = Field(..., ge=1)
    is_zero_percent: bool = True
    custom_monthly_amount: Optional[int] = Field(None, gt=0)
    paid_months: int = Field(0, ge=0)
    admin_fee: int = Field(0, ge=0)
    currency: str = "IDR"
    exchange_rate: Optional[float] = Field(None, gt=0)
    start_date: date
    billing_day: Optional[int] = Field(None, ge=1, le=31)
    today: Optional[date] = None

    @model_validator(mode="after")
    def require_rate_for_foreign_currency(self):
        _require_rate_for_foreign_currency(self.currency, self.exchange_rate)
        return self


class InstallmentResponse(BaseModel):
    """Response for POST /v1/installments"""

    plan_id: str
    card_id: str
    total_months: int
    start_month: int
    monthly_amount: int
    admin_fee: int
    installments: List[ChargeSchema]
    admin_fee_charge: Optional[ChargeSchema] = None
    total_scheduled: int


class ObligationSchema(BaseModel):
    """Single upcoming obligation"""

    id: str
    instrument_id: str
    kind: str
    date: date
    days_remaining: int
    amount: Optional[int] = None
    group_usage: Optional[int] = None


class RemindersResponse(BaseModel):
    """Response for GET /v1/reminders"""

    today: date
    lookahead_days: int
    reminders: List[ObligationSchema]


class SharedLimitSchema(BaseModel):
    bank_id: str
    shared_limit: int
    total_usage: int
    available: int
    usage_ratio: float
    card_ids: List[str]


class SharedLimitsResponse(BaseModel):
    groups: List[SharedLimitSchema]


class SummaryResponse(BaseModel):
    """Response for GET /v1/summary"""

    total_limit: int
    total_usage: int
    available: int
    active_cards: int
