"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class BillingCycle(str, Enum):
    """How often a subscription bills"""

    MONTHLY = "monthly"
    YEARLY = "yearly"


class ObligationKind(str, Enum):
    """Kinds of upcoming obligations surfaced to the dashboard"""

    PAYMENT = "payment"
    ANNUAL_FEE = "annual_fee"
    LIMIT_INCREASE = "limit_increase"
    SUBSCRIPTION_RENEWAL = "subscription_renewal"


class RoundingPolicy(str, Enum):
    """How zero-percent installments split the principal"""

    CEILING = "ceiling"  # ceil(total / months) every month
    LAST_ADJUSTED = "last_adjusted"  # floor every month, final month absorbs remainder


@dataclass
class CreditInstrument:
    """Credit card record as entered by the user"""

    id: str
    bank_id: str
    credit_limit: int
    current_usage: int
    due_day: int  # 1-31
    alias: str = ""
    billing_cycle_day: int = 1  # 1-31, statement closing day
    use_shared_limit: bool = False
    is_paid: bool = False
    paid_for_cycle: Optional[str] = None  # "YYYY-MM" of the cycle the payment covered
    is_archived: bool = False
    annual_fee_reminder_enabled: bool = False
    expiry_month: Optional[int] = None  # 1-12
    annual_fee_amount: Optional[int] = None
    limit_increase_reminder_enabled: bool = False
    next_limit_increase_date: Optional[date] = None


@dataclass
class LimitIncreaseRecord:
    """Append-only history entry of a limit increase request"""

    id: str
    card_id: str
    request_date: date
    frequency: int  # months until next eligible request
    action_date: Optional[date] = None
    amount: int = 0
    type: str = "permanent"  # "permanent" or "temporary"
    status: str = "pending"  # "pending", "approved" or "rejected"

    @property
    def effective_date(self) -> date:
        return self.action_date or self.request_date


@dataclass
class PaymentRecord:
    """Payment made against a card, kept in the card's payment history"""

    id: str
    card_id: str
    paid_on: date
    amount: int
    billing_cycle: str  # "YYYY-MM" of the cycle the payment fell in
    payment_type: str = "full"  # "full" or "minimal"
    notes: Optional[str] = None


@dataclass
class Subscription:
    """Recurring charge billed to a card"""

    id: str
    card_id: str
    amount: int
    billing_cycle: BillingCycle
    billing_day: int  # 1-31
    next_billing_date: date
    is_active: bool = True
    name: str = ""
    category: str = "Langganan"
    currency: str = "IDR"
    original_amount: Optional[float] = None
    exchange_rate: Optional[float] = None


@dataclass
class Charge:
    """Ordinary card transaction (expense) produced or consumed by the core"""

    id: str
    card_id: str
    amount: int
    date: date
    description: str = ""
    category: str = ""
    installment_id: Optional[str] = None
    installment_number: Optional[int] = None
    installment_total: Optional[int] = None
    currency: str = "IDR"
    original_amount: Optional[float] = None
    exchange_rate: Optional[float] = None


@dataclass
class InstallmentRequest:
    """User declaration of an installment purchase"""

    plan_id: str
    card_id: str
    total_amount: float  # in `currency`
    total_months: int
    start_date: date
    is_zero_percent: bool = True
    custom_monthly_amount: Optional[int] = None
    paid_months: int = 0
    admin_fee: int = 0
    currency: str = "IDR"
    exchange_rate: float = 1.0
    description: str = ""
    billing_day: Optional[int] = None
    created_on: Optional[date] = None


@dataclass
class InstallmentPlan:
    """Installment plan as declared at creation time"""

    id: str
    card_id: str
    original_amount: float
    total_months: int
    monthly_amount: int
    is_zero_percent: bool
    start_month: int  # 1-based index of the first unpaid installment
    currency: str
    exchange_rate: float
    admin_fee: int
    description: str
    start_date: date
    created_on: date


@dataclass
class InstallmentInstance:
    """Single monthly charge generated from a plan"""

    id: str
    plan_id: str
    card_id: str
    number: int  # 1-based position within the full tenor
    total: int
    due_date: date
    amount: int


@dataclass
class InstallmentSchedule:
    """Output of the installment scheduler, ready to be persisted"""

    plan: InstallmentPlan
    instances: List[InstallmentInstance]
    admin_fee_charge: Optional[Charge] = None

    @property
    def total_scheduled(self) -> int:
        fee = self.admin_fee_charge.amount if self.admin_fee_charge else 0
        return sum(inst.amount for inst in self.instances) + fee


@dataclass
class SharedLimitGroup:
    """Combined limit and usage of cards sharing one bank-issued limit"""

    bank_id: str
    shared_limit: int
    total_usage: int
    members: List[CreditInstrument] = field(default_factory=list)

    @property
    def available(self) -> int:
        return self.shared_limit - self.total_usage

    @property
    def usage_ratio(self) -> float:
        return self.total_usage / self.shared_limit if self.shared_limit > 0 else 0.0


@dataclass
class PortfolioTotals:
    """Dashboard totals across all active cards"""

    total_limit: int
    total_usage: int

    @property
    def available(self) -> int:
        return self.total_limit - self.total_usage


@dataclass
class ObligationEvent:
    """Upcoming obligation shown on the dashboard"""

    id: str
    instrument_id: str
    kind: ObligationKind
    date: date
    days_remaining: int
    amount: Optional[int] = None
    group_usage: Optional[int] = None  # combined usage when the card shares a bank limit


@dataclass
class BillingCycleRange:
    """Statement cycle window for a billing day"""

    start: date
    end: date
    next_billing: date


@dataclass
class SubscriptionRun:
    """Result of billing due subscriptions"""

    charges: List[Charge]
    subscriptions: List[Subscription]
