"""Installment plan generation for card purchases"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List

from cardwise.domain.exceptions import (
    InvalidExchangeRateError,
    InvalidTenorError,
    MissingMonthlyAmountError,
    TenorExhaustedError,
)
from cardwise.domain.models import (
    Charge,
    InstallmentInstance,
    InstallmentPlan,
    InstallmentRequest,
    InstallmentSchedule,
    RoundingPolicy,
)
from cardwise.domain.occurrence import next_occurrence, validate_day_of_month
from cardwise.utils.date_utils import add_months

INSTALLMENT_CATEGORY = "Cicilan"
ADMIN_FEE_CATEGORY = "Biaya & Admin"


def admin_fee_charge_id(plan_id: str) -> str:
    return f"{plan_id}-fee"


def to_base_amount(amount: float, exchange_rate: float) -> int:
    """Convert an amount to whole base-currency units (half-up)"""
    if exchange_rate <= 0:
        raise InvalidExchangeRateError(f"Exchange rate must be positive, got {exchange_rate}")

    converted = Decimal(str(amount)) * Decimal(str(exchange_rate))
    return int(converted.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def split_zero_percent(total_base: int, total_months: int, rounding: RoundingPolicy) -> List[int]:
    """
    Per-month amounts for a zero-percent plan over the full tenor.

    CEILING charges ceil(total / months) every month, so the principal is never
    under-recovered (may over-collect by up to months - 1 units).
    LAST_ADJUSTED charges the floor and lets the final month absorb the
    remainder, so the tenor sums exactly to the total.

    Example:
        1_000_000 over 3 months
        CEILING       -> [333334, 333334, 333334]
        LAST_ADJUSTED -> [333333, 333333, 333334]
    """
    if rounding == RoundingPolicy.LAST_ADJUSTED:
        base_amount = total_base // total_months
        remainder = total_base % total_months
        return [base_amount] * (total_months - 1) + [base_amount + remainder]

    monthly = -(-total_base // total_months)
    return [monthly] * total_months


def build_installment_plan(
    request: InstallmentRequest,
    rounding: RoundingPolicy = RoundingPolicy.CEILING,
) -> InstallmentSchedule:
    """
    Expand an installment purchase into its remaining monthly charges.

    Requirements:
    - Tenor must be at least one month and not already fully paid
    - Zero-percent plans split the converted total (see split_zero_percent)
    - Interest-bearing plans use the bank-quoted custom_monthly_amount as-is
    - Only months after paid_months are generated, numbered paid_months+1..total
    - One instance per calendar month, anchored on the billing day
    - Admin fee is a single separate charge on created_on, never amortized

    Args:
        request: Purchase declaration; plan_id is supplied by the caller
        rounding: Zero-percent split policy

    Returns:
        InstallmentSchedule with the plan, its instances and the optional fee charge

    Raises:
        InvalidTenorError: total_months < 1
        TenorExhaustedError: paid_months >= total_months
        MissingMonthlyAmountError: interest-bearing plan without a monthly amount
        InvalidDayOfMonthError: billing_day outside 1-31
    """
    total_months = request.total_months
    paid_months = request.paid_months

    if total_months < 1:
        raise InvalidTenorError(f"Tenor must be at least 1 month, got {total_months}")
    if paid_months < 0:
        raise InvalidTenorError(f"Paid months cannot be negative, got {paid_months}")
    if paid_months >= total_months:
        raise TenorExhaustedError(
            f"All {total_months} installments already paid (paid_months={paid_months})"
        )

    total_base = to_base_amount(request.total_amount, request.exchange_rate)

    if request.is_zero_percent:
        month_amounts = split_zero_percent(total_base, total_months, rounding)
    else:
        if request.custom_monthly_amount is None or request.custom_monthly_amount <= 0:
            raise MissingMonthlyAmountError(
                "Interest-bearing installments require the bank-quoted monthly amount"
            )
        month_amounts = [request.custom_monthly_amount] * total_months

    # First instance falls on start_date, or on the next billing day after it
    if request.billing_day is None:
        anchor_day = request.start_date.day
        first_due = request.start_date
    else:
        anchor_day = validate_day_of_month(request.billing_day)
        first_due = next_occurrence(anchor_day, request.start_date, inclusive=False)

    created_on = request.created_on or request.start_date

    plan = InstallmentPlan(
        id=request.plan_id,
        card_id=request.card_id,
        original_amount=request.total_amount,
        total_months=total_months,
        monthly_amount=month_amounts[0],
        is_zero_percent=request.is_zero_percent,
        start_month=paid_months + 1,
        currency=request.currency,
        exchange_rate=request.exchange_rate,
        admin_fee=request.admin_fee,
        description=request.description,
        start_date=request.start_date,
        created_on=created_on,
    )

    instances = []
    for offset, number in enumerate(range(paid_months + 1, total_months + 1)):
        instances.append(
            InstallmentInstance(
                id=f"{request.plan_id}-{number}",
                plan_id=request.plan_id,
                card_id=request.card_id,
                number=number,
                total=total_months,
                due_date=add_months(first_due, offset, anchor_day=anchor_day),
                amount=month_amounts[number - 1],
            )
        )

    admin_fee_charge = None
    if request.admin_fee > 0:
        admin_fee_charge = Charge(
            id=admin_fee_charge_id(request.plan_id),
            card_id=request.card_id,
            amount=request.admin_fee,
            date=created_on,
            description=f"Biaya Admin Cicilan: {request.description}",
            category=ADMIN_FEE_CATEGORY,
        )

    return InstallmentSchedule(plan=plan, instances=instances, admin_fee_charge=admin_fee_charge)


def instance_to_charge(instance: InstallmentInstance, plan: InstallmentPlan) -> Charge:
    """Ordinary transaction record for an installment instance, tagged with its plan"""
    return Charge(
        id=instance.id,
        card_id=instance.card_id,
        amount=instance.amount,
        date=instance.due_date,
        description=f"{plan.description} (Cicilan {instance.number}/{instance.total})",
        category=INSTALLMENT_CATEGORY,
        installment_id=plan.id,
        installment_number=instance.number,
        installment_total=instance.total,
        currency=plan.currency,
        original_amount=plan.original_amount,
        exchange_rate=plan.exchange_rate,
    )
