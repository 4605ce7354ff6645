"""Statement cycle windows, cycle-scoped card usage and payments"""

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from cardwise.domain.models import BillingCycleRange, Charge, CreditInstrument, PaymentRecord
from cardwise.domain.occurrence import validate_day_of_month
from cardwise.utils.date_utils import add_months, clamp_day, month_key, to_date

PAYMENT_HISTORY_MONTHS = 24


def billing_cycle_range(billing_cycle_day: int, today: date | datetime) -> BillingCycleRange:
    """
    Statement cycle containing today.

    The cycle starts on the (clamped) billing day of this month, or of the
    previous month when today falls before it. It ends the day before the
    next billing day.

    Example (billing day 10):
        today Dec 15 -> Dec 10 .. Jan 9
        today Dec 5  -> Nov 10 .. Dec 9
    """
    validate_day_of_month(billing_cycle_day)
    reference = to_date(today)

    start = clamp_day(reference.year, reference.month, billing_cycle_day)
    if reference < start:
        start = add_months(start, -1, anchor_day=billing_cycle_day)

    next_billing = add_months(start, 1, anchor_day=billing_cycle_day)
    return BillingCycleRange(start=start, end=next_billing - timedelta(days=1), next_billing=next_billing)


def current_billing_cycle(billing_cycle_day: int, today: date | datetime) -> str:
    """YYYY-MM identifier of the cycle containing today (month the cycle started in)"""
    return month_key(billing_cycle_range(billing_cycle_day, today).start)


def cycle_usage(instrument: CreditInstrument, charges: Iterable[Charge], today: date | datetime) -> int:
    """Sum of the card's charges from the cycle start through today (future installments excluded)"""
    reference = to_date(today)
    window = billing_cycle_range(instrument.billing_cycle_day, reference)

    return sum(
        charge.amount
        for charge in charges
        if charge.card_id == instrument.id and window.start <= charge.date <= reference
    )


def recalculate_usage(
    instruments: Iterable[CreditInstrument],
    charges: Iterable[Charge],
    today: date | datetime,
) -> List[CreditInstrument]:
    """Copies of every card with current_usage recomputed for its current cycle"""
    charge_list = list(charges)
    return [
        replace(card, current_usage=cycle_usage(card, charge_list, today))
        for card in instruments
    ]


def reset_paid_status(instruments: Iterable[CreditInstrument], today: date | datetime) -> List[CreditInstrument]:
    """Unmark paid cards once a new billing cycle has started since the payment"""
    result = []
    for card in instruments:
        if card.is_paid and card.paid_for_cycle != current_billing_cycle(card.billing_cycle_day, today):
            card = replace(card, is_paid=False)
        result.append(card)
    return result


def apply_payment(
    instrument: CreditInstrument,
    paid_on: date | datetime,
    amount: Optional[int] = None,
    full: bool = True,
) -> CreditInstrument:
    """
    Card state after a payment.

    A full payment, or one covering the whole usage, clears usage and marks
    the card paid for the current cycle; a partial payment only reduces usage.
    """
    paid = instrument.current_usage if amount is None else amount
    if full or paid >= instrument.current_usage:
        new_usage = 0
    else:
        new_usage = max(0, instrument.current_usage - paid)

    if new_usage > 0:
        return replace(instrument, current_usage=new_usage)

    return replace(
        instrument,
        current_usage=0,
        is_paid=True,
        paid_for_cycle=current_billing_cycle(instrument.billing_cycle_day, paid_on),
    )


def build_payment_record(
    instrument: CreditInstrument,
    record_id: str,
    paid_on: date | datetime,
    amount: Optional[int] = None,
    full: bool = True,
    notes: Optional[str] = None,
) -> PaymentRecord:
    """History entry for a payment; without an amount the whole current usage was paid"""
    reference = to_date(paid_on)
    return PaymentRecord(
        id=record_id,
        card_id=instrument.id,
        paid_on=reference,
        amount=instrument.current_usage if amount is None else amount,
        billing_cycle=current_billing_cycle(instrument.billing_cycle_day, reference),
        payment_type="full" if full else "minimal",
        notes=notes,
    )


def payment_history(records: Iterable[PaymentRecord]) -> List[PaymentRecord]:
    """Newest payment first; same-day payments keep their insertion order"""
    return sorted(records, key=lambda record: record.paid_on, reverse=True)


def retain_payment_history(records: Sequence[PaymentRecord], as_of: date | datetime) -> List[PaymentRecord]:
    """
    Payment history trimmed to the last PAYMENT_HISTORY_MONTHS months before as_of.

    A payment dated exactly on the cutoff is kept.
    """
    cutoff = add_months(to_date(as_of), -PAYMENT_HISTORY_MONTHS)
    return payment_history(record for record in records if record.paid_on >= cutoff)
