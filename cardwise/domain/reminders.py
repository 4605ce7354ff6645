"""Reminder aggregation - upcoming obligations within a lookahead window"""

from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from cardwise.domain.exceptions import InvalidFrequencyError
from cardwise.domain.models import (
    CreditInstrument,
    LimitIncreaseRecord,
    ObligationEvent,
    ObligationKind,
    SharedLimitGroup,
    Subscription,
)
from cardwise.domain.occurrence import next_occurrence, validate_month
from cardwise.domain.shared_limits import active_instruments, aggregate_shared_limits
from cardwise.utils.date_utils import add_months, days_between, to_date

DEFAULT_LOOKAHEAD_DAYS = 7

# Same-date events are ordered by kind priority
KIND_PRIORITY: Dict[ObligationKind, int] = {
    ObligationKind.PAYMENT: 0,
    ObligationKind.LIMIT_INCREASE: 1,
    ObligationKind.ANNUAL_FEE: 2,
    ObligationKind.SUBSCRIPTION_RENEWAL: 3,
}


def payment_due_date(card: CreditInstrument, today: date) -> date:
    """Next due date of a card, treating due-today as not yet passed"""
    return next_occurrence(card.due_day, today, inclusive=True)


def annual_fee_date(card: CreditInstrument, today: date) -> Optional[date]:
    """
    First day of the expiry month, rolled to next year once passed.

    Raises:
        InvalidMonthError: expiry_month is set but not in 1-12
    """
    if card.expiry_month is None:
        return None

    month = validate_month(card.expiry_month)
    fee_date = date(today.year, month, 1)
    if fee_date < today:
        fee_date = date(today.year + 1, month, 1)
    return fee_date


def limit_increase_date(card: CreditInstrument, records: List[LimitIncreaseRecord]) -> Optional[date]:
    """
    Date the card becomes eligible for its next limit increase request.

    Uses the most recent record (by action_date, falling back to request_date)
    advanced by its frequency in calendar months. Without history, the card's
    stored next_limit_increase_date applies.

    Raises:
        InvalidFrequencyError: latest record has a non-positive frequency
    """
    if not records:
        return card.next_limit_increase_date

    latest = max(records, key=lambda record: record.effective_date)
    if latest.frequency <= 0:
        raise InvalidFrequencyError(
            f"Limit increase frequency must be a positive number of months, got {latest.frequency}"
        )
    return add_months(latest.effective_date, latest.frequency)


def group_records_by_card(records: Iterable[LimitIncreaseRecord]) -> Dict[str, List[LimitIncreaseRecord]]:
    grouped: Dict[str, List[LimitIncreaseRecord]] = {}
    for record in records:
        grouped.setdefault(record.card_id, []).append(record)
    return grouped


def _sort_key(event: ObligationEvent):
    return (event.date, KIND_PRIORITY[event.kind], event.instrument_id, event.id)


def collect_upcoming(
    instruments: Iterable[CreditInstrument],
    subscriptions: Iterable[Subscription],
    limit_increase_records: Iterable[LimitIncreaseRecord],
    today: date | datetime,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> List[ObligationEvent]:
    """
    Unified, date-ordered list of obligations due within the lookahead window.

    Window: today <= date <= today + lookahead_days (both ends inclusive).
    Archived cards, and subscriptions billed to them, never produce events.

    Kinds:
    - payment: unpaid cards, next due day (due today counts), amount = current usage
    - annual_fee: cards with the reminder enabled, 1st of the expiry month
    - limit_increase: cards with the reminder enabled, next eligibility date
    - subscription_renewal: active subscriptions, stored next_billing_date

    Ordering: ascending date, then payment, limit_increase, annual_fee,
    subscription_renewal, then instrument id.
    """
    reference = to_date(today)
    window_end = reference + timedelta(days=lookahead_days)

    all_cards = list(instruments)
    cards = active_instruments(all_cards)
    archived_ids = {card.id for card in all_cards if card.is_archived}
    shared_groups: Dict[str, SharedLimitGroup] = aggregate_shared_limits(cards)
    records_by_card = group_records_by_card(limit_increase_records)

    events: List[ObligationEvent] = []

    def emit(event_id: str, instrument_id: str, kind: ObligationKind, when: Optional[date], **extra) -> None:
        if when is None or not reference <= when <= window_end:
            return
        events.append(
            ObligationEvent(
                id=event_id,
                instrument_id=instrument_id,
                kind=kind,
                date=when,
                days_remaining=days_between(reference, when),
                **extra,
            )
        )

    for card in cards:
        if not card.is_paid:
            group = shared_groups.get(card.bank_id) if card.use_shared_limit else None
            emit(
                f"payment-{card.id}",
                card.id,
                ObligationKind.PAYMENT,
                payment_due_date(card, reference),
                amount=card.current_usage,
                group_usage=group.total_usage if group else None,
            )

        if card.annual_fee_reminder_enabled:
            emit(
                f"fee-{card.id}",
                card.id,
                ObligationKind.ANNUAL_FEE,
                annual_fee_date(card, reference),
                amount=card.annual_fee_amount,
            )

        if card.limit_increase_reminder_enabled:
            emit(
                f"limit-{card.id}",
                card.id,
                ObligationKind.LIMIT_INCREASE,
                limit_increase_date(card, records_by_card.get(card.id, [])),
            )

    for sub in subscriptions:
        if not sub.is_active or sub.card_id in archived_ids:
            continue
        emit(
            f"subscription-{sub.id}",
            sub.card_id,
            ObligationKind.SUBSCRIPTION_RENEWAL,
            to_date(sub.next_billing_date),
            amount=sub.amount,
        )

    return sorted(events, key=_sort_key)
