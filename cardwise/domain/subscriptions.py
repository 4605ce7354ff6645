"""Recurring subscription billing"""

from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, List, Set

from cardwise.domain.models import BillingCycle, Charge, Subscription, SubscriptionRun
from cardwise.domain.occurrence import next_occurrence, validate_day_of_month
from cardwise.utils.date_utils import add_months, add_years, to_date


def initial_next_billing_date(billing_day: int, today: date | datetime) -> date:
    """First billing date of a new subscription (billing today means next month)"""
    return next_occurrence(billing_day, today, inclusive=False)


def advance_billing_date(subscription: Subscription) -> date:
    """Next billing date after the stored one, anchored on billing_day"""
    anchor_day = validate_day_of_month(subscription.billing_day)
    current = subscription.next_billing_date

    if subscription.billing_cycle == BillingCycle.YEARLY:
        return add_years(current, 1, anchor_day=anchor_day)
    return add_months(current, 1, anchor_day=anchor_day)


def bill_due_subscriptions(
    subscriptions: Iterable[Subscription],
    today: date | datetime,
    archived_card_ids: Iterable[str] = (),
) -> SubscriptionRun:
    """
    Materialize charges for every active subscription that has come due.

    A subscription is due when next_billing_date <= today. Each missed
    occurrence produces one charge dated at that occurrence, and the
    subscription is advanced until next_billing_date is strictly after today.
    Subscriptions billed to archived cards are left as they are, matching the
    reminders which hide them.

    Inputs are left untouched; the run carries updated copies of every
    subscription so the caller can replace the whole collection at once.
    """
    reference = to_date(today)
    skipped: Set[str] = set(archived_card_ids)
    charges: List[Charge] = []
    updated: List[Subscription] = []

    for sub in subscriptions:
        if not sub.is_active or sub.card_id in skipped or sub.next_billing_date > reference:
            updated.append(sub)
            continue

        current = sub
        while current.next_billing_date <= reference:
            billed_on = current.next_billing_date
            charges.append(
                Charge(
                    id=f"{sub.id}-{billed_on.isoformat()}",
                    card_id=sub.card_id,
                    amount=sub.amount,
                    date=billed_on,
                    description=f"Tagihan Langganan: {sub.name}",
                    category=sub.category,
                    currency=sub.currency,
                    original_amount=sub.original_amount,
                    exchange_rate=sub.exchange_rate,
                )
            )
            current = replace(current, next_billing_date=advance_billing_date(current))

        updated.append(current)

    return SubscriptionRun(charges=charges, subscriptions=updated)


def update_subscription(subscription: Subscription, today: date | datetime, **changes) -> Subscription:
    """
    Copy of a subscription with user edits applied.

    The next billing date is re-resolved from today when the billing day
    changes or a paused subscription is resumed, so a resume never back-bills
    the paused months.
    """
    updated = replace(subscription, **changes)
    resumed = updated.is_active and not subscription.is_active

    if updated.billing_day != subscription.billing_day or resumed:
        updated = replace(updated, next_billing_date=initial_next_billing_date(updated.billing_day, today))
    return updated
