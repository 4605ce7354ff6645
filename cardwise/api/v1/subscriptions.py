"""Subscription endpoints - management and billing of due subscriptions"""

import uuid
from dataclasses import asdict
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from cardwise.api.dependencies import get_request_id, reject_domain_error
from cardwise.api.v1.schemas import (
    ChargeSchema,
    SubscriptionBillResponse,
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionUpdate,
)
from cardwise.domain.billing_cycle import recalculate_usage
from cardwise.domain.exceptions import CardNotFoundError, DomainException
from cardwise.domain.installments import to_base_amount
from cardwise.domain.models import BillingCycle, Subscription
from cardwise.config import settings
from cardwise.domain.subscriptions import (
    bill_due_subscriptions,
    initial_next_billing_date,
    update_subscription,
)
from cardwise.infrastructure.database.session import get_db
from cardwise.infrastructure.database.repositories import (
    CardRepository,
    ChargeRepository,
    SubscriptionRepository,
)
from cardwise.infrastructure.observability.logging import log_subscription_run
from cardwise.infrastructure.observability.metrics import record_subscription_run

router = APIRouter()


def _subscription_response(sub: Subscription) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=sub.id,
        card_id=sub.card_id,
        name=sub.name,
        amount=sub.amount,
        billing_cycle=sub.billing_cycle.value,
        billing_day=sub.billing_day,
        next_billing_date=sub.next_billing_date,
        is_active=sub.is_active,
        currency=sub.currency,
    )


@router.post("/subscriptions", response_model=SubscriptionResponse, status_code=201)
def create_subscription(body: SubscriptionCreate, request: Request, db: Session = Depends(get_db)):
    """
    Register a subscription.

    The amount is stored in the base currency; the first billing date is the
    next billing day strictly after `today`.
    """
    request_id = get_request_id(request)

    try:
        if CardRepository(db).get(body.card_id) is None:
            raise CardNotFoundError(f"Card {body.card_id} not found")

        rate = body.exchange_rate or 1.0
        subscription = Subscription(
            id=str(uuid.uuid4()),
            card_id=body.card_id,
            name=body.name,
            category=body.category,
            amount=to_base_amount(body.amount, rate),
            billing_cycle=BillingCycle(body.billing_cycle),
            billing_day=body.billing_day,
            next_billing_date=initial_next_billing_date(body.billing_day, body.today),
            currency=body.currency,
            original_amount=body.amount if body.exchange_rate else None,
            exchange_rate=body.exchange_rate,
        )
    except DomainException as e:
        raise reject_domain_error(e, request_id, db)

    SubscriptionRepository(db).add(subscription)
    db.commit()
    return _subscription_response(subscription)


@router.get("/subscriptions", response_model=List[SubscriptionResponse])
def list_subscriptions(
    card_id: Optional[str] = Query(None, description="Only subscriptions billed to this card"),
    db: Session = Depends(get_db),
):
    subscriptions = SubscriptionRepository(db).load_all()
    return [_subscription_response(sub) for sub in subscriptions if card_id is None or sub.card_id == card_id]


@router.patch("/subscriptions/{subscription_id}", response_model=SubscriptionResponse)
def edit_subscription(
    subscription_id: str,
    body: SubscriptionUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Change a subscription; setting is_active=false pauses billing and reminders.

    A new amount is given in the subscription currency and converted with the
    supplied or stored exchange rate. Changing the billing day, or resuming a
    paused subscription, moves the next billing date to the first billing day
    after `today`.
    """
    request_id = get_request_id(request)
    sub_repo = SubscriptionRepository(db)

    subscription = sub_repo.get(subscription_id)
    if subscription is None:
        raise HTTPException(status_code=404, detail="Subscription not found")

    changes = body.model_dump(exclude_unset=True, exclude={"today", "amount", "exchange_rate"})
    if "billing_cycle" in changes:
        changes["billing_cycle"] = BillingCycle(changes["billing_cycle"])

    try:
        if body.amount is not None:
            rate = body.exchange_rate or subscription.exchange_rate or 1.0
            changes["amount"] = to_base_amount(body.amount, rate)
            if subscription.currency != settings.base_currency:
                changes["original_amount"] = body.amount
                changes["exchange_rate"] = rate

        updated = update_subscription(subscription, body.today, **changes)
    except DomainException as e:
        raise reject_domain_error(e, request_id, db)

    sub_repo.save(updated)
    db.commit()
    return _subscription_response(updated)


@router.delete("/subscriptions/{subscription_id}", status_code=204)
def delete_subscription(subscription_id: str, db: Session = Depends(get_db)):
    """Remove a subscription; charges already billed stay on the card"""
    if not SubscriptionRepository(db).delete(subscription_id):
        raise HTTPException(status_code=404, detail="Subscription not found")
    db.commit()
    return Response(status_code=204)


@router.post("/subscriptions/bill", response_model=SubscriptionBillResponse)
def bill_subscriptions(
    request: Request,
    today: date = Query(..., description="Reference day"),
    db: Session = Depends(get_db),
):
    """
    Charge every due subscription and advance its next billing date.

    Charges, advanced subscriptions and recomputed card usage are written in
    one transaction.
    """
    request_id = get_request_id(request)
    sub_repo = SubscriptionRepository(db)
    charge_repo = ChargeRepository(db)
    card_repo = CardRepository(db)

    try:
        archived_ids = [card.id for card in card_repo.load_all() if card.is_archived]
        run = bill_due_subscriptions(sub_repo.load_all(), today, archived_card_ids=archived_ids)

        charge_repo.add_all(run.charges)
        sub_repo.save_all(run.subscriptions)

        billed_cards = {charge.card_id for charge in run.charges}
        if billed_cards:
            cards = [card for card in card_repo.load_all() if card.id in billed_cards]
            card_repo.save_all(recalculate_usage(cards, charge_repo.load_all(), today))

        db.commit()
    except DomainException as e:
        raise reject_domain_error(e, request_id, db)

    record_subscription_run(run)
    log_subscription_run(request_id, today.isoformat(), run)

    return SubscriptionBillResponse(
        charges=[ChargeSchema(**asdict(charge)) for charge in run.charges],
        subscriptions=[_subscription_response(sub) for sub in run.subscriptions],
    )
