"""Card endpoints - card entry, payments and their history, cycle refresh, limit increase history"""

import uuid
from dataclasses import asdict
from datetime import date
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from cardwise.api.dependencies import get_request_id, reject_domain_error
from cardwise.api.v1.schemas import (
    CardCreate,
    CardResponse,
    LimitIncreaseCreate,
    LimitIncreaseResponse,
    PaymentCreate,
    PaymentRecordSchema,
)
from cardwise.domain.billing_cycle import (
    apply_payment,
    build_payment_record,
    recalculate_usage,
    reset_paid_status,
    retain_payment_history,
)
from cardwise.domain.exceptions import CardNotFoundError, DomainException
from cardwise.domain.models import CreditInstrument, LimitIncreaseRecord
from cardwise.infrastructure.database.session import get_db
from cardwise.infrastructure.database.repositories import (
    CardRepository,
    ChargeRepository,
    LimitIncreaseRepository,
    PaymentRecordRepository,
)

router = APIRouter()


def _card_response(card: CreditInstrument) -> CardResponse:
    return CardResponse(**asdict(card))


@router.post("/cards", response_model=CardResponse, status_code=201)
def create_card(body: CardCreate, db: Session = Depends(get_db)):
    """Register a new card at the end of the card list"""
    card = CreditInstrument(id=str(uuid.uuid4()), **body.model_dump())
    CardRepository(db).add(card)
    db.commit()
    return _card_response(card)


@router.get("/cards", response_model=List[CardResponse])
def list_cards(
    include_archived: bool = Query(False, description="Include archived cards"),
    db: Session = Depends(get_db),
):
    cards = CardRepository(db).load_all()
    return [_card_response(card) for card in cards if include_archived or not card.is_archived]


@router.post("/cards/refresh", response_model=List[CardResponse])
def refresh_cards(
    request: Request,
    today: date = Query(..., description="Reference day"),
    db: Session = Depends(get_db),
):
    """
    Recompute every card's cycle usage from its charges and reset paid flags
    for cards that entered a new billing cycle since they were paid.
    """
    request_id = get_request_id(request)
    card_repo = CardRepository(db)

    try:
        cards = card_repo.load_all()
        charges = ChargeRepository(db).load_all()
        refreshed = reset_paid_status(recalculate_usage(cards, charges, today), today)
    except DomainException as e:
        raise reject_domain_error(e, request_id, db)

    card_repo.save_all(refreshed)
    db.commit()
    return [_card_response(card) for card in refreshed]


@router.post("/cards/{card_id}/payments", response_model=CardResponse)
def pay_card(card_id: str, body: PaymentCreate, request: Request, db: Session = Depends(get_db)):
    """
    Record a payment against the card's current usage.

    The payment is appended to the card's history, which keeps the last 24
    months counted back from this payment.
    """
    request_id = get_request_id(request)
    card_repo = CardRepository(db)
    payment_repo = PaymentRecordRepository(db)
    full = body.payment_type == "full"

    try:
        card = card_repo.get(card_id)
        if card is None:
            raise CardNotFoundError(f"Card {card_id} not found")
        record = build_payment_record(
            card, str(uuid.uuid4()), body.paid_on, amount=body.amount, full=full, notes=body.notes
        )
        paid = apply_payment(card, body.paid_on, amount=body.amount, full=full)
    except DomainException as e:
        raise reject_domain_error(e, request_id, db)

    history = [record] + payment_repo.load_for_card(card_id)
    payment_repo.save_for_card(card_id, retain_payment_history(history, body.paid_on))
    card_repo.save_all([paid])
    db.commit()
    return _card_response(paid)


@router.get("/cards/{card_id}/payments", response_model=List[PaymentRecordSchema])
def list_payments(card_id: str, db: Session = Depends(get_db)):
    """Payment history of a card, newest first"""
    if CardRepository(db).get(card_id) is None:
        raise HTTPException(status_code=404, detail="Card not found")

    return [PaymentRecordSchema(**asdict(record)) for record in PaymentRecordRepository(db).load_for_card(card_id)]


@router.post("/cards/{card_id}/archive", response_model=CardResponse)
def archive_card(card_id: str, db: Session = Depends(get_db)):
    """Archive a card; archived cards drop out of every aggregation"""
    card_repo = CardRepository(db)
    card = card_repo.get(card_id)
    if card is None:
        raise HTTPException(status_code=404, detail="Card not found")

    card.is_archived = True
    card_repo.save_all([card])
    db.commit()
    return _card_response(card)


@router.post(
    "/cards/{card_id}/limit-increases",
    response_model=LimitIncreaseResponse,
    status_code=201,
)
def add_limit_increase(card_id: str, body: LimitIncreaseCreate, db: Session = Depends(get_db)):
    """Append a limit increase request to the card's history"""
    if CardRepository(db).get(card_id) is None:
        raise HTTPException(status_code=404, detail="Card not found")

    record = LimitIncreaseRecord(id=str(uuid.uuid4()), card_id=card_id, **body.model_dump())
    LimitIncreaseRepository(db).add(record)
    db.commit()
    return LimitIncreaseResponse(**asdict(record))


@router.get("/cards/{card_id}/limit-increases", response_model=List[LimitIncreaseResponse])
def list_limit_increases(card_id: str, db: Session = Depends(get_db)):
    """Limit increase history of a card, most recent request first"""
    if CardRepository(db).get(card_id) is None:
        raise HTTPException(status_code=404, detail="Card not found")

    return [LimitIncreaseResponse(**asdict(record)) for record in LimitIncreaseRepository(db).load_for_card(card_id)]
