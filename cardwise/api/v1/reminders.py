"""GET /v1/reminders - upcoming obligations for the dashboard"""

import time
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from cardwise.api.dependencies import get_request_id, reject_domain_error
from cardwise.api.v1.schemas import ObligationSchema, RemindersResponse
from cardwise.config import settings
from cardwise.domain.exceptions import DomainException
from cardwise.domain.reminders import collect_upcoming
from cardwise.infrastructure.database.session import get_db
from cardwise.infrastructure.database.repositories import (
    CardRepository,
    LimitIncreaseRepository,
    SubscriptionRepository,
)
from cardwise.infrastructure.observability.logging import log_reminders
from cardwise.infrastructure.observability.metrics import record_obligations

router = APIRouter()


@router.get("/reminders", response_model=RemindersResponse)
def get_reminders(
    request: Request,
    today: date = Query(..., description="Reference day"),
    lookahead_days: Optional[int] = Query(None, ge=0, le=366),
    db: Session = Depends(get_db),
):
    """
    Payments, annual fees, limit increase windows and subscription renewals
    falling within the lookahead window, ordered by date.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    window = settings.reminder_lookahead_days if lookahead_days is None else lookahead_days

    try:
        events = collect_upcoming(
            CardRepository(db).load_all(),
            SubscriptionRepository(db).load_all(),
            LimitIncreaseRepository(db).load_all(),
            today,
            lookahead_days=window,
        )
    except DomainException as e:
        raise reject_domain_error(e, request_id, db)

    duration_ms = (time.time() - start_time) * 1000
    record_obligations(events)
    log_reminders(request_id, today.isoformat(), events, duration_ms)

    return RemindersResponse(
        today=today,
        lookahead_days=window,
        reminders=[
            ObligationSchema(
                id=event.id,
                instrument_id=event.instrument_id,
                kind=event.kind.value,
                date=event.date,
                days_remaining=event.days_remaining,
                amount=event.amount,
                group_usage=event.group_usage,
            )
            for event in events
        ],
    )
