"""Shared limit groups and dashboard totals"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cardwise.api.v1.schemas import SharedLimitSchema, SharedLimitsResponse, SummaryResponse
from cardwise.domain.shared_limits import active_instruments, aggregate_shared_limits, portfolio_totals
from cardwise.infrastructure.database.session import get_db
from cardwise.infrastructure.database.repositories import CardRepository

router = APIRouter()


@router.get("/shared-limits", response_model=SharedLimitsResponse)
def get_shared_limits(db: Session = Depends(get_db)):
    """One combined limit/usage record per bank with limit sharing enabled"""
    groups = aggregate_shared_limits(CardRepository(db).load_all())

    return SharedLimitsResponse(
        groups=[
            SharedLimitSchema(
                bank_id=group.bank_id,
                shared_limit=group.shared_limit,
                total_usage=group.total_usage,
                available=group.available,
                usage_ratio=round(group.usage_ratio, 4),
                card_ids=[card.id for card in group.members],
            )
            for group in groups.values()
        ]
    )


@router.get("/summary", response_model=SummaryResponse)
def get_summary(db: Session = Depends(get_db)):
    """Total limit (shared bank limits counted once), usage and available credit"""
    cards = CardRepository(db).load_all()
    totals = portfolio_totals(cards)

    return SummaryResponse(
        total_limit=totals.total_limit,
        total_usage=totals.total_usage,
        available=totals.available,
        active_cards=len(active_instruments(cards)),
    )
