"""Installment endpoints - plan creation and lookup"""

import uuid
from dataclasses import asdict
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from cardwise.api.dependencies import get_request_id, reject_domain_error
from cardwise.api.v1.schemas import ChargeSchema, InstallmentCreate, InstallmentResponse
from cardwise.config import settings
from cardwise.domain.billing_cycle import recalculate_usage
from cardwise.domain.exceptions import CardNotFoundError, DomainException
from cardwise.domain.installments import admin_fee_charge_id, build_installment_plan, instance_to_charge
from cardwise.domain.models import InstallmentRequest
from cardwise.infrastructure.database.session import get_db
from cardwise.infrastructure.database.repositories import (
    CardRepository,
    ChargeRepository,
    InstallmentPlanRepository,
)
from cardwise.infrastructure.observability.logging import log_installment_plan
from cardwise.infrastructure.observability.metrics import record_installment_plan

router = APIRouter()


@router.post("/installments", response_model=InstallmentResponse, status_code=201)
def create_installment_plan(body: InstallmentCreate, request: Request, db: Session = Depends(get_db)):
    """
    Create an installment plan.

    Flow:
    1. Build the plan and its remaining monthly instances
    2. Persist plan, instances (as card charges) and admin fee in one transaction
    3. Recompute the card's cycle usage (only charges already due count)
    """
    request_id = get_request_id(request)
    card_repo = CardRepository(db)

    try:
        card = card_repo.get(body.card_id)
        if card is None:
            raise CardNotFoundError(f"Card {body.card_id} not found")

        fields = body.model_dump(exclude={"today", "exchange_rate"})
        schedule = build_installment_plan(
            InstallmentRequest(
                plan_id=str(uuid.uuid4()),
                created_on=body.today,
                exchange_rate=body.exchange_rate or 1.0,
                **fields,
            ),
            rounding=settings.installment_rounding,
        )

        InstallmentPlanRepository(db).create_schedule(schedule)

        today = body.today or body.start_date
        charges = ChargeRepository(db).load_all(card_id=card.id)
        card_repo.save_all(recalculate_usage([card], charges, today))

        db.commit()
    except DomainException as e:
        raise reject_domain_error(e, request_id, db)

    record_installment_plan(schedule)
    log_installment_plan(request_id, schedule)

    plan = schedule.plan
    return InstallmentResponse(
        plan_id=plan.id,
        card_id=plan.card_id,
        total_months=plan.total_months,
        start_month=plan.start_month,
        monthly_amount=plan.monthly_amount,
        admin_fee=plan.admin_fee,
        installments=[ChargeSchema(**asdict(instance_to_charge(inst, plan))) for inst in schedule.instances],
        admin_fee_charge=ChargeSchema(**asdict(schedule.admin_fee_charge)) if schedule.admin_fee_charge else None,
        total_scheduled=schedule.total_scheduled,
    )


@router.get("/installments/{plan_id}", response_model=InstallmentResponse)
def get_installment_plan(plan_id: str, db: Session = Depends(get_db)):
    """Retrieve a stored plan with its materialized instances"""
    plan_repo = InstallmentPlanRepository(db)
    plan = plan_repo.get_plan(plan_id)

    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found")

    instances = plan_repo.get_instances(plan_id)
    fee_charge = ChargeRepository(db).get(admin_fee_charge_id(plan_id))
    return InstallmentResponse(
        plan_id=plan.id,
        card_id=plan.card_id,
        total_months=plan.total_months,
        start_month=plan.start_month,
        monthly_amount=plan.monthly_amount,
        admin_fee=plan.admin_fee,
        installments=[ChargeSchema(**asdict(charge)) for charge in instances],
        admin_fee_charge=ChargeSchema(**asdict(fee_charge)) if fee_charge else None,
        total_scheduled=sum(charge.amount for charge in instances) + (fee_charge.amount if fee_charge else 0),
    )
