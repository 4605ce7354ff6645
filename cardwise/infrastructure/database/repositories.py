"""Data access layer: loads snapshots for the core and writes derived results back"""

from typing import List, Optional, Sequence
from sqlalchemy import func
from sqlalchemy.orm import Session
from cardwise.infrastructure.database.models import (
    CardRecord,
    ChargeRecord,
    InstallmentPlanRecord,
    LimitIncreaseRecordRow,
    PaymentRecordRow,
    SubscriptionRecord,
)
from cardwise.domain.models import (
    BillingCycle,
    Charge,
    CreditInstrument,
    InstallmentPlan,
    InstallmentSchedule,
    LimitIncreaseRecord,
    PaymentRecord,
    Subscription,
)
from cardwise.domain.installments import instance_to_charge

CARD_FIELDS = (
    "id", "bank_id", "alias", "credit_limit", "current_usage", "due_day", "billing_cycle_day",
    "use_shared_limit", "is_paid", "paid_for_cycle", "is_archived", "annual_fee_reminder_enabled",
    "expiry_month", "annual_fee_amount", "limit_increase_reminder_enabled", "next_limit_increase_date",
)
CHARGE_FIELDS = (
    "id", "card_id", "amount", "date", "description", "category", "installment_id",
    "installment_number", "installment_total", "currency", "original_amount", "exchange_rate",
)
SUBSCRIPTION_FIELDS = (
    "id", "card_id", "name", "category", "amount", "billing_day", "next_billing_date",
    "is_active", "currency", "original_amount", "exchange_rate",
)
RECORD_FIELDS = ("id", "card_id", "request_date", "action_date", "frequency", "amount", "type", "status")
PAYMENT_FIELDS = ("id", "card_id", "paid_on", "amount", "billing_cycle", "payment_type", "notes")
PLAN_FIELDS = (
    "id", "card_id", "description", "original_amount", "total_months", "monthly_amount",
    "is_zero_percent", "start_month", "currency", "exchange_rate", "admin_fee", "start_date", "created_on",
)


def _values(obj, fields: Sequence[str]) -> dict:
    return {name: getattr(obj, name) for name in fields}


class CardRepository:
    """Repository for credit cards"""

    def __init__(self, db: Session):
        self.db = db

    def load_all(self) -> List[CreditInstrument]:
        """All cards in list order, archived included"""
        rows = self.db.query(CardRecord).order_by(CardRecord.position, CardRecord.created_at).all()
        return [CreditInstrument(**_values(row, CARD_FIELDS)) for row in rows]

    def get(self, card_id: str) -> Optional[CreditInstrument]:
        row = self.db.get(CardRecord, card_id)
        return CreditInstrument(**_values(row, CARD_FIELDS)) if row else None

    def add(self, card: CreditInstrument) -> CreditInstrument:
        """Append a card at the end of the list"""
        last_position = self.db.query(func.max(CardRecord.position)).scalar()
        position = 0 if last_position is None else last_position + 1
        self.db.add(CardRecord(position=position, **_values(card, CARD_FIELDS)))
        self.db.flush()
        return card

    def save_all(self, cards: Sequence[CreditInstrument]) -> None:
        """Write back derived card state (usage, paid flag)"""
        for card in cards:
            row = self.db.get(CardRecord, card.id)
            if row is None:
                continue
            for name, value in _values(card, CARD_FIELDS).items():
                setattr(row, name, value)
        self.db.flush()


class LimitIncreaseRepository:
    """Repository for limit increase history"""

    def __init__(self, db: Session):
        self.db = db

    def load_all(self) -> List[LimitIncreaseRecord]:
        rows = self.db.query(LimitIncreaseRecordRow).all()
        return [LimitIncreaseRecord(**_values(row, RECORD_FIELDS)) for row in rows]

    def load_for_card(self, card_id: str) -> List[LimitIncreaseRecord]:
        """A card's history, most recent request first"""
        rows = (
            self.db.query(LimitIncreaseRecordRow)
            .filter(LimitIncreaseRecordRow.card_id == card_id)
            .order_by(LimitIncreaseRecordRow.request_date.desc(), LimitIncreaseRecordRow.created_at.desc())
            .all()
        )
        return [LimitIncreaseRecord(**_values(row, RECORD_FIELDS)) for row in rows]

    def add(self, record: LimitIncreaseRecord) -> LimitIncreaseRecord:
        self.db.add(LimitIncreaseRecordRow(**_values(record, RECORD_FIELDS)))
        self.db.flush()
        return record


class SubscriptionRepository:
    """Repository for subscriptions"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_domain(row: SubscriptionRecord) -> Subscription:
        return Subscription(billing_cycle=BillingCycle(row.billing_cycle), **_values(row, SUBSCRIPTION_FIELDS))

    def load_all(self) -> List[Subscription]:
        rows = self.db.query(SubscriptionRecord).order_by(SubscriptionRecord.id).all()
        return [self._to_domain(row) for row in rows]

    def add(self, subscription: Subscription) -> Subscription:
        self.db.add(
            SubscriptionRecord(
                billing_cycle=subscription.billing_cycle.value,
                **_values(subscription, SUBSCRIPTION_FIELDS),
            )
        )
        self.db.flush()
        return subscription

    def get(self, subscription_id: str) -> Optional[Subscription]:
        row = self.db.get(SubscriptionRecord, subscription_id)
        return self._to_domain(row) if row else None

    def save(self, subscription: Subscription) -> None:
        self.db.merge(
            SubscriptionRecord(
                billing_cycle=subscription.billing_cycle.value,
                **_values(subscription, SUBSCRIPTION_FIELDS),
            )
        )
        self.db.flush()

    def delete(self, subscription_id: str) -> bool:
        row = self.db.get(SubscriptionRecord, subscription_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True

    def save_all(self, subscriptions: Sequence[Subscription]) -> None:
        """Replace the subscription collection with the given state"""
        keep_ids = {sub.id for sub in subscriptions}
        for row in self.db.query(SubscriptionRecord).all():
            if row.id not in keep_ids:
                self.db.delete(row)

        for sub in subscriptions:
            self.db.merge(
                SubscriptionRecord(billing_cycle=sub.billing_cycle.value, **_values(sub, SUBSCRIPTION_FIELDS))
            )
        self.db.flush()


class ChargeRepository:
    """Repository for card transactions"""

    def __init__(self, db: Session):
        self.db = db

    def load_all(self, card_id: Optional[str] = None) -> List[Charge]:
        query = self.db.query(ChargeRecord)
        if card_id is not None:
            query = query.filter(ChargeRecord.card_id == card_id)
        rows = query.order_by(ChargeRecord.date, ChargeRecord.id).all()
        return [Charge(**_values(row, CHARGE_FIELDS)) for row in rows]

    def get(self, charge_id: str) -> Optional[Charge]:
        row = self.db.get(ChargeRecord, charge_id)
        return Charge(**_values(row, CHARGE_FIELDS)) if row else None

    def add_all(self, charges: Sequence[Charge]) -> None:
        for charge in charges:
            self.db.add(ChargeRecord(**_values(charge, CHARGE_FIELDS)))
        self.db.flush()


class PaymentRecordRepository:
    """Repository for per-card payment history"""

    def __init__(self, db: Session):
        self.db = db

    def load_for_card(self, card_id: str) -> List[PaymentRecord]:
        """Newest payment first"""
        rows = (
            self.db.query(PaymentRecordRow)
            .filter(PaymentRecordRow.card_id == card_id)
            .order_by(PaymentRecordRow.paid_on.desc(), PaymentRecordRow.created_at.desc())
            .all()
        )
        return [PaymentRecord(**_values(row, PAYMENT_FIELDS)) for row in rows]

    def save_for_card(self, card_id: str, records: Sequence[PaymentRecord]) -> None:
        """Replace a card's payment history with the given records"""
        keep_ids = {record.id for record in records}
        for row in self.db.query(PaymentRecordRow).filter(PaymentRecordRow.card_id == card_id).all():
            if row.id not in keep_ids:
                self.db.delete(row)

        for record in records:
            self.db.merge(PaymentRecordRow(**_values(record, PAYMENT_FIELDS)))
        self.db.flush()


class InstallmentPlanRepository:
    """Repository for installment plans and their materialized charges"""

    def __init__(self, db: Session):
        self.db = db

    def create_schedule(self, schedule: InstallmentSchedule) -> InstallmentPlan:
        """Persist plan, one charge per instance and the admin fee charge"""
        plan = schedule.plan
        self.db.add(InstallmentPlanRecord(**_values(plan, PLAN_FIELDS)))
        self.db.flush()

        charges = [instance_to_charge(inst, plan) for inst in schedule.instances]
        if schedule.admin_fee_charge is not None:
            charges.append(schedule.admin_fee_charge)
        ChargeRepository(self.db).add_all(charges)
        return plan

    def get_plan(self, plan_id: str) -> Optional[InstallmentPlan]:
        row = self.db.get(InstallmentPlanRecord, plan_id)
        return InstallmentPlan(**_values(row, PLAN_FIELDS)) if row else None

    def get_instances(self, plan_id: str) -> List[Charge]:
        rows = (
            self.db.query(ChargeRecord)
            .filter(ChargeRecord.installment_id == plan_id)
            .order_by(ChargeRecord.installment_number)
            .all()
        )
        return [Charge(**_values(row, CHARGE_FIELDS)) for row in rows]
