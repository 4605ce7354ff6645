"""SQLAlchemy ORM models for the card ledger store"""

import uuid
from sqlalchemy import Column, String, BigInteger, Boolean, Float, DateTime, Date, Integer, ForeignKey, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


class CardRecord(Base):
    """Credit card"""

    __tablename__ = "card"

    id = Column(String(36), primary_key=True, default=new_id)
    bank_id = Column(Text, nullable=False, index=True)
    alias = Column(Text, nullable=False, default="")
    credit_limit = Column(BigInteger, nullable=False, default=0)
    current_usage = Column(BigInteger, nullable=False, default=0)
    due_day = Column(Integer, nullable=False)
    billing_cycle_day = Column(Integer, nullable=False, default=1)
    use_shared_limit = Column(Boolean, nullable=False, default=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_for_cycle = Column(String(7), nullable=True)
    is_archived = Column(Boolean, nullable=False, default=False)
    annual_fee_reminder_enabled = Column(Boolean, nullable=False, default=False)
    expiry_month = Column(Integer, nullable=True)
    annual_fee_amount = Column(BigInteger, nullable=True)
    limit_increase_reminder_enabled = Column(Boolean, nullable=False, default=False)
    next_limit_increase_date = Column(Date, nullable=True)
    # Position in the user's card list; shared limits take the first card's limit
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class LimitIncreaseRecordRow(Base):
    """Limit increase request history entry"""

    __tablename__ = "limit_increase_record"

    id = Column(String(36), primary_key=True, default=new_id)
    card_id = Column(String(36), ForeignKey("card.id", ondelete="CASCADE"), nullable=False, index=True)
    request_date = Column(Date, nullable=False)
    action_date = Column(Date, nullable=True)
    frequency = Column(Integer, nullable=False)
    amount = Column(BigInteger, nullable=False, default=0)
    type = Column(Text, nullable=False, default="permanent")
    status = Column(Text, nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PaymentRecordRow(Base):
    """Payment history entry; trimmed to the last 24 months on each payment"""

    __tablename__ = "payment_record"

    id = Column(String(36), primary_key=True, default=new_id)
    card_id = Column(String(36), ForeignKey("card.id", ondelete="CASCADE"), nullable=False, index=True)
    paid_on = Column(Date, nullable=False)
    amount = Column(BigInteger, nullable=False)
    billing_cycle = Column(String(7), nullable=False)
    payment_type = Column(String(16), nullable=False, default="full")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class SubscriptionRecord(Base):
    """Recurring subscription"""

    __tablename__ = "subscription"

    id = Column(String(36), primary_key=True, default=new_id)
    card_id = Column(String(36), ForeignKey("card.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False, default="")
    category = Column(Text, nullable=False, default="Langganan")
    amount = Column(BigInteger, nullable=False)
    billing_cycle = Column(String(16), nullable=False, default="monthly")
    billing_day = Column(Integer, nullable=False)
    next_billing_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    currency = Column(String(8), nullable=False, default="IDR")
    original_amount = Column(Float, nullable=True)
    exchange_rate = Column(Float, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class InstallmentPlanRecord(Base):
    """Installment plan as declared at creation"""

    __tablename__ = "installment_plan"

    id = Column(String(36), primary_key=True, default=new_id)
    card_id = Column(String(36), ForeignKey("card.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    original_amount = Column(Float, nullable=False)
    total_months = Column(Integer, nullable=False)
    monthly_amount = Column(BigInteger, nullable=False)
    is_zero_percent = Column(Boolean, nullable=False)
    start_month = Column(Integer, nullable=False)
    currency = Column(String(8), nullable=False)
    exchange_rate = Column(Float, nullable=False)
    admin_fee = Column(BigInteger, nullable=False, default=0)
    start_date = Column(Date, nullable=False)
    created_on = Column(Date, nullable=False)


class ChargeRecord(Base):
    """Card transaction; installment instances are tagged with their plan id"""

    __tablename__ = "charge"

    id = Column(String(80), primary_key=True, default=new_id)
    card_id = Column(String(36), ForeignKey("card.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    category = Column(Text, nullable=False, default="")
    installment_id = Column(String(36), ForeignKey("installment_plan.id", ondelete="CASCADE"), nullable=True)
    installment_number = Column(Integer, nullable=True)
    installment_total = Column(Integer, nullable=True)
    currency = Column(String(8), nullable=False, default="IDR")
    original_amount = Column(Float, nullable=True)
    exchange_rate = Column(Float, nullable=True)
