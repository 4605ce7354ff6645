"""Unit tests for billing cycle windows, usage and payments"""

from datetime import date
from cardwise.domain.billing_cycle import (
    apply_payment,
    billing_cycle_range,
    build_payment_record,
    current_billing_cycle,
    cycle_usage,
    recalculate_usage,
    reset_paid_status,
    retain_payment_history,
)
from cardwise.domain.models import Charge, PaymentRecord


def test_cycle_started_this_month():
    window = billing_cycle_range(10, date(2024, 12, 15))

    assert window.start == date(2024, 12, 10)
    assert window.end == date(2025, 1, 9)
    assert window.next_billing == date(2025, 1, 10)


def test_cycle_started_last_month():
    window = billing_cycle_range(10, date(2024, 12, 5))

    assert window.start == date(2024, 11, 10)
    assert window.end == date(2024, 12, 9)


def test_cycle_identifier_rolls_back_across_year():
    assert current_billing_cycle(10, date(2024, 1, 5)) == "2023-12"
    assert current_billing_cycle(10, date(2024, 1, 10)) == "2024-01"


def test_month_end_billing_day_is_clamped():
    window = billing_cycle_range(31, date(2023, 2, 28))

    assert window.start == date(2023, 2, 28)
    assert window.next_billing == date(2023, 3, 31)
    assert window.end == date(2023, 3, 30)


def test_cycle_usage_counts_only_elapsed_charges_in_cycle(make_card):
    card = make_card("card-1", billing_cycle_day=10)
    charges = [
        Charge(id="before", card_id="card-1", amount=100, date=date(2024, 5, 9)),
        Charge(id="start", card_id="card-1", amount=200, date=date(2024, 5, 10)),
        Charge(id="today", card_id="card-1", amount=300, date=date(2024, 5, 20)),
        Charge(id="future", card_id="card-1", amount=400, date=date(2024, 5, 21)),
        Charge(id="other", card_id="card-2", amount=500, date=date(2024, 5, 15)),
    ]

    assert cycle_usage(card, charges, date(2024, 5, 20)) == 500


def test_recalculate_usage_returns_copies(make_card):
    card = make_card("card-1", billing_cycle_day=1, current_usage=999)
    charges = [Charge(id="c", card_id="card-1", amount=250, date=date(2024, 5, 2))]

    [updated] = recalculate_usage([card], charges, date(2024, 5, 3))

    assert updated.current_usage == 250
    assert card.current_usage == 999


def test_paid_flag_resets_in_new_cycle(make_card):
    paid_last_cycle = make_card("old", billing_cycle_day=10, is_paid=True, paid_for_cycle="2024-04")
    paid_this_cycle = make_card("new", billing_cycle_day=10, is_paid=True, paid_for_cycle="2024-05")

    result = reset_paid_status([paid_last_cycle, paid_this_cycle], date(2024, 5, 12))

    assert [card.is_paid for card in result] == [False, True]
    assert paid_last_cycle.is_paid is True


def test_full_payment_clears_usage_and_marks_cycle(make_card):
    card = make_card(billing_cycle_day=10, current_usage=3_000_000)

    paid = apply_payment(card, date(2024, 5, 12))

    assert paid.current_usage == 0
    assert paid.is_paid is True
    assert paid.paid_for_cycle == "2024-05"


def test_partial_payment_reduces_usage(make_card):
    card = make_card(current_usage=3_000_000)

    paid = apply_payment(card, date(2024, 5, 12), amount=1_000_000, full=False)

    assert paid.current_usage == 2_000_000
    assert paid.is_paid is False
    assert paid.paid_for_cycle is None


def test_minimal_payment_covering_usage_counts_as_paid(make_card):
    card = make_card(current_usage=500_000)

    paid = apply_payment(card, date(2024, 5, 12), amount=600_000, full=False)

    assert paid.current_usage == 0
    assert paid.is_paid is True


def payment(record_id: str, paid_on: date) -> PaymentRecord:
    return PaymentRecord(id=record_id, card_id="card-1", paid_on=paid_on, amount=100_000, billing_cycle="x")


def test_payment_record_defaults_to_current_usage(make_card):
    card = make_card(billing_cycle_day=10, current_usage=3_000_000)

    record = build_payment_record(card, "pay-1", date(2024, 5, 12), notes="auto debit")

    assert record.amount == 3_000_000
    assert record.billing_cycle == "2024-05"
    assert record.payment_type == "full"
    assert record.notes == "auto debit"


def test_minimal_payment_record_keeps_paid_amount(make_card):
    card = make_card(billing_cycle_day=10, current_usage=3_000_000)

    record = build_payment_record(card, "pay-1", date(2024, 5, 5), amount=500_000, full=False)

    assert record.amount == 500_000
    assert record.billing_cycle == "2024-04"
    assert record.payment_type == "minimal"


def test_history_keeps_last_24_months_newest_first():
    records = [
        payment("too-old", date(2022, 5, 11)),
        payment("cutoff", date(2022, 5, 12)),
        payment("latest", date(2024, 5, 12)),
        payment("middle", date(2023, 1, 3)),
    ]

    kept = retain_payment_history(records, date(2024, 5, 12))

    assert [record.id for record in kept] == ["latest", "middle", "cutoff"]
