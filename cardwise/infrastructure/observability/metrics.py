"""Prometheus metrics for reminders, installment plans and subscription billing"""

from typing import Iterable

from prometheus_client import Counter, Histogram

from cardwise.domain.models import InstallmentSchedule, ObligationEvent, SubscriptionRun

# Reminder metrics
obligation_events_counter = Counter(
    "cardwise_obligation_events_total",
    "Upcoming obligations surfaced to the dashboard",
    ["kind"],  # payment | annual_fee | limit_increase | subscription_renewal
)

# Installment metrics
installment_plans_counter = Counter(
    "cardwise_installment_plans_total",
    "Installment plans created",
    ["interest"],  # zero_percent | interest_bearing
)

installment_tenor_histogram = Histogram(
    "cardwise_installment_tenor_months",
    "Tenor of created installment plans",
    buckets=[1, 3, 6, 12, 18, 24, 36],
)

# Subscription metrics
subscription_charges_counter = Counter(
    "cardwise_subscription_charges_total",
    "Subscription charges materialized",
)

# Core contract violations reaching the API
domain_errors_counter = Counter(
    "cardwise_domain_errors_total",
    "Requests rejected by the scheduling core",
    ["error"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_obligations(events: Iterable[ObligationEvent]) -> None:
    """Count emitted obligation events by kind"""
    for event in events:
        obligation_events_counter.labels(kind=event.kind.value).inc()


def record_installment_plan(schedule: InstallmentSchedule) -> None:
    """Record a created plan and its tenor"""
    interest = "zero_percent" if schedule.plan.is_zero_percent else "interest_bearing"
    installment_plans_counter.labels(interest=interest).inc()
    installment_tenor_histogram.observe(schedule.plan.total_months)


def record_subscription_run(run: SubscriptionRun) -> None:
    """Count charges produced by a billing pass"""
    subscription_charges_counter.inc(len(run.charges))
