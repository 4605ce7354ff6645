"""Structured JSON logging for reminders, installment plans and billing runs"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List

from pythonjsonlogger import jsonlogger

from cardwise.config import settings
from cardwise.domain.models import InstallmentSchedule, ObligationEvent, SubscriptionRun

LOG_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"

# Chatty third-party loggers kept at WARNING unless the service runs at DEBUG
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "multipart")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping each record with its UTC time, level and service"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Route the root logger to a single JSON stdout handler"""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter(LOG_FORMAT))
    root.addHandler(handler)

    quiet_level = logging.DEBUG if level.upper() == "DEBUG" else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)


def log_reminders(request_id: str, today: str, events: List[ObligationEvent], duration_ms: float) -> None:
    """Log the outcome of an upcoming-obligations query"""
    kinds: Dict[str, int] = {}
    for event in events:
        kinds[event.kind.value] = kinds.get(event.kind.value, 0) + 1

    logging.info(
        "Reminders collected",
        extra={
            "request_id": request_id,
            "step": "reminders_collected",
            "today": today,
            "event_count": len(events),
            "events_by_kind": kinds,
            "duration_ms": duration_ms,
        },
    )


def log_installment_plan(request_id: str, schedule: InstallmentSchedule) -> None:
    """Log a persisted installment plan"""
    logging.info(
        "Installment plan created",
        extra={
            "request_id": request_id,
            "step": "installment_plan_created",
            "plan_id": schedule.plan.id,
            "card_id": schedule.plan.card_id,
            "instances": len(schedule.instances),
            "monthly_amount": schedule.plan.monthly_amount,
            "total_scheduled": schedule.total_scheduled,
        },
    )


def log_subscription_run(request_id: str, today: str, run: SubscriptionRun) -> None:
    """Log a subscription billing pass"""
    logging.info(
        "Subscriptions billed",
        extra={
            "request_id": request_id,
            "step": "subscriptions_billed",
            "today": today,
            "charges": len(run.charges),
            "charged_total": sum(charge.amount for charge in run.charges),
        },
    )
