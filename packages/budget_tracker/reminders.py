"""Bill reminders: validated input, CRUD, and the notification side-channel.

A reminder is a recurring monthly bill (provider, day of month, amount). When
SMS reminders are enabled, one row is stored per phone number and each row is
handed to a :class:`ReminderNotifier`. Delivery failures never undo the
stored rows; they come back as warnings.

Functions take a caller-owned SQLAlchemy session and only flush.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from sqlalchemy import select
from sqlalchemy.orm import Session
from tracker_db.models.finance import BillReminder

from .errors import NotFoundError, ReminderValidationError
from .logging_setup import get_logger

_logger = get_logger("budget_tracker.reminders")

MIN_SCHEDULE_LEAD = timedelta(minutes=5)
MAX_SCHEDULE_HORIZON = timedelta(days=35)


# ---------------------------
# Input models
# ---------------------------


class BillReminderInput(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    provider_name: str = Field(min_length=1)
    due_date: int = Field(ge=1, le=31)
    amount: Decimal = Field(gt=0)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    category: str = "utilities"
    notes: str | None = None
    reminders_enabled: bool = False
    phone_numbers: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _main_phone_required(self) -> BillReminderInput:
        if self.reminders_enabled and (not self.phone_numbers or not self.phone_numbers[0].strip()):
            raise ValueError("Main phone number is required for SMS reminders")
        return self

    def valid_phone_numbers(self) -> list[str]:
        return [p.strip() for p in self.phone_numbers if p.strip()]


class BillReminderUpdate(BaseModel):
    """Partial update; only fields explicitly set are written."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    provider_name: str | None = Field(default=None, min_length=1)
    due_date: int | None = Field(default=None, ge=1, le=31)
    amount: Decimal | None = Field(default=None, gt=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    category: str | None = None
    notes: str | None = None
    reminders_enabled: bool | None = None
    phone_number: str | None = None


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    msg = str(err.get("msg", "invalid value")).removeprefix("Value error, ")
    return f"{loc}: {msg}" if loc else msg


def validate_reminder_input(data: Mapping[str, Any]) -> BillReminderInput:
    """Build :class:`BillReminderInput`, raising :class:`ReminderValidationError`."""

    try:
        return BillReminderInput.model_validate(dict(data))
    except ValidationError as e:
        raise ReminderValidationError(_first_error(e)) from e


def validate_schedule(schedule_at: datetime, *, now: datetime | None = None) -> datetime:
    """Check a send time lies between 5 minutes and 35 days from ``now``.

    Naive datetimes are taken as UTC. Returns the aware schedule time.
    """

    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    if schedule_at.tzinfo is None:
        schedule_at = schedule_at.replace(tzinfo=UTC)

    if schedule_at < now + MIN_SCHEDULE_LEAD:
        raise ReminderValidationError("Schedule time must be at least 5 minutes in the future")
    if schedule_at > now + MAX_SCHEDULE_HORIZON:
        raise ReminderValidationError("Schedule time cannot be more than 35 days in the future")
    return schedule_at


# ---------------------------
# Notification contract
# ---------------------------


@dataclass(frozen=True, slots=True)
class SmsRequest:
    provider_name: str
    due_date: int
    amount: Decimal
    phone_number: str
    schedule_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class NotificationResult:
    ok: bool
    error: str | None = None


class ReminderNotifier(Protocol):
    def send(self, request: SmsRequest) -> NotificationResult: ...


def render_sms_body(provider_name: str, amount: Decimal, due_date: int) -> str:
    return (
        f"Reminder: Your {provider_name} bill of €{amount:.2f} "
        f"is due on day {due_date} of this month."
    )


class LoggingNotifier:
    """Default notifier: records the message in the log instead of sending it."""

    def send(self, request: SmsRequest) -> NotificationResult:
        when = request.schedule_at.isoformat() if request.schedule_at else "now"
        _logger.info(
            "SMS to %s (%s): %s",
            request.phone_number,
            when,
            render_sms_body(request.provider_name, request.amount, request.due_date),
        )
        return NotificationResult(ok=True)


# ---------------------------
# CRUD
# ---------------------------


@dataclass(slots=True)
class ReminderCreation:
    reminders: list[BillReminder] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def find_reminders_by_provider(
    session: Session, *, user_id: str, provider_name: str
) -> list[BillReminder]:
    stmt = select(BillReminder).where(
        BillReminder.user_id == user_id, BillReminder.provider_name == provider_name.strip()
    )
    return list(session.execute(stmt).scalars())


def create_bill_reminders(
    session: Session,
    *,
    user_id: str,
    data: BillReminderInput,
    notifier: ReminderNotifier | None = None,
    schedule_at: datetime | None = None,
    now: datetime | None = None,
) -> ReminderCreation:
    """Store a bill reminder, one row per phone number when SMS is enabled.

    The schedule is validated before anything is written. A notifier failure
    (``ok=False`` or an exception) becomes a warning on the result.
    """

    scheduled = None
    if data.reminders_enabled and schedule_at is not None:
        scheduled = validate_schedule(schedule_at, now=now)

    phones: list[str | None]
    if data.reminders_enabled:
        phones = list(data.valid_phone_numbers())
    else:
        phones = [None]

    out = ReminderCreation()
    for phone in phones:
        row = BillReminder(
            user_id=user_id,
            provider_name=data.provider_name,
            due_date=data.due_date,
            amount=data.amount,
            currency=data.currency,
            category=data.category,
            notes=data.notes or None,
            phone_number=phone,
            reminders_enabled=data.reminders_enabled,
        )
        session.add(row)
        out.reminders.append(row)
    session.flush()
    _logger.info(
        "Created %d bill reminder(s) for %s (%s)", len(out.reminders), user_id, data.provider_name
    )

    if not data.reminders_enabled:
        return out

    notifier = notifier or LoggingNotifier()
    for row in out.reminders:
        request = SmsRequest(
            provider_name=row.provider_name,
            due_date=row.due_date,
            amount=row.amount,
            phone_number=row.phone_number or "",
            schedule_at=scheduled,
        )
        try:
            result = notifier.send(request)
        except Exception as e:
            _logger.exception("SMS notifier raised for %s", row.phone_number)
            result = NotificationResult(ok=False, error=str(e))
        if not result.ok:
            _logger.warning("SMS to %s failed: %s", row.phone_number, result.error)
            out.warnings.append(
                "Bill reminder created but SMS notification failed to send to "
                f"{row.phone_number}."
            )
    return out


def list_bill_reminders(session: Session, *, user_id: str) -> list[BillReminder]:
    stmt = (
        select(BillReminder)
        .where(BillReminder.user_id == user_id)
        .order_by(BillReminder.due_date, BillReminder.provider_name)
    )
    return list(session.execute(stmt).scalars())


def _get_owned(session: Session, *, user_id: str, reminder_id: str) -> BillReminder:
    row = session.get(BillReminder, reminder_id)
    if row is None or row.user_id != user_id:
        raise NotFoundError(f"No bill reminder found with id {reminder_id}")
    return row


def update_bill_reminder(
    session: Session, *, user_id: str, reminder_id: str, changes: Mapping[str, Any]
) -> BillReminder:
    try:
        update = BillReminderUpdate.model_validate(dict(changes))
    except ValidationError as e:
        raise ReminderValidationError(_first_error(e)) from e

    row = _get_owned(session, user_id=user_id, reminder_id=reminder_id)
    for name, value in update.model_dump(exclude_unset=True).items():
        setattr(row, name, value)
    if row.reminders_enabled and not row.phone_number:
        raise ReminderValidationError("Main phone number is required for SMS reminders")
    session.flush()
    return row


def delete_bill_reminder(session: Session, *, user_id: str, reminder_id: str) -> None:
    row = _get_owned(session, user_id=user_id, reminder_id=reminder_id)
    session.delete(row)
    session.flush()
    _logger.info("Deleted bill reminder %s (%s)", reminder_id, row.provider_name)


__all__ = [
    "BillReminderInput",
    "BillReminderUpdate",
    "validate_reminder_input",
    "validate_schedule",
    "SmsRequest",
    "NotificationResult",
    "ReminderNotifier",
    "LoggingNotifier",
    "render_sms_body",
    "ReminderCreation",
    "find_reminders_by_provider",
    "create_bill_reminders",
    "list_bill_reminders",
    "update_bill_reminder",
    "delete_bill_reminder",
]
