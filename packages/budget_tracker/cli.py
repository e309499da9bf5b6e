# ruff: noqa: I001
"""CLI for the ``budget_tracker`` package.

This module exposes callable command handlers (``cmd_*``, each returning a
process exit code) and a Typer-based console interface on top of them.
Environment variables (notably ``DATABASE_URL`` and
``BUDGET_TRACKER_USER_ID``) are loaded from a local ``.env`` using
``python-dotenv`` before any command runs. Business logic lives in
``budget_tracker.api`` and the modules it re-exports.

Fatal errors are printed as a single ``Error: ...`` line on stderr with exit
code 1. Import row errors are printed as an itemized list.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from prompt_toolkit import PromptSession
from sqlalchemy.exc import SQLAlchemyError
from typer.models import ArgumentInfo

from .errors import BudgetTrackerError
from .logging_setup import configure_logging


# ---- Small module-level helpers used by CLI commands -------------------------


def _err(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


def _resolve_user(user_id: str | None) -> str:
    """Return the explicit user id or the ``BUDGET_TRACKER_USER_ID`` default."""

    from .settings import load_settings

    resolved = user_id or load_settings().user_id
    if not resolved:
        raise typer.BadParameter(
            "no user id given; pass --user or set BUDGET_TRACKER_USER_ID", param_hint="--user"
        )
    return resolved


def _parse_month(value: str | None, *, today: date | None = None) -> date:
    """Parse ``YYYY-MM`` into the first day of that month (default: this month)."""

    if not value:
        t = today or date.today()
        return date(t.year, t.month, 1)
    try:
        parsed = datetime.strptime(value.strip(), "%Y-%m")
    except ValueError as e:
        raise typer.BadParameter(f"expected YYYY-MM, got {value!r}", param_hint="--month") from e
    return date(parsed.year, parsed.month, 1)


def _parse_amount(value: str, *, name: str) -> Decimal:
    try:
        d = Decimal(value.strip())
    except InvalidOperation as e:
        raise typer.BadParameter(f"not a number: {value!r}", param_hint=name) from e
    if not d.is_finite():
        raise typer.BadParameter(f"not a number: {value!r}", param_hint=name)
    return d


def _parse_plan(entries: Sequence[str]) -> dict[str, Decimal]:
    """Parse ``key=amount`` pairs (``groceries=400``)."""

    plan: dict[str, Decimal] = {}
    for entry in entries:
        key, sep, raw = entry.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected KEY=AMOUNT, got {entry!r}", param_hint="--plan")
        plan[key.strip()] = _parse_amount(raw, name="--plan")
    return plan


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


# ---- Command handlers --------------------------------------------------------


def cmd_init_db(*, database_url: str | None = None) -> int:
    """Create every table on the target database (local/dev convenience).

    Production schemas are managed with Alembic (``libs/db/alembic``).
    """

    from tracker_db import metadata
    from tracker_db.client import get_engine

    try:
        engine = get_engine(database_url=database_url)
        metadata.create_all(bind=engine)
    except (RuntimeError, SQLAlchemyError) as e:
        return _err(f"failed to initialize database: {e}")
    print("Database initialized.")
    return 0


def cmd_import_statement(
    csv_path: str,
    *,
    month: date,
    user_id: str,
    approve: bool = False,
    statement_format: str = "auto",
    database_url: str | None = None,
) -> int:
    """Parse a statement for ``month``, print the result, optionally approve it."""

    from .ingest.failures import JsonlFailedImportLog
    from .ingest.utils import StatementFormat
    from .settings import load_settings
    from .workflows.import_flow import import_statement

    try:
        settings = load_settings()
    except ValueError as e:
        return _err(f"invalid configuration: {e}")

    try:
        outcome = import_statement(
            csv_path,
            month,
            user_id=user_id,
            approve=approve,
            database_url=database_url,
            statement_format=StatementFormat(statement_format),
            limits=settings.limits,
            failure_sink=JsonlFailedImportLog(settings.failed_imports_log),
            on_progress=print,
        )
    except FileNotFoundError:
        return _err(f"File not found: {csv_path}")
    except PermissionError:
        return _err(f"Permission denied: {csv_path}")
    except BudgetTrackerError as e:
        return _err(str(e))
    except (RuntimeError, SQLAlchemyError) as e:
        return _err(f"failed to approve transactions: {e}")

    result = outcome.result
    for tx in result.transactions:
        print(f"{tx.date.isoformat()}\t{_money(tx.amount)}\t{tx.category}\t{tx.description}")
    for warning in result.warnings:
        print(f"Warning: {warning}")
    if result.unmapped_categories:
        print("Unmapped descriptions:")
        for desc in result.unmapped_categories:
            print(f"  - {desc}")
    if result.errors:
        print(f"{len(result.errors)} error(s):", file=sys.stderr)
        for error in result.errors:
            print(f"  - {error}", file=sys.stderr)

    if not result.success and not result.transactions:
        return 1
    return 0


def cmd_approvals(*, user_id: str, database_url: str | None = None) -> int:
    from tracker_db.client import session_scope

    from .approvals import list_approvals

    try:
        with session_scope(database_url=database_url) as session:
            rows = list_approvals(session, user_id=user_id)
    except (RuntimeError, SQLAlchemyError) as e:
        return _err(f"failed to load approvals: {e}")

    if not rows:
        print("No approvals yet.")
        return 0
    for a in rows:
        when = a.approved_at.isoformat(timespec="seconds") if a.approved_at else "pending"
        print(f"{a.year}-{a.month:02d}\t{a.transaction_count} transaction(s)\t{when}")
    return 0


def cmd_undo(
    *,
    month: date,
    user_id: str,
    yes: bool = False,
    database_url: str | None = None,
    today: date | None = None,
    prompt_session: PromptSession | None = None,
) -> int:
    """Undo the approval for ``month`` after a confirmation prompt."""

    from tracker_db.client import session_scope

    from .approvals import undo_month
    from .term_ui import confirm

    label = f"{month.month}/{month.year}"
    if not yes and not confirm(
        f"Undo the approval for {label} and delete its transactions?",
        session=prompt_session,
    ):
        print("Cancelled.")
        return 0

    try:
        with session_scope(database_url=database_url) as session:
            deleted = undo_month(
                session, user_id=user_id, month=month.month, year=month.year, today=today
            )
    except BudgetTrackerError as e:
        return _err(str(e))
    except (RuntimeError, SQLAlchemyError) as e:
        return _err(f"failed to undo approval: {e}")

    print(f"Undid approval for {label}; removed {deleted} transaction(s).")
    return 0


def cmd_reconcile(*, month: date, user_id: str, database_url: str | None = None) -> int:
    from tracker_db.client import session_scope

    from .persistence import recompute_budget_spent

    try:
        with session_scope(database_url=database_url) as session:
            snapshot = recompute_budget_spent(
                session, user_id=user_id, month=month.month, year=month.year
            )
    except BudgetTrackerError as e:
        return _err(str(e))
    except (RuntimeError, SQLAlchemyError) as e:
        return _err(f"failed to reconcile budget: {e}")

    print(f"Spent for {month.month}/{month.year}: {_money(snapshot.total_spent)}")
    return 0


def cmd_budget_set(
    *,
    month: date,
    user_id: str,
    salary: Decimal | None = None,
    bonus: Decimal | None = None,
    plan: dict[str, Decimal] | None = None,
    database_url: str | None = None,
) -> int:
    from tracker_db.client import session_scope

    from .persistence import snapshot_from_row, upsert_budget

    try:
        with session_scope(database_url=database_url) as session:
            row = upsert_budget(
                session,
                user_id=user_id,
                month=month.month,
                year=month.year,
                salary=salary,
                bonus=bonus,
                planned=plan,
            )
            snapshot = snapshot_from_row(row)
    except ValueError as e:
        return _err(str(e))
    except (RuntimeError, SQLAlchemyError) as e:
        return _err(f"failed to save budget: {e}")

    print(
        f"Budget for {month.month}/{month.year} saved: income {_money(snapshot.income)}, "
        f"planned {_money(snapshot.total_planned)}"
    )
    return 0


def cmd_budget_show(*, month: date, user_id: str, database_url: str | None = None) -> int:
    from tracker_db.client import session_scope

    from .categories import CATEGORY_MAPPINGS, UNCATEGORIZED_FIELD
    from .persistence import get_budget_snapshot

    try:
        with session_scope(database_url=database_url) as session:
            snapshot = get_budget_snapshot(
                session, user_id=user_id, month=month.month, year=month.year
            )
    except BudgetTrackerError as e:
        return _err(str(e))
    except (RuntimeError, SQLAlchemyError) as e:
        return _err(f"failed to load budget: {e}")

    zero = Decimal("0")
    print(f"Budget {month.month}/{month.year}  income {_money(snapshot.income)}")
    for m in CATEGORY_MAPPINGS:
        spent = snapshot.spent.get(m.budget_field, zero)
        if m.budget_field == UNCATEGORIZED_FIELD:
            print(f"{m.display_name:<32}{'':>10}{_money(spent):>10}")
            continue
        planned = snapshot.planned.get(m.key, zero)
        flag = "  over" if spent > planned else ""
        print(f"{m.display_name:<32}{_money(planned):>10}{_money(spent):>10}{flag}")
    print(
        f"{'Total':<32}{_money(snapshot.total_planned):>10}{_money(snapshot.total_spent):>10}"
    )
    return 0


def cmd_transactions(
    *,
    month: date,
    user_id: str,
    category: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    search: str | None = None,
    pick_category: bool = False,
    database_url: str | None = None,
    prompt_session: PromptSession | None = None,
) -> int:
    from tracker_db.client import session_scope

    from .categories import DISPLAY_NAMES
    from .persistence import list_transactions
    from .scoping import filter_transactions
    from .term_ui import prompt_choice

    if pick_category:
        category = prompt_choice(
            ["All", *DISPLAY_NAMES],
            message="Category (Esc for all): ",
            default="All",
            session=prompt_session,
        )

    try:
        with session_scope(database_url=database_url) as session:
            txns = list_transactions(
                session, user_id=user_id, month=month.month, year=month.year
            )
    except (RuntimeError, SQLAlchemyError) as e:
        return _err(f"failed to load transactions: {e}")

    rows = filter_transactions(
        txns, category=category, date_from=date_from, date_to=date_to, search_term=search
    )
    for tx in rows:
        print(f"{tx.date.isoformat()}\t{_money(tx.amount)}\t{tx.category}\t{tx.description}")
    print(f"{len(rows)} transaction(s), total {_money(sum((t.amount for t in rows), Decimal('0')))}")
    return 0


def cmd_reminder_add(
    *,
    user_id: str,
    provider_name: str,
    due_date: int,
    amount: Decimal,
    category: str = "utilities",
    notes: str | None = None,
    phone_numbers: Sequence[str] = (),
    sms: bool = False,
    schedule_at: datetime | None = None,
    yes: bool = False,
    database_url: str | None = None,
    prompt_session: PromptSession | None = None,
) -> int:
    from tracker_db.client import session_scope

    from .reminders import (
        create_bill_reminders,
        find_reminders_by_provider,
        validate_reminder_input,
    )
    from .term_ui import confirm

    try:
        data = validate_reminder_input(
            {
                "provider_name": provider_name,
                "due_date": due_date,
                "amount": amount,
                "category": category,
                "notes": notes,
                "reminders_enabled": sms,
                "phone_numbers": list(phone_numbers),
            }
        )
        with session_scope(database_url=database_url) as session:
            existing = find_reminders_by_provider(
                session, user_id=user_id, provider_name=data.provider_name
            )
            if existing and not yes and not confirm(
                f"You already have a bill reminder for {data.provider_name}. "
                "Would you like to create another one?",
                session=prompt_session,
            ):
                print("Cancelled.")
                return 0
            created = create_bill_reminders(
                session, user_id=user_id, data=data, schedule_at=schedule_at
            )
            ids = [r.id for r in created.reminders]
    except BudgetTrackerError as e:
        return _err(str(e))
    except (RuntimeError, SQLAlchemyError) as e:
        return _err(f"failed to save bill reminder: {e}")

    for warning in created.warnings:
        print(f"Warning: {warning}")
    print(f"Created {len(ids)} bill reminder(s): {', '.join(ids)}")
    return 0


def cmd_reminder_list(*, user_id: str, database_url: str | None = None) -> int:
    from tracker_db.client import session_scope

    from .reminders import list_bill_reminders

    try:
        with session_scope(database_url=database_url) as session:
            rows = [
                (r.id, r.due_date, r.provider_name, r.amount, r.currency, r.phone_number)
                for r in list_bill_reminders(session, user_id=user_id)
            ]
    except (RuntimeError, SQLAlchemyError) as e:
        return _err(f"failed to load bill reminders: {e}")

    if not rows:
        print("No bill reminders.")
        return 0
    for rid, due, provider, amount, currency, phone in rows:
        print(f"{rid}\tday {due}\t{provider}\t{_money(amount)} {currency}\t{phone or '-'}")
    return 0


def cmd_reminder_delete(
    reminder_id: str, *, user_id: str, database_url: str | None = None
) -> int:
    from tracker_db.client import session_scope

    from .reminders import delete_bill_reminder

    try:
        with session_scope(database_url=database_url) as session:
            delete_bill_reminder(session, user_id=user_id, reminder_id=reminder_id)
    except BudgetTrackerError as e:
        return _err(str(e))
    except (RuntimeError, SQLAlchemyError) as e:
        return _err(f"failed to delete bill reminder: {e}")
    print(f"Deleted bill reminder {reminder_id}.")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import Revolut statements, approve them per month, and track spending "
        "against a monthly budget. Loads DATABASE_URL from a local .env."
    ),
)


def _finish(code: int) -> None:
    if code:
        raise typer.Exit(code)


# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
CSV_PATH_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="Path to a Revolut statement CSV export",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
MONTH_HELP = "Target month as YYYY-MM (defaults to the current month)."
USER_HELP = "User id (falls back to BUDGET_TRACKER_USER_ID)."
DB_HELP = "Override DATABASE_URL (falls back to env var)."


@app.command("init-db")
def init_db_cmd(
    database_url: str | None = typer.Option(None, help=DB_HELP),
) -> None:
    """Create all tables on the configured database."""

    _finish(cmd_init_db(database_url=database_url))


@app.command("import-statement")
def import_statement_cmd(
    csv_path: Annotated[Path, CSV_PATH_ARGUMENT],
    *,
    month: str | None = typer.Option(None, help=MONTH_HELP),
    user: str | None = typer.Option(None, help=USER_HELP),
    approve: bool = typer.Option(
        False, help="Persist the parsed transactions as this month's approval."
    ),
    statement_format: str = typer.Option(
        "auto", "--format", help="Statement layout: auto, header or positional."
    ),
    database_url: str | None = typer.Option(None, help=DB_HELP),
) -> None:
    """Parse a statement for one month and optionally approve it."""

    if statement_format not in {"auto", "header", "positional"}:
        raise typer.BadParameter(
            "expected auto, header or positional", param_hint="--format"
        )
    target = _parse_month(month)
    # The user id is only needed when persisting.
    user_id = _resolve_user(user) if approve else (user or "")
    _finish(
        cmd_import_statement(
            str(csv_path),
            month=target,
            user_id=user_id,
            approve=approve,
            statement_format=statement_format,
            database_url=database_url,
        )
    )


@app.command("approvals")
def approvals_cmd(
    user: str | None = typer.Option(None, help=USER_HELP),
    database_url: str | None = typer.Option(None, help=DB_HELP),
) -> None:
    """List approved months, newest first."""

    _finish(cmd_approvals(user_id=_resolve_user(user), database_url=database_url))


@app.command("undo")
def undo_cmd(
    month: str | None = typer.Option(None, help=MONTH_HELP),
    user: str | None = typer.Option(None, help=USER_HELP),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    database_url: str | None = typer.Option(None, help=DB_HELP),
) -> None:
    """Undo the current month's approval and delete its transactions."""

    _finish(
        cmd_undo(
            month=_parse_month(month),
            user_id=_resolve_user(user),
            yes=yes,
            database_url=database_url,
        )
    )


@app.command("reconcile")
def reconcile_cmd(
    month: str | None = typer.Option(None, help=MONTH_HELP),
    user: str | None = typer.Option(None, help=USER_HELP),
    database_url: str | None = typer.Option(None, help=DB_HELP),
) -> None:
    """Recompute a budget's spent figures from stored transactions."""

    _finish(
        cmd_reconcile(
            month=_parse_month(month), user_id=_resolve_user(user), database_url=database_url
        )
    )


@app.command("budget-set")
def budget_set_cmd(
    month: str | None = typer.Option(None, help=MONTH_HELP),
    user: str | None = typer.Option(None, help=USER_HELP),
    salary: str | None = typer.Option(None, help="Monthly salary."),
    bonus: str | None = typer.Option(None, help="Monthly bonus."),
    plan: list[str] | None = typer.Option(
        None, help="Planned amount per category key, e.g. --plan groceries=400 (repeatable)."
    ),
    database_url: str | None = typer.Option(None, help=DB_HELP),
) -> None:
    """Create or update the budget for a month."""

    _finish(
        cmd_budget_set(
            month=_parse_month(month),
            user_id=_resolve_user(user),
            salary=_parse_amount(salary, name="--salary") if salary is not None else None,
            bonus=_parse_amount(bonus, name="--bonus") if bonus is not None else None,
            plan=_parse_plan(plan or []),
            database_url=database_url,
        )
    )


@app.command("budget-show")
def budget_show_cmd(
    month: str | None = typer.Option(None, help=MONTH_HELP),
    user: str | None = typer.Option(None, help=USER_HELP),
    database_url: str | None = typer.Option(None, help=DB_HELP),
) -> None:
    """Print planned vs spent per category for a month."""

    _finish(
        cmd_budget_show(
            month=_parse_month(month), user_id=_resolve_user(user), database_url=database_url
        )
    )


@app.command("transactions")
def transactions_cmd(
    month: str | None = typer.Option(None, help=MONTH_HELP),
    user: str | None = typer.Option(None, help=USER_HELP),
    category: str | None = typer.Option(None, help="Category display name, or All."),
    date_from: str | None = typer.Option(None, "--from", help="First day to include (YYYY-MM-DD)."),
    date_to: str | None = typer.Option(None, "--to", help="Last day to include (YYYY-MM-DD)."),
    search: str | None = typer.Option(None, help="Case-insensitive description search."),
    pick_category: bool = typer.Option(
        False, "--pick-category", help="Choose the category interactively."
    ),
    database_url: str | None = typer.Option(None, help=DB_HELP),
) -> None:
    """List stored transactions for a month with optional filters."""

    try:
        d_from = date.fromisoformat(date_from) if date_from else None
        d_to = date.fromisoformat(date_to) if date_to else None
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--from/--to") from e
    _finish(
        cmd_transactions(
            month=_parse_month(month),
            user_id=_resolve_user(user),
            category=category,
            date_from=d_from,
            date_to=d_to,
            search=search,
            pick_category=pick_category,
            database_url=database_url,
        )
    )


@app.command("reminder-add")
def reminder_add_cmd(
    provider: str = typer.Option(..., help="Bill provider name."),
    due_date: int = typer.Option(..., help="Day of month the bill is due (1-31)."),
    amount: str = typer.Option(..., help="Bill amount."),
    user: str | None = typer.Option(None, help=USER_HELP),
    category: str = typer.Option("utilities", help="Bill category."),
    notes: str | None = typer.Option(None, help="Free-form notes."),
    phone: list[str] | None = typer.Option(
        None, help="Phone number for SMS reminders (repeatable; first is the main one)."
    ),
    sms: bool = typer.Option(False, help="Enable SMS reminders."),
    schedule: str | None = typer.Option(
        None, help="When to send the reminder (ISO datetime, 5 minutes to 35 days ahead)."
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the duplicate-provider prompt."),
    database_url: str | None = typer.Option(None, help=DB_HELP),
) -> None:
    """Create a monthly bill reminder."""

    try:
        schedule_at = datetime.fromisoformat(schedule) if schedule else None
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--schedule") from e
    _finish(
        cmd_reminder_add(
            user_id=_resolve_user(user),
            provider_name=provider,
            due_date=due_date,
            amount=_parse_amount(amount, name="--amount"),
            category=category,
            notes=notes,
            phone_numbers=phone or [],
            sms=sms,
            schedule_at=schedule_at,
            yes=yes,
            database_url=database_url,
        )
    )


@app.command("reminder-list")
def reminder_list_cmd(
    user: str | None = typer.Option(None, help=USER_HELP),
    database_url: str | None = typer.Option(None, help=DB_HELP),
) -> None:
    """List bill reminders ordered by due day."""

    _finish(cmd_reminder_list(user_id=_resolve_user(user), database_url=database_url))


@app.command("reminder-delete")
def reminder_delete_cmd(
    reminder_id: str = typer.Argument(..., help="Id of the reminder to delete."),
    user: str | None = typer.Option(None, help=USER_HELP),
    database_url: str | None = typer.Option(None, help=DB_HELP),
) -> None:
    """Delete one bill reminder."""

    _finish(
        cmd_reminder_delete(reminder_id, user_id=_resolve_user(user), database_url=database_url)
    )


@app.callback()
def _root(
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level", help="DEBUG, INFO, WARNING or ERROR; overrides BUDGET_TRACKER_LOG_LEVEL."
        ),
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging before the
    subcommand runs.
    """

    from .settings import env_log_level

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level or env_log_level())


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    # Running as a module: `python -m budget_tracker.cli`
    app()
