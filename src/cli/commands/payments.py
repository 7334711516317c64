"""Payment commands."""

from __future__ import annotations

import typer

from cli.common import build_ledger, emit_json, ledger_errors
from services.stats import PERIODS, expense_summary
from .shared import format_amount, make_app, print_table

app = make_app("Record, edit and analyse payments")


@app.command("add", help="Record a payment (newest first)")
def add_payment(
    ctx: typer.Context,
    amount: float = typer.Option(..., "--amount", help="Positive amount"),
    type_: str = typer.Option(..., "--type", help="Payment type, e.g. Expense"),
    category: str = typer.Option(..., "--category", help="Payment category, e.g. Seeds"),
    image: list[str] = typer.Option(None, "--image", help="Photo to attach; repeatable"),
    audio: list[str] = typer.Option(None, "--audio", help="Voice note to attach; repeatable"),
    date: str | None = typer.Option(None, "--date", help="ISO-8601 timestamp (default: now)"),
) -> None:
    ledger = build_ledger(ctx)
    with ledger_errors():
        payment = ledger.add_payment(
            amount=amount,
            type=type_,
            category=category,
            images=image or [],
            audio=audio or [],
            date=date,
        )
    requested = len(image or []) + len(audio or [])
    if len(payment.attachments) < requested:
        typer.secho("Some attachments could not be stored.", fg=typer.colors.YELLOW, err=True)
    typer.echo(f"Saved payment {payment.id}")


@app.command("edit", help="Edit a payment; attachments are replaced when given")
def edit_payment(
    ctx: typer.Context,
    payment_id: str = typer.Argument(..., help="Payment id"),
    amount: float | None = typer.Option(None, "--amount"),
    type_: str | None = typer.Option(None, "--type"),
    category: str | None = typer.Option(None, "--category"),
    image: list[str] = typer.Option(None, "--image", help="Replacement photos; repeatable"),
    audio: list[str] = typer.Option(None, "--audio", help="Replacement voice notes; repeatable"),
    date: str | None = typer.Option(None, "--date"),
) -> None:
    ledger = build_ledger(ctx)
    with ledger_errors():
        payment = ledger.update_payment(
            payment_id,
            amount=amount,
            type=type_,
            category=category,
            images=image or None,
            audio=audio or None,
            date=date,
        )
    typer.echo(f"Updated payment {payment.id}")


@app.command("list", help="List payments")
def list_payments(
    ctx: typer.Context,
    json_out: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    payments = build_ledger(ctx).list_payments()
    if json_out:
        emit_json([payment.to_record() for payment in payments])
        return
    print_table(
        "Payments",
        ["Id", "Date", "Type", "Category", "Amount", "Media"],
        (
            [
                payment.id,
                payment.date.split("T", 1)[0],
                payment.type,
                payment.category,
                format_amount(payment.amount),
                len(payment.attachments),
            ]
            for payment in payments
        ),
    )


@app.command("show", help="Show one payment with resolved attachment paths")
def show_payment(
    ctx: typer.Context,
    payment_id: str = typer.Argument(..., help="Payment id"),
) -> None:
    ledger = build_ledger(ctx)
    payment = ledger.get_payment(payment_id)
    if payment is None:
        raise typer.BadParameter(f"Payment {payment_id} not found")
    payload = payment.to_record()
    payload["attachment_paths"] = [str(path) for path in ledger.attachment_paths(payment)]
    emit_json(payload)


@app.command("delete", help="Delete a payment (its media files are kept)")
def delete_payment(
    ctx: typer.Context,
    payment_id: str = typer.Argument(..., help="Payment id"),
) -> None:
    with ledger_errors():
        deleted = build_ledger(ctx).delete_payment(payment_id)
    if not deleted:
        raise typer.BadParameter(f"Payment {payment_id} not found")
    typer.echo(f"Deleted payment {payment_id}")


@app.command("stats", help="Expense totals for the current day, month or year")
def payment_stats(
    ctx: typer.Context,
    period: str = typer.Option("month", "--period", help="day|month|year"),
    json_out: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    period = period.strip().lower()
    if period not in PERIODS:
        raise typer.BadParameter(f"--period must be one of: {', '.join(PERIODS)}")
    summary = expense_summary(build_ledger(ctx).list_payments(), period)  # type: ignore[arg-type]
    if json_out:
        emit_json(summary.as_dict())
        return
    print_table(
        f"Expenses this {period}: {format_amount(summary.total)}",
        ["Category", "Amount"],
        ([name, format_amount(value)] for name, value in summary.by_category.items()),
    )
