"""Command line entry point for DebtSage."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import date

import click

from .config import BaseConfig
from .constants.debt import (
    COMPOUNDING_FREQUENCIES,
    DEBT_TYPES,
    DEFAULT_COMPOUNDING_FREQUENCY,
    DEFAULT_INTEREST_SCHEME,
    INTEREST_SCHEMES,
)
from .exceptions import DebtSageError
from .infra.database import bootstrap_database
from .infra.repositories import SQLModelAccountRepository, SQLModelTransactionRepository
from .logging_config import setup_logging
from .services.debt_conversion import convert_from_debt, convert_to_debt
from .services.debt_detection import detect_debt_accounts, format_cents
from .services.interest import calculate_apr_from_interest, get_next_interest_date
from .services.interest_posting import post_interest_transaction, post_scheduled_interest


def _parse_date(_ctx, _param, value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter("expected YYYY-MM-DD") from exc


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Detect debt accounts and automate interest postings."""

    config = BaseConfig()
    setup_logging(config)
    ctx.obj = {"config": config}


def _session_factory(ctx: click.Context):
    if "session_factory" not in ctx.obj:
        _, ctx.obj["session_factory"] = bootstrap_database(ctx.obj["config"])
    return ctx.obj["session_factory"]


@cli.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create tables and add any missing debt columns."""

    _session_factory(ctx)
    click.echo(f"Database ready: {ctx.obj['config'].DATABASE_URL}")


@cli.command("detect")
@click.option("--as-json", "as_json", is_flag=True, default=False, help="Emit candidates as JSON")
@click.pass_context
def detect(ctx: click.Context, as_json: bool) -> None:
    """List accounts that look like loans or credit lines."""

    factory = _session_factory(ctx)
    candidates = detect_debt_accounts(
        account_repo=SQLModelAccountRepository(factory),
        transaction_repo=SQLModelTransactionRepository(factory),
    )
    if as_json:
        click.echo(json.dumps([asdict(c) for c in candidates], indent=2))
        return
    if not candidates:
        click.echo("No potential debt accounts found.")
        return
    for c in candidates:
        click.echo(
            f"[{c.confidence:>6}] {c.score:>3}  #{c.account_id} {c.account_name} "
            f"(-{format_cents(c.balance)}) -> {c.suggested_debt_type}"
        )
        for reason in c.reasons:
            click.echo(f"             - {reason}")


@cli.command("convert")
@click.argument("account_id", type=int)
@click.option("--debt-type", type=click.Choice(DEBT_TYPES), required=True)
@click.option("--apr", type=float, required=True, help="Annual rate as a percentage")
@click.option("--scheme", type=click.Choice(INTEREST_SCHEMES), default=DEFAULT_INTEREST_SCHEME)
@click.option(
    "--compounding", type=click.Choice(COMPOUNDING_FREQUENCIES), default=DEFAULT_COMPOUNDING_FREQUENCY
)
@click.option("--posting-day", type=click.IntRange(1, 31), default=None, help="Omit for month end")
@click.option("--interest-category", type=int, default=None, help="Category for interest charges")
@click.pass_context
def convert(
    ctx: click.Context,
    account_id: int,
    debt_type: str,
    apr: float,
    scheme: str,
    compounding: str,
    posting_day: int | None,
    interest_category: int | None,
) -> None:
    """Mark an account as debt and schedule its interest."""

    factory = _session_factory(ctx)
    try:
        with factory() as session:
            account = convert_to_debt(
                session,
                account_id=account_id,
                debt_type=debt_type,
                apr=apr,
                interest_scheme=scheme,
                compounding_frequency=compounding,
                interest_posting_day=posting_day,
                interest_category_id=interest_category,
                payee_name=ctx.obj["config"].INTEREST_PAYEE,
            )
            name = account.name
    except (DebtSageError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Converted {name} to {debt_type} at {apr:g}% APR")


@cli.command("unconvert")
@click.argument("account_id", type=int)
@click.pass_context
def unconvert(ctx: click.Context, account_id: int) -> None:
    """Clear the debt flag and drop the interest schedule."""

    factory = _session_factory(ctx)
    try:
        with factory() as session:
            name = convert_from_debt(session, account_id=account_id).name
    except DebtSageError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"{name} is no longer tracked as debt")


@cli.command("post-interest")
@click.argument("account_id", type=int)
@click.option("--apr", type=float, default=None, help="Override the scheduled APR")
@click.option("--scheme", type=click.Choice(INTEREST_SCHEMES), default=DEFAULT_INTEREST_SCHEME)
@click.option("--category", type=int, default=None, help="Category when --apr is given")
@click.option("--on", "on_date", callback=_parse_date, default=None, help="Posting date YYYY-MM-DD")
@click.pass_context
def post_interest(
    ctx: click.Context,
    account_id: int,
    apr: float | None,
    scheme: str,
    category: int | None,
    on_date: date | None,
) -> None:
    """Post one month of interest to a debt account."""

    factory = _session_factory(ctx)
    payee_name = ctx.obj["config"].INTEREST_PAYEE
    try:
        with factory() as session:
            if apr is None:
                transaction_id = post_scheduled_interest(
                    session, account_id=account_id, on_date=on_date, payee_name=payee_name
                )
            else:
                transaction_id = post_interest_transaction(
                    session,
                    account_id=account_id,
                    apr=apr,
                    interest_scheme=scheme,
                    compounding_frequency=DEFAULT_COMPOUNDING_FREQUENCY,
                    interest_category_id=category,
                    on_date=on_date,
                    payee_name=payee_name,
                )
    except DebtSageError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Posted interest transaction #{transaction_id}")


@cli.command("apr-from-interest")
@click.argument("interest", type=int)
@click.argument("principal", type=int)
@click.option("--scheme", type=click.Choice(INTEREST_SCHEMES), default=DEFAULT_INTEREST_SCHEME)
def apr_from_interest(interest: int, principal: int, scheme: str) -> None:
    """Estimate the APR behind one month's INTEREST on PRINCIPAL (both in cents)."""

    apr = calculate_apr_from_interest(interest, principal, scheme)
    if apr is None:
        raise click.ClickException("Cannot estimate APR from these values")
    click.echo(f"{apr:.2f}% (estimate)")


@cli.command("next-date")
@click.option("--day", type=click.IntRange(1, 31), default=None, help="Omit for month end")
@click.option("--from", "from_date", callback=_parse_date, default=None, help="YYYY-MM-DD")
def next_date(day: int | None, from_date: date | None) -> None:
    """Show the next interest posting date."""

    click.echo(get_next_interest_date(day, from_date).isoformat())


def main() -> None:  # pragma: no cover - console script shim
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
