"""
FASHIONSIM Command-Line Interface.

Plays a season turn by turn against a JSON file store: start a game,
submit decision files, validate, commit weeks and review results.
"""

import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from fashionsim import __version__
from fashionsim.config.schema import FashionSimConfig, get_default_config
from fashionsim.engine.intake import IntakeError
from fashionsim.engine.procurement import ProcurementError
from fashionsim.engine.production import ScheduleError
from fashionsim.engine.simulation import (
    CommitInProgressError,
    WeekAlreadyCommittedError,
    WeekCommitOrchestrator,
)
from fashionsim.engine.validation import ValidationResult
from fashionsim.io import (
    DecisionsParseError,
    JsonFileStateStore,
    SessionNotFoundError,
    StoreError,
    WeekNotFoundError,
    get_default_data_dir,
    parse_decisions,
)
from fashionsim.models.money import format_money
from fashionsim.models.report import WeeklySummary
from fashionsim.models.session import SeasonResult
from fashionsim.models.state import WeeklyState

console = Console()
err_console = Console(stderr=True)

GAME_ERRORS = (
    SessionNotFoundError,
    WeekNotFoundError,
    WeekAlreadyCommittedError,
    CommitInProgressError,
    StoreError,
)
DECISION_ERRORS = (DecisionsParseError, IntakeError, ProcurementError, ScheduleError)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _orchestrator(ctx: click.Context) -> WeekCommitOrchestrator:
    return ctx.obj["orchestrator"]


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    sys.exit(1)


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise click.BadParameter(f"not a number: {value}") from e


# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="FASHIONSIM")
@click.option(
    "--data-dir",
    "-d",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="FASHIONSIM_DATA_DIR",
    default=None,
    help="Directory for session files",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Constants catalog override (JSON or YAML)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, data_dir: Optional[Path], config_path: Optional[Path], verbose: bool) -> None:
    """
    FASHIONSIM - A Fashion Retail Season Simulation

    Plan a 15-week season: price and design three products, buy fabric,
    schedule production, then sell through the season and run-out.
    """
    _setup_logging(verbose)
    config = FashionSimConfig.from_file(config_path) if config_path else get_default_config()
    store = JsonFileStateStore(data_dir or get_default_data_dir())
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["orchestrator"] = WeekCommitOrchestrator(store, config)


# =============================================================================
# Game Commands
# =============================================================================


@cli.command()
@click.option("--name", "-n", default="Player", help="Player name")
@click.pass_context
def new(ctx: click.Context, name: str) -> None:
    """Start a new game."""
    try:
        session, state = _orchestrator(ctx).start_game(name)
    except StoreError as e:
        _fail(str(e))
        return

    console.print()
    console.print(Panel.fit(
        "[bold magenta]FASHIONSIM[/bold magenta]\n[dim]Fashion Retail Season Simulation[/dim]",
        border_style="magenta",
    ))
    console.print(f"[green]Created new game for[/green] {session.player_name}")
    console.print(f"  Session ID: [bold]{session.session_id}[/bold]")
    console.print(f"  Starting cash: {format_money(state.cash_on_hand)}")


@cli.command()
@click.pass_context
def sessions(ctx: click.Context) -> None:
    """List saved games."""
    games = _orchestrator(ctx).store.list_sessions()
    if not games:
        console.print("[yellow]No saved games found.[/yellow]")
        return

    table = Table(title="Games", box=None)
    table.add_column("Session")
    table.add_column("Player")
    table.add_column("Week", justify="right")
    table.add_column("Status")
    table.add_column("Created")
    for game in games:
        table.add_row(
            game.session_id,
            game.player_name,
            str(game.current_week),
            "finished" if game.is_completed else "in progress",
            game.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@cli.command()
@click.argument("session_id")
@click.pass_context
def status(ctx: click.Context, session_id: str) -> None:
    """Show the current week of a game."""
    try:
        state = _orchestrator(ctx).current_state(session_id)
    except GAME_ERRORS as e:
        _fail(str(e))
        return
    _display_state(state)


@cli.command()
@click.argument("session_id")
@click.argument("decisions_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def decide(ctx: click.Context, session_id: str, decisions_file: Path) -> None:
    """Submit a decisions file (YAML or JSON) for the current week."""
    try:
        decisions = parse_decisions(decisions_file)
        state = _orchestrator(ctx).submit_decisions(session_id, decisions)
    except DECISION_ERRORS + GAME_ERRORS as e:
        _fail(str(e))
        return

    console.print(f"[green]Decisions recorded for week {state.week_number}[/green]")
    _display_messages(state.validation_errors, state.validation_warnings)


@cli.command()
@click.argument("session_id")
@click.pass_context
def validate(ctx: click.Context, session_id: str) -> None:
    """Check the current week without committing."""
    try:
        result = _orchestrator(ctx).validate(session_id)
    except GAME_ERRORS as e:
        _fail(str(e))
        return
    _display_validation(result)
    if not result.can_commit:
        sys.exit(1)


@cli.command()
@click.argument("session_id")
@click.pass_context
def commit(ctx: click.Context, session_id: str) -> None:
    """Commit the current week."""
    try:
        outcome = _orchestrator(ctx).commit(session_id)
    except GAME_ERRORS as e:
        _fail(str(e))
        return

    if not outcome.committed:
        console.print(f"[red]Week {outcome.state.week_number} was not committed.[/red]")
        _display_validation(outcome.validation)
        sys.exit(1)

    if outcome.summary is not None:
        _display_summary(outcome.summary)
    if outcome.result is not None:
        _display_result(outcome.result)
    elif outcome.next_state is not None:
        console.print(f"\n[green]Week {outcome.next_state.week_number} is ready.[/green]")


@cli.command()
@click.argument("product")
@click.option("--week", "-w", type=int, required=True, help="Week number")
@click.option("--rrp", "-p", required=True, help="Retail price")
@click.option("--discount", default="0", help="Discount as a fraction, e.g. 0.2")
@click.option("--marketing", "-m", default="0", help="Weekly marketing spend")
@click.option("--print/--plain", "has_print", default=False, help="Printed design")
@click.pass_context
def demand(
    ctx: click.Context,
    product: str,
    week: int,
    rrp: str,
    discount: str,
    marketing: str,
    has_print: bool,
) -> None:
    """Preview demand for a product and its contributing factors."""
    config: FashionSimConfig = ctx.obj["config"]
    if product not in config.products:
        _fail(f"Unknown product: {product} (choose from {', '.join(config.product_keys)})")
        return

    breakdown = _orchestrator(ctx).preview_demand(
        product, week, _decimal(rrp), _decimal(discount), _decimal(marketing), has_print
    )
    table = Table(title=f"Demand for {product}, week {week}", box=None)
    table.add_column("Factor")
    table.add_column("Value", justify="right")
    table.add_row("Base forecast", f"{breakdown.base_forecast:,.2f}")
    table.add_row("Seasonality", f"{breakdown.seasonality:.3f}")
    table.add_row("Price effect", f"{breakdown.price_effect:.4f}")
    table.add_row("Promo lift", f"{breakdown.promo_lift:.4f}")
    table.add_row("Positioning", f"{breakdown.positioning_effect:.4f}")
    table.add_row("Design", f"{breakdown.design_effect:.3f}")
    table.add_row("[bold]Units[/bold]", f"[bold]{breakdown.units:,}[/bold]")
    console.print(table)


@cli.command()
@click.argument("session_id")
@click.pass_context
def history(ctx: click.Context, session_id: str) -> None:
    """Show every committed week of a game."""
    try:
        weeks = _orchestrator(ctx).history(session_id)
    except GAME_ERRORS as e:
        _fail(str(e))
        return
    if not weeks:
        console.print("[yellow]No committed weeks yet.[/yellow]")
        return

    table = Table(title=f"History of {session_id}", box=None)
    table.add_column("Week", justify="right")
    table.add_column("Phase")
    table.add_column("Demand", justify="right")
    table.add_column("Sold", justify="right")
    table.add_column("Revenue", justify="right")
    table.add_column("Cash", justify="right")
    table.add_column("Credit", justify="right")
    table.add_column("Costs to date", justify="right")
    for state in weeks:
        table.add_row(
            str(state.week_number),
            state.phase.value,
            f"{state.units_demanded:,}",
            f"{state.units_sold:,}",
            format_money(state.weekly_revenue),
            format_money(state.cash_on_hand),
            format_money(state.credit_used),
            format_money(state.costs.total),
        )
    console.print(table)


@cli.command()
@click.argument("session_id")
@click.pass_context
def results(ctx: click.Context, session_id: str) -> None:
    """Show the final score of a finished game."""
    try:
        session = _orchestrator(ctx).get_session(session_id)
    except GAME_ERRORS as e:
        _fail(str(e))
        return
    if session.result is None:
        console.print(f"[yellow]Game {session_id} is still in week {session.current_week}.[/yellow]")
        return
    _display_result(session.result)


@cli.command()
@click.option(
    "--export",
    "-e",
    "export_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the full catalog to a JSON or YAML file",
)
@click.pass_context
def constants(ctx: click.Context, export_path: Optional[Path]) -> None:
    """Show the constants catalog."""
    config: FashionSimConfig = ctx.obj["config"]
    if export_path is not None:
        config.to_file(export_path)
        console.print(f"[green]Constants written to {export_path}[/green]")
        return

    table = Table(title="Products", box=None)
    table.add_column("Product")
    table.add_column("Forecast", justify="right")
    table.add_column("H&M price", justify="right")
    table.add_column("In-house", justify="right")
    table.add_column("Outsource", justify="right")
    for key, product in config.products.items():
        rates = config.production.manufacturing[key]
        table.add_row(
            product.name,
            f"{product.forecast:,}",
            format_money(product.hm_price),
            f"{format_money(rates.in_house_cost)} / {rates.in_house_weeks}w",
            f"{format_money(rates.outsource_cost)} / {rates.outsource_weeks}w",
        )
    console.print(table)

    table = Table(title="Suppliers", box=None)
    table.add_column("Supplier")
    table.add_column("Lead", justify="right")
    table.add_column("Defects", justify="right")
    table.add_column("Materials")
    for supplier in config.suppliers.values():
        materials = ", ".join(
            f"{name} {format_money(price.price)}" for name, price in supplier.materials.items()
        )
        table.add_row(
            supplier.name,
            f"{supplier.lead_time}w",
            f"{supplier.defect_rate:.0%}",
            materials,
        )
    console.print(table)

    finance = config.finance
    console.print(
        f"\nStarting capital {format_money(finance.starting_capital)} | "
        f"Credit limit {format_money(finance.credit_limit)} | "
        f"Interest {finance.weekly_interest_rate:.2%}/week | "
        f"Holding {finance.holding_cost_rate:.2%}/week"
    )


@cli.command()
@click.option("--host", default=None, help="Bind address (default from FASHIONSIM_HOST)")
@click.option("--port", type=int, default=None, help="Port (default from FASHIONSIM_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool) -> None:
    """Run the web API."""
    import uvicorn

    from web.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "web.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# =============================================================================
# Display Functions
# =============================================================================


def _display_messages(errors: list[str], warnings: list[str]) -> None:
    if warnings:
        console.print("\n[yellow]Warnings:[/yellow]")
        for warning in warnings:
            console.print(f"  [yellow]- {warning}[/yellow]")
    if errors:
        console.print("\n[red]Validation errors:[/red]")
        for error in errors:
            console.print(f"  [red]- {error}[/red]")


def _display_validation(result: ValidationResult) -> None:
    if result.can_commit and not result.warnings:
        console.print("[green]No problems found.[/green]")
        return
    if result.warnings:
        console.print("\n[yellow]Warnings:[/yellow]")
        for warning in result.warnings:
            console.print(f"  [yellow]- {warning.field}: {warning.message}[/yellow]")
    if result.errors:
        console.print("\n[red]Validation errors:[/red]")
        for error in result.errors:
            console.print(f"  [red]- {error.field}: {error.message}[/red]")
            if error.suggestion:
                console.print(f"    [dim]{error.suggestion}[/dim]")


def _display_state(state: WeeklyState) -> None:
    """Display the current week of a game."""
    status = "committed" if state.is_committed else "draft"
    console.print()
    console.print(Panel.fit(
        f"[bold]Week {state.week_number}[/bold] ({state.phase.value}, {status})\n"
        f"Cash: {format_money(state.cash_on_hand)} | Credit used: {format_money(state.credit_used)}",
        title=state.session_id,
        border_style="blue",
    ))

    table = Table(title="Products", box=None)
    table.add_column("Product")
    table.add_column("RRP", justify="right")
    table.add_column("Fabric")
    table.add_column("Print")
    table.add_column("Material cost", justify="right")
    table.add_column("Finished", justify="right")
    for product, decision in state.product_data.items():
        table.add_row(
            product,
            format_money(decision.rrp) if decision.rrp is not None else "-",
            decision.fabric or "-",
            "yes" if decision.has_print else "no",
            format_money(decision.confirmed_material_cost),
            f"{state.finished_units(product):,}",
        )
    console.print(table)

    if state.raw_materials:
        table = Table(title="Raw Materials", box=None)
        table.add_column("Material")
        table.add_column("On hand", justify="right")
        table.add_column("Value", justify="right")
        for material, stock in state.raw_materials.items():
            table.add_row(material, f"{stock.on_hand:,}", format_money(stock.on_hand_value))
        console.print(table)

    if state.production_schedule.batches:
        table = Table(title="Production Schedule", box=None)
        table.add_column("Batch")
        table.add_column("Product")
        table.add_column("Method")
        table.add_column("Start", justify="right")
        table.add_column("Quantity", justify="right")
        table.add_column("Shipping")
        for batch in state.production_schedule.batches:
            table.add_row(
                batch.batch_id,
                batch.product,
                batch.method.value,
                str(batch.start_week),
                f"{batch.quantity:,}",
                batch.shipping.value,
            )
        console.print(table)

    if state.procurement.contracts:
        table = Table(title="Contracts", box=None)
        table.add_column("Contract")
        table.add_column("Type")
        table.add_column("Supplier")
        table.add_column("Material")
        table.add_column("Units", justify="right")
        table.add_column("Unit price", justify="right")
        for contract in state.procurement.contracts:
            table.add_row(
                contract.contract_id,
                contract.contract_type.value,
                contract.supplier,
                contract.material,
                f"{contract.units:,}",
                format_money(contract.unit_price) if contract.is_priced else "unpriced",
            )
        console.print(table)

    _display_messages(state.validation_errors, state.validation_warnings)


def _display_summary(summary: WeeklySummary) -> None:
    """Display the summary of a committed week."""
    console.print()
    console.print(Panel.fit(
        f"[bold]Week {summary.week_number} Summary[/bold] ({summary.phase})",
        border_style="green",
    ))

    cash = summary.cash
    table = Table(title="Cash", box=None)
    table.add_column("Step")
    table.add_column("Amount", justify="right")
    table.add_row("Opening cash", format_money(cash.opening_cash))
    table.add_row("Revenue", format_money(cash.revenue))
    table.add_row("Operating outflows", format_money(cash.operating_outflows))
    table.add_row("Interest", format_money(cash.interest))
    table.add_row("Credit paid down", format_money(cash.paydown + cash.final_paydown))
    if cash.gmc_penalty:
        table.add_row("GMC shortfall penalty", format_money(cash.gmc_penalty))
    table.add_row("[bold]Closing cash[/bold]", f"[bold]{format_money(cash.closing_cash)}[/bold]")
    table.add_row("[bold]Closing credit[/bold]", f"[bold]{format_money(cash.closing_credit)}[/bold]")
    console.print(table)

    if summary.sales:
        table = Table(title="Sales", box=None)
        table.add_column("Product")
        table.add_column("Demand", justify="right")
        table.add_column("Sold", justify="right")
        table.add_column("Lost", justify="right")
        table.add_column("Price", justify="right")
        table.add_column("Revenue", justify="right")
        for sales in summary.sales:
            price = format_money(sales.price)
            if sales.blocked_below_cost:
                price += " [red](below cost)[/red]"
            table.add_row(
                sales.product,
                f"{sales.demand:,}",
                f"{sales.sold:,}",
                f"{sales.lost:,}",
                price,
                format_money(sales.revenue),
            )
        console.print(table)

    if summary.raw_materials:
        table = Table(title="Raw Materials", box=None)
        table.add_column("Material")
        table.add_column("Opening", justify="right")
        table.add_column("Received", justify="right")
        table.add_column("Used", justify="right")
        table.add_column("Closing", justify="right")
        for delta in summary.raw_materials:
            table.add_row(
                delta.material,
                f"{delta.opening_units:,}",
                f"{delta.received_units:,}",
                f"{delta.consumed_units:,}",
                f"{delta.closing_units:,}",
            )
        console.print(table)

    if summary.production:
        table = Table(title="Production", box=None)
        table.add_column("Batch")
        table.add_column("Product")
        table.add_column("Event")
        table.add_column("Units", justify="right")
        table.add_column("Detail")
        for event in summary.production:
            table.add_row(
                event.batch_id, event.product, event.event, f"{event.quantity:,}", event.detail or ""
            )
        console.print(table)

    if summary.settlements:
        table = Table(title="Supplier Payments", box=None)
        table.add_column("Contract")
        table.add_column("Type")
        table.add_column("Supplier")
        table.add_column("Amount", justify="right")
        for settlement in summary.settlements:
            table.add_row(
                settlement.contract_id,
                settlement.contract_type,
                settlement.supplier,
                format_money(settlement.amount),
            )
        table.add_row("[bold]Total[/bold]", "", "", f"[bold]{format_money(summary.total_settled)}[/bold]")
        console.print(table)

    if summary.warnings:
        _display_messages([], summary.warnings)


def _display_result(result: SeasonResult) -> None:
    """Display the final season KPIs."""
    console.print()
    console.print(Panel.fit(
        "[bold green]Season Complete![/bold green]\n\n"
        f"Service level: {result.service_level:.2f}% "
        f"({result.units_sold:,} of {result.units_demanded:,} units)\n"
        f"Revenue: {format_money(result.total_revenue)}\n"
        f"Total costs: {format_money(result.total_costs)}\n"
        f"Capital charge: {format_money(result.capital_charge)}\n"
        f"Economic profit: {format_money(result.economic_profit)}\n"
        f"Dead stock: {result.dead_stock_units:,} units ({format_money(result.dead_stock_penalty)})\n"
        f"[bold]Final score: {format_money(result.final_score)}[/bold]",
        border_style="green",
    ))


# =============================================================================
# Entry Point
# =============================================================================


if __name__ == "__main__":
    cli()
