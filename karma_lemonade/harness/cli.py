#!/usr/bin/env python3
# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
CLI entry point for the Karma Lemonade Stand simulation.

Usage:
    # Today's weather, market event and festival
    karma-lemonade cycle

    # A specific day with a custom economy
    karma-lemonade cycle --date 2025-07-04 --config config.yaml

    # Play one run as a fresh player
    karma-lemonade play --price 1.25 --ad-spend 10

    # Claim the login bonus and use two Super Sugar boosts
    karma-lemonade play --price 1.5 --ad-spend 5 --claim-bonus --super-sugar 2

    # Demand curve for today
    karma-lemonade forecast --ad-spend 10

    # Re-check a submitted result
    karma-lemonade validate submission.json
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from dotenv import load_dotenv
load_dotenv()

from ..bonuses.effects import BonusEffectsHandler
from ..bonuses.login_bonus import LoginBonusManager
from ..bonuses.powerups import PowerupEffectsApplier
from ..config import DEFAULT_CONFIG, GameConfig, create_example_config, load_config
from ..cycles.clock import FixedClock, SystemClock, format_day, parse_day, utc_today
from ..cycles.daily import DailyCycleManager
from ..cycles.provider import CycleProvider
from ..cycles.weekly import WeeklyCycleManager, iso_week
from ..engine.game_engine import GameEngine
from ..errors import GameRunValidationError, RateLimitError
from ..models import GameResult, GameRun, GameStats, PaymentReceipt, PowerupUsage, Progress, UserProfile
from ..security.rate_limiter import RunRateLimiter
from ..security.validator import GameValidator, log_validation_result
from ..service import GameRunRequest, GameService, InMemoryProfileStore, ReceiptLedger, SubmittedReceipts
from ..stats import stat_tier

app = typer.Typer(
    name="karma-lemonade",
    help="Karma Lemonade Stand - deterministic lemonade stand simulation",
    add_completion=False,
)
console = Console()

ConfigOption = typer.Option(None, "--config", "-c", help="YAML game config")
DateOption = typer.Option(None, "--date", "-d", help="UTC day (YYYY-MM-DD), defaults to today")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Debug logging")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(config_path: Optional[Path]) -> GameConfig:
    if config_path is None:
        return DEFAULT_CONFIG
    if not config_path.exists():
        console.print(f"[red]Config file not found: {config_path}[/red]")
        raise typer.Exit(1)
    try:
        return load_config(config_path)
    except ValueError as e:
        console.print(f"[red]Invalid config: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _clock(day: Optional[str]):
    if day is None:
        return SystemClock()
    try:
        parse_day(day)
    except ValueError:
        console.print(f"[red]Invalid date: {day}. Expected YYYY-MM-DD[/red]")
        raise typer.Exit(1)
    return FixedClock.on(day)


def _money(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):.2f}"


@app.command()
def cycle(
    day: Optional[str] = DateOption,
    config_path: Optional[Path] = ConfigOption,
):
    """Show the daily and weekly cycle for a day."""
    config = _load(config_path)
    today = utc_today(_clock(day))
    daily = DailyCycleManager().generate_daily_cycle(format_day(today))
    weekly = WeeklyCycleManager(config).generate_for_date(today)
    theme = config.festivals[weekly.festival]

    console.print(f"\n[bold blue]🍋 Karma Lemonade Stand[/bold blue] [dim]{daily.date}[/dim]\n")

    table = Table(title="Daily Cycle", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Weather", daily.weather.value)
    table.add_row("Market event", daily.event.value)
    table.add_row("Lemon price", _money(daily.lemon_price))
    table.add_row("Sugar price", _money(daily.sugar_price))
    table.add_row("Login bonus", daily.login_bonus.value)
    table.add_row("Seed", daily.seed)
    console.print(table)

    mods = weekly.modifiers
    table = Table(title=f"Week {weekly.week}, {weekly.year}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Festival", f"{theme.name} ({theme.category.value})")
    table.add_row("Demand multiplier", f"{mods.demand_multiplier:.3f}")
    table.add_row("Price variance", f"{mods.price_variance:.3f}")
    table.add_row("Critical sale chance", f"{mods.critical_sale_chance:.1%}")
    table.add_row("Cost volatility", f"{mods.cost_volatility:+.3f}")
    table.add_row("Special effects", ", ".join(mods.special_effects) or "-")
    console.print(table)


@app.command()
def festivals(config_path: Optional[Path] = ConfigOption):
    """List the festival rotation grouped by category."""
    config = _load(config_path)

    table = Table(title="Festival Themes")
    table.add_column("Category", style="cyan")
    table.add_column("Festival")
    table.add_column("Demand", justify="right")
    table.add_column("Effects", style="dim")
    for category, themes in config.festivals_by_category().items():
        for theme in themes:
            demand = theme.demand_multiplier if theme.demand_multiplier is not None else 1.0
            table.add_row(category.value, theme.name, f"{demand:.2f}x", ", ".join(theme.special_effects))
    console.print(table)
    console.print(f"[dim]{len(config.festivals)} themes[/dim]")


@app.command()
def play(
    price: float = typer.Option(..., "--price", "-p", help="Price per cup in dollars"),
    ad_spend: float = typer.Option(0.0, "--ad-spend", "-a", help="Advertising budget in dollars"),
    user: str = typer.Option("player", "--user", "-u", help="Player id"),
    service: float = typer.Option(0.0, help="Service stat (0-10)"),
    marketing: float = typer.Option(0.0, help="Marketing stat (0-10)"),
    reputation: float = typer.Option(0.0, help="Reputation stat (0-10)"),
    runs: int = typer.Option(0, "--runs", help="Runs the player has already completed"),
    claim_bonus: bool = typer.Option(False, "--claim-bonus", help="Claim today's login bonus first"),
    super_sugar: int = typer.Option(0, "--super-sugar", help="Number of Super Sugar receipts to use"),
    day: Optional[str] = DateOption,
    config_path: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Play one run for an in-memory player."""
    _setup_logging(verbose)
    config = _load(config_path)
    clock = _clock(day)

    daily_cycles = DailyCycleManager()
    login_bonuses = LoginBonusManager(daily_cycles)
    ledger = ReceiptLedger(clock)
    engine = GameEngine.from_config(
        config,
        powerup_applier=PowerupEffectsApplier(config, ledger),
        bonus_handler=BonusEffectsHandler(login_bonuses),
    )
    cycles = CycleProvider(daily_cycles, WeeklyCycleManager(config), clock)
    profile = UserProfile(
        user_id=user,
        username=user,
        game_stats=GameStats(service=service, marketing=marketing, reputation=reputation),
        progress=Progress(total_runs=runs),
    )
    game = GameService(
        engine, InMemoryProfileStore([profile]), ledger, cycles,
        rate_limiter=RunRateLimiter(config.limits, clock),
    )

    if claim_bonus:
        bonus = login_bonuses.claim(user, cycles.today())
        console.print(f"[yellow]Login bonus:[/yellow] {bonus.description} - {bonus.effect}")

    receipt_ids = []
    sugar = config.powerups.get("super_sugar_boost")
    if super_sugar and sugar is None:
        console.print("[red]The configured game has no super_sugar_boost power-up[/red]")
        raise typer.Exit(1)
    for _ in range(super_sugar):
        receipt_ids.append(ledger.issue(user, sugar.sku, sugar.price, sugar.currency).receipt_id)

    try:
        response = game.run_game(
            user, GameRunRequest(price=price, ad_spend=ad_spend, powerup_receipts=receipt_ids)
        )
    except (GameRunValidationError, RateLimitError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    result = response.result
    current = cycles.current()
    breakdown = engine.cost_breakdown(
        GameRun(user_id=user, price=price, ad_spend=ad_spend),
        result.cups_sold,
        current.daily,
        current.weekly,
    )

    table = Table(title=f"Run {response.profile.progress.total_runs} - {current.daily.date}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Weather", result.weather.value)
    table.add_row("Market event", result.event.value)
    table.add_row("Festival", config.festivals[result.festival].name)
    table.add_row("Cups sold", str(result.cups_sold))
    table.add_row("Profit", f"[bold]{_money(result.profit)}[/bold]")
    table.add_row("Streak", str(response.progress.current_streak))
    table.add_row("Seed", result.seed)
    console.print(table)

    costs = Table(title="Costs at final cups sold", show_header=False)
    costs.add_column("Item", style="cyan")
    costs.add_column("Amount", justify="right")
    costs.add_row("Revenue", _money(breakdown.revenue))
    costs.add_row("Inventory", _money(breakdown.inventory_cost))
    costs.add_row("Fixed", _money(breakdown.fixed_cost))
    costs.add_row("Advertising", _money(breakdown.advertising_cost))
    costs.add_row("Total costs", _money(breakdown.total_costs))
    console.print(costs)

    for effect in result.powerup_effects + result.bonuses_applied:
        console.print(f"  • {effect}")
    if response.progress.new_personal_best:
        console.print("[green]New personal best![/green]")

    stats = profile.game_stats
    console.print(
        f"[dim]Service {stats.service:g} ({stat_tier(stats.service)}), "
        f"marketing {stats.marketing:g} ({stat_tier(stats.marketing)}), "
        f"reputation {stats.reputation:g} ({stat_tier(stats.reputation)})[/dim]"
    )


@app.command()
def forecast(
    ad_spend: float = typer.Option(0.0, "--ad-spend", "-a", help="Advertising budget in dollars"),
    min_price: Optional[float] = typer.Option(None, help="Lowest price (defaults to config minimum)"),
    max_price: Optional[float] = typer.Option(None, help="Highest price (defaults to config maximum)"),
    step: float = typer.Option(0.25, help="Price step"),
    service: float = typer.Option(0.0, help="Service stat (0-10)"),
    marketing: float = typer.Option(0.0, help="Marketing stat (0-10)"),
    reputation: float = typer.Option(0.0, help="Reputation stat (0-10)"),
    day: Optional[str] = DateOption,
    config_path: Optional[Path] = ConfigOption,
):
    """Expected demand and profit across prices (no randomness)."""
    config = _load(config_path)
    if step <= 0:
        console.print("[red]Step must be positive[/red]")
        raise typer.Exit(1)
    low = config.game.min_price if min_price is None else min_price
    high = config.game.max_price if max_price is None else max_price

    today = utc_today(_clock(day))
    daily = DailyCycleManager().generate_daily_cycle(format_day(today))
    weekly = WeeklyCycleManager(config).generate_weekly_cycle(*iso_week(today))
    engine = GameEngine.from_config(config)
    profile = UserProfile(
        user_id="forecast",
        game_stats=GameStats(service=service, marketing=marketing, reputation=reputation),
    )

    prices = []
    price = low
    while price <= high + 1e-9:
        prices.append(round(price, 2))
        price += step

    table = Table(title=f"Forecast {daily.date} ({daily.weather.value}, {daily.event.value})")
    table.add_column("Price", justify="right")
    table.add_column("Cups", justify="right")
    table.add_column("Revenue", justify="right")
    table.add_column("Profit", justify="right")
    best = None
    points = engine.forecast(prices, ad_spend, profile, daily, weekly)
    for point in points:
        if best is None or point.profit > best.profit:
            best = point
    for point in points:
        style = "bold green" if point is best else None
        table.add_row(
            _money(point.price), str(point.expected_cups), _money(point.revenue), _money(point.profit),
            style=style,
        )
    console.print(table)


@app.command()
def validate(
    submission: Path = typer.Argument(..., help="JSON file with the run, profile and client result"),
    day: Optional[str] = DateOption,
    config_path: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """
    Re-run a submitted result and print its risk assessment.

    The JSON file holds "run" (user_id, price, ad_spend), "profile"
    (total_runs, best_profit, current_streak, stats, powerups_used_today) and
    "result". Runs that used extras also carry "login_bonus_claimed" (true
    when the day's login bonus was claimed before the run) and
    "powerup_receipts" (the full receipts that were redeemed).
    """
    _setup_logging(verbose)
    config = _load(config_path)
    if not submission.exists():
        console.print(f"[red]Submission file not found: {submission}[/red]")
        raise typer.Exit(1)
    with open(submission) as f:
        data = json.load(f)

    today = format_day(utc_today(_clock(day)))
    try:
        run_data = data["run"]
        profile_data = data.get("profile", {})
        stats = profile_data.get("stats", {})
        receipts = [PaymentReceipt.from_dict(r) for r in data.get("powerup_receipts", [])]
        game_run = GameRun(
            user_id=run_data["user_id"],
            price=float(run_data["price"]),
            ad_spend=float(run_data["ad_spend"]),
            powerup_receipts=receipts,
        )
        profile = UserProfile(
            user_id=game_run.user_id,
            game_stats=GameStats(
                service=float(stats.get("service", 0)),
                marketing=float(stats.get("marketing", 0)),
                reputation=float(stats.get("reputation", 0)),
            ),
            progress=Progress(
                total_runs=int(profile_data.get("total_runs", 0)),
                current_streak=int(profile_data.get("current_streak", 0)),
                best_profit=float(profile_data.get("best_profit", 0)),
            ),
            powerups=PowerupUsage(
                used_today={
                    str(sku): int(uses)
                    for sku, uses in profile_data.get("powerups_used_today", {}).items()
                },
                last_reset_date=today,
            ),
        )
        bonus_claimed = bool(data.get("login_bonus_claimed", False))
        client_result = GameResult.from_dict(data["result"])
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        console.print(f"[red]Malformed submission: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    daily_cycles = DailyCycleManager()
    login_bonuses = LoginBonusManager(daily_cycles)
    if bonus_claimed:
        login_bonuses.claim(game_run.user_id, today)
    engine = GameEngine.from_config(
        config,
        powerup_applier=PowerupEffectsApplier(config, SubmittedReceipts(receipts)),
        bonus_handler=BonusEffectsHandler(login_bonuses),
    )
    daily = daily_cycles.generate_daily_cycle(today)
    weekly = WeeklyCycleManager(config).generate_for_date(parse_day(today))
    validator = GameValidator(engine, config)
    report = validator.validate_game_run(game_run, profile, daily, weekly, client_result)
    log_validation_result(report, game_run.user_id, game_run)

    table = Table(title="Validation", show_header=False)
    table.add_column("Check", style="cyan")
    table.add_column("Outcome")
    for name, check in (("Input", report.input_validation), ("Result", report.result_validation)):
        outcome = "[green]ok[/green]" if check.valid else "[red]failed[/red]"
        details = "; ".join(check.errors + check.warnings)
        table.add_row(name, f"{outcome} {escape(details)}".strip())
    table.add_row("Patterns", escape("; ".join(report.suspicious_patterns)) or "none")
    table.add_row("Risk score", str(report.risk_score))
    console.print(table)

    if not report.overall_valid:
        console.print("[bold red]Submission rejected[/bold red]")
        raise typer.Exit(1)
    console.print("[bold green]Submission valid[/bold green]")


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(Path("config.yaml"), help="Where to write the example config"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
):
    """Write an example YAML config."""
    if path.exists() and not force:
        console.print(f"[red]{path} already exists (use --force to overwrite)[/red]")
        raise typer.Exit(1)
    create_example_config(path)
    console.print(f"[green]Wrote example config to {path}[/green]")


if __name__ == "__main__":
    app()
