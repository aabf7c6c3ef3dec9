#!/usr/bin/env python3
# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Simulate a player's season of daily lemonade stand runs.

Each day the player claims the login bonus, reads the no-randomness
forecast for the day and plays at the most profitable forecast price.
Streaks, personal bests and the daily/weekly cycles all advance as they
would for a real player.

Usage:
    # Thirty days starting today
    python examples/simulate_season.py

    # A fixed season with a seasoned player
    python examples/simulate_season.py --start 2025-06-01 --days 60 --stats 6 4 8

    # Use a custom economy and write the daily log
    python examples/simulate_season.py --config examples/configs/festival_heavy.yaml --output runs/season.json
"""

import argparse
import json
from datetime import timedelta
from pathlib import Path

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from karma_lemonade.bonuses.effects import BonusEffectsHandler
from karma_lemonade.bonuses.login_bonus import LoginBonusManager
from karma_lemonade.config import DEFAULT_CONFIG, GameConfig, load_config
from karma_lemonade.cycles.clock import FixedClock, SystemClock, format_day, utc_today
from karma_lemonade.cycles.daily import DailyCycleManager
from karma_lemonade.cycles.provider import CycleProvider
from karma_lemonade.cycles.weekly import WeeklyCycleManager
from karma_lemonade.engine.game_engine import GameEngine
from karma_lemonade.models import GameStats, UserProfile
from karma_lemonade.security.rate_limiter import RunRateLimiter
from karma_lemonade.service import GameRunRequest, GameService, InMemoryProfileStore, ReceiptLedger


def candidate_prices(config: GameConfig, step: float = 0.25) -> list[float]:
    prices = []
    price = config.game.min_price
    while price <= config.game.max_price + 1e-9:
        prices.append(round(price, 2))
        price += step
    return prices


def simulate(
    config: GameConfig,
    start: str,
    days: int,
    stats: GameStats,
    ad_spend: float,
    console: Console,
) -> list[dict]:
    """
    Play one run per day and return the daily log.

    Args:
        config: Game configuration
        start: First UTC day (YYYY-MM-DD)
        days: Number of consecutive days to play
        stats: The player's game stats
        ad_spend: Advertising budget spent every day
        console: Rich console for progress output
    """
    clock = FixedClock.on(start)
    daily_cycles = DailyCycleManager()
    login_bonuses = LoginBonusManager(daily_cycles)
    ledger = ReceiptLedger(clock)
    engine = GameEngine.from_config(config, bonus_handler=BonusEffectsHandler(login_bonuses))
    cycles = CycleProvider(daily_cycles, WeeklyCycleManager(config), clock)
    store = InMemoryProfileStore([UserProfile(user_id="season", username="season", game_stats=stats)])
    service = GameService(engine, store, ledger, cycles, rate_limiter=RunRateLimiter(config.limits, clock))
    prices = candidate_prices(config)

    log = []
    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
        task = progress.add_task("Simulating...", total=days)
        for _ in range(days):
            today = cycles.today()
            progress.update(task, description=f"Simulating {today}...")

            bonus = login_bonuses.claim("season", today)
            current = cycles.current()
            profile = store.get_profile("season")
            points = engine.forecast(prices, ad_spend, profile, current.daily, current.weekly)
            best = max(points, key=lambda p: p.profit)

            response = service.run_game("season", GameRunRequest(price=best.price, ad_spend=ad_spend))
            result = response.result
            log.append({
                "date": today,
                "weather": result.weather.value,
                "event": result.event.value,
                "festival": result.festival,
                "login_bonus": bonus.type.value,
                "price": best.price,
                "cups_sold": result.cups_sold,
                "profit": result.profit,
                "streak": response.progress.current_streak,
                "bonuses": list(result.bonuses_applied),
            })

            clock.advance(days=1)
            progress.advance(task)
    return log


def print_summary(log: list[dict], console: Console):
    """Print the daily results and season totals."""
    table = Table(title="Season Results")
    table.add_column("Date", style="cyan")
    table.add_column("Weather", style="yellow")
    table.add_column("Event")
    table.add_column("Festival", style="magenta")
    table.add_column("Bonus", style="dim")
    table.add_column("Price", justify="right")
    table.add_column("Cups", justify="right")
    table.add_column("Profit", justify="right", style="bold green")

    for day in log:
        table.add_row(
            day["date"],
            day["weather"],
            day["event"],
            day["festival"],
            day["login_bonus"],
            f"${day['price']:.2f}",
            str(day["cups_sold"]),
            f"${day['profit']:.2f}",
        )
    console.print(table)

    if log:
        profits = [day["profit"] for day in log]
        console.print()
        console.print("[bold]Season:[/bold]")
        console.print(f"  Total Profit: [green]${sum(profits):.2f}[/green]")
        console.print(f"  Best Day: ${max(profits):.2f}")
        console.print(f"  Worst Day: ${min(profits):.2f}")
        console.print(f"  Final Streak: {log[-1]['streak']}")


def main():
    parser = argparse.ArgumentParser(description="Simulate a season of Karma Lemonade Stand runs")
    parser.add_argument("--start", help="First day (YYYY-MM-DD, default: today UTC)")
    parser.add_argument("--days", type=int, default=30, help="Days to simulate (default: 30)")
    parser.add_argument(
        "--stats",
        type=float,
        nargs=3,
        metavar=("SERVICE", "MARKETING", "REPUTATION"),
        default=[3.0, 3.0, 3.0],
        help="Player stats on the 0-10 scale (default: 3 3 3)",
    )
    parser.add_argument("--ad-spend", type=float, default=10.0, help="Daily ad spend (default: 10)")
    parser.add_argument("--config", "-c", type=Path, help="YAML game config")
    parser.add_argument("--output", "-o", type=Path, help="Write the daily log as JSON")
    args = parser.parse_args()

    console = Console()
    config = load_config(args.config) if args.config else DEFAULT_CONFIG
    start = args.start or format_day(utc_today(SystemClock()))
    service, marketing, reputation = args.stats

    console.print("[bold]Karma Lemonade Stand season[/bold]")
    end = FixedClock.on(start).now().date() + timedelta(days=args.days - 1)
    console.print(f"Days: {start} to {format_day(end)}")
    console.print(f"Stats: service {service:g}, marketing {marketing:g}, reputation {reputation:g}")
    console.print()

    log = simulate(
        config,
        start,
        args.days,
        GameStats(service=service, marketing=marketing, reputation=reputation),
        args.ad_spend,
        console,
    )
    print_summary(log, console)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with open(args.output, "w") as f:
            json.dump(log, f, indent=2)
        console.print(f"\n[dim]Daily log saved to {args.output}[/dim]")


if __name__ == "__main__":
    main()
