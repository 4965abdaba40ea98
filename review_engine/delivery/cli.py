"""
Review Engine CLI: inspect queues and schedules from the terminal.

A Rich terminal interface over the scheduling engine for developers.
It reads snapshots and prints derived views; it never writes state.

Commands:
- review-engine queue SNAPSHOT     - Show the review queue for a snapshot
- review-engine schedule 5 4 1 5   - Show how a record evolves over ratings
- review-engine settings           - Show effective settings
"""
from __future__ import annotations

import json
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Optional

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from review_engine.config import SRSSettings, get_settings
from review_engine.core.records import DEFAULT_CATEGORIES, SchedulingRecord, parse_timestamp
from review_engine.delivery.review_queue import (
    CategoryItems,
    ReviewQueue,
    UrgencyLevel,
    build_category_queue,
    build_review_queue,
    count_by_mastery,
    items_from_learned,
)
from review_engine.delivery.scheduler import InvalidQualityError, SM2Scheduler

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="review-engine",
    help="Review Engine: spaced repetition queue and schedule inspector",
    no_args_is_help=True,
)
console = Console()


# =============================================================================
# Styling
# =============================================================================

URGENCY_STYLES = {
    UrgencyLevel.OVERDUE: "bold red",
    UrgencyLevel.DUE: "bold yellow",
    UrgencyLevel.UPCOMING: "cyan",
    UrgencyLevel.NONE: "dim",
}


def style_urgency(urgency: UrgencyLevel) -> str:
    """Get styled urgency string."""
    style = URGENCY_STYLES[urgency]
    return f"[{style}]{urgency.value}[/{style}]"


# =============================================================================
# Snapshot Loading
# =============================================================================


def load_snapshot(path: Path) -> dict[str, CategoryItems]:
    """
    Load a per-category snapshot of learned items and their records.

    Expected shape::

        {"vocabulary": {"learned": ["id", ...], "reviews": {"id": {...}}}, ...}

    Raises:
        typer.Exit: If the file cannot be read or parsed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load {path}: {e}")
        console.print(f"[red]Could not read snapshot:[/red] {path}")
        raise typer.Exit(1)

    if not isinstance(data, dict):
        console.print("[red]Snapshot must be a JSON object keyed by category[/red]")
        raise typer.Exit(1)

    items_by_category: dict[str, CategoryItems] = {}
    for category, module_data in data.items():
        module_data = module_data or {}
        if not isinstance(module_data, dict):
            console.print(
                f"[red]Category {category} must be an object with learned/reviews[/red]"
            )
            raise typer.Exit(1)
        try:
            items_by_category[category] = items_from_learned(
                module_data.get("learned", []),
                module_data.get("reviews", {}),
            )
        except (AttributeError, TypeError, ValueError) as e:
            console.print(f"[red]Invalid record in {category}:[/red] {e}")
            raise typer.Exit(1)

    logger.debug(f"Loaded snapshot with {len(items_by_category)} categories from {path}")
    return items_by_category


def _parse_now(now: Optional[str]) -> Optional[datetime]:
    if now is None:
        return None
    try:
        return parse_timestamp(now)
    except ValueError:
        console.print(f"[red]Invalid --now timestamp:[/red] {now}")
        raise typer.Exit(1)


# =============================================================================
# Display Helpers
# =============================================================================


def display_queue(queue: ReviewQueue, limit: int) -> None:
    """Display the queue summary and its top entries."""
    console.print(Panel(
        f"Due reviews: [bold]{queue.total}[/bold]\n"
        f"Urgency: {style_urgency(queue.urgency)}\n"
        f"Estimated time: ~{queue.estimated_minutes} min",
        title="Review Queue",
        title_align="left",
        border_style="cyan",
    ))

    counts = Table(show_header=False, box=None)
    counts.add_column("Category", style="dim")
    counts.add_column("Due", style="bold")
    for category, count in queue.by_category.items():
        counts.add_row(category, str(count))
    console.print(counts)

    mastery = count_by_mastery(queue.items)
    console.print(
        "  ".join(f"[{tier.color}]{tier.emoji} {tier.display_name}: {n}[/{tier.color}]"
                  for tier, n in mastery.items())
    )

    if queue.is_empty:
        console.print("\n[green]Nothing due for review![/green]")
        return

    table = Table()
    table.add_column("#", justify="right")
    table.add_column("ID")
    table.add_column("Category")
    table.add_column("Priority", justify="right")
    table.add_column("Due")
    table.add_column("Tier")

    for i, entry in enumerate(queue.items[:limit], 1):
        tier = entry.mastery_tier
        table.add_row(
            str(i),
            entry.item_id,
            entry.category,
            f"{entry.priority:.2f}",
            entry.due_at.strftime("%Y-%m-%d %H:%M") if entry.due_at else "-",
            f"[{tier.color}]{tier.display_name}[/{tier.color}]",
        )

    console.print(table)


# =============================================================================
# Commands
# =============================================================================


@app.command()
def queue(
    snapshot: Path = typer.Argument(..., help="JSON snapshot of learned items and records"),
    category: Optional[str] = typer.Option(
        None,
        "--category", "-c",
        help="Only build the queue for this category",
    ),
    limit: int = typer.Option(20, "--limit", "-l", help="Number of entries to show"),
    now: Optional[str] = typer.Option(
        None,
        "--now",
        help="Reference time as ISO-8601 (defaults to current time)",
    ),
) -> None:
    """Show the review queue for a snapshot."""
    settings = get_settings()
    items_by_category = load_snapshot(snapshot)
    reference = _parse_now(now)

    if category:
        categories = list(dict.fromkeys([*DEFAULT_CATEGORIES, *items_by_category]))
        review_queue = build_category_queue(
            category,
            items_by_category.get(category),
            now=reference,
            settings=settings,
            categories=categories,
        )
    else:
        review_queue = build_review_queue(items_by_category, now=reference, settings=settings)

    display_queue(review_queue, limit)


@app.command()
def schedule(
    qualities: list[int] = typer.Argument(..., help="Quality ratings (0-5) in review order"),
    ease_bonus: float = typer.Option(0.0, "--ease-bonus", help="Ease bonus (-0.2 to 0.2)"),
    interval_multiplier: float = typer.Option(
        1.0, "--interval-multiplier", help="Interval multiplier (0.5 to 2.0)"
    ),
    lapse_interval: float = typer.Option(
        0.5, "--lapse-interval", help="Fraction of interval kept on a lapse (0 to 1)"
    ),
) -> None:
    """Show how a single item's record evolves over a sequence of ratings."""
    try:
        settings = SRSSettings(
            ease_bonus=ease_bonus,
            interval_multiplier=interval_multiplier,
            lapse_new_interval=lapse_interval,
        )
    except ValidationError as e:
        console.print(f"[red]Invalid settings:[/red] {e}")
        raise typer.Exit(1)

    scheduler = SM2Scheduler(settings)
    record: SchedulingRecord | None = None
    reviewed_at = datetime(2024, 1, 1, tzinfo=UTC)

    table = Table(title="Schedule")
    table.add_column("Review", justify="right")
    table.add_column("Quality", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Ease", justify="right")
    table.add_column("Interval", justify="right")
    table.add_column("Next due")

    for i, quality in enumerate(qualities, 1):
        try:
            record = scheduler.advance(record, quality, now=reviewed_at)
        except InvalidQualityError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

        style = "green" if quality >= 3 else "red"
        table.add_row(
            str(i),
            f"[{style}]{quality}[/{style}]",
            str(record.repetitions),
            f"{record.ease_factor:.2f}",
            f"{record.interval_days:g}d",
            record.next_due_at.strftime("%Y-%m-%d"),
        )
        # Each review happens exactly when the item falls due
        reviewed_at = record.next_due_at

    console.print(table)


@app.command("settings")
def show_settings() -> None:
    """Show effective settings (environment and .env applied)."""
    settings = get_settings()

    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="dim")
    table.add_column("Value", style="bold")

    values: dict[str, Any] = settings.model_dump()
    for name, value in values.items():
        table.add_row(name, str(value))

    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    try:
        settings = get_settings()
    except ValidationError as e:
        console.print(f"[red]Invalid settings:[/red] {e}")
        sys.exit(1)

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
