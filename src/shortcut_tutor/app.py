"""Interactive CLI application."""
import sys
import time
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt
from rich.table import Table

from shortcut_tutor.catalog import CATEGORIES, ShortcutCatalog, is_seeded, seed_shortcuts
from shortcut_tutor.db import DEFAULT_DB_PATH, init_db
from shortcut_tutor.errors import ShortcutTutorError
from shortcut_tutor.events import SESSION_COMPLETED
from shortcut_tutor.models import Rating, ReviewConfig, ReviewResult
from shortcut_tutor.serialization import export_state, import_state
from shortcut_tutor.session import SessionCoordinator
from shortcut_tutor.settings import (
    get_focus_on_difficult, get_session_size, set_focus_on_difficult, set_session_size,
)
from shortcut_tutor.stats import get_mastery_color, get_mastery_label, get_statistics
from shortcut_tutor.store import SqliteReviewStore

console = Console()

EXIT_WORDS = ("q", "menu")
RATING_CHOICES = [r.value for r in Rating]


class SessionExitRequested(Exception):
    """The user asked to leave the current review session."""


def session_prompt(prompt: str, **kwargs) -> str:
    if "choices" in kwargs:
        kwargs["choices"] = list(kwargs["choices"]) + ["q"]
    value = Prompt.ask(prompt, **kwargs)
    if value.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return value


def build_coordinator(db_path: str) -> SessionCoordinator:
    coordinator = SessionCoordinator(
        SqliteReviewStore(db_path), catalog=ShortcutCatalog(db_path),
    )
    coordinator.events.subscribe(SESSION_COMPLETED, show_session_summary)
    return coordinator


def show_welcome():
    console.print(Panel(
        "[bold]Shortcut Tutor[/bold]\n[dim]Spaced repetition for keyboard shortcuts[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("review", "Review shortcuts due now"),
        ("difficult", "Review weakest shortcuts first"),
        ("category", "Review one category"),
        ("stats", "Mastery statistics"),
        ("list", "Schedule for every shortcut"),
        ("settings", "Session size and ordering"),
        ("export", "Save progress to a JSON file"),
        ("import", "Restore progress from a JSON file"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_session_summary(payload: dict) -> None:
    summary = payload["summary"]
    counts = summary["rating_counts"]
    console.print(
        f"\n[bold]Reviewed {summary['total_items']}[/bold]  |  "
        f"[green]Easy {counts['easy']}[/green]  "
        f"[cyan]Good {counts['good']}[/cyan]  "
        f"[yellow]Hard {counts['hard']}[/yellow]  "
        f"[red]Again {counts['again']}[/red]  |  "
        f"Avg {summary['average_response_time_ms'] / 1000:.1f}s"
    )
    if summary["skipped"]:
        console.print(f"[yellow]{len(summary['skipped'])} unknown shortcuts were skipped.[/yellow]")


def run_review_session(catalog: ShortcutCatalog, item_ids, results: list) -> list:
    """Quiz the user on each item, appending a ReviewResult per answered card."""
    if not item_ids:
        console.print("[yellow]Nothing due right now![/yellow]")
        return results
    console.print(f"\n[bold]Review Session[/bold] ({len(item_ids)} shortcuts)\n")
    for i, item_id in enumerate(item_ids, 1):
        shortcut = catalog.get(item_id)
        name = shortcut.name if shortcut else item_id
        console.print(Panel(name, title=f"Shortcut {i}/{len(item_ids)}", border_style="cyan"))
        started = time.monotonic()
        session_prompt("[dim]Recall the keys, then press Enter to reveal[/dim]", default="")
        elapsed_ms = int((time.monotonic() - started) * 1000)
        console.print(Panel(shortcut.keys if shortcut else "?", border_style="green"))
        rating = session_prompt("How well did you recall it?", choices=RATING_CHOICES, default="good")
        results.append(ReviewResult(item_id, Rating.parse(rating), elapsed_ms))
        console.print()
    return results


def _review(coordinator: SessionCoordinator, config: ReviewConfig) -> None:
    session = coordinator.create_session(config)
    results = []
    try:
        run_review_session(coordinator.catalog, session.item_ids, results)
    except SessionExitRequested:
        console.print("[dim]Session ended early.[/dim]")
    if results:
        coordinator.complete_session(session, results)


def cmd_review(coordinator: SessionCoordinator, db_path: str):
    config = ReviewConfig(
        max_items=get_session_size(db_path),
        focus_on_difficult=get_focus_on_difficult(db_path),
    )
    _review(coordinator, config)


def cmd_difficult(coordinator: SessionCoordinator, db_path: str):
    _review(coordinator, ReviewConfig(max_items=get_session_size(db_path), focus_on_difficult=True))


def cmd_category(coordinator: SessionCoordinator, db_path: str):
    category = Prompt.ask("Category", choices=list(CATEGORIES))
    config = ReviewConfig(
        max_items=get_session_size(db_path),
        focus_on_difficult=get_focus_on_difficult(db_path),
        categories=frozenset({category}),
    )
    _review(coordinator, config)


def cmd_stats(coordinator: SessionCoordinator, db_path: str):
    stats = get_statistics(coordinator.store)
    level = stats["mastery_level"]
    color = get_mastery_color(level)
    label = get_mastery_label(level)

    bar_filled = int(level / 5)
    bar_empty = 20 - bar_filled
    bar = f"[{color}]{'█' * bar_filled}{'░' * bar_empty}[/{color}]"
    console.print(Panel(
        f"Mastery: [bold]{level}%[/bold] {bar} [{color}]{label}[/{color}]",
        title="Shortcut Mastery", border_style="blue",
    ))

    table = Table()
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Shortcuts", str(stats["total_items"]))
    table.add_row("Due now", str(stats["due_items"]))
    table.add_row("Never reviewed", str(stats["new_items"]))
    table.add_row("Average strength", f"{stats['average_strength']:.2f}")
    table.add_row("Reviews", str(stats["reviews"]))
    table.add_row("Retention", f"{stats['retention']}%")
    console.print(table)


def cmd_list(coordinator: SessionCoordinator, db_path: str):
    items = {item.item_id: item for item in coordinator.store.all()}
    table = Table(title="Review Schedule")
    table.add_column("Shortcut")
    table.add_column("Keys")
    table.add_column("Strength", justify="right")
    table.add_column("Interval", justify="right")
    table.add_column("Next review")
    for shortcut in coordinator.catalog.all():
        item = items.get(shortcut.id)
        if item is None:
            continue
        table.add_row(
            shortcut.name,
            shortcut.keys,
            f"{item.strength:.2f}",
            f"{item.interval}d",
            "[green]now[/green]" if not item.history else item.next_due_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


def cmd_settings(coordinator: SessionCoordinator, db_path: str):
    size = IntPrompt.ask("Shortcuts per session", default=get_session_size(db_path))
    set_session_size(db_path, size)
    focus = Prompt.ask(
        "Weakest shortcuts first?", choices=["y", "n"],
        default="y" if get_focus_on_difficult(db_path) else "n",
    )
    set_focus_on_difficult(db_path, focus == "y")
    console.print("[green]Settings saved.[/green]")


def cmd_export(coordinator: SessionCoordinator, db_path: str):
    file_path = Prompt.ask("Export to", default="shortcut_progress.json")
    count = export_state(coordinator.store, file_path)
    console.print(f"[green]Exported {count} shortcuts to {file_path}[/green]")


def cmd_import(coordinator: SessionCoordinator, db_path: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_state(coordinator.store, file_path)
    console.print(
        f"[green]Imported {result['imported']} shortcuts from {result['filename']}[/green]"
        + (f" [dim]({result['skipped']} already up to date)[/dim]" if result["skipped"] else "")
    )
    if result["conflicts"]:
        console.print(
            f"[yellow]{result['conflicts']} shortcuts kept their stored progress; "
            f"the file's review history did not match.[/yellow]"
        )


COMMANDS = {
    "review": cmd_review,
    "difficult": cmd_difficult,
    "category": cmd_category,
    "stats": cmd_stats,
    "list": cmd_list,
    "settings": cmd_settings,
    "export": cmd_export,
    "import": cmd_import,
}


def main():
    logger.remove()
    logger.add(sys.stderr, level="WARNING", format="<level>{message}</level>")

    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_shortcuts(db_path)
    coordinator = build_coordinator(db_path)
    coordinator.initialize(coordinator.catalog.ids())
    if first_run:
        console.print("[green]Ready![/green]\n")

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="review").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]Keep practicing![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(coordinator, db_path)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except (ShortcutTutorError, ValueError, OSError) as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
