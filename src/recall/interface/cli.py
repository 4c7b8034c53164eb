"""recall CLI — study status, card browsing, interactive review, history and reset."""

import dataclasses
import json
import logging
import random
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer
from pydantic import TypeAdapter, ValidationError

from recall.application.browser import browse_cards
from recall.application.config import AppConfig, resolve_config
from recall.application.factory import get_progress_store
from recall.application.scheduler import describe_rating
from recall.application.session import ReviewSession, SessionState
from recall.application.stats import StudyStatsService
from recall.domain.errors import EmptyQueueError, RecallError
from recall.domain.models import Card, CardState, ReviewHistoryEntry, StudyMode
from recall.domain.ports import ProgressStore

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="recall: spaced-repetition scheduler for your flashcards.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage recall configuration.")
app.add_typer(config_app, name="config")

logger = logging.getLogger(__name__)

_CARDS_ADAPTER = TypeAdapter(list[Card])
_HISTORY_ADAPTER = TypeAdapter(list[ReviewHistoryEntry])

CardsOption = Annotated[
    Path | None,
    typer.Option(
        "--cards",
        help="JSON array of cards ({id, title, content, tags}) exported by your importer.",
        exists=True,
        dir_okay=False,
    ),
]
CardFileOption = Annotated[
    Path,
    typer.Option(
        "--cards",
        help="JSON array of cards ({id, title, content, tags}) exported by your importer.",
        exists=True,
        dir_okay=False,
    ),
]
QueryOption = Annotated[
    str | None, typer.Option(help="Match title, content or tags (case-insensitive).")
]
TagOption = Annotated[str | None, typer.Option(help="Only cards carrying this tag.")]
StateOption = Annotated[CardState | None, typer.Option(help="Only cards in this state.")]


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    data_dir: Annotated[
        Path | None, typer.Option(help="Directory holding progress and history.")
    ] = None,
):
    """Global settings for recall."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {"data_dir": data_dir, "verbose": verbose}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _config(ctx: typer.Context, **extra) -> AppConfig:
    overrides = dict((ctx.obj or {}).get("overrides", {}))
    overrides.update(extra)
    return resolve_config(overrides)


def _open_store(config: AppConfig) -> ProgressStore:
    try:
        return get_progress_store(config)
    except RecallError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


def _load_cards(path: Path) -> list[Card]:
    try:
        return _CARDS_ADAPTER.validate_json(path.read_bytes())
    except (OSError, ValidationError) as e:
        typer.secho(f"Could not load cards from {path}: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def status(
    ctx: typer.Context,
    cards: CardsOption = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show new / learning / due counts and today's activity."""
    config = _config(ctx)
    store = _open_store(config)

    if cards is not None:
        card_set = _load_cards(cards)
    else:
        # Without a card list only cards that have been rated are known.
        card_set = [Card(id=card_id) for card_id in store.get_all()]

    service = StudyStatsService(store, learning_interval_days=config.learning_interval_days)
    summary = service.summary(card_set, _now())

    if json_output:
        typer.echo(json.dumps(dataclasses.asdict(summary), indent=2))
        return

    typer.echo(
        f"Cards: {summary.total_cards}  New: {summary.new_cards}"
        f"  Learning: {summary.learning_cards}  Due: {summary.due_cards}"
    )
    typer.echo(
        f"Reviewed today: {summary.reviewed_today}"
        f"  Accuracy: {summary.average_accuracy}%"
    )


@app.command()
def review(
    ctx: typer.Context,
    cards: CardFileOption,
    mode: Annotated[StudyMode, typer.Option(help="Which cards to study.")] = StudyMode.DUE,
    seed: Annotated[int | None, typer.Option(help="Shuffle seed for a repeatable order.")] = None,
    query: QueryOption = None,
    tag: TagOption = None,
    state: StateOption = None,
):
    """[bold green]Review[/bold green] cards interactively.

    With [bold]--mode custom[/bold] the pass covers the cards matched by
    --query, --tag and --state, in title order.
    """
    filtering = query is not None or tag is not None or state is not None
    if filtering and mode is not StudyMode.CUSTOM:
        typer.secho("--query, --tag and --state need --mode custom.", fg="red", err=True)
        raise typer.Exit(2)

    config = _config(ctx, shuffle_seed=seed)
    store = _open_store(config)
    card_set = _load_cards(cards)

    custom_selection = None
    if mode is StudyMode.CUSTOM:
        rows = browse_cards(
            card_set,
            store,
            _now(),
            query=query,
            state=state,
            tag=tag,
            learning_interval_days=config.learning_interval_days,
        )
        custom_selection = [row.card for row in rows]

    session = ReviewSession(
        store,
        card_set,
        rng=random.Random(config.shuffle_seed),
        learning_interval_days=config.learning_interval_days,
    )
    try:
        session.start(mode, _now(), custom_selection=custom_selection)
    except EmptyQueueError as e:
        typer.secho(str(e), fg="yellow")
        raise typer.Exit(1) from e

    while session.current_card is not None:
        card = session.current_card
        stats = session.stats
        typer.secho(f"\n[{stats.completed + 1}/{stats.total}] {card.title or card.id}", bold=True)
        typer.prompt("Press Enter to show the answer", default="", show_default=False)
        typer.echo(card.content)

        answer = typer.prompt("Rating 0-5 (q to quit)").strip().lower()
        if answer == "q":
            if typer.confirm("Exit the review? Rated cards are already saved."):
                stats = session.cancel()
                typer.echo(f"Stopped after {stats.completed}/{stats.total} cards.")
                return
            continue

        try:
            progress = session.rate(int(answer), _now())
        except ValueError:
            typer.secho("Enter a number from 0 to 5.", fg="red")
            continue
        except RecallError as e:
            typer.secho(f"Error: {e}", fg="red", err=True)
            raise typer.Exit(1) from e
        typer.echo(f"Next review in {progress.interval} day(s).")

    if session.state is SessionState.COMPLETE:
        stats = session.finish()
        typer.secho(
            f"\nDone: {stats.completed} reviewed, {stats.correct} correct "
            f"({round(stats.accuracy * 100)}%).",
            fg="green",
        )


@app.command("list")
def list_cards(
    ctx: typer.Context,
    cards: CardFileOption,
    query: QueryOption = None,
    tag: TagOption = None,
    state: StateOption = None,
    sort: Annotated[
        str, typer.Option(help="title, interval, next_review or reviews.")
    ] = "title",
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Browse cards with their state, next review and accuracy."""
    config = _config(ctx)
    store = _open_store(config)
    card_set = _load_cards(cards)

    try:
        rows = browse_cards(
            card_set,
            store,
            _now(),
            query=query,
            state=state,
            tag=tag,
            sort_by=sort,
            learning_interval_days=config.learning_interval_days,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--sort") from e

    service = StudyStatsService(store, learning_interval_days=config.learning_interval_days)
    listing = [
        {
            "id": row.card.id,
            "title": row.card.title,
            "state": row.state.value,
            "next_review": row.next_review_label,
            "interval": row.progress.interval,
            "reviews": row.progress.review_count,
            "accuracy": service.card_accuracy(row.card.id),
        }
        for row in rows
    ]

    if json_output:
        typer.echo(json.dumps(listing, indent=2))
        return

    if not listing:
        typer.echo("No matching cards.")
        return
    for item in listing:
        accuracy = item["accuracy"]
        shown = "-" if accuracy is None else f"{round(accuracy * 100)}%"
        typer.echo(
            f"{item['title'] or item['id']}  [{item['state']}]  next: {item['next_review']}"
            f"  reviews: {item['reviews']}  accuracy: {shown}"
        )


@app.command()
def history(
    ctx: typer.Context,
    limit: Annotated[
        int | None, typer.Option(min=0, help="Show at most this many entries.")
    ] = 20,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the most recent ratings, newest first."""
    store = _open_store(_config(ctx))
    entries = store.get_history(limit)

    if json_output:
        typer.echo(_HISTORY_ADAPTER.dump_json(entries, indent=2).decode())
        return

    if not entries:
        typer.echo("No reviews yet.")
        return
    for entry in entries:
        typer.echo(
            f"{entry.timestamp:%Y-%m-%d %H:%M}  {entry.card_title or entry.card_id}"
            f"  {describe_rating(entry.quality)}"
            f"  -> {entry.interval}d (ease {entry.ease_factor:.2f})"
        )


@app.command()
def reset(
    ctx: typer.Context,
    card_id: Annotated[
        str | None, typer.Argument(help="Card to reset. Omit to clear everything.")
    ] = None,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Bypass confirmation.")
    ] = False,
):
    """Forget scheduling progress for one card, or for all cards and history."""
    store = _open_store(_config(ctx))
    target = f"progress for '{card_id}'" if card_id else "ALL progress and review history"

    if not force and not typer.confirm(f"Delete {target}?"):
        raise typer.Exit(1)

    try:
        store.reset(card_id)
    except RecallError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e
    typer.secho(f"Deleted {target}.", fg="green")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
