"""
recall - quiz review and flashcard scheduling from the terminal.

Usage:
    recall intervals 360000          # Interval per confidence tier
    recall resolve questions.json    # Correct option per question
    recall shuffle questions.json -c c1 -l l1
    recall quiz questions.json       # Review-mode quiz
    recall quiz -c c1                # Review questions from the store
    recall load c1 course.json       # Import content into the offline store
    recall review c1                 # Flashcard review against the configured store
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from recall.config import Settings, get_settings
from recall.core.store import ReviewStateStore, ReviewStoreError
from recall.quiz.normalize import normalize_questions
from recall.quiz.resolver import resolve_correct_option
from recall.quiz.session import ReviewQuizSession
from recall.quiz.shuffler import build_seed, shuffle_options
from recall.review.flashcards import Flashcard, load_flashcard_session
from recall.review.intervals import ReviewTier, confidence_intervals, format_interval

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="recall",
    help="Quiz review and spaced-repetition scheduling",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

TIER_STYLES = {
    ReviewTier.AGAIN: "red",
    ReviewTier.HARD: "yellow",
    ReviewTier.GOOD: "green",
    ReviewTier.EASY: "cyan",
}


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        console.print(f"[red]File not found:[/] {path}")
        raise typer.Exit(code=1)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}:[/] {e}")
        raise typer.Exit(code=1)


def _load_question_payloads(path: Path) -> list[Any]:
    """Accept a bare list or an object with a `questions` list."""
    data = _read_json(path)
    if isinstance(data, dict):
        data = data.get("questions") or []
    if not isinstance(data, list):
        console.print(f"[red]{path} does not contain a question list[/]")
        raise typer.Exit(code=1)
    return data


def open_store(settings: Settings) -> ReviewStateStore:
    """Build the review-state store selected in settings."""
    if settings.store_backend == "sql":
        from recall.db.review_store import SqlReviewStore

        return SqlReviewStore(settings.database_url)

    from recall.core.platform_client import PlatformClient

    return PlatformClient.from_settings(settings)


async def _close_store(store: ReviewStateStore) -> None:
    close = getattr(store, "aclose", None) or getattr(store, "close", None)
    if close is None:
        return
    result = close()
    if asyncio.iscoroutine(result):
        await result


# =============================================================================
# Scheduling Commands
# =============================================================================


@app.command()
def intervals(
    seconds_remaining: Annotated[
        float, typer.Argument(help="Seconds until the course target completion")
    ],
) -> None:
    """Show the review interval for each confidence tier."""
    table = Table(title="Review intervals", show_header=True)
    table.add_column("Tier", style="bold")
    table.add_column("Minutes", justify="right")
    table.add_column("Next review")

    for tier, minutes in confidence_intervals(seconds_remaining).items():
        table.add_row(f"[{TIER_STYLES[tier]}]{tier.value}[/]", str(minutes), format_interval(minutes))

    console.print(table)


# =============================================================================
# Question Commands
# =============================================================================


@app.command()
def resolve(
    file: Annotated[Path, typer.Argument(help="JSON file with question payloads")],
) -> None:
    """Show which option is correct for each question."""
    questions = normalize_questions(_load_question_payloads(file))

    table = Table(title="Correct options", show_header=True)
    table.add_column("Question")
    table.add_column("Option id")
    table.add_column("Answer")

    for question in questions:
        option_id = resolve_correct_option(question)
        if option_id is None:
            table.add_row(question.id, "-", "[yellow]ungraded[/]")
            continue
        option = question.option_by_id(option_id)
        table.add_row(question.id, option_id, option.text if option else "")

    console.print(table)


@app.command()
def shuffle(
    file: Annotated[Path, typer.Argument(help="JSON file with question payloads")],
    course: Annotated[str | None, typer.Option("--course", "-c", help="Course id")] = None,
    lesson: Annotated[str | None, typer.Option("--lesson", "-l", help="Lesson id")] = None,
) -> None:
    """Show the displayed option order for each question."""
    for question in normalize_questions(_load_question_payloads(file)):
        result = shuffle_options(question.options, build_seed(question.id, course, lesson))
        table = Table(title=f"Question {question.id}", show_header=True)
        table.add_column("Shown")
        table.add_column("Original", justify="right")
        table.add_column("Option")
        for option in result.shuffled_options:
            table.add_row(option.label, str(option.original_index), option.text)
        console.print(table)


@app.command()
def quiz(
    file: Annotated[
        Path | None,
        typer.Argument(help="JSON file with question payloads; omit to fetch from the store"),
    ] = None,
    course: Annotated[str | None, typer.Option("--course", "-c", help="Course id")] = None,
    lesson: Annotated[str | None, typer.Option("--lesson", "-l", help="Lesson id")] = None,
) -> None:
    """
    Run a review-mode quiz in the terminal.

    Wrong answers are removed from the choices until the correct one is found.
    Without FILE, questions needing review are fetched from the configured
    store for --course and correct answers are written back.
    """
    if file is not None:
        asyncio.run(_run_review_quiz(_load_question_payloads(file), course, lesson))
        return

    if not course:
        console.print("[red]--course is required when no question file is given[/]")
        raise typer.Exit(code=1)
    asyncio.run(_quiz_from_store(get_settings(), course, lesson))


async def _quiz_from_store(settings: Settings, course_id: str, lesson_id: str | None) -> None:
    store = open_store(settings)
    try:
        try:
            payloads = await store.fetch_review_questions(course_id)
        except ReviewStoreError as e:
            console.print(f"[red]Could not load questions:[/] {e}")
            raise typer.Exit(code=1)
        await _run_review_quiz(payloads, course_id, lesson_id, store)
    finally:
        await _close_store(store)


async def _run_review_quiz(
    payloads: list[Any],
    course_id: str | None,
    lesson_id: str | None,
    store: ReviewStateStore | None = None,
) -> None:
    questions = normalize_questions(payloads)
    session = ReviewQuizSession(questions, course_id=course_id, lesson_id=lesson_id, store=store)
    if session.skipped_question_ids:
        console.print(f"[yellow]Skipping {len(session.skipped_question_ids)} ungraded question(s)[/]")
    if session.question_count == 0:
        console.print("[yellow]No gradable questions found[/]")
        return

    while session.current is not None:
        question = session.current
        console.print(
            Panel(
                question.question.prompt or "(no prompt)",
                title=f"Question {session.current_index + 1}/{session.question_count}",
                border_style="cyan",
            )
        )

        while True:
            options = session.available_options()
            for option in options:
                console.print(f"  [cyan]{option.label}[/]  {option.text}")
            choice = Prompt.ask("Answer", choices=[o.label for o in options], console=console)
            selected = next(o for o in options if o.label == choice)

            session.select(selected.id)
            outcome = await session.check_and_record()
            if outcome.correct:
                console.print("[green]Correct![/]")
                break

            console.print("[red]Incorrect.[/] Try again.")
            if outcome.explanation:
                console.print(f"[dim]{outcome.explanation}[/]")
            session.try_again()

        if question.question.explanation:
            console.print(f"[dim]{question.question.explanation}[/]")
        if store is not None and Confirm.ask("Flag for later review?", default=False, console=console):
            await session.toggle_flag_and_record()
        session.advance()

    summary = session.summary()
    first_try = sum(1 for n in summary.attempts.values() if n == 1)
    console.print(
        Panel(
            f"Questions: {summary.total_questions}\nCorrect on first try: {first_try}",
            title="Review complete",
            border_style="green",
        )
    )


# =============================================================================
# Store Commands
# =============================================================================


@app.command()
def load(
    course_id: Annotated[str, typer.Argument(help="Course id")],
    file: Annotated[Path, typer.Argument(help="JSON with flashcards, questions, seconds_to_complete")],
) -> None:
    """Import course content into the offline (SQL) store."""
    from recall.db.review_store import SqlReviewStore

    data = _read_json(file)
    if not isinstance(data, dict):
        console.print(f"[red]{file} must contain a JSON object[/]")
        raise typer.Exit(code=1)

    store = SqlReviewStore(get_settings().database_url)
    try:
        cards = [Flashcard.from_dict(item) for item in data.get("flashcards") or []]
        n_cards = store.add_flashcards(course_id, cards)
        n_questions = store.add_questions(course_id, list(data.get("questions") or []))
        if "seconds_to_complete" in data:
            store.set_seconds_to_complete(course_id, data["seconds_to_complete"])
    except ReviewStoreError as e:
        console.print(f"[red]Import failed:[/] {e}")
        raise typer.Exit(code=1)
    finally:
        store.close()

    console.print(f"[green]Imported {n_cards} flashcards and {n_questions} questions[/]")


@app.command()
def review(
    course_id: Annotated[str, typer.Argument(help="Course id")],
    lessons: Annotated[
        str | None, typer.Option("--lessons", help="Comma-separated lesson ids")
    ] = None,
    uploaded: Annotated[
        bool, typer.Option("--uploaded", help="Include uploaded decks")
    ] = False,
    uploaded_only: Annotated[
        bool, typer.Option("--uploaded-only", help="Study uploaded decks only")
    ] = False,
) -> None:
    """Review due flashcards and schedule them by confidence."""
    lesson_ids = [s.strip() for s in lessons.split(",") if s.strip()] if lessons else None
    asyncio.run(_run_flashcard_review(get_settings(), course_id, lesson_ids, uploaded, uploaded_only))


async def _run_flashcard_review(
    settings: Settings,
    course_id: str,
    lessons: list[str] | None,
    include_uploaded: bool,
    uploaded_only: bool,
) -> None:
    store = open_store(settings)
    try:
        try:
            session = await load_flashcard_session(
                store,
                course_id,
                lessons=lessons,
                include_uploaded=include_uploaded,
                uploaded_only=uploaded_only,
                default_seconds=settings.default_seconds_to_complete,
            )
        except ReviewStoreError as e:
            console.print(f"[red]Could not load flashcards:[/] {e}")
            raise typer.Exit(code=1)

        if session.is_finished:
            console.print("[green]No flashcards due. Nice work![/]")
            return

        keys = {str(i + 1): tier for i, tier in enumerate(ReviewTier)}
        while not session.is_finished:
            card = session.current
            console.print(
                Panel(
                    card.front,
                    title=f"Card {session.current_index + 1}/{len(session.cards)}",
                    border_style="cyan",
                )
            )
            Prompt.ask("[dim]Press Enter to flip[/]", default="", show_default=False, console=console)
            session.flip()
            console.print(Panel(card.back, title="Answer", border_style="green"))
            if card.explanation:
                console.print(f"[dim]{card.explanation}[/]")

            for key, tier in keys.items():
                minutes = session.intervals[tier]
                console.print(
                    f"  [{TIER_STYLES[tier]}]{key}[/] {tier.value:<6} {format_interval(minutes)}"
                )
            choice = Prompt.ask("Confidence", choices=list(keys), console=console)
            outcome = await session.rate(keys[choice])
            if not outcome.persisted:
                console.print("[yellow]Schedule not saved; continuing[/]")

        console.print(f"[green]Reviewed {len(session.outcomes)} flashcards[/]")
    finally:
        await _close_store(store)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )

    app()


if __name__ == "__main__":
    main()
