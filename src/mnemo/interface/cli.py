"""mnemo CLI — subject management, review grading and the daily queue."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

import typer

from mnemo.application.config import AppConfig, resolve_config
from mnemo.consts import APP_NAME
from mnemo.domain.errors import (
    InvalidGrade,
    InvalidQuality,
    InvalidState,
    MnemoError,
    SubjectNotFound,
)
from mnemo.domain.models import SubjectContext

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    name=APP_NAME,
    help="mnemo: mind-map notes with spaced-repetition reviews.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage mnemo configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _configure_logging(verbose: int) -> None:
    logging.getLogger("mnemo").setLevel(_LEVELS.get(verbose, logging.DEBUG))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def humanize_error(e: Exception) -> str:
    """Turn a domain error into a one-line message for the terminal."""
    if isinstance(e, SubjectNotFound):
        return f"No subject with id '{e.subject_id}'. Run 'mnemo list' to see ids."
    if isinstance(e, InvalidGrade):
        return f"Unknown grade {e.grade!r}. Use one of: easy, medium, hard."
    if isinstance(e, InvalidQuality):
        return f"Quality must be a whole number from 0 to 5 (got {e.quality!r})."
    if isinstance(e, InvalidState):
        return (
            f"Stored review state is corrupt ({e.field}={e.value!r}). "
            "Fix the data file or reset the subject."
        )
    return str(e)


def _resolve_with_overrides(ctx: typer.Context | None = None, **overrides: Any) -> AppConfig:
    if ctx is not None and ctx.obj:
        # Only an explicit -v overrides the configured verbosity.
        overrides.setdefault("verbose", ctx.obj.get("verbose") or None)
    config = resolve_config(overrides)
    _configure_logging(config.verbose)
    return config


def _build_service(config: AppConfig):
    from mnemo.application.factory import get_subject_repository
    from mnemo.application.review_service import ReviewService

    return ReviewService(get_subject_repository(config), tz=config.tzinfo)


def _run(coro):
    """Run a coroutine, turning domain errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except (MnemoError, ValueError) as e:
        typer.secho(humanize_error(e), fg="red", err=True)
        raise typer.Exit(1) from None


def _fmt_day(ts) -> str:
    return ts.strftime("%Y-%m-%d")


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
):
    """Global settings for mnemo."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# Subject commands
# ---------------------------------------------------------------------------


@app.command()
def add(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Subject title.")],
    context: Annotated[
        SubjectContext, typer.Option(help="Where the notes come from.")
    ] = SubjectContext.OTHER,
    notes: Annotated[str, typer.Option(help="Raw notes text.")] = "",
    notes_file: Annotated[
        Path | None, typer.Option(help="Read raw notes from a file instead.")
    ] = None,
    data_file: Annotated[Path | None, typer.Option(help="Subject data file.")] = None,
):
    """[bold green]Add[/bold green] a new subject, first review due tomorrow."""
    config = _resolve_with_overrides(ctx, data_file=data_file)
    service = _build_service(config)

    if notes_file is not None:
        notes = notes_file.read_text(encoding="utf-8")

    subject = _run(service.create_subject(title, context=context, raw_notes=notes))
    typer.secho(f"Created {subject.id}", fg="green")
    typer.echo(f"First review: {_fmt_day(subject.next_review_at)}")


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
    data_file: Annotated[Path | None, typer.Option(help="Subject data file.")] = None,
):
    """List every subject with its next review date."""
    config = _resolve_with_overrides(ctx, data_file=data_file)
    service = _build_service(config)
    subjects = _run(service.list_subjects())

    if json_output:
        typer.echo(json.dumps([s.to_dict() for s in subjects], indent=2))
        return

    if not subjects:
        typer.secho("No subjects yet. Add one with 'mnemo add'.", fg="yellow")
        return

    for s in subjects:
        r = s.review
        typer.echo(
            f"{s.id}  {s.title}  next={_fmt_day(r.next_review_at)}"
            f"  reps={r.repetitions}  ease={r.ease_factor:.2f}  interval={r.last_interval}d"
        )


@app.command()
def show(
    ctx: typer.Context,
    subject_id: Annotated[str, typer.Argument(help="Subject id.")],
    data_file: Annotated[Path | None, typer.Option(help="Subject data file.")] = None,
):
    """Show one subject as JSON."""
    config = _resolve_with_overrides(ctx, data_file=data_file)
    service = _build_service(config)
    subject = _run(service.get_subject(subject_id))
    typer.echo(json.dumps(subject.to_dict(), indent=2))


@app.command()
def today(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
    data_file: Annotated[Path | None, typer.Option(help="Subject data file.")] = None,
):
    """Show the subjects due for review today."""
    config = _resolve_with_overrides(ctx, data_file=data_file)
    service = _build_service(config)
    due = _run(service.due_today())

    if json_output:
        typer.echo(
            json.dumps(
                [
                    {
                        "id": item.subject_id,
                        "title": item.subject.title,
                        "next_review_at": item.next_review_at.isoformat(),
                        "overdue_days": item.overdue_days,
                    }
                    for item in due
                ],
                indent=2,
            )
        )
        return

    if not due:
        typer.secho("All caught up! Come back tomorrow.", fg="green")
        return

    for item in due:
        badge = "due today" if item.overdue_days == 0 else f"{item.overdue_days}d overdue"
        color = "green" if item.overdue_days == 0 else "yellow"
        typer.echo(f"{item.subject_id}  {item.subject.title}  ", nl=False)
        typer.secho(f"[{badge}]", fg=color)


@app.command()
def review(
    ctx: typer.Context,
    subject_id: Annotated[str, typer.Argument(help="Subject id.")],
    grade: Annotated[str, typer.Argument(help="How it went: easy, medium or hard.")],
    data_file: Annotated[Path | None, typer.Option(help="Subject data file.")] = None,
):
    """Grade a review session and schedule the next one."""
    config = _resolve_with_overrides(ctx, data_file=data_file)
    service = _build_service(config)
    outcome = _run(service.grade(subject_id, grade))

    r = outcome.result
    typer.secho(
        f"Next review in {r.interval} day{'s' if r.interval != 1 else ''} "
        f"({_fmt_day(outcome.next_review_at)})",
        fg="green",
    )
    typer.echo(f"Repetitions: {r.repetitions}  Ease: {r.ease_factor:.2f}")


@app.command()
def reset(
    ctx: typer.Context,
    subject_id: Annotated[str, typer.Argument(help="Subject id.")],
    data_file: Annotated[Path | None, typer.Option(help="Subject data file.")] = None,
):
    """Make a subject due now (debug). Scheduling values are kept."""
    config = _resolve_with_overrides(ctx, data_file=data_file)
    service = _build_service(config)
    _run(service.reset_for_review(subject_id))
    typer.secho(f"{subject_id} is due now.", fg="yellow")


@app.command()
def delete(
    ctx: typer.Context,
    subject_id: Annotated[str, typer.Argument(help="Subject id.")],
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Bypass confirmation.")
    ] = False,
    data_file: Annotated[Path | None, typer.Option(help="Subject data file.")] = None,
):
    """Delete a subject and its review history."""
    if not force and not typer.confirm(f"Delete {subject_id}?"):
        raise typer.Exit(1)

    config = _resolve_with_overrides(ctx, data_file=data_file)
    service = _build_service(config)
    _run(service.delete_subject(subject_id))
    typer.secho(f"Deleted {subject_id}.", fg="green")


@app.command()
def serve(
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Start the HTTP API server."""
    import uvicorn

    config = _resolve_with_overrides(port=port, host=host)
    uvicorn.run("mnemo.server:app", host=config.host, port=config.port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
