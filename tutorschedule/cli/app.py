"""
Main CLI application using Typer.
"""

import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import Annotated, List, Optional, Tuple

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.json_store import JsonScheduleStore
from ..config import AppConfig
from ..domain.conflicts import ConflictDetector
from ..domain.exceptions import SchedulingError
from ..domain.models import Booking, DayOfWeek, Person, PersonRole, ScheduleType, sort_days
from ..domain.slot_generator import SlotGenerator
from ..domain.timecodec import format_time, parse_time, require_time
from ..services.scheduler import SchedulingService

app = typer.Typer(
    name="tutorschedule",
    help="Find bookable session slots and check bookings for conflicts",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
DataOption = Annotated[Optional[Path], typer.Option("--data", "-d", help="Schedule JSON file. Defaults to the config's data_file or the bundled sample.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output.")]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load(
    config_file: Optional[Path],
    data_file: Optional[Path],
    verbose: bool
) -> Tuple[AppConfig, JsonScheduleStore, SchedulingService]:
    """Load configuration and data, and wire the service."""
    config = AppConfig.load_or_default(config_file)
    _configure_logging("DEBUG" if verbose else config.log_level)

    schedule = config.schedule
    store = JsonScheduleStore(
        data_file=data_file or config.data_file,
        fallback_duration=schedule.fallback_duration_minutes,
    )
    detector = ConflictDetector(
        buffer_minutes=schedule.buffer_minutes,
        check_series_bounds=schedule.check_series_bounds,
    )
    generator = SlotGenerator(detector, default_gap_minutes=schedule.slot_gap_minutes)
    return config, store, SchedulingService(booking_store=store, slot_generator=generator)


def _parse_date(value: str) -> date:
    try:
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    except ValueError as e:
        raise typer.BadParameter(f"Invalid date {value!r}, expected YYYY-MM-DD") from e


def _require_person(store: JsonScheduleStore, person_id: str) -> Person:
    person = store.get_person(person_id)
    if person is None:
        raise SchedulingError(f"Unknown person: '{person_id}'")
    return person


def _session_minutes(config: AppConfig, duration: Optional[int]) -> int:
    """Requested duration, or the configured default; warn on non-standard lengths."""
    if duration is None:
        return config.schedule.default_duration_minutes
    presets = config.schedule.duration_presets
    if presets and duration not in presets:
        console.print(
            f"[yellow]⚠ {duration} min is not a standard duration ({', '.join(map(str, presets))}).[/yellow]"
        )
    return duration


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def slots(
    person_id: Annotated[str, typer.Argument(help="Tutor or student id")],
    on: Annotated[str, typer.Option("--date", help="Date (YYYY-MM-DD)")],
    duration: Annotated[Optional[int], typer.Option("--duration", help="Session duration in minutes")] = None,
    gap: Annotated[Optional[int], typer.Option("--gap", help="Minutes between consecutive slots")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    verbose: VerboseOption = False,
):
    """
    List bookable slots for one person on a date.

    Example:

        tutorschedule slots t-ana --date 2025-01-15 --duration 60
    """
    on_date = _parse_date(on)
    try:
        config, store, service = _load(config_file, data_file, verbose)
        person = _require_person(store, person_id)
        found = asyncio.run(service.find_slots(
            person=person,
            on_date=on_date,
            duration_minutes=_session_minutes(config, duration),
            gap_minutes=gap,
        ))
    except (SchedulingError, ValueError, FileNotFoundError) as e:
        _fail(e)

    console.print()
    if not found:
        console.print(
            f"[yellow]⚠ No bookable slots for {person.display_name()} on {on_date.isoformat()}.[/yellow]"
        )
        return

    table = Table(
        title=f"{person.display_name()} · {DayOfWeek.from_date(on_date).value.capitalize()} {on_date.isoformat()}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Slot", style="bold yellow")
    table.add_column("Duration", style="dim")
    for slot in found:
        table.add_row(slot.label, f"{slot.duration} min")

    console.print(table)
    console.print()


@app.command()
def aggregate(
    on: Annotated[str, typer.Option("--date", help="Date (YYYY-MM-DD)")],
    person_ids: Annotated[Optional[List[str]], typer.Argument(help="Tutor ids, in priority order. Defaults to every tutor.")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", help="Session duration in minutes")] = None,
    gap: Annotated[Optional[int], typer.Option("--gap", help="Minutes between consecutive slots")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    verbose: VerboseOption = False,
):
    """
    Show every start time on a date with the tutors free at that time.
    """
    on_date = _parse_date(on)
    try:
        config, store, service = _load(config_file, data_file, verbose)
        if person_ids:
            pool = [_require_person(store, pid) for pid in person_ids]
        else:
            pool = store.persons_by_role(PersonRole.TUTOR)
        merged = asyncio.run(service.find_slots_across(
            persons=pool,
            on_date=on_date,
            duration_minutes=_session_minutes(config, duration),
            gap_minutes=gap,
        ))
    except (SchedulingError, ValueError, FileNotFoundError) as e:
        _fail(e)

    console.print()
    if not merged:
        console.print(f"[yellow]⚠ No tutor has a free slot on {on_date.isoformat()}.[/yellow]")
        return

    table = Table(title=f"Available times · {on_date.isoformat()}", show_header=True, header_style="bold cyan")
    table.add_column("Slot", style="bold yellow")
    table.add_column("First available")
    table.add_column("All available", style="dim")
    for entry in merged:
        table.add_row(
            entry.label,
            entry.first_person.display_name(),
            ", ".join(p.display_name() for p in entry.persons),
        )

    console.print(table)
    console.print()


@app.command()
def check(
    start: Annotated[str, typer.Option("--start", help="Start time (e.g. 14:00 or 2:00 PM)")],
    tutor: Annotated[Optional[str], typer.Option("--tutor", help="Tutor id")] = None,
    student: Annotated[Optional[List[str]], typer.Option("--student", help="Student id (repeatable)")] = None,
    on: Annotated[Optional[str], typer.Option("--date", help="One-time class date (YYYY-MM-DD)")] = None,
    days: Annotated[Optional[str], typer.Option("--days", help="Weekly days, comma separated (e.g. wednesday,friday)")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", help="Session duration in minutes")] = None,
    exclude: Annotated[Optional[str], typer.Option("--exclude", help="Id of the booking being edited")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    verbose: VerboseOption = False,
):
    """
    Check a proposed class against existing bookings and availability.

    Exits with status 1 when the class collides with an existing booking
    or when some participant's bookings could not be loaded.

    Examples:

        tutorschedule check --tutor t-ben --date 2025-01-15 --start 14:00 --duration 35

        tutorschedule check --tutor t-ana --student s-dan --days monday,wednesday --start 10:00
    """
    if (on is None) == (days is None):
        raise typer.BadParameter("Give exactly one of --date or --days")

    try:
        config, store, service = _load(config_file, data_file, verbose)
        tutor_person = _require_person(store, tutor) if tutor else None
        students = [_require_person(store, sid) for sid in (student or [])]

        if on is not None:
            schedule_fields = {"schedule_type": ScheduleType.ONE_TIME, "date": _parse_date(on)}
        else:
            recurring = set()
            for name in days.split(","):
                day = DayOfWeek.parse(name)
                if day is None:
                    raise typer.BadParameter(f"Unknown weekday {name!r}")
                recurring.add(day)
            schedule_fields = {
                "schedule_type": ScheduleType.WEEKLY_RECURRING,
                "recurring_days": frozenset(recurring),
            }

        proposed = Booking(
            start_time=require_time(start),
            duration=_session_minutes(config, duration),
            tutor_id=tutor,
            student_ids=frozenset(student or []),
            **schedule_fields,
        )
        validation = asyncio.run(service.validate_booking(
            proposed=proposed,
            exclude_booking_id=exclude,
            tutor=tutor_person,
            students=students,
        ))
    except (SchedulingError, ValueError, FileNotFoundError) as e:
        _fail(e)

    console.print()
    for issue in validation.availability_issues:
        console.print(f"[yellow]⚠ {issue.format_display()}[/yellow]")

    for message in validation.messages:
        console.print(f"[bold red]✗[/bold red] {message}")

    if not validation.is_complete:
        console.print(
            "[yellow]⚠ Bookings not loaded for "
            f"{', '.join(map(str, validation.unverified_person_ids))}; "
            "check again once they are available.[/yellow]\n"
        )
        raise typer.Exit(1)

    if not validation.has_conflict:
        console.print("[green]✓ No conflicts with existing bookings.[/green]\n")
        return

    console.print()
    raise typer.Exit(1)


@app.command("parse-time")
def parse_time_command(
    raw: Annotated[str, typer.Argument(help="Time string, e.g. '2:30 PM' or '2025-01-15T14:30:00'")],
):
    """
    Show how a time string is understood.
    """
    minutes = parse_time(raw)
    if minutes is None:
        console.print(f"[bold red]✗ Could not parse time:[/bold red] {raw!r}")
        raise typer.Exit(1)
    console.print(f"{format_time(minutes)} ({minutes} minutes after midnight)")


@app.command("list-people")
def list_people(
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    verbose: VerboseOption = False,
):
    """
    List tutors and students in the schedule data.
    """
    try:
        _, store, _ = _load(config_file, data_file, verbose)
    except (SchedulingError, ValueError, FileNotFoundError) as e:
        _fail(e)

    if not store.persons:
        console.print("[yellow]No persons in the schedule data.[/yellow]")
        return

    table = Table(title="People", show_header=True, header_style="bold cyan")
    table.add_column("Id", style="bold yellow")
    table.add_column("Name")
    table.add_column("Role", style="dim")
    table.add_column("Available on", style="dim")
    for person in store.persons:
        open_days = [
            day.short_name for day in sort_days(person.availability)
            if person.availability[day].is_bookable
        ]
        table.add_row(str(person.id), person.display_name(), person.role.value, ", ".join(open_days))

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]tutorschedule[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
