"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from pendulum import Date, DateTime
from rich.columns import Columns
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.booking_store import JsonBookingStore
from ..adapters.google_calendar_client import GoogleCalendarClient
from ..adapters.mock_calendar_client import MockCalendarClient
from ..config import AppConfig, get_default_config_path
from ..domain.calendar_grid import days_in_month, month_name, year_of
from ..domain.exceptions import BookingError
from ..domain.slot_calculator import resolve_effective_hours
from ..services.availability_service import AvailabilityService, SchedulingPolicy

app = typer.Typer(
    name="slotbooking",
    help="Find bookable appointment slots and take bookings",
    add_completion=False
)

console = Console()

WEEKDAY_HEADERS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use mock calendar events instead of Google Calendar.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _parse_day(value: str, tz: str) -> Date:
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from e


def _parse_now(value: Optional[str], tz: str) -> DateTime:
    """Reference instant for past-slot filtering; the wall clock unless given."""
    if not value:
        return pendulum.now(tz)

    parsed = pendulum.parse(value, tz=tz)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Invalid --now value '{value}', expected an ISO 8601 timestamp")
    return parsed


def _build_service(config: AppConfig, mock: bool) -> AvailabilityService:
    """
    Wire the booking store, calendar client and scheduling policy together.
    """
    calendar_client = None

    if mock:
        calendar_client = MockCalendarClient(
            calendar_ids=config.google.calendar_ids or ["primary"],
            timezone=config.timezone,
            events_file=config.mock_events_file,
        )
    elif config.google.enabled:
        calendar_client = GoogleCalendarClient(
            access_token=config.google.resolve_access_token(),
            calendar_ids=config.google.calendar_ids,
            timezone=config.timezone,
        )

    event_calendar_id = config.google.event_calendar_id if config.google.create_events else None

    return AvailabilityService(
        booking_store=JsonBookingStore(config.bookings_file),
        policy=SchedulingPolicy.from_config(config),
        calendar_client=calendar_client,
        event_calendar_id=event_calendar_id,
        send_updates=config.google.send_updates,
    )


@app.command()
def slots(
    date: Annotated[str, typer.Argument(help="Day to check (YYYY-MM-DD)")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Appointment duration in minutes")] = None,
    service_id: Annotated[Optional[str], typer.Option("--service", "-s", help="Service id; uses its default duration")] = None,
    now: Annotated[Optional[str], typer.Option("--now", help="Reference time for hiding past slots (ISO 8601)")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show the bookable start times of a day.

    Examples:

        slotbooking slots 2026-10-19 --duration 60

        slotbooking slots 2026-10-19 --service tennis-individuale --mock
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        tz = config.timezone
        day = _parse_day(date, tz)
        minutes = config.resolve_duration(duration, service_id)
        reference_now = _parse_now(now, tz)

        service = _build_service(config, mock)

        if mock:
            console.print("[yellow]⚠  Mock mode: using calendar events from JSON[/yellow]\n")

        times = asyncio.run(
            service.available_times(day=day, duration=minutes, now=reference_now)
        )

        console.print(
            f"[bold cyan]{day.format('dddd D MMMM YYYY', locale=config.locale)}[/bold cyan]"
            f" · {minutes} min"
        )

        if not times:
            console.print("[yellow]⚠ No available slots for this day.[/yellow]\n")
            return

        console.print(f"[bold green]✓ {len(times)} available slot(s):[/bold green]\n")
        console.print(Columns([f"[bold]{t}[/bold]" for t in times], padding=(0, 3)))
        console.print()

    except (FileNotFoundError, BookingError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def month(
    year: Annotated[Optional[int], typer.Argument(help="Year, defaults to the current one")] = None,
    month_number: Annotated[Optional[int], typer.Argument(metavar="MONTH", help="Month 1-12, defaults to the current one")] = None,
    config_file: ConfigOption = None,
):
    """
    Show a month calendar, dimming days without opening hours.
    """
    try:
        config = _load_config(config_file)
        today = pendulum.today(config.timezone)
        year = year if year is not None else today.year
        month_number = month_number if month_number is not None else today.month

        if not 1 <= month_number <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {month_number}")

        working_hours = config.get_working_hours()
        overrides = config.get_date_overrides()

        cells = days_in_month(year, month_number - 1, tz=config.timezone)
        first_day = pendulum.date(year, month_number, 1)

        table = Table(
            title=f"{month_name(first_day, config.locale).capitalize()} {year_of(first_day)}",
            show_header=True,
            header_style="bold cyan"
        )
        for header in WEEKDAY_HEADERS:
            table.add_column(header, justify="right")

        rendered = []
        for cell in cells:
            if cell is None:
                rendered.append("")
                continue

            hours = resolve_effective_hours(cell, working_hours, overrides)
            marker = "*" if cell in overrides else ""
            if hours is None:
                rendered.append(f"[dim]{cell.day}{marker}[/dim]")
            else:
                rendered.append(f"[bold green]{cell.day}{marker}[/bold green]")

        rendered.extend([""] * (-len(rendered) % 7))
        for week_start in range(0, len(rendered), 7):
            table.add_row(*rendered[week_start:week_start + 7])

        console.print()
        console.print(table)
        console.print("[dim]* date override[/dim]\n")

    except (FileNotFoundError, BookingError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def services(
    config_file: ConfigOption = None,
):
    """
    List all configured services.
    """
    try:
        config = _load_config(config_file)

        if not config.services:
            console.print("[yellow]No services defined in the config file.[/yellow]")
            return

        table = Table(
            title="Configured services",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Id", style="bold yellow")
        table.add_column("Name")
        table.add_column("Durations (min)", justify="right")
        table.add_column("Locations", style="dim")

        for service in config.services:
            table.add_row(
                service.id,
                service.name,
                ", ".join(str(d) for d in service.durations),
                ", ".join(service.locations)
            )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def hours(
    config_file: ConfigOption = None,
):
    """
    Show the weekly working hours and date overrides.
    """
    try:
        config = _load_config(config_file)
        working_hours = config.get_working_hours()

        table = Table(title="Working hours", show_header=True, header_style="bold cyan")
        table.add_column("Day", style="bold")
        table.add_column("Hours")

        for weekday, header in enumerate(WEEKDAY_HEADERS):
            day_hours = working_hours.hours_for_weekday(weekday)
            table.add_row(header, str(day_hours) if day_hours else "[dim]closed[/dim]")

        console.print()
        console.print(table)

        if config.date_overrides:
            overrides = Table(title="Date overrides", show_header=True, header_style="bold cyan")
            overrides.add_column("Date", style="bold")
            overrides.add_column("Hours")
            for key, override in sorted(config.get_date_overrides().entries.items()):
                overrides.add_row(key, str(override.hours) if override.hours else "[dim]closed[/dim]")
            console.print(overrides)

        console.print(
            f"Slot interval: {config.slot_interval} min · "
            f"Minimum notice: {config.minimum_notice_hours} h\n"
        )

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def book(
    date: Annotated[str, typer.Argument(help="Day of the appointment (YYYY-MM-DD)")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    name: Annotated[str, typer.Option("--name", help="Client name")],
    email: Annotated[str, typer.Option("--email", help="Client e-mail")],
    service_id: Annotated[Optional[str], typer.Option("--service", "-s", help="Service id")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Appointment duration in minutes")] = None,
    location: Annotated[str, typer.Option("--location", help="Where the appointment takes place")] = "",
    now: Annotated[Optional[str], typer.Option("--now", help="Reference time for hiding past slots (ISO 8601)")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Book an appointment if the start time is still available.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        tz = config.timezone
        day = _parse_day(date, tz)
        minutes = config.resolve_duration(duration, service_id)

        service_offering = config.find_service(service_id) if service_id else None
        if not location and service_offering and service_offering.locations:
            location = service_offering.locations[0]

        service = _build_service(config, mock)

        booking = asyncio.run(
            service.book(
                day=day,
                start=start,
                duration=minutes,
                name=name,
                email=email,
                service_id=service_offering.id if service_offering else (service_id or "custom"),
                location=location,
                now=_parse_now(now, tz),
            )
        )

        console.print(
            f"\n[bold green]✓ Booked[/bold green] {booking.start_time.format('DD.MM.YYYY HH:mm')}"
            f" - {booking.end_time.format('HH:mm')} for {booking.name}"
            f" [dim]({booking.id})[/dim]\n"
        )

    except (FileNotFoundError, BookingError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotbooking[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
