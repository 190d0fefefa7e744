"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.mock_store import MockAvailabilityStore
from ..adapters.supabase_client import SupabaseClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SchedulingError, StoreError
from ..domain.timezones import (
    check_day_boundary_crossing,
    convert_working_hours_to_client_timezone,
    date_for_weekday,
    format_display_time,
    format_time_of_day,
    get_timezone_options,
    parse_calendar_date,
)
from ..domain.working_hours import prepare_working_hours_for_storage
from ..services.availability_service import AvailabilityService

app = typer.Typer(
    name="bookingslots",
    help="Find bookable appointment times across timezones",
    add_completion=False
)

console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use the bundled mock data instead of Supabase."),
]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config(ctx: typer.Context, config_file: Optional[Path], mock: bool) -> AppConfig:
    """
    Load configuration and set up logging.

    In mock mode a missing config file is fine; defaults are used.
    """
    config_path = config_file or get_default_config_path()

    if mock and not config_path.exists():
        config = AppConfig()
    else:
        config = AppConfig.load_from_yaml(config_path)

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    _configure_logging("DEBUG" if verbose else config.log_level)
    return config


def _build_service(config: AppConfig, mock: bool) -> AvailabilityService:
    if mock:
        console.print("[yellow]⚠  MOCK MODE: using bundled test data[/yellow]\n")
        store = MockAvailabilityStore(data_file=config.mock_data_file)
    else:
        if config.supabase is None:
            raise typer.BadParameter(
                "No 'supabase' section in the config file. Add one or use --mock."
            )
        store = SupabaseClient(url=config.supabase.url, service_key=config.supabase.service_key)

    return AvailabilityService(
        store=store,
        granularity_minutes=config.defaults.granularity_minutes,
        window_padding_hours=config.defaults.window_padding_hours,
    )


def _fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Appointment availability for professionals and their clients.
    """
    ctx.obj = {"verbose": verbose}


@app.command()
def slots(
    ctx: typer.Context,
    professional_id: Annotated[str, typer.Argument(help="Professional profile id")],
    date: Annotated[str, typer.Option("--date", help="Client calendar date (YYYY-MM-DD)")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Service duration in minutes")] = None,
    client_tz: Annotated[Optional[str], typer.Option("--client-tz", help="Client IANA timezone")] = None,
    professional_tz: Annotated[Optional[str], typer.Option("--professional-tz", help="Override the stored professional timezone")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List bookable start times on a client-visible date.

    Examples:

        bookingslots slots pro-new-york --date 2024-11-25 --client-tz America/Los_Angeles --mock
    """
    try:
        config = _load_config(ctx, config_file, mock)
        service = _build_service(config, mock)

        required = duration if duration is not None else config.defaults.duration_minutes
        timezone = client_tz or config.defaults.client_timezone

        available = asyncio.run(
            service.get_available_time_slots(
                professional_id,
                date,
                required,
                professional_timezone=professional_tz,
                client_timezone=timezone,
            )
        )
    except StoreError as e:
        _fail(f"Could not load availability: {e}")
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _fail(str(e))

    if not available:
        console.print(f"[yellow]⚠ No availability on {date} ({timezone}).[/yellow]")
        return

    table = Table(
        title=f"{len(available)} slot(s) on {date} ({timezone}), {required} min",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Start", style="bold yellow")
    table.add_column("Display", style="dim")

    for slot in available:
        table.add_row(slot, format_display_time(slot))

    console.print(table)


@app.command()
def dates(
    ctx: typer.Context,
    professional_id: Annotated[str, typer.Argument(help="Professional profile id")],
    client_tz: Annotated[Optional[str], typer.Option("--client-tz", help="Client IANA timezone (defaults to the professional's)")] = None,
    professional_tz: Annotated[Optional[str], typer.Option("--professional-tz", help="Override the stored professional timezone")] = None,
    week_of: Annotated[Optional[str], typer.Option("--week-of", help="Any date of the week to evaluate (YYYY-MM-DD)")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List the weekdays a client can book.
    """
    try:
        config = _load_config(ctx, config_file, mock)
        service = _build_service(config, mock)

        weekdays = asyncio.run(
            service.get_available_dates(
                professional_id,
                professional_timezone=professional_tz,
                client_timezone=client_tz,
                reference_date=week_of,
            )
        )
    except StoreError as e:
        _fail(f"Could not load working hours: {e}")
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _fail(str(e))

    if not weekdays:
        console.print("[yellow]⚠ No bookable weekdays.[/yellow]")
        return

    console.print("[bold green]✓ Bookable weekdays:[/bold green] " + ", ".join(day.capitalize() for day in weekdays))


@app.command()
def hours(
    ctx: typer.Context,
    professional_id: Annotated[str, typer.Argument(help="Professional profile id")],
    client_tz: Annotated[Optional[str], typer.Option("--client-tz", help="Show hours in this IANA timezone")] = None,
    week_of: Annotated[Optional[str], typer.Option("--week-of", help="Any date of the week to evaluate (YYYY-MM-DD)")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the resolved working hours as stored JSON.")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show a professional's working hours, optionally in a client's timezone.
    """
    try:
        config = _load_config(ctx, config_file, mock)
        service = _build_service(config, mock)
        working_hours = asyncio.run(service.get_working_hours(professional_id))

        if as_json:
            console.print_json(json.dumps(prepare_working_hours_for_storage(working_hours)))
            return

        timezone = client_tz or working_hours.timezone
        reference = parse_calendar_date(week_of) if week_of else pendulum.now("UTC").date()
        converted = {
            shift.professional_day: shift
            for shift in convert_working_hours_to_client_timezone(working_hours, timezone, reference)
        }
    except StoreError as e:
        _fail(f"Could not load working hours: {e}")
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _fail(str(e))

    table = Table(
        title=f"Working hours ({working_hours.timezone} → {timezone})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Day", style="bold yellow")
    table.add_column("Professional")
    table.add_column("Client")
    table.add_column("Note", style="dim")

    for entry in working_hours.entries:
        if not entry.is_open:
            table.add_row(entry.day.capitalize(), "closed", "", "")
            continue

        shift = converted[entry.day]
        crossing = check_day_boundary_crossing(
            entry,
            working_hours.timezone,
            timezone,
            date_for_weekday(reference, entry.day),
        )
        notes = []
        if crossing.next_day:
            notes.append("starts next day")
        if crossing.previous_day:
            notes.append("starts previous day")
        if crossing.crosses_midnight:
            notes.append("crosses midnight")

        table.add_row(
            entry.day.capitalize(),
            f"{format_time_of_day(entry.start_time)} - {format_time_of_day(entry.end_time)}",
            f"{shift.client_start_day.capitalize()} {shift.start.format('HH:mm')} - "
            f"{shift.client_end_day.capitalize()} {shift.end.format('HH:mm')}",
            ", ".join(notes),
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def timezones(
    at: Annotated[Optional[str], typer.Option("--at", help="Date whose UTC offsets to show (YYYY-MM-DD)")] = None,
):
    """
    List selectable timezones with their GMT offsets.
    """
    if at:
        try:
            day = parse_calendar_date(at)
        except SchedulingError as e:
            _fail(str(e))
        moment = pendulum.datetime(day.year, day.month, day.day, tz="UTC")
    else:
        moment = pendulum.now("UTC")

    table = Table(title="Timezones", show_header=True, header_style="bold cyan")
    table.add_column("IANA id", style="bold yellow")
    table.add_column("Label")

    for option in get_timezone_options(moment):
        table.add_row(option.value, option.label)

    console.print(table)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]bookingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
