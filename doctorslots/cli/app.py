"""
Main CLI application using Typer.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Annotated, Dict, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.hospital_client import HospitalAPIClient
from ..adapters.mock_hospital_client import MockHospitalClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SlotError
from ..domain.models import DayAvailability, SlotStatus
from ..services.availability import AvailabilityService

app = typer.Typer(
    name="doctorslots",
    help="Show doctor slot availability from the hospital management backend",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)

STATUS_STYLES: Dict[SlotStatus, str] = {
    SlotStatus.AVAILABLE: "green",
    SlotStatus.BOOKED: "red",
    SlotStatus.BREAK: "yellow",
    SlotStatus.NOT_WORKING_DAY: "dim",
    SlotStatus.OUTSIDE_WORKING_HOURS: "dim",
    SlotStatus.ON_LEAVE: "magenta",
}

STATUS_SYMBOLS: Dict[SlotStatus, str] = {
    SlotStatus.AVAILABLE: "✓",
    SlotStatus.BOOKED: "●",
    SlotStatus.BREAK: "☕",
    SlotStatus.NOT_WORKING_DAY: "–",
    SlotStatus.OUTSIDE_WORKING_HOURS: "–",
    SlotStatus.ON_LEAVE: "L",
}

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
DateOption = Annotated[
    Optional[str],
    typer.Option("--date", "-d", help="Target date (YYYY-MM-DD). Defaults to today."),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use bundled mock data instead of the backend."),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Doctor slot availability for hospital dashboards.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the config file; without an explicit path a missing file means defaults."""
    config_path = config_file or get_default_config_path()
    if config_file is None and not config_path.exists():
        logger.debug("No config file at %s, using built-in defaults", config_path)
        return AppConfig()
    return AppConfig.load_from_yaml(config_path)


def _build_client(config: AppConfig, mock: bool) -> HospitalAPIClient | MockHospitalClient:
    if mock:
        return MockHospitalClient()
    return HospitalAPIClient(
        base_url=config.api.base_url,
        access_token=config.api.get_token(),
        timeout=config.api.timeout_seconds,
    )


def _determine_date(tz: str, date_option: Optional[str]) -> date:
    """Parse --date or fall back to today in the configured timezone."""
    if not date_option:
        return pendulum.today(tz).date()
    try:
        return pendulum.from_format(date_option, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        raise ValueError(f"Invalid date '{date_option}', expected YYYY-MM-DD: {e}") from e


def _status_cell(status: SlotStatus, compact: bool = False) -> str:
    text = STATUS_SYMBOLS[status] if compact else status.label
    return f"[{STATUS_STYLES[status]}]{text}[/{STATUS_STYLES[status]}]"


def _render_day(day: DayAvailability) -> None:
    table = Table(
        title=day.format_display(),
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Time", style="bold")
    table.add_column("Status")

    for slot in day.slots:
        table.add_row(str(slot.time), _status_cell(slot.status))

    console.print()
    console.print(table)

    counts = day.status_counts()
    summary = ", ".join(f"{status.label}: {count}" for status, count in counts.items())
    console.print(f"   {summary}\n")


def _render_grid(rows: List[DayAvailability], target_date: date) -> None:
    times = sorted({slot.time for row in rows for slot in row.slots})

    table = Table(
        title=f"Availability {pendulum.date(target_date.year, target_date.month, target_date.day).format('dddd DD.MM.YYYY')}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Doctor", style="bold yellow")
    for moment in times:
        table.add_column(str(moment), justify="center")
    table.add_column("Note", style="dim")

    for row in rows:
        by_time = {slot.time: slot.status for slot in row.slots}
        cells = [
            _status_cell(by_time[moment], compact=True) if moment in by_time else ""
            for moment in times
        ]
        table.add_row(row.doctor.display_name(), *cells, row.error or "")

    console.print()
    console.print(table)
    legend = "  ".join(f"{STATUS_SYMBOLS[status]} {status.label}" for status in SlotStatus)
    console.print(f"   {legend}\n")


@app.command()
def slots(
    doctor: Annotated[str, typer.Argument(help="Doctor name (alias) or document id.")],
    config_file: ConfigOption = None,
    date_option: DateOption = None,
    open_only: Annotated[bool, typer.Option("--open-only", help="Only list bookable times.")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON instead of a table.")] = False,
    mock: MockOption = False,
):
    """
    Show the status of every slot of one doctor's day.

    Examples:

        doctorslots slots amina --date 2024-11-25

        doctorslots slots 64b7f0c2a1e4d3b2c1a09871 --open-only --mock
    """
    try:
        config = _load_config(config_file)
        target_date = _determine_date(config.timezone, date_option)
        today = pendulum.today(config.timezone).date()
        doctor_id = config.resolve_doctor(doctor)

        service = AvailabilityService(
            hospital_client=_build_client(config, mock),
            calculator=config.build_calculator(),
        )
        day = service.day_availability(doctor_id, target_date, today=today)

        if as_json:
            console.print_json(json.dumps(day.to_dict()))
        elif open_only:
            open_times = day.open_times()
            if not open_times:
                console.print("[yellow]⚠ No bookable slots on this date.[/yellow]")
            for moment in open_times:
                console.print(moment)
        else:
            _render_day(day)

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (SlotError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def grid(
    doctors: Annotated[Optional[List[str]], typer.Argument(help="Doctor names or ids. Defaults to all doctors.")] = None,
    config_file: ConfigOption = None,
    date_option: DateOption = None,
    mock: MockOption = False,
):
    """
    Show a doctor-by-time availability grid for one date.
    """
    try:
        config = _load_config(config_file)
        target_date = _determine_date(config.timezone, date_option)
        today = pendulum.today(config.timezone).date()
        doctor_ids = config.resolve_doctors(doctors) if doctors else None

        service = AvailabilityService(
            hospital_client=_build_client(config, mock),
            calculator=config.build_calculator(),
        )
        rows = service.availability_grid(target_date, doctor_ids=doctor_ids, today=today)

        if not rows:
            console.print("[yellow]⚠ No doctors found.[/yellow]")
            return

        _render_grid(rows, target_date)

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (SlotError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def list_doctors(config_file: ConfigOption = None):
    """
    List all configured doctor aliases.
    """
    try:
        config = _load_config(config_file)

        if not config.doctors:
            console.print("[yellow]No doctors defined in the config file.[/yellow]")
            return

        table = Table(
            title="Configured doctors",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Name (Alias)", style="bold yellow")
        table.add_column("Doctor ID", style="dim")

        for doctor in config.doctors:
            table.add_row(doctor.name, doctor.doctor_id)

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def test_connection(
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Check that the hospital backend is reachable.
    """
    try:
        config = _load_config(config_file)
        client = _build_client(config, mock)
        health = client.test_connection()

        console.print(Panel.fit(
            f"[bold green]✓ Backend reachable[/bold green]\n\n"
            f"[bold]Status:[/bold] {health.get('status', 'N/A')}\n"
            f"[bold]Database:[/bold] {health.get('database', 'N/A')}",
            title="✓ Connection test"
        ))

    except (FileNotFoundError, SlotError, ValueError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}\n")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]doctorslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
