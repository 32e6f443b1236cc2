"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from pendulum import Date
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..adapters.backend_client import BackendClient
from ..adapters.mock_backend_client import MockBackendClient
from ..config import AppConfig, DefaultsConfig, LocalConfig, get_default_config_path
from ..domain.exceptions import ShopSlotsError
from ..services.booking_flow import DEFAULT_CANCELLATION_REASON, BookingFlowService, BookingView

app = typer.Typer(
    name="shopslots",
    help="Find and book appointment slots at marketplace shops",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use bundled mock data instead of the hosted backend.")
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Appointment slot finder for the booking marketplace.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path], mock: bool) -> Optional[LocalConfig]:
    """
    Load the config file. In mock mode the backend section is not read, and
    a missing file is allowed with the built-in defaults used instead.
    """
    config_path = config_file or get_default_config_path()
    if not mock:
        return AppConfig.load_from_yaml(config_path)
    if not config_path.exists():
        return None
    return LocalConfig.load_from_yaml(config_path)


def _build_service(config: Optional[LocalConfig], mock: bool) -> BookingFlowService:
    if mock:
        console.print("[yellow]⚠  MOCK MODE: using bundled test data[/yellow]\n")
        backend = MockBackendClient()
    else:
        backend = BackendClient(config.backend)

    if config is None:
        return BookingFlowService(backend=backend, defaults=DefaultsConfig())

    return BookingFlowService(
        backend=backend,
        defaults=config.defaults,
        timezone=config.timezone,
    )


def _parse_date(value: Optional[str], tz: str) -> Date:
    """Parse a YYYY-MM-DD option, defaulting to today."""
    if not value:
        return pendulum.today(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Could not parse date {escape(repr(value))}: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _timezone(config: Optional[LocalConfig]) -> str:
    return config.timezone if config else "Europe/Berlin"


@app.command()
def slots(
    shop_id: Annotated[str, typer.Argument(help="Shop identifier")],
    service_id: Annotated[str, typer.Option("--service", "-s", help="Service identifier")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD), defaults to today")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show the bookable start times of a service on a date.

    Examples:

        shopslots slots shop-barber --service svc-haircut --date 2030-01-14

        shopslots slots shop-barber -s svc-beard --mock
    """
    try:
        config = _load_config(config_file, mock)
        booking_date = _parse_date(date, _timezone(config))
        flow = _build_service(config, mock)

        candidates = flow.available_slots(
            shop_id=shop_id,
            service_id=service_id,
            booking_date=booking_date,
        )
    except (ShopSlotsError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print()
    if not candidates:
        console.print(
            f"[yellow]⚠ No available slots on {booking_date.to_date_string()}.[/yellow]\n"
            "Try another date or a shorter service."
        )
        return

    console.print(
        f"[bold green]✓ {len(candidates)} available slot(s) on "
        f"{booking_date.to_date_string()}:[/bold green]\n"
    )
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim")
    table.add_column("Start", style="bold yellow")
    for idx, candidate in enumerate(candidates, 1):
        table.add_row(str(idx), candidate.label)
    console.print(table)
    console.print()


@app.command()
def services(
    shop_id: Annotated[str, typer.Argument(help="Shop identifier")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List the active services of a shop.
    """
    try:
        config = _load_config(config_file, mock)
        flow = _build_service(config, mock)
        offered = flow.list_services(shop_id)
    except (ShopSlotsError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if not offered:
        console.print("[yellow]This shop has no active services.[/yellow]")
        return

    table = Table(
        title="Services",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold yellow")
    table.add_column("Duration")
    table.add_column("Price")

    for item in offered:
        table.add_row(
            item.id,
            item.name,
            f"{item.duration_minutes} min",
            f"{item.price:.2f}",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def book(
    shop_id: Annotated[str, typer.Argument(help="Shop identifier")],
    service_id: Annotated[str, typer.Option("--service", "-s", help="Service identifier")],
    start: Annotated[str, typer.Option("--time", "-t", help="Start time (HH:MM)")],
    user_id: Annotated[str, typer.Option("--user", "-u", help="Customer user id")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD), defaults to today")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Special requests")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Book an available slot.
    """
    try:
        config = _load_config(config_file, mock)
        booking_date = _parse_date(date, _timezone(config))
        flow = _build_service(config, mock)

        booking = flow.book_slot(
            shop_id=shop_id,
            service_id=service_id,
            booking_date=booking_date,
            start=start,
            user_id=user_id,
            notes=notes,
        )
    except (ShopSlotsError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]✓ Booking confirmed![/bold green]\n\n"
        f"[bold]Booking:[/bold] {booking.id}\n"
        f"[bold]When:[/bold] {booking.format_display()}",
        title="Booking"
    ))


@app.command()
def cancel(
    booking_id: Annotated[str, typer.Argument(help="Booking identifier")],
    reason: Annotated[str, typer.Option("--reason", help="Cancellation reason")] = DEFAULT_CANCELLATION_REASON,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Cancel a booking.
    """
    try:
        config = _load_config(config_file, mock)
        flow = _build_service(config, mock)
        booking = flow.cancel_booking(booking_id, reason=reason)
    except (ShopSlotsError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[green]✓ Booking {booking.id} cancelled.[/green]")


@app.command()
def bookings(
    user_id: Annotated[Optional[str], typer.Option("--user", "-u", help="Customer user id")] = None,
    shop_id: Annotated[Optional[str], typer.Option("--shop", help="Shop identifier")] = None,
    view: Annotated[BookingView, typer.Option("--view", help="Which bookings to show")] = BookingView.UPCOMING,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List a customer's or a shop's bookings.

    Examples:

        shopslots bookings --user user-1 --view past

        shopslots bookings --shop shop-barber --mock
    """
    try:
        config = _load_config(config_file, mock)
        flow = _build_service(config, mock)
        found = flow.list_bookings(user_id=user_id, shop_id=shop_id, view=view)
    except (ShopSlotsError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if not found:
        console.print(f"[yellow]No {view.value} bookings.[/yellow]")
        return

    table = Table(
        title=f"{view.value.capitalize()} bookings",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("ID", style="dim")
    table.add_column("When", style="bold yellow")
    table.add_column("Shop")

    for booking in found:
        table.add_row(booking.id, booking.format_display(), booking.shop_id)

    console.print()
    console.print(table)
    console.print()


@app.command()
def test_connection(
    config_file: ConfigOption = None,
):
    """
    Test the backend endpoint and credential.
    """
    try:
        config = AppConfig.load_from_yaml(config_file or get_default_config_path())

        console.print("\n[bold]Testing backend connection...[/bold]\n")
        info = BackendClient(config.backend).test_connection()
    except (ShopSlotsError, FileNotFoundError, ValueError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {escape(str(e))}\n")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]✓ Connection successful![/bold green]\n\n"
        f"[bold]Endpoint:[/bold] {info['url']}\n"
        f"[bold]Shops visible:[/bold] {info['shops_visible']}",
        title="✓ Connection test"
    ))
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]shopslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
