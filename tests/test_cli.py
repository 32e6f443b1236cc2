"""
Tests for the command line interface in mock mode.
"""

import shutil
from pathlib import Path

import pendulum
import pytest
from typer.testing import CliRunner

from shopslots import __version__
from shopslots.cli.app import app

runner = CliRunner()


@pytest.fixture
def missing_config(tmp_path):
    return str(tmp_path / "missing.yaml")


def test_slots_lists_available_starts(missing_config):
    """Mock slots for the haircut skip the confirmed 11:00 booking."""
    result = runner.invoke(app, [
        "slots", "shop-barber",
        "--service", "svc-haircut",
        "--date", "2030-01-14",
        "--mock",
        "--config", missing_config,
    ])

    assert result.exit_code == 0, result.output
    assert "8 available slot(s)" in result.output
    assert "09:00" in result.output
    assert "11:00" not in result.output


def test_slots_unknown_service_fails(missing_config):
    """Unknown services exit with an error."""
    result = runner.invoke(app, [
        "slots", "shop-barber",
        "--service", "svc-unknown",
        "--date", "2030-01-14",
        "--mock",
        "--config", missing_config,
    ])

    assert result.exit_code == 1
    assert "Service not found" in result.output


def test_slots_invalid_date_fails(missing_config):
    """Dates must be YYYY-MM-DD."""
    result = runner.invoke(app, [
        "slots", "shop-barber",
        "--service", "svc-haircut",
        "--date", "14.01.2030",
        "--mock",
        "--config", missing_config,
    ])

    assert result.exit_code == 1
    assert "Could not parse date" in result.output


def test_slots_without_config_outside_mock_fails(missing_config):
    """A real backend run needs a config file."""
    result = runner.invoke(app, [
        "slots", "shop-barber",
        "--service", "svc-haircut",
        "--config", missing_config,
    ])

    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_services_lists_active_services(missing_config):
    """Inactive services are not listed."""
    result = runner.invoke(app, ["services", "shop-barber", "--mock", "--config", missing_config])

    assert result.exit_code == 0, result.output
    assert "Haircut" in result.output
    assert "Beard Trim" in result.output
    assert "Colour" not in result.output


def test_book_available_slot(missing_config):
    """Booking tomorrow's first slot succeeds."""
    tomorrow = pendulum.today("Europe/Berlin").add(days=1).to_date_string()

    result = runner.invoke(app, [
        "book", "shop-barber",
        "--service", "svc-haircut",
        "--date", tomorrow,
        "--time", "09:00",
        "--user", "user-1",
        "--mock",
        "--config", missing_config,
    ])

    assert result.exit_code == 0, result.output
    assert "Booking confirmed" in result.output


def test_book_outside_window_fails(missing_config):
    """Bookings far in the future are rejected."""
    result = runner.invoke(app, [
        "book", "shop-barber",
        "--service", "svc-haircut",
        "--date", "2030-01-14",
        "--time", "09:00",
        "--user", "user-1",
        "--mock",
        "--config", missing_config,
    ])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_cancel_booking(missing_config):
    """Cancelling a mock booking succeeds."""
    result = runner.invoke(app, ["cancel", "booking-1", "--mock", "--config", missing_config])

    assert result.exit_code == 0, result.output
    assert "cancelled" in result.output


def test_version():
    """The version command prints the package version."""
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_book_without_user_fails(missing_config):
    """The customer user id is a required option."""
    tomorrow = pendulum.today("Europe/Berlin").add(days=1).to_date_string()

    result = runner.invoke(app, [
        "book", "shop-barber",
        "--service", "svc-haircut",
        "--date", tomorrow,
        "--time", "09:00",
        "--mock",
        "--config", missing_config,
    ])

    assert result.exit_code == 2


def test_mock_mode_ignores_placeholder_backend_settings(tmp_path):
    """The example config runs in mock mode without real backend values."""
    config_file = tmp_path / "config.yaml"
    shutil.copy(Path(__file__).parent.parent / "config.example.yaml", config_file)

    result = runner.invoke(app, [
        "slots", "shop-barber",
        "--service", "svc-haircut",
        "--date", "2030-01-14",
        "--mock",
        "--config", str(config_file),
    ])

    assert result.exit_code == 0, result.output
    assert "8 available slot(s)" in result.output


def test_mock_mode_still_validates_defaults(tmp_path):
    """Local settings in the config file are still checked in mock mode."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "defaults:\n  opening_time: '18:00'\n  closing_time: '09:00'\n",
        encoding="utf-8",
    )

    result = runner.invoke(app, [
        "slots", "shop-spa",
        "--service", "svc-massage",
        "--mock",
        "--config", str(config_file),
    ])

    assert result.exit_code == 1
    assert "closing_time must be later" in result.output


def test_bookings_lists_upcoming_for_user(missing_config):
    """A customer's upcoming bookings are listed."""
    result = runner.invoke(app, ["bookings", "--user", "user-1", "--mock", "--config", missing_config])

    assert result.exit_code == 0, result.output
    assert "booking-1" in result.output
    assert "booking-3" in result.output
    assert "booking-4" not in result.output


def test_bookings_cancelled_view_for_shop(missing_config):
    """A shop's cancelled bookings are listed."""
    result = runner.invoke(app, [
        "bookings", "--shop", "shop-barber",
        "--view", "cancelled",
        "--mock",
        "--config", missing_config,
    ])

    assert result.exit_code == 0, result.output
    assert "booking-2" in result.output
    assert "booking-1" not in result.output


def test_bookings_without_user_or_shop_fails(missing_config):
    """Listing needs a customer or a shop."""
    result = runner.invoke(app, ["bookings", "--mock", "--config", missing_config])

    assert result.exit_code == 1
    assert "needs a user or a shop" in result.output
