"""
Tests for the command line interface against the bundled sample schedule.
"""

import pytest
from typer.testing import CliRunner

from tutorschedule import __version__
from tutorschedule.adapters.json_store import JsonScheduleStore
from tutorschedule.cli.app import app
from tutorschedule.domain.exceptions import IncompleteDataError

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("log_level: ERROR\n")
    return str(path)


class TestSlotsCommand:
    """Tests for the slots command."""

    def test_existing_booking_is_excluded(self, config_file):
        result = runner.invoke(
            app, ["slots", "t-ana", "--date", "2025-01-15", "--duration", "60", "-c", config_file]
        )

        assert result.exit_code == 0
        assert "09:00 - 10:00" in result.output
        assert "10:15 - 11:15" not in result.output

    def test_no_slots(self, config_file):
        result = runner.invoke(app, ["slots", "t-ana", "--date", "2025-01-18", "-c", config_file])

        assert result.exit_code == 0
        assert "No bookable slots" in result.output

    def test_non_standard_duration_warns(self, config_file):
        result = runner.invoke(
            app, ["slots", "t-ana", "--date", "2025-01-15", "--duration", "45", "-c", config_file]
        )

        assert result.exit_code == 0
        assert "not a standard duration" in result.output

    def test_unknown_person(self, config_file):
        result = runner.invoke(app, ["slots", "t-zed", "--date", "2025-01-15", "-c", config_file])

        assert result.exit_code == 1
        assert "Unknown person" in result.output

    def test_bad_date(self, config_file):
        result = runner.invoke(app, ["slots", "t-ana", "--date", "15/01/2025", "-c", config_file])

        assert result.exit_code != 0


class TestAggregateCommand:
    """Tests for the aggregate command."""

    def test_all_tutors(self, config_file):
        result = runner.invoke(
            app, ["aggregate", "--date", "2025-01-15", "--duration", "60", "-c", config_file]
        )

        assert result.exit_code == 0
        assert "Wed 09:00 - 10:00" in result.output
        assert "Wed 10:15 - 11:15" in result.output
        assert "Cara Singh" in result.output


class TestCheckCommand:
    """Tests for the check command."""

    def test_conflict_with_recurring_class(self, config_file):
        result = runner.invoke(app, [
            "check", "--tutor", "t-ben", "--date", "2025-01-15",
            "--start", "14:00", "--duration", "35", "-c", config_file,
        ])

        assert result.exit_code == 1
        assert "already has a class" in result.output

    def test_free_time(self, config_file):
        result = runner.invoke(app, [
            "check", "--tutor", "t-ana", "--date", "2025-01-15",
            "--start", "09:00", "--duration", "60", "-c", config_file,
        ])

        assert result.exit_code == 0
        assert "No conflicts" in result.output

    def test_weekly_student_conflict(self, config_file):
        result = runner.invoke(app, [
            "check", "--student", "s-eve", "--days", "friday",
            "--start", "2:15 PM", "--duration", "35", "-c", config_file,
        ])

        assert result.exit_code == 1
        assert "Eve Tanaka" in result.output

    def test_unloaded_bookings_are_not_reported_free(self, config_file, monkeypatch):
        """Test that missing booking data fails the check instead of passing it."""
        async def not_loaded(self, person_id):
            raise IncompleteDataError(f"No schedule snapshot for person {person_id!r}")

        monkeypatch.setattr(JsonScheduleStore, "get_bookings", not_loaded)

        result = runner.invoke(app, [
            "check", "--tutor", "t-ana", "--date", "2025-01-15",
            "--start", "09:00", "--duration", "60", "-c", config_file,
        ])

        assert result.exit_code == 1
        assert "Bookings not loaded for t-ana" in result.output
        assert "No conflicts" not in result.output

    def test_date_or_days_required(self, config_file):
        result = runner.invoke(app, ["check", "--tutor", "t-ana", "--start", "09:00", "-c", config_file])

        assert result.exit_code == 2

    def test_unparseable_start(self, config_file):
        result = runner.invoke(app, [
            "check", "--tutor", "t-ana", "--date", "2025-01-15", "--start", "soon", "-c", config_file,
        ])

        assert result.exit_code == 1
        assert "Could not parse time" in result.output


class TestUtilityCommands:
    """Tests for parse-time, list-people and version."""

    def test_parse_time(self):
        result = runner.invoke(app, ["parse-time", "2:30 PM"])

        assert result.exit_code == 0
        assert "14:30 (870 minutes after midnight)" in result.output

    def test_parse_time_failure(self):
        result = runner.invoke(app, ["parse-time", "half past"])

        assert result.exit_code == 1

    def test_list_people(self, config_file):
        result = runner.invoke(app, ["list-people", "-c", config_file])

        assert result.exit_code == 0
        assert "t-cara" in result.output
        assert "Eve Tanaka" in result.output

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output
