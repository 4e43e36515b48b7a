"""Tests for the PriceWatch command line interface.

**Feature: price-alerts**
"""

import tempfile
from pathlib import Path

import pytest
import toml
from click.testing import CliRunner

from pricewatch.cli import cli
from pricewatch.db.store import DataStore
from pricewatch.models import AlertState


@pytest.fixture
def workspace(monkeypatch):
    """Config using static quotes and console notifications."""
    for var in ("PRICEWATCH_DB_PATH", "FINNHUB_API_KEY", "SMTP_PASSWORD", "PRICEWATCH_USER"):
        monkeypatch.delenv(var, raising=False)
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        config_path = root / "config.toml"
        config_path.write_text(toml.dumps({
            "database": {"path": str(root / "pricewatch.db")},
            "scheduler": {"retry_delay_seconds": 0.0},
            "quotes": {"provider": "static", "static": {"AAPL": 190.0, "MSFT": 410.0}},
            "notifications": {"channel": "console"},
        }))
        yield config_path, DataStore(root / "pricewatch.db")


def invoke(config_path: Path, *args: str):
    runner = CliRunner()
    return runner.invoke(cli, ["--config", str(config_path), *args])


class TestCommandDiscovery:
    """Lazy command loading."""

    def test_help_lists_commands(self):
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("alert", "alerts", "check", "edit", "init", "monitor", "user", "users", "watch"):
            assert command in result.output

    def test_unknown_command(self):
        result = CliRunner().invoke(cli, ["frobnicate"])
        assert result.exit_code != 0


class TestUserCommands:
    """
    **Feature: price-alerts, Property 19: User Registration**
    """

    def test_create_and_list_user(self, workspace):
        config_path, store = workspace

        result = invoke(config_path, "user", "alice", "alice@example.com", "--name", "Alice")
        assert result.exit_code == 0, result.output
        assert "Created user" in result.output

        result = invoke(config_path, "user", "alice", "alice@work.example.com")
        assert "Updated user" in result.output
        assert store.get_user("alice").email == "alice@work.example.com"
        assert store.get_user("alice").name == "Alice"

        result = invoke(config_path, "users")
        assert "alice" in result.output

    def test_invalid_email_rejected(self, workspace):
        config_path, store = workspace

        result = invoke(config_path, "user", "alice", "not-an-email")

        assert result.exit_code == 1
        assert store.get_user("alice") is None


class TestAlertCommands:
    """
    **Feature: price-alerts, Property 20: Alert Management**
    """

    def test_create_alert_records_current_price(self, workspace):
        config_path, store = workspace

        result = invoke(config_path, "alert", "aapl", "above", "200", "--user", "alice")

        assert result.exit_code == 0, result.output
        assert "Alert Created" in result.output
        [alert] = store.get_alerts(user_id="alice")
        assert alert.symbol == "AAPL"
        assert alert.condition == "greater"
        assert alert.threshold == 200.0
        assert alert.current_price == 190.0

    def test_unknown_symbol_records_zero_price(self, workspace):
        config_path, store = workspace

        result = invoke(config_path, "alert", "ZZZZ", "less", "5", "--user", "alice")

        assert result.exit_code == 0, result.output
        assert store.get_alerts(user_id="alice")[0].current_price == 0.0

    @pytest.mark.parametrize("args", [
        ("AAPL", "sideways", "200"),
        ("AAPL", "greater", "0"),
        ("AAPL", "greater", "-5"),
    ])
    def test_invalid_alert_rejected(self, workspace, args):
        config_path, store = workspace

        result = invoke(config_path, "alert", *args, "--user", "alice")

        assert result.exit_code != 0
        assert store.get_alerts() == []

    def test_user_from_environment(self, workspace, monkeypatch):
        config_path, store = workspace
        monkeypatch.setenv("PRICEWATCH_USER", "bob")

        result = invoke(config_path, "alert", "MSFT", "below", "400", "--price", "410")

        assert result.exit_code == 0, result.output
        assert store.get_alerts(user_id="bob")[0].current_price == 410.0

    def test_list_and_manage_alerts(self, workspace):
        config_path, store = workspace
        invoke(config_path, "alert", "AAPL", "greater", "200", "--user", "alice", "--name", "Breakout")
        alert_id = store.get_alerts(user_id="alice")[0].id

        result = invoke(config_path, "alerts", "--user", "alice")
        assert result.exit_code == 0, result.output
        assert "Alerts for alice" in result.output
        assert "1 active" in result.output

        invoke(config_path, "alerts", "--user", "alice", "--pause", str(alert_id))
        assert store.get_alert_by_id(alert_id).state is AlertState.PAUSED

        invoke(config_path, "alerts", "--user", "alice", "--resume", str(alert_id))
        assert store.get_alert_by_id(alert_id).state is AlertState.ACTIVE

        store.try_mark_triggered(alert_id)
        invoke(config_path, "alerts", "--user", "alice", "--reactivate", str(alert_id))
        reactivated = store.get_alert_by_id(alert_id)
        assert reactivated.state is AlertState.ACTIVE
        assert reactivated.triggered_at is None

        invoke(config_path, "alerts", "--user", "alice", "--remove", str(alert_id))
        assert store.get_alert_by_id(alert_id) is None

    def test_other_users_alert_not_touched(self, workspace):
        config_path, store = workspace
        invoke(config_path, "alert", "AAPL", "greater", "200", "--user", "alice")
        alert_id = store.get_alerts(user_id="alice")[0].id

        result = invoke(config_path, "alerts", "--user", "mallory", "--remove", str(alert_id))

        assert "not found" in result.output
        assert store.get_alert_by_id(alert_id) is not None

    def test_one_action_at_a_time(self, workspace):
        config_path, _ = workspace

        result = invoke(config_path, "alerts", "--user", "alice", "--pause", "1", "--remove", "1")

        assert result.exit_code == 1

    def test_edit_alert(self, workspace):
        config_path, store = workspace
        invoke(config_path, "alert", "AAPL", "greater", "200", "--user", "alice")
        alert_id = store.get_alerts(user_id="alice")[0].id

        result = invoke(
            config_path, "edit", str(alert_id), "--user", "alice",
            "--condition", "below", "--threshold", "150", "--name", "Dip",
        )

        assert result.exit_code == 0, result.output
        alert = store.get_alert_by_id(alert_id)
        assert (alert.alert_name, alert.condition, alert.threshold) == ("Dip", "less", 150.0)


class TestWatchlistCommands:
    """
    **Feature: price-alerts, Property 21: Watchlist Commands**
    """

    def test_add_list_remove(self, workspace):
        config_path, store = workspace

        assert "Added AAPL" in invoke(config_path, "watch", "add", "aapl", "--user", "alice").output
        assert "already" in invoke(config_path, "watch", "add", "AAPL", "--user", "alice").output
        invoke(config_path, "watch", "add", "ZZZZ", "--user", "alice")

        result = invoke(config_path, "watch", "list", "--user", "alice", "--quotes")
        assert result.exit_code == 0, result.output
        assert "$190.00" in result.output
        assert "ZZZZ" in result.output

        assert "Removed AAPL" in invoke(config_path, "watch", "remove", "AAPL", "--user", "alice").output
        assert [item.symbol for item in store.get_watchlist("alice")] == ["ZZZZ"]


class TestEngineCommands:
    """
    **Feature: price-alerts, Property 22: Engine Commands**
    """

    def test_check_with_no_alerts(self, workspace):
        config_path, _ = workspace

        result = invoke(config_path, "check")

        assert result.exit_code == 0, result.output
        assert "No active alerts to check" in result.output

    def test_check_triggers_and_notifies(self, workspace):
        config_path, store = workspace
        invoke(config_path, "user", "alice", "alice@example.com")
        invoke(config_path, "alert", "AAPL", "greater", "180", "--user", "alice")
        invoke(config_path, "alert", "MSFT", "greater", "500", "--user", "alice")

        result = invoke(config_path, "check")

        assert result.exit_code == 0, result.output
        assert "AAPL Price Alert: Above $180.00" in result.output
        assert "triggered 1, sent 1 notifications, 0 failed" in result.output
        states = {alert.symbol: alert.state for alert in store.get_alerts(user_id="alice")}
        assert states == {"AAPL": AlertState.TRIGGERED, "MSFT": AlertState.ACTIVE}

    def test_check_reports_directory_failure(self, workspace):
        config_path, _ = workspace
        invoke(config_path, "alert", "AAPL", "greater", "180", "--user", "ghost")

        result = invoke(config_path, "check")

        assert result.exit_code == 0, result.output
        assert "User not found" in result.output
        assert "1 failed" in result.output

    def test_monitor_runs_bounded_cycles(self, workspace):
        config_path, store = workspace
        invoke(config_path, "user", "alice", "alice@example.com")
        invoke(config_path, "alert", "AAPL", "less", "200", "--user", "alice")

        result = invoke(config_path, "monitor", "--interval", "0.05", "--max-cycles", "2")

        assert result.exit_code == 0, result.output
        assert result.output.count("AAPL Price Alert") == 1
        assert store.get_alerts(user_id="alice")[0].state is AlertState.TRIGGERED

    def test_init_writes_config_once(self, workspace):
        config_path, _ = workspace
        target = config_path.parent / "fresh" / "config.toml"

        first = invoke(config_path, "init", "--path", str(target))
        second = invoke(config_path, "init", "--path", str(target))

        assert first.exit_code == 0, first.output
        assert target.exists()
        assert second.exit_code == 1
        assert "already exists" in second.output
