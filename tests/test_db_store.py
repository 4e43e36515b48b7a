"""Property-based tests for the database store.

**Feature: price-alerts**
"""

import sqlite3
import tempfile
from datetime import datetime
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from pricewatch.db.store import DataStore
from pricewatch.errors import StoreUnavailableError
from pricewatch.models import Alert, AlertState, User


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        yield DataStore(db_path)


def make_alert(symbol: str = "AAPL", condition: str = "greater", threshold: float = 100.0,
               user_id: str = "alice", **kwargs) -> Alert:
    """Build an alert with sensible defaults."""
    return Alert(
        user_id=user_id,
        symbol=symbol,
        company=kwargs.pop("company", f"{symbol} Inc"),
        alert_name=kwargs.pop("alert_name", f"{symbol} {condition} {threshold}"),
        condition=condition,
        threshold=threshold,
        current_price=kwargs.pop("current_price", 95.0),
        **kwargs,
    )


symbol_strategy = st.text(
    alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789.",
    min_size=1,
    max_size=10,
).filter(lambda x: x.strip() != "")

threshold_strategy = st.floats(
    min_value=0.01, max_value=100000.0, allow_nan=False, allow_infinity=False
)


class TestDatabaseSchemaCompleteness:
    """
    **Feature: price-alerts, Property 1: Database Schema Completeness**

    *For any* fresh database, all required tables (alerts, watchlist, users)
    should exist.
    """

    def test_schema_completeness(self, temp_db: DataStore):
        """Test that all required tables exist in a fresh database."""
        tables = temp_db.get_tables()

        for table in DataStore.REQUIRED_TABLES:
            assert table in tables, f"Required table '{table}' is missing"

    def test_reopening_existing_database_keeps_data(self):
        """Opening a second store on the same file sees earlier rows."""
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "nested" / "test.db"
            alert_id = DataStore(db_path).save_alert(make_alert())

            reopened = DataStore(db_path)
            assert reopened.get_alert_by_id(alert_id) is not None

    def test_stats_count_rows(self, temp_db: DataStore):
        temp_db.save_alert(make_alert())
        temp_db.save_alert(make_alert(symbol="MSFT", is_active=False))
        temp_db.add_to_watchlist("alice", "AAPL", "Apple Inc")

        stats = temp_db.get_stats()

        assert stats["alerts"] == 2
        assert stats["active_alerts"] == 1
        assert stats["watchlist"] == 1
        assert stats["users"] == 0


class TestAlertStorage:
    """
    **Feature: price-alerts, Property 2: Alert Storage and Retrieval**

    *For any* created alert, it should be retrievable with every field
    intact until deleted.
    """

    @given(
        symbol=symbol_strategy,
        condition=st.sampled_from(["greater", "less"]),
        threshold=threshold_strategy,
    )
    @settings(max_examples=50, deadline=None)
    def test_alert_save_retrieve(self, symbol: str, condition: str, threshold: float):
        """*For any* valid alert, saving it should make it retrievable."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")
            alert = make_alert(symbol=symbol, condition=condition, threshold=threshold)

            alert_id = store.save_alert(alert)
            retrieved = store.get_alert_by_id(alert_id)

            assert retrieved is not None, "Alert not found after saving"
            assert retrieved.id == alert_id
            assert retrieved.symbol == alert.symbol
            assert retrieved.condition == condition
            assert retrieved.threshold == threshold
            assert retrieved.is_active is True
            assert retrieved.triggered_at is None
            assert retrieved.state is AlertState.ACTIVE

    def test_symbol_is_normalized(self, temp_db: DataStore):
        alert_id = temp_db.save_alert(make_alert(symbol="  aapl "))
        assert temp_db.get_alert_by_id(alert_id).symbol == "AAPL"

    def test_alert_delete(self, temp_db: DataStore):
        alert_id = temp_db.save_alert(make_alert())

        assert temp_db.delete_alert(alert_id) is True
        assert temp_db.get_alert_by_id(alert_id) is None
        assert temp_db.delete_alert(alert_id) is False

    def test_delete_is_scoped_to_owner(self, temp_db: DataStore):
        alert_id = temp_db.save_alert(make_alert(user_id="alice"))

        assert temp_db.delete_alert(alert_id, user_id="bob") is False
        assert temp_db.get_alert_by_id(alert_id) is not None

    def test_duplicate_alerts_may_coexist(self, temp_db: DataStore):
        """Several alerts for the same user, symbol and name are allowed."""
        first = temp_db.save_alert(make_alert(alert_name="Breakout"))
        second = temp_db.save_alert(make_alert(alert_name="Breakout"))

        assert first != second
        assert len(temp_db.get_alerts(user_id="alice")) == 2

    def test_get_alerts_filters_by_user(self, temp_db: DataStore):
        temp_db.save_alert(make_alert(user_id="alice"))
        temp_db.save_alert(make_alert(user_id="bob"))

        assert [a.user_id for a in temp_db.get_alerts(user_id="bob")] == ["bob"]
        assert len(temp_db.get_alerts()) == 2

    def test_update_alert_changes_definition(self, temp_db: DataStore):
        alert_id = temp_db.save_alert(make_alert())
        before = temp_db.get_alert_by_id(alert_id)

        assert temp_db.update_alert(
            alert_id, alert_name=" Dip ", condition="less", threshold=80.0, user_id="alice"
        )
        after = temp_db.get_alert_by_id(alert_id)

        assert after.alert_name == "Dip"
        assert after.condition == "less"
        assert after.threshold == 80.0
        assert after.updated_at >= before.updated_at

    def test_update_rejects_unknown_condition(self, temp_db: DataStore):
        alert_id = temp_db.save_alert(make_alert())
        with pytest.raises(sqlite3.IntegrityError):
            temp_db.update_alert(alert_id, alert_name="x", condition="sideways", threshold=1.0)


class TestActiveAlertLoading:
    """
    **Feature: price-alerts, Property 3: Active Alert Loading**

    *For any* mix of active and inactive alerts, ``list_active`` returns
    exactly the active ones, oldest first.
    """

    @given(flags=st.lists(st.booleans(), min_size=0, max_size=15))
    @settings(max_examples=30, deadline=None)
    def test_only_active_alerts_are_listed(self, flags: list[bool]):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")
            expected = []
            for index, active in enumerate(flags):
                alert_id = store.save_alert(
                    make_alert(symbol=f"S{index}", is_active=active)
                )
                if active:
                    expected.append(alert_id)

            assert [a.id for a in store.list_active()] == expected

    def test_unreadable_store_raises_store_unavailable(self, temp_db: DataStore):
        conn = sqlite3.connect(temp_db.db_path)
        conn.execute("DROP TABLE alerts")
        conn.commit()
        conn.close()

        with pytest.raises(StoreUnavailableError):
            temp_db.list_active()


class TestAtomicTransition:
    """
    **Feature: price-alerts, Property 4: Transition Idempotence**

    *For any* alert, invoking the conditional transition repeatedly
    succeeds exactly once.
    """

    @given(calls=st.integers(min_value=2, max_value=6))
    @settings(max_examples=20, deadline=None)
    def test_transition_succeeds_exactly_once(self, calls: int):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")
            alert_id = store.save_alert(make_alert())

            results = [store.try_mark_triggered(alert_id) for _ in range(calls)]

            assert results.count(True) == 1
            assert results[0] is True

    def test_transition_sets_triggered_state(self, temp_db: DataStore):
        alert_id = temp_db.save_alert(make_alert())
        when = datetime(2026, 10, 19, 14, 30)

        assert temp_db.try_mark_triggered(alert_id, when) is True
        alert = temp_db.get_alert_by_id(alert_id)

        assert alert.is_active is False
        assert alert.triggered_at == when
        assert alert.state is AlertState.TRIGGERED
        assert temp_db.list_active() == []

    def test_transition_of_missing_alert_reports_no_change(self, temp_db: DataStore):
        assert temp_db.try_mark_triggered(12345) is False

    def test_paused_alert_is_not_transitioned(self, temp_db: DataStore):
        alert_id = temp_db.save_alert(make_alert())
        temp_db.set_alert_active(alert_id, False)

        assert temp_db.try_mark_triggered(alert_id) is False
        assert temp_db.get_alert_by_id(alert_id).state is AlertState.PAUSED


class TestReactivate:
    """
    **Feature: price-alerts, Property 5: Reactivation**

    *For any* triggered alert, reactivation returns it to Active with no
    trigger time, after which it can be transitioned again.
    """

    def test_reactivate_rearms_triggered_alert(self, temp_db: DataStore):
        alert_id = temp_db.save_alert(make_alert())
        temp_db.try_mark_triggered(alert_id)

        assert temp_db.reactivate(alert_id) is True
        alert = temp_db.get_alert_by_id(alert_id)

        assert alert.is_active is True
        assert alert.triggered_at is None
        assert temp_db.try_mark_triggered(alert_id) is True

    def test_reactivate_active_alert_is_harmless(self, temp_db: DataStore):
        alert_id = temp_db.save_alert(make_alert())
        assert temp_db.reactivate(alert_id) is True
        assert temp_db.get_alert_by_id(alert_id).state is AlertState.ACTIVE

    def test_reactivate_unknown_alert(self, temp_db: DataStore):
        assert temp_db.reactivate(999) is False

    def test_reactivate_is_scoped_to_owner(self, temp_db: DataStore):
        alert_id = temp_db.save_alert(make_alert(user_id="alice"))
        temp_db.try_mark_triggered(alert_id)

        assert temp_db.reactivate(alert_id, user_id="mallory") is False
        assert temp_db.get_alert_by_id(alert_id).is_active is False

    def test_pause_and_resume_keep_trigger_time(self, temp_db: DataStore):
        alert_id = temp_db.save_alert(make_alert())
        temp_db.try_mark_triggered(alert_id)
        triggered_at = temp_db.get_alert_by_id(alert_id).triggered_at

        temp_db.set_alert_active(alert_id, True)
        assert temp_db.get_alert_by_id(alert_id).triggered_at == triggered_at


class TestWatchlistOperations:
    """
    **Feature: price-alerts, Property 6: Watchlist Add/Remove Consistency**

    *For any* symbol added to a user's watchlist, it should be retrievable
    once; after removal, it should not be retrievable.
    """

    @given(symbol=symbol_strategy)
    @settings(max_examples=30, deadline=None)
    def test_watchlist_add_remove(self, symbol: str):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")

            assert store.add_to_watchlist("alice", symbol, "Company") is True
            assert store.is_in_watchlist("alice", symbol)
            assert [i.symbol for i in store.get_watchlist("alice")] == [symbol.strip().upper()]

            assert store.remove_from_watchlist("alice", symbol) is True
            assert not store.is_in_watchlist("alice", symbol)
            assert store.get_watchlist("alice") == []

    def test_watchlist_unique_per_user_and_symbol(self, temp_db: DataStore):
        assert temp_db.add_to_watchlist("alice", "AAPL", "Apple Inc") is True
        assert temp_db.add_to_watchlist("alice", "aapl", "Apple Inc") is False
        assert temp_db.add_to_watchlist("bob", "AAPL", "Apple Inc") is True

        assert len(temp_db.get_watchlist("alice")) == 1
        assert len(temp_db.get_watchlist("bob")) == 1

    def test_remove_missing_symbol(self, temp_db: DataStore):
        assert temp_db.remove_from_watchlist("alice", "TSLA") is False


class TestUsers:
    """Users table backing the user directory."""

    def test_save_and_get_user(self, temp_db: DataStore):
        temp_db.save_user(User(id="alice", email="alice@example.com", name="Alice"))

        user = temp_db.get_user("alice")
        assert user.email == "alice@example.com"
        assert user.name == "Alice"

    def test_save_user_updates_existing(self, temp_db: DataStore):
        temp_db.save_user(User(id="alice", email="old@example.com"))
        created_at = temp_db.get_user("alice").created_at

        temp_db.save_user(User(id="alice", email="new@example.com"))

        user = temp_db.get_user("alice")
        assert user.email == "new@example.com"
        assert user.created_at == created_at
        assert [u.id for u in temp_db.get_users()] == ["alice"]

    def test_unknown_user(self, temp_db: DataStore):
        assert temp_db.get_user("nobody") is None
