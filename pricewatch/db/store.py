"""SQLite data store for PriceWatch."""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from pricewatch.errors import StoreUnavailableError
from pricewatch.models import Alert, User, WatchlistItem

ALERT_COLUMNS = (
    "id, user_id, symbol, company, alert_name, alert_type, condition, threshold, "
    "current_price, is_active, triggered_at, created_at, updated_at"
)


class DataStore:
    """SQLite-based data store for alerts, watchlists and users."""

    REQUIRED_TABLES = [
        "alerts",
        "watchlist",
        "users",
    ]

    def __init__(self, db_path: Path, timeout: float = 5.0):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
            timeout: Seconds to wait for a competing writer to release its lock.
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            # Alerts: several alerts per (user, symbol, name) may coexist
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS alerts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    symbol TEXT NOT NULL,
                    company TEXT NOT NULL,
                    alert_name TEXT NOT NULL,
                    alert_type TEXT NOT NULL DEFAULT 'price',
                    condition TEXT NOT NULL CHECK (condition IN ('greater', 'less')),
                    threshold REAL NOT NULL,
                    current_price REAL NOT NULL DEFAULT 0,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    triggered_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_alerts_user_symbol ON alerts (user_id, symbol)"
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_alerts_active ON alerts (is_active)"
            )

            # Watchlist table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS watchlist (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    symbol TEXT NOT NULL,
                    company TEXT NOT NULL,
                    added_at TEXT NOT NULL,
                    UNIQUE(user_id, symbol)
                )
            """)

            # Users table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL DEFAULT '',
                    name TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL
                )
            """)

            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    @staticmethod
    def _row_to_alert(row: sqlite3.Row) -> Alert:
        triggered_at = row["triggered_at"]
        return Alert(
            id=row["id"],
            user_id=row["user_id"],
            symbol=row["symbol"],
            company=row["company"],
            alert_name=row["alert_name"],
            alert_type=row["alert_type"],
            condition=row["condition"],
            threshold=row["threshold"],
            current_price=row["current_price"],
            is_active=bool(row["is_active"]),
            triggered_at=datetime.fromisoformat(triggered_at) if triggered_at else None,
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    # ==================== Alerts ====================

    def save_alert(self, alert: Alert) -> int:
        """Save a new alert to the database.

        Args:
            alert: Alert to save. Its ``id`` is ignored.

        Returns:
            The ID of the saved alert.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO alerts
                (user_id, symbol, company, alert_name, alert_type, condition,
                 threshold, current_price, is_active, triggered_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    alert.user_id,
                    alert.symbol,
                    alert.company,
                    alert.alert_name,
                    alert.alert_type,
                    alert.condition,
                    alert.threshold,
                    alert.current_price,
                    1 if alert.is_active else 0,
                    alert.triggered_at.isoformat() if alert.triggered_at else None,
                    alert.created_at.isoformat(),
                    alert.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return cursor.lastrowid or 0
        finally:
            conn.close()

    def get_alerts(self, user_id: Optional[str] = None) -> list[Alert]:
        """Get alerts, newest first.

        Args:
            user_id: Optional owner filter. If None, returns every alert.

        Returns:
            List of alerts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if user_id is not None:
                cursor.execute(
                    f"SELECT {ALERT_COLUMNS} FROM alerts WHERE user_id = ? "
                    "ORDER BY created_at DESC, id DESC",
                    (user_id,),
                )
            else:
                cursor.execute(
                    f"SELECT {ALERT_COLUMNS} FROM alerts ORDER BY created_at DESC, id DESC"
                )
            return [self._row_to_alert(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_alert_by_id(self, alert_id: int) -> Optional[Alert]:
        """Get an alert by ID.

        Args:
            alert_id: Alert ID.

        Returns:
            Alert if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {ALERT_COLUMNS} FROM alerts WHERE id = ?", (alert_id,))
            row = cursor.fetchone()
            return self._row_to_alert(row) if row else None
        finally:
            conn.close()

    def list_active(self) -> list[Alert]:
        """Get every armed alert, oldest first.

        Returns:
            Snapshots of all alerts with ``is_active`` set.

        Raises:
            StoreUnavailableError: If the database cannot be read.
        """
        try:
            conn = self._get_connection()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot open alert store {self.db_path}: {e}") from e
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {ALERT_COLUMNS} FROM alerts WHERE is_active = 1 "
                "ORDER BY created_at, id"
            )
            return [self._row_to_alert(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot load active alerts: {e}") from e
        finally:
            conn.close()

    def try_mark_triggered(
        self, alert_id: int, triggered_at: Optional[datetime] = None
    ) -> bool:
        """Atomically move an alert from Active to Triggered.

        The write is conditional on the alert still being active, so of
        several overlapping callers exactly one observes ``True``.

        Args:
            alert_id: Alert ID.
            triggered_at: Trigger time. Defaults to now.

        Returns:
            True if this call performed the transition, False if the alert
            was missing or no longer active.
        """
        now = triggered_at or datetime.now()
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE alerts
                SET is_active = 0, triggered_at = ?, updated_at = ?
                WHERE id = ? AND is_active = 1
                """,
                (now.isoformat(), now.isoformat(), alert_id),
            )
            conn.commit()
            return cursor.rowcount == 1
        finally:
            conn.close()

    def reactivate(self, alert_id: int, user_id: Optional[str] = None) -> bool:
        """Re-arm an alert and clear its trigger time.

        Args:
            alert_id: Alert ID.
            user_id: If given, only the owner's alert is updated.

        Returns:
            True if the alert exists (and belongs to ``user_id``).
        """
        return self._update_alert_fields(
            alert_id, {"is_active": 1, "triggered_at": None}, user_id
        )

    def set_alert_active(
        self, alert_id: int, is_active: bool, user_id: Optional[str] = None
    ) -> bool:
        """Pause or resume an alert without touching its trigger time.

        Args:
            alert_id: Alert ID.
            is_active: New armed state.
            user_id: If given, only the owner's alert is updated.

        Returns:
            True if the alert was found.
        """
        return self._update_alert_fields(
            alert_id, {"is_active": 1 if is_active else 0}, user_id
        )

    def update_alert(
        self,
        alert_id: int,
        *,
        alert_name: str,
        condition: str,
        threshold: float,
        user_id: Optional[str] = None,
    ) -> bool:
        """Update the definition of an alert.

        Args:
            alert_id: Alert ID.
            alert_name: New display name.
            condition: New condition ('greater' or 'less').
            threshold: New target price.
            user_id: If given, only the owner's alert is updated.

        Returns:
            True if the alert was found.
        """
        return self._update_alert_fields(
            alert_id,
            {
                "alert_name": alert_name.strip(),
                "condition": condition,
                "threshold": threshold,
            },
            user_id,
        )

    def _update_alert_fields(
        self, alert_id: int, fields: dict, user_id: Optional[str]
    ) -> bool:
        fields = {**fields, "updated_at": datetime.now().isoformat()}
        assignments = ", ".join(f"{name} = ?" for name in fields)
        params = list(fields.values()) + [alert_id]
        where = "id = ?"
        if user_id is not None:
            where += " AND user_id = ?"
            params.append(user_id)

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"UPDATE alerts SET {assignments} WHERE {where}", params)
            conn.commit()
            return cursor.rowcount == 1
        finally:
            conn.close()

    def delete_alert(self, alert_id: int, user_id: Optional[str] = None) -> bool:
        """Delete an alert.

        Args:
            alert_id: ID of the alert to delete.
            user_id: If given, only the owner's alert is deleted.

        Returns:
            True if an alert was deleted.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if user_id is not None:
                cursor.execute(
                    "DELETE FROM alerts WHERE id = ? AND user_id = ?", (alert_id, user_id)
                )
            else:
                cursor.execute("DELETE FROM alerts WHERE id = ?", (alert_id,))
            conn.commit()
            return cursor.rowcount == 1
        finally:
            conn.close()

    # ==================== Watchlist ====================

    def add_to_watchlist(self, user_id: str, symbol: str, company: str) -> bool:
        """Add a symbol to a user's watchlist.

        Args:
            user_id: Owner user ID.
            symbol: Symbol to add.
            company: Display company name.

        Returns:
            True if added, False if it was already on the watchlist.
        """
        item = WatchlistItem(user_id=user_id, symbol=symbol, company=company.strip())
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR IGNORE INTO watchlist (user_id, symbol, company, added_at)
                VALUES (?, ?, ?, ?)
                """,
                (item.user_id, item.symbol, item.company, item.added_at.isoformat()),
            )
            conn.commit()
            return cursor.rowcount == 1
        finally:
            conn.close()

    def remove_from_watchlist(self, user_id: str, symbol: str) -> bool:
        """Remove a symbol from a user's watchlist.

        Returns:
            True if the symbol was on the watchlist.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM watchlist WHERE user_id = ? AND symbol = ?",
                (user_id, symbol.strip().upper()),
            )
            conn.commit()
            return cursor.rowcount == 1
        finally:
            conn.close()

    def get_watchlist(self, user_id: str) -> list[WatchlistItem]:
        """Get a user's watchlist, most recently added first."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT user_id, symbol, company, added_at
                FROM watchlist
                WHERE user_id = ?
                ORDER BY added_at DESC, id DESC
                """,
                (user_id,),
            )
            return [
                WatchlistItem(
                    user_id=row["user_id"],
                    symbol=row["symbol"],
                    company=row["company"],
                    added_at=datetime.fromisoformat(row["added_at"]),
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def is_in_watchlist(self, user_id: str, symbol: str) -> bool:
        """Check whether a symbol is on a user's watchlist."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT 1 FROM watchlist WHERE user_id = ? AND symbol = ?",
                (user_id, symbol.strip().upper()),
            )
            return cursor.fetchone() is not None
        finally:
            conn.close()

    # ==================== Users ====================

    def save_user(self, user: User) -> None:
        """Create or update a user directory entry.

        Args:
            user: User to save. An existing user keeps its creation time.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO users (id, email, name, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET email = excluded.email, name = excluded.name
                """,
                (user.id, user.email, user.name, user.created_at.isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

    def get_user(self, user_id: str) -> Optional[User]:
        """Get a user by ID.

        Returns:
            User if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, email, name, created_at FROM users WHERE id = ?", (user_id,)
            )
            row = cursor.fetchone()
            if row:
                return User(
                    id=row["id"],
                    email=row["email"],
                    name=row["name"],
                    created_at=datetime.fromisoformat(row["created_at"]),
                )
            return None
        finally:
            conn.close()

    def get_users(self) -> list[User]:
        """Get all users ordered by ID."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT id, email, name, created_at FROM users ORDER BY id")
            return [
                User(
                    id=row["id"],
                    email=row["email"],
                    name=row["name"],
                    created_at=datetime.fromisoformat(row["created_at"]),
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    # ==================== Stats ====================

    def get_stats(self) -> dict:
        """Get database statistics.

        Returns:
            Dictionary with table record counts and the number of armed alerts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            stats = {}
            for table in self.REQUIRED_TABLES:
                cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
                stats[table] = cursor.fetchone()["count"]
            cursor.execute("SELECT COUNT(*) as count FROM alerts WHERE is_active = 1")
            stats["active_alerts"] = cursor.fetchone()["count"]
            return stats
        finally:
            conn.close()
