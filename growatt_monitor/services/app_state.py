# growatt_monitor/services/app_state.py

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Union

from growatt_monitor.models.alert_state import AlertState

ALERT_STATE_KEY = "alert_state"


class AppState:
    """SQLite-backed key/value store holding the durable alert state."""

    def __init__(self, path: Optional[Union[Path, str]] = None, *, persist: bool = True):
        default_path = Path.home() / ".growatt_monitor_state.db"
        self._persist = persist
        self._log = logging.getLogger("growatt.state")
        if self._persist:
            resolved = Path(path).expanduser() if path else default_path
            resolved.parent.mkdir(parents=True, exist_ok=True)
            self.path: Optional[Path] = resolved
            self._conn = self._open_or_recover(resolved)
        else:
            self.path = None
            self._conn = None
        self._memory: Dict[str, str] = {}

    # ------------------------------------------------------------------
    def _open_or_recover(self, path: Path) -> Optional[sqlite3.Connection]:
        """Open the database; an unreadable file is moved aside and recreated."""
        try:
            return self._open(path)
        except sqlite3.DatabaseError as exc:
            aside = path.with_name(path.name + ".corrupt")
            self._log.warning(
                "State database %s is unreadable (%s); moving it to %s and starting fresh.",
                path,
                exc,
                aside,
            )

        try:
            path.replace(aside)
            for suffix in ("-wal", "-shm"):
                sidecar = path.with_name(path.name + suffix)
                if sidecar.exists():
                    sidecar.replace(aside.with_name(aside.name + suffix))
            return self._open(path)
        except (OSError, sqlite3.Error) as exc:
            self._log.warning("Could not recreate state database (%s); keeping state in memory.", exc)
            self._persist = False
            self.path = None
            return None

    @staticmethod
    def _open(path: Path) -> sqlite3.Connection:
        conn = sqlite3.connect(path)
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            AppState._init_schema(conn)
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    @staticmethod
    def _init_schema(conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.commit()

    # ------------------------------------------------------------------
    def flush(self) -> None:
        if self._persist and self._conn:
            self._conn.commit()

    def close(self) -> None:
        if self._conn:
            self.flush()
            self._conn.close()
            self._conn = None

    # ------------------------------------------------------------------
    def get_raw(self, key: str) -> Optional[str]:
        if not self._persist:
            return self._memory.get(key)
        cur = self._conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
        row = cur.fetchone()
        return row["value"] if row else None

    def set(self, key: str, value) -> None:
        payload = json.dumps(value)
        if not self._persist:
            self._memory[key] = payload
            return
        self._conn.execute(
            """
            INSERT INTO kv_store(key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
            """,
            (key, payload, datetime.now(timezone.utc).isoformat()),
        )
        self._conn.commit()

    # Alert state -----------------------------------------------------
    def load_alert_state(self) -> Optional[AlertState]:
        """Return the stored state, or None when absent or unreadable."""
        try:
            raw = self.get_raw(ALERT_STATE_KEY)
        except sqlite3.Error as exc:
            self._log.warning("Failed to read alert state: %s", exc)
            return None
        if raw is None:
            return None
        try:
            return AlertState.from_dict(json.loads(raw))
        except (json.JSONDecodeError, ValueError) as exc:
            self._log.warning("Stored alert state is corrupt (%s); starting fresh.", exc)
            return None

    def save_alert_state(self, state: AlertState) -> bool:
        try:
            self.set(ALERT_STATE_KEY, state.to_dict())
        except sqlite3.Error as exc:
            self._log.warning("Failed to persist alert state: %s", exc)
            return False
        return True

    def reset_alert_state(self) -> bool:
        return self.save_alert_state(AlertState())

    # ------------------------------------------------------------------
    def __del__(self):
        try:
            self.close()
        except Exception:
            pass
