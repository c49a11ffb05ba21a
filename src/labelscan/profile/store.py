"""Durable storage for the single user health profile."""

from __future__ import annotations

import json
import os
import sqlite3
from typing import Optional

from ..domain.models import HealthProfile
from ..logging import get_logger
from ..paths import var_dir

LOG = get_logger("profile-store")

PROFILE_KEY = "userProfile"
DB_FILENAME = "profile.sqlite3"
DB_FOLDERNAME = "profile"
TABLE_NAME = "kv_store"


class ProfileStore:
    """Key/value record holding the serialized HealthProfile.

    One row under PROFILE_KEY, replaced wholesale on every save.
    """

    def __init__(self, root_dir: str) -> None:
        folder = os.path.join(var_dir(root_dir), DB_FOLDERNAME)
        os.makedirs(folder, exist_ok=True)
        self.db_path = os.path.join(folder, DB_FILENAME)
        self._ensure_schema()
        LOG.debug(f"Profile store ready at {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _ensure_schema(self) -> None:
        conn = self._connect()
        try:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT DEFAULT (datetime('now'))
                );
                """
            )
            conn.commit()
        finally:
            conn.close()

    def save(self, profile: HealthProfile) -> None:
        payload = json.dumps(profile.as_dict(), ensure_ascii=False)
        conn = self._connect()
        try:
            conn.execute(
                f"INSERT OR REPLACE INTO {TABLE_NAME} (key, value, updated_at) VALUES (?, ?, datetime('now'));",
                (PROFILE_KEY, payload),
            )
            conn.commit()
        finally:
            conn.close()
        LOG.info(f"Saved health profile for {profile.name or 'anonymous user'}")

    def load(self) -> Optional[HealthProfile]:
        """Stored profile, or None when nothing (readable) is stored."""
        conn = self._connect()
        try:
            row = conn.execute(f"SELECT value FROM {TABLE_NAME} WHERE key = ?;", (PROFILE_KEY,)).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        try:
            data = json.loads(row[0])
        except ValueError:
            LOG.warning("Stored profile is not valid JSON; ignoring it")
            return None
        return HealthProfile.from_dict(data)
