"""SQLite connection with versioned schema migrations."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Migration:
    """One schema step with the scripts that apply and revert it."""

    version: int
    up: str
    down: str


MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        version=1,
        up="""
        CREATE TABLE users (
            id TEXT PRIMARY KEY NOT NULL,
            created_at INTEGER NOT NULL,
            user_name TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'user'
        );
        """,
        down="DROP TABLE IF EXISTS users;",
    ),
    Migration(
        version=2,
        up="""
        CREATE TABLE sessions (
            token TEXT PRIMARY KEY NOT NULL,
            expires_at INTEGER NOT NULL,
            user_id TEXT NOT NULL REFERENCES users (id) ON DELETE CASCADE
        );
        """,
        down="DROP TABLE IF EXISTS sessions;",
    ),
    Migration(
        version=3,
        up="""
        CREATE TABLE items (
            id TEXT PRIMARY KEY NOT NULL,
            created_at INTEGER NOT NULL,
            content TEXT NOT NULL,
            user_id TEXT NOT NULL REFERENCES users (id) ON DELETE CASCADE
        );
        """,
        down="DROP TABLE IF EXISTS items;",
    ),
)

_VERSION_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER NOT NULL PRIMARY KEY,
    dirty BOOLEAN NOT NULL
);
"""


class Sqlite:
    """An open SQLite database together with its migrations."""

    def __init__(self, db_path: str = ":memory:", db_name: str = "cpaw") -> None:
        self.name = db_name
        self.path = db_path
        self.connection = sqlite3.connect(db_path, isolation_level=None, check_same_thread=False)
        self.connection.execute(_VERSION_TABLE)

    @property
    def version(self) -> int:
        """The version of the last applied migration, 0 if none."""
        row = self.connection.execute("SELECT version FROM schema_migrations LIMIT 1").fetchone()
        return int(row[0]) if row else 0

    def _run(self, script: str, version: int) -> None:
        record = (
            f"INSERT INTO schema_migrations (version, dirty) VALUES ({int(version)}, 0);"
            if version > 0
            else ""
        )
        try:
            self.connection.executescript(
                f"BEGIN;\n{script}\nDELETE FROM schema_migrations;\n{record}\nCOMMIT;"
            )
        except sqlite3.Error:
            if self.connection.in_transaction:
                self.connection.execute("ROLLBACK")
            raise

    def migrate_up(self) -> int:
        """Apply every pending migration and return how many were applied."""
        current = self.version
        pending = [m for m in MIGRATIONS if m.version > current]
        for migration in pending:
            self._run(migration.up, migration.version)
        return len(pending)

    def migrate_down(self) -> int:
        """Revert every applied migration and return how many were reverted."""
        current = self.version
        applied = sorted(
            (m for m in MIGRATIONS if m.version <= current),
            key=lambda m: m.version,
            reverse=True,
        )
        for index, migration in enumerate(applied):
            previous = applied[index + 1].version if index + 1 < len(applied) else 0
            self._run(migration.down, previous)
        return len(applied)

    def set_up(self) -> None:
        """Bring the schema up to date and enable foreign key checks."""
        self.migrate_up()
        self.connection.execute("PRAGMA foreign_keys = ON;")

    def close(self) -> None:
        """Close the connection."""
        self.connection.close()

    def __enter__(self) -> Sqlite:
        return self

    def __exit__(self, *args: Optional[object]) -> None:
        self.close()