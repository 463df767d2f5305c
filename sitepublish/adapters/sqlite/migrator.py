import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

DOWN_MARKER = "-- Down"


class MigrationError(RuntimeError):
    """A migration script failed; its changes were rolled back."""


class SQLiteMigrator:
    """Applies numbered ``.sql`` files once each, in filename order."""

    def __init__(self, db_path: str, migrations_dir: str):
        self.db_path = db_path
        self.migrations_dir = Path(migrations_dir)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT UNIQUE NOT NULL,
                applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
        """)
        return conn

    def _migration_files(self) -> list[str]:
        return sorted(p.name for p in self.migrations_dir.glob("*.sql"))

    def _pending(self, conn: sqlite3.Connection) -> list[str]:
        done = {name for (name,) in conn.execute("SELECT filename FROM _migrations")}
        return [name for name in self._migration_files() if name not in done]

    def pending_migrations(self) -> list[str]:
        conn = self._connect()
        try:
            return self._pending(conn)
        finally:
            conn.close()

    def run_migrations(self) -> list[str]:
        """Apply all pending migrations. Returns the applied filenames."""
        conn = self._connect()
        try:
            pending = self._pending(conn)
            for filename in pending:
                logger.info("Applying migration: %s", filename)
                self._apply(conn, filename)
            logger.info("Database %s is up to date (%d applied)", self.db_path, len(pending))
            return pending
        finally:
            conn.close()

    def up_script(self, filename: str) -> str:
        """The part of a migration before its down section."""
        content = (self.migrations_dir / filename).read_text()
        return content.split(DOWN_MARKER, 1)[0]

    def _apply(self, conn: sqlite3.Connection, filename: str) -> None:
        try:
            conn.executescript(self.up_script(filename))
            conn.execute("INSERT INTO _migrations (filename) VALUES (?)", (filename,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise MigrationError(f"Migration {filename} failed: {e}") from e
