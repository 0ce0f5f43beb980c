import os
import sqlite3

from src.shared.telemetry import Telemetry, measure_time


class DatabaseManager:
    """
    Responsible for:
    1. Managing the SQLite connection lifecycle.
    2. Initializing the database schema (DDL).
    3. Handling migrations of older local databases.
    """

    def __init__(self, db_path: str = "data/quiz.db") -> None:
        self.db_path = db_path
        self.telemetry = Telemetry("DatabaseManager")
        self._shared_connection: sqlite3.Connection | None = None

        self._ensure_db_exists()

        # For in-memory DBs, we must keep the connection open immediately
        if self.db_path == ":memory:":
            self._shared_connection = sqlite3.connect(
                ":memory:", check_same_thread=False
            )

        self._init_schema()
        self._migrate_schema()

    def get_connection(self) -> sqlite3.Connection:
        """Returns a usable database connection, reconnecting if necessary."""
        if self._shared_connection:
            try:
                self._shared_connection.execute("SELECT 1")
                return self._shared_connection
            except sqlite3.ProgrammingError:
                # Connection was closed externally
                self._shared_connection = None

        conn = sqlite3.connect(self.db_path, check_same_thread=False)

        if self.db_path != ":memory:":
            conn.execute("PRAGMA journal_mode=WAL")

        self._shared_connection = conn
        return conn

    def close(self) -> None:
        if self._shared_connection:
            self._shared_connection.close()
            self._shared_connection = None

    def _ensure_db_exists(self) -> None:
        if self.db_path == ":memory:":
            return
        dir_name = os.path.dirname(self.db_path)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)

    @measure_time("db_init_schema")
    def _init_schema(self) -> None:
        conn = self.get_connection()
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS questions
            (
                id          TEXT PRIMARY KEY,
                text        TEXT NOT NULL,
                options     TEXT NOT NULL DEFAULT '[]',
                correct_idx INTEGER,
                active      BOOLEAN NOT NULL DEFAULT 1,
                qtype       TEXT NOT NULL DEFAULT 'mc',
                category    TEXT
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS attempts
            (
                id         TEXT PRIMARY KEY,
                user_id    TEXT,
                email      TEXT,
                score      INTEGER NOT NULL,
                total      INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                details    TEXT NOT NULL DEFAULT '[]'
            )
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_attempts_user_created "
            "ON attempts (user_id, created_at)"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_attempts_created ON attempts (created_at)"
        )
        conn.commit()

    def _migrate_schema(self) -> None:
        conn = self.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("PRAGMA table_info(questions)")
            columns = [info[1] for info in cursor.fetchall()]

            # Migration: categories arrived after the first question banks
            if "category" not in columns:
                self.telemetry.log_info("Migrating: Adding category to questions")
                cursor.execute("ALTER TABLE questions ADD COLUMN category TEXT")

            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error("Schema migration failed", e)
            raise
