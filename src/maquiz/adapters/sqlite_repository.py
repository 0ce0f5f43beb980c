import json
import sqlite3
import uuid
from typing import Any

from src.config import EngineConfig
from src.maquiz.adapters.db_manager import DatabaseManager
from src.maquiz.adapters.rows import (
    ROW_ERRORS,
    attempt_to_row,
    attempts_from_rows,
    questions_from_rows,
)
from src.maquiz.domain.errors import PersistenceError
from src.maquiz.domain.models import Attempt, Question
from src.maquiz.domain.ports import IAttemptStore, IQuestionSource
from src.shared.telemetry import Telemetry, measure_time

QUESTION_COLUMNS = "id, text, options, correct_idx, active, category"
ATTEMPT_COLUMNS = "id, user_id, email, score, total, created_at, details"

# Rows without a category belong to the default one.
CATEGORY_EXPR = (
    f"COALESCE(NULLIF(TRIM(category), ''), '{EngineConfig.DEFAULT_CATEGORY}')"
)


class SQLiteQuizRepository(IQuestionSource, IAttemptStore):
    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteRepository")
        self.db_manager = db_manager

    def _get_connection(self) -> sqlite3.Connection:
        return self.db_manager.get_connection()

    def _fetch(self, sql: str, params: tuple[Any, ...]) -> list[dict[str, Any]]:
        cursor = self._get_connection().execute(sql, params)
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row, strict=False)) for row in cursor.fetchall()]

    def is_empty(self) -> bool:
        """Helper for the Seeder."""
        conn = self._get_connection()
        row = conn.execute("SELECT count(*) FROM questions").fetchone()
        return (row[0] if row else 0) == 0

    def seed_questions(self, questions: list[Question]) -> None:
        conn = self._get_connection()
        try:
            conn.executemany(
                "INSERT OR REPLACE INTO questions "
                "(id, text, options, correct_idx, active, qtype, category) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        q.id,
                        q.text,
                        json.dumps(q.options),
                        q.correct_index,
                        q.active,
                        EngineConfig.QUESTION_TYPE,
                        q.category,
                    )
                    for q in questions
                ],
            )
            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error("seed_questions failed", e)
            raise PersistenceError("seed_questions", e) from e

    # --- IQuestionSource ---
    @measure_time("db_list_active")
    def list_active(self, category: str | None = None) -> list[Question]:
        sql = (
            f"SELECT {QUESTION_COLUMNS} FROM questions "
            "WHERE active = 1 AND qtype = ?"
        )
        params: tuple[Any, ...] = (EngineConfig.QUESTION_TYPE,)
        if category:
            sql += f" AND {CATEGORY_EXPR} = ?"
            params += (category,)
        try:
            rows = self._fetch(sql, params)
        except sqlite3.Error as e:
            raise PersistenceError("list_active", e) from e
        return questions_from_rows(rows, self.telemetry)

    @measure_time("db_sample_random")
    def sample_random(
        self, count: int, category: str | None = None
    ) -> list[Question] | None:
        sql = (
            f"SELECT {QUESTION_COLUMNS} FROM questions "
            "WHERE active = 1 AND qtype = ?"
        )
        params: tuple[Any, ...] = (EngineConfig.QUESTION_TYPE,)
        if category:
            sql += f" AND {CATEGORY_EXPR} = ?"
            params += (category,)
        sql += " ORDER BY RANDOM() LIMIT ?"
        params += (count,)
        try:
            rows = self._fetch(sql, params)
        except sqlite3.Error as e:
            raise PersistenceError("sample_random", e) from e
        return questions_from_rows(rows, self.telemetry)

    def get_questions_by_ids(self, question_ids: list[str]) -> list[Question]:
        if not question_ids:
            return []
        placeholders = ",".join(["?"] * len(question_ids))
        try:
            rows = self._fetch(
                f"SELECT {QUESTION_COLUMNS} FROM questions "
                f"WHERE id IN ({placeholders})",
                tuple(question_ids),
            )
        except sqlite3.Error as e:
            raise PersistenceError("get_questions_by_ids", e) from e
        return questions_from_rows(rows, self.telemetry)

    # --- IAttemptStore ---
    @measure_time("db_insert_attempt")
    def insert(self, attempt: Attempt) -> str:
        attempt_id = attempt.id or str(uuid.uuid4())
        row = attempt_to_row(attempt)
        conn = self._get_connection()
        try:
            conn.execute(
                f"INSERT INTO attempts ({ATTEMPT_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    attempt_id,
                    row["user_id"],
                    row["email"],
                    row["score"],
                    row["total"],
                    row["created_at"],
                    json.dumps(row["details"]),
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error(f"insert attempt failed for {attempt.user_id}", e)
            raise PersistenceError("insert_attempt", e) from e
        return attempt_id

    def _attempts(self, operation: str, rows: list[dict[str, Any]]) -> list[Attempt]:
        try:
            return attempts_from_rows(rows, self.telemetry)
        except ROW_ERRORS as e:
            self.telemetry.log_error(f"{operation}: unreadable attempt row", e)
            raise PersistenceError(operation, e) from e

    @measure_time("db_list_by_user")
    def list_by_user(self, user_id: str, limit: int) -> list[Attempt]:
        # Newest `limit` rows, handed back oldest first.
        sql = f"""
              SELECT * FROM (SELECT {ATTEMPT_COLUMNS}
                             FROM attempts
                             WHERE user_id = ?
                             ORDER BY created_at DESC
                             LIMIT ?)
              ORDER BY created_at ASC
              """
        try:
            rows = self._fetch(sql, (user_id, limit))
        except sqlite3.Error as e:
            raise PersistenceError("list_by_user", e) from e
        return self._attempts("list_by_user", rows)

    @measure_time("db_list_all")
    def list_all(self, limit: int) -> list[Attempt]:
        try:
            rows = self._fetch(
                f"SELECT {ATTEMPT_COLUMNS} FROM attempts "
                "ORDER BY created_at DESC LIMIT ?",
                (limit,),
            )
        except sqlite3.Error as e:
            raise PersistenceError("list_all", e) from e
        return self._attempts("list_all", rows)

    def _delete(self, operation: str, sql: str, params: tuple[Any, ...]) -> None:
        conn = self._get_connection()
        try:
            cursor = conn.execute(sql, params)
            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error(f"{operation} failed", e)
            raise PersistenceError(operation, e) from e
        self.telemetry.log_info(f"{operation} done", deleted=cursor.rowcount)

    def delete_by_user(self, user_id: str) -> None:
        self._delete(
            "delete_by_user", "DELETE FROM attempts WHERE user_id = ?", (user_id,)
        )

    def delete_by_label(self, user_label: str) -> None:
        self._delete(
            "delete_by_label", "DELETE FROM attempts WHERE email = ?", (user_label,)
        )

    def delete_all(self) -> None:
        self._delete("delete_all", "DELETE FROM attempts", ())
