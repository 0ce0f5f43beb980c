from typing import Any, cast

from src.config import EngineConfig
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
from supabase import Client, create_client

QUESTION_COLUMNS = "id, text, options, correct_idx, active, category"
ATTEMPT_COLUMNS = "id, user_id, email, score, total, created_at, details"

# PostgREST refuses an unfiltered DELETE; no attempt carries the nil uuid.
NIL_UUID = "00000000-0000-0000-0000-000000000000"


class SupabaseQuizRepository(IQuestionSource, IAttemptStore):
    def __init__(
        self, url: str | None = None, key: str | None = None, client: Any = None
    ) -> None:
        self.telemetry = Telemetry("SupabaseRepository")
        self.client: Client
        if client is not None:
            self.client = client
            return
        try:
            self.client = create_client(cast(str, url), cast(str, key))
        except Exception as e:
            self.telemetry.log_error("Failed to initialize Supabase client", e)
            raise

    def _rows(self, response: Any) -> list[dict[str, Any]]:
        return cast(list[dict[str, Any]], response.data or [])

    def _attempts(self, operation: str, rows: list[dict[str, Any]]) -> list[Attempt]:
        try:
            return attempts_from_rows(rows, self.telemetry)
        except ROW_ERRORS as e:
            self.telemetry.log_error(f"{operation}: unreadable attempt row", e)
            raise PersistenceError(operation, e) from e

    # --- IQuestionSource ---
    @measure_time("sb_list_active")
    def list_active(self, category: str | None = None) -> list[Question]:
        try:
            query = (
                self.client.table("questions")
                .select(QUESTION_COLUMNS)
                .eq("qtype", EngineConfig.QUESTION_TYPE)
                .eq("active", True)
            )
            # NULL categories read back as the default, so that one is
            # narrowed client-side by the sampler.
            if category and category != EngineConfig.DEFAULT_CATEGORY:
                query = query.eq("category", category)
            response = query.execute()
        except Exception as e:
            self.telemetry.log_error("list_active failed", e)
            raise PersistenceError("list_active", e) from e
        return questions_from_rows(self._rows(response), self.telemetry)

    @measure_time("sb_sample_random")
    def sample_random(
        self, count: int, category: str | None = None
    ) -> list[Question] | None:
        if category:
            # The stored procedure only knows `limit_count`; a filtered
            # draw would come back short.
            return None
        try:
            response = self.client.rpc(
                EngineConfig.RANDOM_QUESTIONS_RPC, {"limit_count": count}
            ).execute()
        except Exception as e:
            raise PersistenceError("sample_random", e) from e
        return questions_from_rows(self._rows(response), self.telemetry)

    @measure_time("sb_get_questions_by_ids")
    def get_questions_by_ids(self, question_ids: list[str]) -> list[Question]:
        if not question_ids:
            return []
        try:
            response = (
                self.client.table("questions")
                .select(QUESTION_COLUMNS)
                .in_("id", question_ids)
                .execute()
            )
        except Exception as e:
            self.telemetry.log_error("get_questions_by_ids failed", e)
            raise PersistenceError("get_questions_by_ids", e) from e
        return questions_from_rows(self._rows(response), self.telemetry)

    # --- IAttemptStore ---
    @measure_time("sb_insert_attempt")
    def insert(self, attempt: Attempt) -> str:
        payload = attempt_to_row(attempt)
        if attempt.id:
            payload["id"] = attempt.id
        try:
            response = self.client.table("attempts").insert(payload).execute()
            rows = self._rows(response)
            if not rows:
                raise RuntimeError("insert returned no row")
            return str(rows[0]["id"])
        except Exception as e:
            self.telemetry.log_error(f"insert attempt failed for {attempt.user_id}", e)
            raise PersistenceError("insert_attempt", e) from e

    @measure_time("sb_list_by_user")
    def list_by_user(self, user_id: str, limit: int) -> list[Attempt]:
        try:
            response = (
                self.client.table("attempts")
                .select(ATTEMPT_COLUMNS)
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            self.telemetry.log_error(f"list_by_user failed for {user_id}", e)
            raise PersistenceError("list_by_user", e) from e
        # Newest `limit` rows, handed back oldest first.
        return self._attempts("list_by_user", list(reversed(self._rows(response))))

    @measure_time("sb_list_all")
    def list_all(self, limit: int) -> list[Attempt]:
        try:
            response = (
                self.client.table("attempts")
                .select(ATTEMPT_COLUMNS)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            self.telemetry.log_error("list_all failed", e)
            raise PersistenceError("list_all", e) from e
        return self._attempts("list_all", self._rows(response))

    def delete_by_user(self, user_id: str) -> None:
        try:
            self.client.table("attempts").delete().eq("user_id", user_id).execute()
        except Exception as e:
            self.telemetry.log_error(f"delete_by_user failed for {user_id}", e)
            raise PersistenceError("delete_by_user", e) from e

    def delete_by_label(self, user_label: str) -> None:
        try:
            self.client.table("attempts").delete().eq("email", user_label).execute()
        except Exception as e:
            self.telemetry.log_error(f"delete_by_label failed for {user_label}", e)
            raise PersistenceError("delete_by_label", e) from e

    def delete_all(self) -> None:
        try:
            self.client.table("attempts").delete().neq("id", NIL_UUID).execute()
        except Exception as e:
            self.telemetry.log_error("delete_all failed", e)
            raise PersistenceError("delete_all", e) from e
