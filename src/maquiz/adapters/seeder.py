import json
import os

from src.maquiz.adapters.rows import questions_from_rows
from src.maquiz.adapters.sqlite_repository import SQLiteQuizRepository
from src.shared.telemetry import Telemetry

DEFAULT_SEED_FILE = "data/seed_questions.json"


class DataSeeder:
    """
    Fills an empty local question bank from a JSON export of the hosted
    `questions` table. Rows that fail validation are skipped.
    """

    def __init__(self, repo: SQLiteQuizRepository) -> None:
        self.repo = repo
        self.telemetry = Telemetry("DataSeeder")

    def seed_if_empty(self, seed_file: str = DEFAULT_SEED_FILE) -> int:
        """Returns how many questions were loaded."""
        if not self.repo.is_empty():
            return 0

        if not os.path.exists(seed_file):
            self.telemetry.log_warning("Seed file not found", path=seed_file)
            return 0

        self.telemetry.log_info("Question bank empty, seeding", path=seed_file)
        with open(seed_file, encoding="utf-8") as f:
            rows = json.load(f)

        questions = questions_from_rows(rows, self.telemetry)
        self.repo.seed_questions(questions)
        self.telemetry.log_info(f"Seeded {len(questions)} questions.")
        return len(questions)
