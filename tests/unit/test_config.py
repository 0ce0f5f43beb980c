import pytest

from src.config import Backend, EngineConfig, Level, Settings
from src.maquiz.domain.errors import ConfigurationError


class TestLevel:
    def test_every_level_has_label_and_icon(self):
        for level in Level:
            assert level.label
            assert level.icon

    def test_bands_are_strictly_descending(self):
        bounds = [level.min_percent for level in Level]
        assert bounds == sorted(bounds, reverse=True)
        assert len(set(bounds)) == len(bounds)

    def test_five_bands(self):
        assert len(Level) == 5


class TestEngineConfig:
    def test_difficulty_gate_is_three(self):
        assert EngineConfig.MIN_TIMES_SEEN == 3

    def test_hardest_list_shows_five(self):
        assert EngineConfig.HARDEST_QUESTIONS_LIMIT == 5

    def test_history_windows_are_bounded(self):
        assert 0 < EngineConfig.USER_HISTORY_LIMIT <= EngineConfig.TEAM_HISTORY_LIMIT

    def test_round_size_is_positive(self):
        assert EngineConfig.ROUND_SIZE >= 1


class TestSettings:
    def test_defaults_to_local_sqlite(self, monkeypatch):
        for var in ("MAQUIZ_BACKEND", "MAQUIZ_DB_PATH", "SUPABASE_URL", "SUPABASE_KEY"):
            monkeypatch.delenv(var, raising=False)

        settings = Settings.from_env()

        assert settings.backend is Backend.SQLITE
        assert settings.db_path == "data/quiz.db"

    def test_reads_supabase_settings(self, monkeypatch):
        monkeypatch.setenv("MAQUIZ_BACKEND", "Supabase")
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_KEY", "anon-key")

        settings = Settings.from_env()

        assert settings.backend is Backend.SUPABASE
        assert settings.supabase_credentials() == (
            "https://example.supabase.co",
            "anon-key",
        )

    def test_unknown_backend_is_a_configuration_error(self, monkeypatch):
        monkeypatch.setenv("MAQUIZ_BACKEND", "mongo")

        with pytest.raises(ConfigurationError):
            Settings.from_env()

    def test_missing_credentials_are_reported(self):
        settings = Settings(backend=Backend.SUPABASE, supabase_url="https://x")

        with pytest.raises(ConfigurationError) as exc_info:
            settings.supabase_credentials()

        assert "has_url=True" in str(exc_info.value)
        assert "key_len=0" in str(exc_info.value)
