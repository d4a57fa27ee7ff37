"""Unit tests for application settings configuration."""

import json
from pathlib import Path

import pytest

from resume_rag import config
from resume_rag.config import Settings


def test_settings_uses_project_env_file_independent_of_cwd():
    """Settings should always include the project-level .env as an env source."""
    env_files = Settings.model_config.get("env_file")
    assert env_files is not None

    normalized = {str(Path(item)) for item in env_files}
    expected_project_env = str(Path(__file__).resolve().parents[2] / ".env")

    assert expected_project_env in normalized
    assert str(Path(".env")) in normalized


@pytest.mark.parametrize(
    ("database_url", "expected"),
    [
        ("postgresql://u:p@db:5432/resumes", "postgresql+asyncpg://u:p@db:5432/resumes"),
        ("sqlite:///./resumes.db", "sqlite+aiosqlite:///./resumes.db"),
        ("postgresql+asyncpg://u:p@db/resumes", "postgresql+asyncpg://u:p@db/resumes"),
    ],
)
def test_async_database_url_selects_async_driver(database_url, expected):
    assert Settings(database_url=database_url).async_database_url == expected


def test_environment_overrides_defaults(monkeypatch):
    monkeypatch.setenv("CHUNK_MAX_SIZE", "400")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")

    settings = Settings()

    assert settings.chunk_max_size == 400
    assert settings.redis_url == "redis://cache:6379/0"


def test_runtime_overrides_apply_to_model_keys_only(monkeypatch, tmp_path):
    overrides = tmp_path / "settings.json"
    overrides.write_text(
        json.dumps({"completion_model": "anthropic/claude-3-haiku", "chunk_max_size": 5})
    )
    monkeypatch.setattr(config, "_SETTINGS_FILE", overrides)

    settings = Settings()

    assert settings.completion_model == "anthropic/claude-3-haiku"
    assert settings.chunk_max_size == 1000


def test_defaults_match_pipeline_constants():
    settings = Settings(_env_file=None)

    assert settings.context_max_tokens == 3000
    assert settings.context_min_relevance == 0.6
    assert settings.ingestion_max_attempts == 3
