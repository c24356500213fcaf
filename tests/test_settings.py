"""
Tests for settings loading and startup wiring.
"""

import json
import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from agents.hazard_agent import HazardExtractionClient
from api.main import create_app
from tools.errors import MissingConfigurationError
from tools.settings import Settings, get_settings, reset_settings
from tools.sheets_log import SheetsHazardLog

from tests.fakes import SCAFFOLD_ANALYSIS, SCAFFOLD_TRANSCRIPT, FakeExtractor

ENV_VARS = (
    "OPENAI_API_KEY",
    "OPEN_AI_KEY",
    "OPENAI_BASE_URL",
    "GOOGLE_SHEETS_SPREADSHEET_ID",
    "GOOGLE_SERVICE_ACCOUNT_FILE",
    "SHEETS_RANGE",
    "LOG_TIMEZONE",
    "PORT",
    "LOG_LEVEL",
    "LOG_FILE",
)


@pytest.fixture()
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep a developer's config/.env out of the tests
    monkeypatch.setattr("tools.settings.ENV_PATH", tmp_path / ".env")
    reset_settings()
    yield monkeypatch
    reset_settings()


class TestSettings:
    def test_defaults(self, clean_env):
        settings = Settings.from_env()

        assert settings.openai_api_key is None
        assert settings.spreadsheet_id is None
        assert settings.service_account_file == Path("service-account-key.json")
        assert settings.sheets_range == "Sheet1!A:H"
        assert settings.log_timezone == "America/New_York"
        assert settings.port == 3001
        assert settings.log_level == "INFO"
        assert settings.log_file is None

    def test_from_env(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-test")
        clean_env.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-abc")
        clean_env.setenv("PORT", "8080")
        clean_env.setenv("LOG_LEVEL", "debug")
        clean_env.setenv("LOG_TIMEZONE", "America/Denver")

        settings = Settings.from_env()

        assert settings.openai_api_key == "sk-test"
        assert settings.spreadsheet_id == "sheet-abc"
        assert settings.port == 8080
        assert settings.log_level == "DEBUG"
        assert settings.log_timezone == "America/Denver"

    def test_legacy_key_name(self, clean_env):
        clean_env.setenv("OPEN_AI_KEY", "sk-legacy")

        assert Settings.from_env().openai_api_key == "sk-legacy"

    def test_dotenv_file_is_loaded(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("GOOGLE_SHEETS_SPREADSHEET_ID=from-dotenv\n")

        try:
            assert Settings.from_env().spreadsheet_id == "from-dotenv"
        finally:
            os.environ.pop("GOOGLE_SHEETS_SPREADSHEET_ID", None)

    def test_get_settings_is_cached(self, clean_env):
        assert get_settings() is get_settings()

    def test_require_model_key(self):
        assert Settings(openai_api_key="sk-test").require_model_key() == "sk-test"

        with pytest.raises(MissingConfigurationError, match="OPENAI_API_KEY"):
            Settings().require_model_key()


def test_startup_fails_fast_without_model_key(monkeypatch):
    monkeypatch.setattr("api.main.setup_logging", lambda *args, **kwargs: None)

    with pytest.raises(MissingConfigurationError):
        create_app(Settings(spreadsheet_id="sheet-123"))


def test_startup_without_key_file_still_serves_health(monkeypatch, tmp_path):
    monkeypatch.setattr("api.main.setup_logging", lambda *args, **kwargs: None)
    missing = tmp_path / "missing-key.json"

    app = create_app(Settings(openai_api_key="sk-test", spreadsheet_id="sheet-123", service_account_file=missing))
    handler = app.state.voice_handler
    assert isinstance(handler.extractor, HazardExtractionClient)
    assert handler.extractor.template_name == "hazard_extraction_v1.j2"
    assert handler.extractor.model.max_retries == 0
    assert isinstance(handler.sink, SheetsHazardLog)
    assert handler.sink.service is None

    client = TestClient(app)
    assert client.get("/health").status_code == 200

    # the store is only touched per request
    handler.extractor = FakeExtractor(json.dumps(SCAFFOLD_ANALYSIS))
    resp = client.post("/api/process-voice", json={"transcript": SCAFFOLD_TRANSCRIPT})

    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to process voice input"
    assert "Service account file not found" in resp.json()["details"]
