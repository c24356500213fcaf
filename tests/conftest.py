from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from api.voice_routes import VoiceReportHandler
from tools.settings import Settings
from tools.sheets_log import SheetsHazardLog

from tests.fakes import FIXED_NOW, SCAFFOLD_ANALYSIS, FakeExtractor, FakeSheetsService


@pytest.fixture()
def extractor():
    return FakeExtractor(json.dumps(SCAFFOLD_ANALYSIS))


@pytest.fixture()
def sheets_service():
    return FakeSheetsService()


@pytest.fixture()
def sink(sheets_service):
    return SheetsHazardLog(sheets_service, "sheet-123", clock=lambda: FIXED_NOW)


@pytest.fixture()
def settings():
    return Settings(openai_api_key="test-key", spreadsheet_id="sheet-123")


@pytest.fixture()
def client(settings, extractor, sink):
    app = create_app(settings, handler=VoiceReportHandler(extractor, sink))
    return TestClient(app)
