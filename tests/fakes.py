from __future__ import annotations

from datetime import datetime, timezone

SCAFFOLD_TRANSCRIPT = "There's a loose scaffold railing on zone three, looks mostly stable at about eighty percent."

SCAFFOLD_ANALYSIS = {
    "zone": "3",
    "hazardType": "loose scaffold railing",
    "severity": 85,
    "riskLevel": "MEDIUM",
    "aiNotes": "Inferred from description",
}

FIXED_NOW = datetime(2026, 10, 19, 19, 4, tzinfo=timezone.utc)


class FakeExtractor:
    """Returns canned model text and records every transcript it was given."""

    def __init__(self, raw_text: str = "", error: Exception | None = None) -> None:
        self.raw_text = raw_text
        self.error = error
        self.calls: list[str] = []

    async def extract(self, transcript: str) -> str:
        self.calls.append(transcript)
        if self.error is not None:
            raise self.error
        return self.raw_text


class FakeSheetsService:
    """Mimics ``service.spreadsheets().values().append(...).execute()``."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.appended: list[dict] = []
        self._pending: dict | None = None

    def spreadsheets(self):
        return self

    def values(self):
        return self

    def append(self, **kwargs):
        self._pending = kwargs
        return self

    def execute(self):
        if self.error is not None:
            raise self.error
        self.appended.append(self._pending)
        return {"updates": {"updatedRows": len(self._pending["body"]["values"])}}

    @property
    def rows(self) -> list[list]:
        return [row for call in self.appended for row in call["body"]["values"]]
