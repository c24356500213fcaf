# Settings
"""
Runtime settings for the hazard voice log service.

Values come from ``config/.env`` (if present) and the process environment.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from tools.errors import MissingConfigurationError

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"
ENV_PATH = CONFIG_DIR / ".env"


class Settings:
    def __init__(
        self,
        openai_api_key: Optional[str] = None,
        openai_base_url: Optional[str] = None,
        spreadsheet_id: Optional[str] = None,
        service_account_file: Optional[Path] = None,
        sheets_range: str = "Sheet1!A:H",
        log_timezone: str = "America/New_York",
        port: int = 3001,
        log_level: str = "INFO",
        log_file: Optional[Path] = None,
    ) -> None:
        self.openai_api_key = openai_api_key
        self.openai_base_url = openai_base_url
        self.spreadsheet_id = spreadsheet_id
        self.service_account_file = service_account_file or Path("service-account-key.json")
        self.sheets_range = sheets_range
        self.log_timezone = log_timezone
        self.port = port
        self.log_level = log_level
        self.log_file = log_file

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the environment.

        ``config/.env`` is loaded first; variables already set in the process
        environment win.

        :return: Settings populated from environment variables.
        :rtype: Settings
        """
        load_dotenv(ENV_PATH)

        log_file = os.getenv("LOG_FILE")
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or os.getenv("OPEN_AI_KEY"),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            spreadsheet_id=os.getenv("GOOGLE_SHEETS_SPREADSHEET_ID") or None,
            service_account_file=Path(os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE", "service-account-key.json")),
            sheets_range=os.getenv("SHEETS_RANGE", "Sheet1!A:H"),
            log_timezone=os.getenv("LOG_TIMEZONE", "America/New_York"),
            port=int(os.getenv("PORT", "3001")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_file=Path(log_file) if log_file else None,
        )

    def require_model_key(self) -> str:
        """Return the model API key or abort startup."""
        if not self.openai_api_key:
            raise MissingConfigurationError("OPENAI_API_KEY")
        return self.openai_api_key


# Singleton instance
_settings = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
