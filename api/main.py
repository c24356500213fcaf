from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agents.hazard_agent import HazardExtractionClient
from api import voice_routes
from api.voice_routes import VoiceReportHandler
from tools.logging import get_logger, setup_logging
from tools.settings import Settings, get_settings
from tools.sheets_log import SheetsHazardLog

logger = get_logger(__name__)


def build_voice_handler(settings: Settings) -> VoiceReportHandler:
    """
    Wire the model client and the spreadsheet log from settings.

    :raises MissingConfigurationError: If no model API key is configured.
    """
    extractor = HazardExtractionClient.from_config(
        api_key=settings.require_model_key(),
        base_url=settings.openai_base_url,
    )
    sink = SheetsHazardLog(
        spreadsheet_id=settings.spreadsheet_id,
        sheet_range=settings.sheets_range,
        tz_name=settings.log_timezone,
        service_account_file=settings.service_account_file,
    )
    return VoiceReportHandler(extractor, sink)


def create_app(settings: Optional[Settings] = None, handler: Optional[VoiceReportHandler] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Pass ``handler`` to run with substitute collaborators; otherwise they are
    built from ``settings`` and startup aborts if the model key is missing.
    """
    settings = settings or get_settings()

    if handler is None:
        setup_logging(settings.log_level, settings.log_file)
        handler = build_voice_handler(settings)

    app = FastAPI(title="Site Hazard Voice Log")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.voice_handler = handler
    app.include_router(voice_routes.router)

    logger.info(f"Google Sheets ID: {'Configured' if settings.spreadsheet_id else 'Missing'}")
    logger.info(f"Model API key: {'Configured' if settings.openai_api_key else 'Missing'}")
    if not settings.spreadsheet_id:
        logger.warning("GOOGLE_SHEETS_SPREADSHEET_ID is not set; every report will fail to log")
    if not settings.service_account_file.exists():
        logger.warning(f"Service account file {settings.service_account_file} not found; every report will fail to log")

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    app = create_app(settings)
    logger.info(f"Hazard voice log backend running on http://localhost:{settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
