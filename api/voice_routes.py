from datetime import datetime, timezone
from typing import Any, Protocol

from fastapi import APIRouter, Depends
from fastapi.requests import Request
from fastapi.responses import JSONResponse

from tools.errors import HazardLogError, InvalidInput
from tools.hazard_schema import HazardReport, parse_hazard_report
from tools.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

MIN_TRANSCRIPT_LENGTH = 10


class HazardExtractor(Protocol):
    async def extract(self, transcript: str) -> str: ...


class HazardLog(Protocol):
    async def append(self, report: HazardReport) -> int: ...


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def validate_transcript(transcript: Any) -> str:
    """
    Check the transcript before anything leaves the process.

    :param transcript: Value of the ``transcript`` field from the request body.

    :return: The transcript, unchanged.
    :rtype: str
    :raises InvalidInput: If it is not a string or is shorter than 10 characters once trimmed.
    """
    if not isinstance(transcript, str) or len(transcript.strip()) < MIN_TRANSCRIPT_LENGTH:
        raise InvalidInput("Transcript too short or invalid")
    return transcript


class VoiceReportHandler:
    """
    Runs one transcript through extraction, validation, and the hazard log.

    Holds no per-request state, so one instance serves every request.
    """

    def __init__(self, extractor: HazardExtractor, sink: HazardLog) -> None:
        self.extractor = extractor
        self.sink = sink

    async def process(self, transcript: str) -> HazardReport:
        logger.info(f"Transcript received: {transcript}")
        logger.info("Analyzing transcript with the model...")
        raw_text = await self.extractor.extract(transcript)
        report = parse_hazard_report(raw_text)
        logger.info(f"Model analysis: {report.model_dump(mode='json')}")

        # A failed write loses the extracted report; the caller sees a failure
        logger.info("Writing to Google Sheets...")
        await self.sink.append(report)
        return report


def get_voice_handler(request: Request) -> VoiceReportHandler:
    return request.app.state.voice_handler


@router.get("/health")
async def health():
    """
    Liveness probe. Does not touch the model or the spreadsheet.

    :return: Dictionary with ``status`` and an ISO-8601 UTC ``timestamp``.
    """
    return {"status": "ok", "timestamp": utc_now_iso()}


@router.post("/api/process-voice")
async def process_voice(request: Request, handler: VoiceReportHandler = Depends(get_voice_handler)):
    """
    Route to turn a worker's voice transcript into a logged hazard report.

    The body must be a JSON object with a ``transcript`` string of at least
    10 non-blank characters. Any failure after that check is reported as a
    500 with the underlying message in ``details``.

    :param request: Incoming request; the JSON body is read directly so a bad
        shape maps to 400 instead of FastAPI's 422.
    :type request: Request

    :return: ``success``, the original ``transcript``, the ``analysis`` and a ``timestamp``.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    try:
        transcript = validate_transcript(body.get("transcript") if isinstance(body, dict) else None)
    except InvalidInput as e:
        return JSONResponse(status_code=400, content={"error": e.message})

    try:
        report = await handler.process(transcript)
    except HazardLogError as e:
        logger.error(f"Error processing voice: {e}", extra={"error_type": type(e).__name__, "details": e.details})
        return JSONResponse(status_code=500, content={"error": "Failed to process voice input", "details": e.message})
    except Exception as e:
        logger.exception(f"Unexpected error processing voice: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to process voice input", "details": str(e)})

    return {
        "success": True,
        "transcript": transcript,
        "analysis": report.model_dump(mode="json"),
        "timestamp": utc_now_iso(),
    }
