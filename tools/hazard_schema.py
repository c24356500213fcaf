#Hazard report schema and the parser that turns raw model output into one.

import json
from enum import Enum
from typing import Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)

from tools.errors import HazardSchemaError, MalformedModelOutput
from tools.logging import get_logger

logger = get_logger(__name__)

#Zones on the site map, plus the fallback when the worker never names one
ZONES = ("1", "2", "3", "4", "Unknown")

HIGH_RISK_MIN = 90
MEDIUM_RISK_MIN = 70


class RiskLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


def risk_level_for(severity: float) -> RiskLevel:
    """
    Map a 0-100 severity score onto its risk band.

    Bands: ``>= 90`` is HIGH, ``70 - 89`` is MEDIUM, anything lower is LOW.

    :param severity: Severity score between 0 and 100.
    :type severity: float

    :return: Risk level for the score.
    :rtype: RiskLevel
    """
    if severity >= HIGH_RISK_MIN:
        return RiskLevel.HIGH
    if severity >= MEDIUM_RISK_MIN:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class HazardReport(BaseModel):
    """
    Structured hazard data extracted from one worker transcript.

    Field names match the JSON keys the model is asked to produce. Values are
    taken as-is with no coercion. Extra keys are kept, so a valid report dumps
    back to exactly the object the model returned.
    """

    model_config = ConfigDict(extra="allow")

    zone: StrictStr
    hazardType: StrictStr = Field(min_length=1)
    severity: Union[StrictInt, StrictFloat]
    riskLevel: RiskLevel
    aiNotes: StrictStr

    @field_validator("zone")
    @classmethod
    def zone_on_site_map(cls, value: str) -> str:
        if value not in ZONES:
            raise ValueError(f"zone must be one of {', '.join(ZONES)}")
        return value

    @field_validator("hazardType")
    @classmethod
    def hazard_type_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("hazardType must not be blank")
        return value

    @field_validator("severity")
    @classmethod
    def severity_in_range(cls, value: Union[int, float]) -> Union[int, float]:
        if not 0 <= value <= 100:
            raise ValueError("severity must be between 0 and 100")
        return value

    @model_validator(mode="after")
    def risk_level_matches_severity(self) -> "HazardReport":
        expected = risk_level_for(self.severity)
        if self.riskLevel is not expected:
            raise ValueError(
                f"riskLevel {self.riskLevel.value} does not match severity {self.severity} (expected {expected.value})"
            )
        return self

    def to_row_values(self) -> list:
        """Hazard columns in log order: zone, hazard type, severity, risk level, notes."""
        return [self.zone, self.hazardType, self.severity, self.riskLevel.value, self.aiNotes]


def parse_hazard_report(raw_text: str) -> HazardReport:
    """
    Parse raw model output into a validated ``HazardReport``.

    The whole text must be a single JSON object. Markdown fences or prose
    around the object are not stripped, they are a parse failure. The raw
    text is logged before any error is raised.

    :param raw_text: Text returned by the model.
    :type raw_text: str

    :return: Validated hazard report.
    :rtype: HazardReport
    :raises MalformedModelOutput: If the text is not valid JSON.
    :raises HazardSchemaError: If the JSON does not match the hazard schema.
    """
    try:
        data = json.loads(raw_text)
    except (json.JSONDecodeError, TypeError) as e:
        logger.error("JSON parse failed. Raw output:\n%s", raw_text)
        raise MalformedModelOutput("Invalid JSON returned from model", raw_text, {"error": str(e)}) from e

    if not isinstance(data, dict):
        logger.error("Model output is not a JSON object. Raw output:\n%s", raw_text)
        raise HazardSchemaError(
            raw_text,
            [{"loc": (), "msg": "Hazard report must be a JSON object", "type": "model_type"}],
        )

    try:
        return HazardReport.model_validate(data)
    except ValidationError as e:
        logger.error("Hazard schema validation failed. Raw output:\n%s", raw_text)
        raise HazardSchemaError(raw_text, e.errors(include_url=False, include_context=False)) from e
