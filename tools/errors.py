"""
Exceptions raised by the hazard log pipeline.

Every failure past input validation ends up as a generic 500 response, so
each exception carries a ``details`` dictionary with the context that gets
written to the operational log.
"""

from typing import Any, Optional


class HazardLogError(Exception):
    """Base exception for all hazard log errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInput(HazardLogError):
    """Transcript missing, not a string, or too short."""

    pass


class ProviderError(HazardLogError):
    """The text-generation provider call failed."""

    pass


class MalformedModelOutput(HazardLogError):
    """Model output did not parse as a JSON hazard report."""

    def __init__(self, message: str, raw_text: str, details: Optional[dict[str, Any]] = None) -> None:
        merged = {"raw_text": raw_text}
        merged.update(details or {})
        super().__init__(message, merged)
        self.raw_text = raw_text


class HazardSchemaError(MalformedModelOutput):
    """Model output was valid JSON but not a valid hazard report."""

    def __init__(self, raw_text: str, errors: list[dict[str, Any]]) -> None:
        fields = ", ".join(".".join(str(p) for p in e.get("loc", ())) or "<root>" for e in errors)
        super().__init__(
            f"Model output failed hazard schema validation: {fields}",
            raw_text,
            {"errors": errors},
        )
        self.errors = errors


class SinkError(HazardLogError):
    """Appending to the hazard log spreadsheet failed."""

    pass


class MissingConfigurationError(HazardLogError):
    """Required configuration missing."""

    def __init__(self, config_name: str) -> None:
        message = f"Required configuration '{config_name}' is missing"
        super().__init__(message, {"config_name": config_name})
