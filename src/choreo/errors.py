"""Error taxonomy shared by the storyboard engine, vendor clients and API."""

from typing import Any, Optional


class StudioError(Exception):
    """Base class for errors surfaced to studio callers.

    Each subclass carries the HTTP-equivalent status code and whether the
    UI should render setup guidance instead of a generic failure.
    """

    kind = "error"
    status_code = 500
    setup_required = False

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        """Return the JSON error body for this error."""
        body = {
            "success": False,
            "error": self.message,
            "kind": self.kind,
        }
        if self.details is not None:
            body["details"] = self.details
        if self.setup_required:
            body["setup_required"] = True
        return body


class ValidationError(StudioError):
    """Missing or malformed required input."""

    kind = "validation"
    status_code = 400


class NotFoundError(StudioError):
    """Reference to an unknown node, job or scene."""

    kind = "not_found"
    status_code = 404


class ConfigurationError(StudioError):
    """A required credential or config value is absent or a placeholder."""

    kind = "configuration"
    status_code = 503
    setup_required = True


class UpstreamError(StudioError):
    """A vendor call failed or returned a non-success response."""

    kind = "upstream"
    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Any] = None,
        vendor_status: Optional[int] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.vendor_status = vendor_status
        if vendor_status is not None and vendor_status >= 500:
            self.status_code = vendor_status


class UnavailableError(StudioError):
    """Every fallback endpoint was tried and none answered."""

    kind = "unavailable"
    status_code = 503


def from_pydantic(exc: Exception, message: str = "Invalid input") -> ValidationError:
    """Convert a pydantic validation error into a ValidationError."""
    errors = getattr(exc, "errors", None)
    details = None
    if callable(errors):
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())),
                "message": err.get("msg", ""),
            }
            for err in errors()
        ]
    return ValidationError(message, details=details)
