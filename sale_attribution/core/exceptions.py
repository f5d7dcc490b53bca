"""
Exception taxonomy for the attribution pipeline.

- MalformedTimestamp: the purchase date/time token cannot be parsed (client error)
- IncompleteSaleData: required fields are missing after parsing (client error)
- CollaboratorUnavailable: event source, persistence or registration failed;
  recorded on the analysis result instead of aborting the request
- InternalError: unexpected fault, surfaced generically

Message parsing never raises; it only produces partial records.
"""

from typing import Optional, Sequence


class AttributionError(Exception):
    """Base class for all attribution pipeline errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedTimestamp(AttributionError):
    """Raised when a purchase date/time token is not a valid DD/MM/YYYY HH:MM value."""

    def __init__(self, token: object, reason: Optional[str] = None):
        detail = f"Malformed purchase date/time: {token!r}"
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(detail)
        self.token = token


class IncompleteSaleData(AttributionError):
    """Raised when the parsed sale lacks the fields needed to estimate the click."""

    def __init__(self, missing_fields: Sequence[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(
            "Could not extract required sale data from the message: "
            + ", ".join(self.missing_fields)
        )


class CollaboratorUnavailable(AttributionError):
    """Raised by an external collaborator (UTMify, Postgres) that failed to respond."""

    def __init__(self, collaborator: str, message: str):
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator


class InternalError(AttributionError):
    """Unexpected fault while analyzing a sale."""
