"""
Error taxonomy for the placement pipeline.

Credential-class failures (CredentialInvalid, RateLimited) are resolved
locally by rotating the credential pool. Everything else either becomes a
per-record sentinel (SchemaMismatch) or ends the run with a readable message.
"""

from typing import Optional


class PlacementError(Exception):
    """Base class for every error raised by the placement services."""

    message = "An unknown error occurred."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)

    @property
    def detail(self) -> str:
        return str(self)


class InputInvalid(PlacementError):
    message = "CSV file appears to be empty or invalid."


class CredentialMissing(PlacementError):
    message = "API Key is missing. Please set it in the settings before analyzing."


class CredentialFailure(PlacementError):
    """Failure caused by the credential itself. Triggers rotation."""


class CredentialInvalid(CredentialFailure):
    message = "The provided API Key is invalid. Please go to Settings to correct it."


class RateLimited(CredentialFailure):
    message = "The API Key has hit its rate limit or quota."


class CredentialsExhausted(PlacementError):
    message = "All configured API keys failed. Add another key in Settings and resume."

    def __init__(self, message: Optional[str] = None, batch_index: Optional[int] = None):
        super().__init__(message)
        self.batch_index = batch_index


class SchemaMismatch(PlacementError):
    message = "The AI service returned a malformed response."

    def __init__(self, message: Optional[str] = None, reason: str = "AI Format Error"):
        super().__init__(message)
        # Shown as the justification of the error sentinel
        self.reason = reason


class TransportFailure(PlacementError):
    message = (
        "Network request failed. This may be a network problem or the AI "
        "service may be unreachable."
    )


class InferenceFailure(PlacementError):
    message = "The AI service returned an error."


class RunInProgress(PlacementError):
    message = "An analysis run is already in progress."


class CandidateSearchError(PlacementError):
    message = "Candidate search failed."
