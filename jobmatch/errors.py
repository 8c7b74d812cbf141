"""
Error taxonomy.

Input errors, upstream adapter errors, fatal configuration errors and
not-found are kept distinct so the API layer can map each to its own
status code. Empty search results are never an error.
"""


class JobMatchError(Exception):
    """Base class for all JobMatch errors."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ConfigurationError(JobMatchError, ValueError):
    """A required credential or setting is missing."""

    status_code = 500


class ResumeValidationError(JobMatchError):
    """Uploaded resume is unreadable or has too little content."""

    status_code = 400


class ResumeParserError(JobMatchError):
    """The resume parsing model failed or returned garbage."""

    status_code = 502


class ProviderError(JobMatchError):
    """A single search provider call failed (transport, HTTP or auth)."""

    status_code = 502

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class PaymentError(JobMatchError):
    """The payment provider API call failed."""

    status_code = 502


class PaymentVerificationError(JobMatchError):
    """Webhook signature could not be verified."""

    status_code = 400


class MalformedEventError(JobMatchError):
    """A verified payment event is missing data we need."""

    status_code = 400


class SessionNotFound(JobMatchError):
    """Session expired or never existed, and nothing to rebuild it from."""

    status_code = 404

    def __init__(self, session_id: str):
        super().__init__(
            f"Session {session_id} not found or expired. Please upload your resume again."
        )
        self.session_id = session_id


class InvalidTransition(JobMatchError):
    """Session status change that would move the state machine backwards."""

    status_code = 409


class ProcessingFailed(JobMatchError):
    """Search or storage failed while processing a paid session."""

    status_code = 500
