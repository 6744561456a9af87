"""
Application Error Taxonomy

Every failure the service reports to a caller is one of the exceptions below.
Each carries a user-facing message, a machine-readable code for logs, and the
HTTP status the API layer answers with (see the handler registered in main.py).
"""


class AppError(Exception):
    """
    Base class for errors surfaced to API callers.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for logging
        status_code: HTTP status returned by the API layer
    """
    code = "APP_ERROR"
    status_code = 500

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class AuthenticationRequired(AppError):
    """No signed-in user, or the session/identity token is missing or invalid."""
    code = "AUTH_REQUIRED"
    status_code = 401


class CalendarFetchFailure(AppError):
    """The calendar API returned an error or could not be reached."""
    code = "CALENDAR_ERROR"
    status_code = 400


class MeetingOperationFailure(AppError):
    """A meeting lookup or update could not be completed."""
    code = "MEETING_ERROR"
    status_code = 400


class TranscriptionUnavailable(AppError):
    """The transcription model rejected the audio or is not configured."""
    code = "TRANSCRIPTION_UNAVAILABLE"
    status_code = 503


class SummaryGenerationFailure(AppError):
    """
    Summary generation failed outright.

    Generation normally degrades to placeholder text; this is for callers
    that need to report a failed generation explicitly.
    """
    code = "SUMMARY_ERROR"
    status_code = 500


class PersistenceFailure(AppError):
    """A document read or write against the store failed."""
    code = "PERSISTENCE_ERROR"
    status_code = 500


class MalformedResponse(AppError):
    """A model response could not be decoded into the expected structure."""
    code = "MALFORMED_RESPONSE"
    status_code = 502


class MediaCaptureUnavailable(AppError):
    """Audio capture could not start: device missing or permission denied."""
    code = "MEDIA_CAPTURE_UNAVAILABLE"
    status_code = 400
