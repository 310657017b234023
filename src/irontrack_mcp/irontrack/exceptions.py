"""IronTrack exceptions."""


class IronTrackError(Exception):
    """Base exception for IronTrack errors."""
    pass


class ConfigurationError(IronTrackError):
    """Raised when the backend URL or key is missing."""
    pass


class AuthenticationError(IronTrackError):
    """Raised when authentication fails."""
    pass


class TokenExpiredError(AuthenticationError):
    """Raised when the access token can no longer be refreshed."""
    pass


class APIError(IronTrackError):
    """Raised when a backend call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SessionError(IronTrackError):
    """Base exception for workout session errors."""
    pass


class EmptyWorkoutError(SessionError):
    """Raised when finishing a workout that has no exercises."""
    pass


class SessionClosedError(SessionError):
    """Raised when editing a workout that was already finished or discarded."""
    pass


class WorkoutNotSavedError(SessionError):
    """Raised when the backend did not accept a finished workout."""
    pass
