"""Error taxonomy for the satellite acquisition pipeline."""


class SatelliteDataError(Exception):
    """Base class for every failure raised by the pipeline."""


class ValidationError(SatelliteDataError):
    """Raised when a bounding box or request option is malformed."""


class AuthError(SatelliteDataError):
    """Raised when the client-credentials exchange fails."""


class TransportError(SatelliteDataError):
    """Raised when the imagery call times out, fails or returns a non-success status."""

    def __init__(self, message: str, *, status_code: int | None = None, timed_out: bool = False) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.timed_out = timed_out


class MalformedResponseError(SatelliteDataError):
    """Raised when a multipart response lacks the expected structure."""
