"""HTTP error payloads for pipeline failures."""

from fastapi import HTTPException

from flood_twin.satellite.errors import (
    AuthError,
    MalformedResponseError,
    SatelliteDataError,
    TransportError,
    ValidationError,
)


def _error(status_code: int, code: str, description: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": code, "description": description})


def invalid_parameter(description: str) -> HTTPException:
    return _error(400, "InvalidParameterValue", description)


def upstream_error(exc: SatelliteDataError) -> HTTPException:
    """Translate a pipeline exception into the matching HTTP error."""
    if isinstance(exc, ValidationError):
        return invalid_parameter(str(exc))
    if isinstance(exc, AuthError):
        return _error(502, "AuthenticationFailed", str(exc))
    if isinstance(exc, TransportError) and exc.timed_out:
        return _error(504, "UpstreamTimeout", str(exc))
    if isinstance(exc, TransportError):
        return _error(502, "UpstreamError", str(exc))
    if isinstance(exc, MalformedResponseError):
        return _error(502, "MalformedUpstreamResponse", str(exc))
    return _error(500, "InternalError", str(exc))
