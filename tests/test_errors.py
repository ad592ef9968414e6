import pytest

from flood_twin.routers.errors import invalid_parameter, upstream_error
from flood_twin.satellite.errors import (
    AuthError,
    MalformedResponseError,
    SatelliteDataError,
    TransportError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("exc", "status_code", "code"),
    [
        (ValidationError("bad bbox"), 400, "InvalidParameterValue"),
        (AuthError("rejected"), 502, "AuthenticationFailed"),
        (TransportError("slow", timed_out=True), 504, "UpstreamTimeout"),
        (TransportError("down", status_code=503), 502, "UpstreamError"),
        (MalformedResponseError("garbled"), 502, "MalformedUpstreamResponse"),
        (SatelliteDataError("unexpected"), 500, "InternalError"),
    ],
)
def test_upstream_error_mapping(exc: SatelliteDataError, status_code: int, code: str) -> None:
    error = upstream_error(exc)

    assert error.status_code == status_code
    assert error.detail == {"code": code, "description": str(exc)}


def test_invalid_parameter() -> None:
    error = invalid_parameter("days must be positive")

    assert error.status_code == 400
    assert error.detail["description"] == "days must be positive"
