"""Sentinel Hub Process API request building and transport."""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from .errors import TransportError
from .validation import BoundingBox, FetchOptions

logger = logging.getLogger(__name__)

PROCESS_PATH = "/api/v1/process"
CRS_EPSG_4326 = "http://www.opengis.net/def/crs/EPSG/0/4326"
DATA_SOURCE_TYPE = "S2L2A"
SOURCE_LABEL = "Sentinel-2 L2A"
ACQUISITION_WINDOW_DAYS = 30
DEFAULT_PROCESS_TIMEOUT_SECONDS = 120.0

# Output identifier -> response media type
OUTPUT_FORMATS: dict[str, str] = {
    "truecolor": "image/png",
    "ndvi": "image/tiff",
    "ndwi": "image/tiff",
    "scl": "image/tiff",
}

EVALSCRIPT = """
//VERSION=3
function setup() {
    return {
        input: [{
            bands: ["B02", "B03", "B04", "B08", "B11", "SCL"],
            units: "DN"
        }],
        output: [
            { id: "truecolor", bands: 3, sampleType: "AUTO" },
            { id: "ndvi", bands: 1, sampleType: "FLOAT32" },
            { id: "ndwi", bands: 1, sampleType: "FLOAT32" },
            { id: "scl", bands: 1, sampleType: "UINT8" }
        ]
    };
}

function evaluatePixel(sample) {
    let trueColor = [sample.B04 * 2.5, sample.B03 * 2.5, sample.B02 * 2.5];
    let ndvi = (sample.B08 - sample.B04) / (sample.B08 + sample.B04);
    let ndwi = (sample.B03 - sample.B08) / (sample.B03 + sample.B08);
    return {
        truecolor: trueColor,
        ndvi: [ndvi],
        ndwi: [ndwi],
        scl: [sample.SCL]
    };
}
"""


def acquisition_window(now: datetime, days: int = ACQUISITION_WINDOW_DAYS) -> tuple[str, str]:
    """Return the (from, to) ISO timestamps of the trailing window ending at ``now``."""
    end = now.astimezone(UTC).date()
    start = end - timedelta(days=days)
    return (f"{start.isoformat()}T00:00:00Z", f"{end.isoformat()}T23:59:59Z")


def build_process_request(bbox: BoundingBox, options: FetchOptions, now: datetime) -> dict[str, Any]:
    """Build the Process API JSON body for the four named outputs."""
    time_from, time_to = acquisition_window(now)
    return {
        "input": {
            "bounds": {
                "bbox": list(bbox),
                "properties": {"crs": CRS_EPSG_4326},
            },
            "data": [
                {
                    "type": DATA_SOURCE_TYPE,
                    "dataFilter": {
                        "maxCloudCoverage": options.max_cloud_coverage,
                        "timeRange": {"from": time_from, "to": time_to},
                    },
                    "processing": {"harmonizeValues": True},
                }
            ],
        },
        "output": {
            "width": options.width,
            "height": options.height,
            "responses": [
                {"identifier": identifier, "format": {"type": media_type}}
                for identifier, media_type in OUTPUT_FORMATS.items()
            ],
        },
        "evalscript": EVALSCRIPT,
    }


class SentinelHubClient:
    """Thin wrapper over the Process API endpoint."""

    def __init__(
        self,
        client: httpx.Client,
        *,
        process_url: str,
        timeout: float = DEFAULT_PROCESS_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self._process_url = process_url
        self.timeout = timeout

    def process(self, token: str, body: dict[str, Any]) -> tuple[str, bytes]:
        """POST a process request and return (content-type, raw body).

        Raises:
            TransportError: on timeout, connection failure or non-success status.
        """
        try:
            response = self._client.post(
                self._process_url,
                json=body,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "multipart/mixed",
                },
                timeout=self.timeout,
            )
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"Sentinel Hub process request timed out after {self.timeout}s",
                timed_out=True,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Sentinel Hub process request failed: {exc}") from exc

        if not response.is_success:
            logger.warning(
                "Sentinel Hub process request returned HTTP %s: %s",
                response.status_code,
                response.text[:200],
            )
            raise TransportError(
                f"Sentinel Hub process request returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        return response.headers.get("content-type", ""), response.content
