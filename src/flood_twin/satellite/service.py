"""Fetch orchestration: validation, cache, auth, Process API call and decoding."""

import base64
import copy
import hashlib
import logging
import math
from collections.abc import Callable, Mapping
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import UTC, date, datetime, timedelta
from threading import Lock
from typing import Any

import numpy as np

from .auth import TokenManager
from .cache import CacheStats, ResultCache
from .client import OUTPUT_FORMATS, SOURCE_LABEL, SentinelHubClient, build_process_request
from .errors import SatelliteDataError, TransportError, ValidationError
from .events import EventHooks, EventName
from .indicators import derive_indicators
from .multipart import decode_multipart, extract_boundary
from .schemas import HistoricalSample, Indicators, ResultMetadata, SatelliteResult
from .validation import BoundingBox, FetchOptions, request_key, validate_bbox, validate_options

logger = logging.getLogger(__name__)

IndicatorDeriver = Callable[[Mapping[str, bytes], BoundingBox], Indicators]

HISTORICAL_BBOX_HALF_WIDTH = 0.1
MAX_HISTORICAL_DAYS = 365
# slack on top of the token and process timeouts before a follower gives up
FOLLOWER_WAIT_MARGIN_SECONDS = 5.0


def to_data_uri(data: bytes | None, media_type: str) -> str | None:
    if data is None:
        return None
    return f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"


class SatelliteDataService:
    """Composes token manager, Process API client, decoder, indicators and cache.

    Concurrent fetches for the same request key share one remote call: the
    first caller performs it and the others wait on its outcome.
    """

    def __init__(
        self,
        token_manager: TokenManager,
        client: SentinelHubClient,
        cache: ResultCache,
        *,
        indicator_deriver: IndicatorDeriver = derive_indicators,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
        events: EventHooks | None = None,
        follower_timeout: float | None = None,
    ) -> None:
        self.token_manager = token_manager
        self.client = client
        self.cache = cache
        self._derive = indicator_deriver
        self._now = now
        self._events = events or EventHooks()
        self._in_flight: dict[str, Future[SatelliteResult]] = {}
        self._in_flight_lock = Lock()
        if follower_timeout is None:
            follower_timeout = token_manager.timeout + client.timeout + FOLLOWER_WAIT_MARGIN_SECONDS
        self.follower_timeout = follower_timeout

    def fetch_data(
        self,
        bbox: Any,
        options: FetchOptions | Mapping[str, Any] | None = None,
    ) -> SatelliteResult:
        """Return imagery, indicators and metadata for a bounding box.

        Raises:
            ValidationError: malformed bbox or options; nothing else was touched.
            AuthError, TransportError, MalformedResponseError: propagated from the
                fetch; no cache entry is written.
        """
        box = validate_bbox(bbox)
        opts = validate_options(options)
        key = request_key(box, opts.width, opts.height)

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        with self._in_flight_lock:
            future = self._in_flight.get(key)
            leader = future is None
            if leader:
                # a leader that finished between our miss and this lock has already cached
                cached = self.cache.peek(key)
                if cached is not None:
                    return cached
                future = Future()
                self._in_flight[key] = future

        if not leader:
            return self._await_leader(key, future)

        try:
            result = self._fetch_remote(key, box, opts)
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._in_flight_lock:
                self._in_flight.pop(key, None)

    def _await_leader(self, key: str, future: Future[SatelliteResult]) -> SatelliteResult:
        logger.info("Waiting for in-flight fetch of %s", key)
        try:
            return future.result(timeout=self.follower_timeout)
        except FutureTimeoutError as exc:
            raise TransportError(
                f"In-flight fetch of {key} did not finish within {self.follower_timeout}s",
                timed_out=True,
            ) from exc
        except SatelliteDataError as exc:
            # followers raise a copy; the leader's exception keeps its own traceback
            raise copy.copy(exc) from exc

    def _fetch_remote(self, key: str, bbox: BoundingBox, options: FetchOptions) -> SatelliteResult:
        credential = self.token_manager.get_token()

        logger.info("Fetching Sentinel data for bbox %s", list(bbox))
        now = self._now()
        body = build_process_request(bbox, options, now)
        content_type, raw = self.client.process(credential.token, body)

        boundary = extract_boundary(content_type)
        parts = decode_multipart(raw, boundary)
        logger.info("Decoded %d parts: %s", len(parts), ", ".join(sorted(parts)) or "none")

        analysis = self._derive(parts, bbox)
        result = SatelliteResult(
            truecolor=to_data_uri(parts.get("truecolor"), OUTPUT_FORMATS["truecolor"]),
            ndvi=to_data_uri(parts.get("ndvi"), OUTPUT_FORMATS["ndvi"]),
            ndwi=to_data_uri(parts.get("ndwi"), OUTPUT_FORMATS["ndwi"]),
            scl=to_data_uri(parts.get("scl"), OUTPUT_FORMATS["scl"]),
            metadata=ResultMetadata(
                timestamp=now.isoformat().replace("+00:00", "Z"),
                bbox=list(bbox),
                cloud_coverage=options.max_cloud_coverage,
                source=SOURCE_LABEL,
            ),
            analysis=analysis,
        )

        self.cache.set(key, result)
        self._events.emit(EventName.FETCH_COMPLETED, key=key, parts=len(parts))
        return result

    def historical_series(self, lon: float, lat: float, days: int = 30) -> list[HistoricalSample]:
        """Return ``days`` daily samples for the area around a point, oldest first.

        Samples are simulated deterministically from the location and date, so
        repeated calls for the same point and day agree.
        """
        if isinstance(days, bool) or not isinstance(days, int) or not 1 <= days <= MAX_HISTORICAL_DAYS:
            raise ValidationError(f"days must be an integer between 1 and {MAX_HISTORICAL_DAYS}")
        if not (math.isfinite(lon) and math.isfinite(lat)):
            raise ValidationError("lon and lat must be finite numbers")

        box = validate_bbox(
            [
                max(-180.0, lon - HISTORICAL_BBOX_HALF_WIDTH),
                max(-90.0, lat - HISTORICAL_BBOX_HALF_WIDTH),
                min(180.0, lon + HISTORICAL_BBOX_HALF_WIDTH),
                min(90.0, lat + HISTORICAL_BBOX_HALF_WIDTH),
            ]
        )
        location = ",".join(repr(coord) for coord in box)

        today = self._now().astimezone(UTC).date()
        samples = [_simulated_sample(location, today - timedelta(days=offset)) for offset in range(days)]
        return sorted(samples, key=lambda sample: sample.date)

    def clear_cache(self) -> int:
        removed = self.cache.clear()
        logger.info("Cache cleared, removed %d entries", removed)
        return removed

    def cache_stats(self) -> CacheStats:
        return self.cache.stats()


def _simulated_sample(location: str, day: date) -> HistoricalSample:
    digest = hashlib.sha256(f"{location}|{day.isoformat()}".encode()).digest()
    rng = np.random.default_rng(int.from_bytes(digest[:8], "big"))
    flood_risk, ndvi, water = rng.random(3)
    return HistoricalSample(
        date=day,
        flood_risk=round(0.2 + float(flood_risk) * 0.5, 3),
        ndvi=round(0.3 + float(ndvi) * 0.4, 3),
        water_extent=round(10 + float(water) * 40, 2),
    )
