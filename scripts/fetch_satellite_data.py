#!/usr/bin/env python3
"""Fetch satellite data for a bounding box from a running Flood Twin API."""

from __future__ import annotations

import argparse
import base64
import json
import sys
import threading
import time
from pathlib import Path
from typing import Any

import httpx


def parse_args() -> argparse.Namespace:
    """Parse command-line options."""
    parser = argparse.ArgumentParser(
        description="POST a bounding box to /api/satellite-data and print the analysis.",
    )
    parser.add_argument("--api-base", default="http://127.0.0.1:8000", help="Flood Twin API base URL")
    parser.add_argument(
        "--bbox",
        type=float,
        nargs=4,
        metavar=("MIN_LON", "MIN_LAT", "MAX_LON", "MAX_LAT"),
        default=[-122.5, 37.7, -122.3, 37.9],
        help="Bounding box in WGS84 degrees",
    )
    parser.add_argument("--width", type=int, default=512, help="Output width in pixels")
    parser.add_argument("--height", type=int, default=512, help="Output height in pixels")
    parser.add_argument("--max-cloud-coverage", type=float, default=30.0, help="Maximum scene cloud cover, percent")
    parser.add_argument("--api-key", default=None, help="X-API-Key header, when the server requires one")
    parser.add_argument(
        "--timeout-seconds",
        type=float,
        default=180.0,
        help="HTTP timeout in seconds (set 0 for no timeout)",
    )
    parser.add_argument(
        "--save-truecolor",
        type=Path,
        default=None,
        help="Write the true-colour PNG to this path",
    )
    parser.add_argument(
        "--output-mode",
        choices=["summary", "full"],
        default="summary",
        help="Print metadata and analysis only, or the whole response",
    )
    return parser.parse_args()


def _strip_images(data: dict[str, Any]) -> dict[str, Any]:
    """Replace data URIs with their decoded size so the summary stays readable."""
    slim = dict(data)
    for name in ("truecolor", "ndvi", "ndwi", "scl"):
        uri = slim.get(name)
        if isinstance(uri, str):
            slim[name] = f"<{len(_decode_data_uri(uri))} bytes>"
    return slim


def _decode_data_uri(uri: str) -> bytes:
    _, _, encoded = uri.partition(",")
    return base64.b64decode(encoded)


def _print_response(body: dict[str, Any], *, output_mode: str) -> None:
    data = body.get("data")
    if output_mode == "full" or not isinstance(data, dict):
        print(json.dumps(body, indent=2))
        return

    print(json.dumps(_strip_images(data), indent=2))


def main() -> int:
    """Execute the satellite-data request and print the response."""
    args = parse_args()
    payload: dict[str, Any] = {
        "bbox": args.bbox,
        "options": {
            "width": args.width,
            "height": args.height,
            "maxCloudCoverage": args.max_cloud_coverage,
        },
    }
    headers = {"X-API-Key": args.api_key} if args.api_key else {}
    endpoint = f"{args.api_base.rstrip('/')}/api/satellite-data"
    stop_event = threading.Event()

    def _show_progress() -> None:
        symbols = [".  ", ".. ", "..."]
        index = 0
        while not stop_event.is_set():
            sys.stdout.write(f"\rFetching imagery{symbols[index % len(symbols)]}")
            sys.stdout.flush()
            index += 1
            time.sleep(0.5)
        sys.stdout.write("\rFetching imagery... done\n")
        sys.stdout.flush()

    timeout = None if args.timeout_seconds == 0 else args.timeout_seconds
    progress_thread = threading.Thread(target=_show_progress, daemon=True)
    progress_thread.start()
    try:
        response = httpx.post(endpoint, json=payload, headers=headers, timeout=timeout)
    except httpx.TimeoutException:
        print(f"\nPOST {endpoint}", file=sys.stderr)
        print(
            "Request timed out on the client side. "
            "Try a larger --timeout-seconds value (or --timeout-seconds 0 for no timeout).",
            file=sys.stderr,
        )
        return 1
    except httpx.HTTPError as exc:
        print(f"\nPOST {endpoint} failed: {exc}", file=sys.stderr)
        return 1
    finally:
        stop_event.set()
        progress_thread.join(timeout=2.0)

    print(f"POST {endpoint}")
    print(f"HTTP {response.status_code}")
    try:
        body = response.json()
    except ValueError:
        print(response.text)
        return 1

    if isinstance(body, dict):
        _print_response(body, output_mode=args.output_mode)
    else:
        print(json.dumps(body, indent=2))

    if response.is_success and args.save_truecolor is not None:
        truecolor = body.get("data", {}).get("truecolor")
        if truecolor:
            args.save_truecolor.write_bytes(_decode_data_uri(truecolor))
            print(f"Wrote true-colour image to {args.save_truecolor}")
        else:
            print("Response has no true-colour image", file=sys.stderr)

    return 0 if response.is_success else 1


if __name__ == "__main__":
    raise SystemExit(main())
