"""Decoder for the multipart bodies returned by the Sentinel Hub Process API.

Part bodies are raster/image bytes and are sliced verbatim; only the per-part
header blocks are ever decoded as text.
"""

import re

from .errors import MalformedResponseError

HEADER_TERMINATOR = b"\r\n\r\n"

_BOUNDARY_RE = re.compile(r"""boundary=(?:"([^"]+)"|([^;\s]+))""", re.IGNORECASE)
_CONTENT_ID_RE = re.compile(r"^Content-ID:[ \t]*<([^>]+)>", re.IGNORECASE | re.MULTILINE)


def extract_boundary(content_type: str | None) -> str:
    """Return the boundary parameter of a multipart content-type header."""
    match = _BOUNDARY_RE.search(content_type or "")
    if match is None:
        raise MalformedResponseError(f"No multipart boundary in content-type {content_type!r}")
    return match.group(1) or match.group(2)


def _strip_line_break(buffer: bytes, start: int, end: int) -> int:
    if end - start >= 2 and buffer[end - 2 : end] == b"\r\n":
        return end - 2
    if end - start >= 1 and buffer[end - 1 : end] == b"\n":
        return end - 1
    return end


def decode_multipart(buffer: bytes, boundary: str) -> dict[str, bytes]:
    """Split a multipart body into ``{content_id: body_bytes}``.

    The scan stops at the closing ``--boundary--`` marker when present and at
    the end of the buffer otherwise. Parts without a ``Content-ID`` header are
    skipped.
    """
    if not boundary:
        raise MalformedResponseError("Empty multipart boundary")

    data = bytes(buffer)
    marker = f"--{boundary}".encode("latin-1")
    closing = marker + b"--"

    end = data.find(closing)
    if end == -1:
        end = len(data)

    parts: dict[str, bytes] = {}
    pos = data.find(marker)
    while pos != -1 and pos < end:
        next_marker = data.find(marker, pos + len(marker))
        part_end = end if next_marker == -1 or next_marker > end else next_marker

        # the header block must end inside this part
        headers_end = data.find(HEADER_TERMINATOR, pos, part_end)
        if headers_end == -1:
            raise MalformedResponseError(f"Multipart part at offset {pos} has no header terminator")

        body_start = headers_end + len(HEADER_TERMINATOR)
        headers = data[pos + len(marker) : headers_end].decode("latin-1")

        match = _CONTENT_ID_RE.search(headers)
        if match is not None:
            body_end = max(body_start, _strip_line_break(data, body_start, part_end))
            parts[match.group(1).strip()] = data[body_start:body_end]

        pos = next_marker

    return parts
