import pytest

from fakes import BOUNDARY, PNG_BYTES, encode_multipart
from flood_twin.satellite.errors import MalformedResponseError
from flood_twin.satellite.multipart import decode_multipart, extract_boundary


def _binary_parts() -> dict[str, bytes]:
    return {
        "truecolor": PNG_BYTES,
        "ndvi": b"II*\x00" + bytes(range(255, -1, -1)),
        "ndwi": b"\xff\xfe\r\n\r\n--not-the-boundary\x00",
        "scl": b"",
    }


def test_decode_returns_every_named_part_unchanged() -> None:
    parts = _binary_parts()

    decoded = decode_multipart(encode_multipart(parts), BOUNDARY)

    assert decoded == parts


def test_closing_boundary_and_end_of_buffer_give_identical_results() -> None:
    parts = _binary_parts()

    with_closing = decode_multipart(encode_multipart(parts, closing=True), BOUNDARY)
    without_closing = decode_multipart(encode_multipart(parts, closing=False), BOUNDARY)

    assert with_closing == without_closing == parts


def test_decode_skips_parts_without_content_id() -> None:
    body = (
        f"--{BOUNDARY}\r\nContent-Type: application/json\r\n\r\n{{}}\r\n".encode()
        + encode_multipart({"ndvi": b"\x01\x02"})
    )

    assert decode_multipart(body, BOUNDARY) == {"ndvi": b"\x01\x02"}


def test_decode_without_matching_parts_returns_empty_mapping() -> None:
    body = f"--{BOUNDARY}\r\nContent-Type: text/plain\r\n\r\nhello\r\n--{BOUNDARY}--\r\n".encode()

    assert decode_multipart(body, BOUNDARY) == {}
    assert decode_multipart(b"", BOUNDARY) == {}
    assert decode_multipart(b"no boundaries here", BOUNDARY) == {}


def test_decode_ignores_content_after_closing_boundary() -> None:
    body = encode_multipart({"ndvi": b"\x01"}) + encode_multipart({"ndwi": b"\x02"})

    assert decode_multipart(body, BOUNDARY) == {"ndvi": b"\x01"}


def test_decode_accepts_case_insensitive_content_id_header() -> None:
    body = f"--{BOUNDARY}\r\ncontent-id: <scl>\r\n\r\n".encode() + b"\x06\x06" + f"\r\n--{BOUNDARY}--".encode()

    assert decode_multipart(body, BOUNDARY) == {"scl": b"\x06\x06"}


def test_decode_raises_when_header_terminator_missing() -> None:
    body = f"--{BOUNDARY}\r\nContent-ID: <ndvi>\r\n".encode() + b"\x00\x01"

    with pytest.raises(MalformedResponseError):
        decode_multipart(body, BOUNDARY)


def test_decode_does_not_borrow_header_terminator_from_next_part() -> None:
    body = (
        f"--{BOUNDARY}\r\nContent-ID: <ndvi>\r\n"
        f"--{BOUNDARY}\r\nContent-ID: <ndwi>\r\n\r\nNDWI-DATA\r\n"
        f"--{BOUNDARY}--\r\n"
    ).encode()

    with pytest.raises(MalformedResponseError):
        decode_multipart(body, BOUNDARY)


def test_decode_does_not_look_past_closing_boundary_for_header_terminator() -> None:
    body = f"--{BOUNDARY}\r\nContent-ID: <ndvi>\r\n--{BOUNDARY}--\r\n\r\n".encode()

    with pytest.raises(MalformedResponseError):
        decode_multipart(body, BOUNDARY)


def test_decode_rejects_empty_boundary() -> None:
    with pytest.raises(MalformedResponseError):
        decode_multipart(encode_multipart({"ndvi": b"\x01"}), "")


def test_decode_accepts_bytearray_and_memoryview() -> None:
    body = encode_multipart({"ndvi": b"\x01\x02"})

    assert decode_multipart(bytearray(body), BOUNDARY) == {"ndvi": b"\x01\x02"}
    assert decode_multipart(memoryview(body), BOUNDARY) == {"ndvi": b"\x01\x02"}


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("multipart/mixed; boundary=abc123", "abc123"),
        ('multipart/mixed; boundary="quoted boundary"', "quoted boundary"),
        ("multipart/mixed; boundary=abc123; charset=utf-8", "abc123"),
        ("multipart/mixed; BOUNDARY=UPPER", "UPPER"),
    ],
)
def test_extract_boundary(content_type: str, expected: str) -> None:
    assert extract_boundary(content_type) == expected


@pytest.mark.parametrize("content_type", ["application/json", "", None])
def test_extract_boundary_missing(content_type) -> None:
    with pytest.raises(MalformedResponseError):
        extract_boundary(content_type)
