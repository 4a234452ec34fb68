from typing import Iterator

import pytest

from psdparse.constants import ColorMode
from psdparse.context import Severity
from psdparse.errors import FatalError, HeaderError, TruncatedInput
from psdparse.psd.bin_utils import ByteCursor
from psdparse.psd.header import FileHeader

from ..utils import header


@pytest.fixture
def fixture() -> Iterator[bytes]:
    yield (
        b"8BPS\x00\x01\x00\x00\x00\x00\x00\x00\x00\x03\x00\x00\x00\x96\x00"
        b"\x00\x00d\x00 \x00\x03"
    )


def test_header_read(fixture: bytes) -> None:
    cursor = ByteCursor.frombytes(fixture)
    header = FileHeader.read(cursor)
    assert header.signature == b"8BPS"
    assert header.version == 1
    assert header.channels == 3
    assert header.height == 150
    assert header.width == 100
    assert header.depth == 32
    assert header.color_mode == ColorMode.RGB
    assert header.rows == 150
    assert header.cols == 100
    assert cursor.position() == 26


@pytest.mark.parametrize(
    "channels, height, width, depth, color_mode",
    [
        (1, 1, 1, 1, ColorMode.BITMAP),
        (4, 359, 400, 8, ColorMode.CMYK),
        (64, 0x7FFFFFFF, 30000, 16, ColorMode.LAB),
        (2, 10, 10, 8, ColorMode.DUOTONE16),
    ],
)
def test_header_fields(ctx, channels, height, width, depth, color_mode) -> None:
    data = header(channels, height, width, depth, color_mode)
    parsed = FileHeader.read(ByteCursor.frombytes(data), ctx)
    assert (
        parsed.channels,
        parsed.height,
        parsed.width,
        parsed.depth,
        parsed.color_mode,
    ) == (channels, height, width, depth, color_mode)
    assert not ctx.has_warnings
    assert ctx.events[0].severity == Severity.INFO


def test_header_unknown_mode_kept(ctx) -> None:
    parsed = FileHeader.read(ByteCursor.frombytes(header(color_mode=42)), ctx)
    assert parsed.color_mode == 42
    assert not isinstance(parsed.color_mode, ColorMode)
    assert "???" in ctx.events[0].message


def test_header_unusual_depth_warns(ctx) -> None:
    parsed = FileHeader.read(ByteCursor.frombytes(header(depth=5)), ctx)
    assert parsed.depth == 5
    assert ctx.warning_count == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(signature=b"8BPX"),
        dict(version=2),
        dict(channels=0),
        dict(channels=65),
        dict(height=0),
        dict(width=0),
        dict(height=0x80000000),
        dict(depth=33),
    ],
)
def test_header_exception(kwargs) -> None:
    with pytest.raises(HeaderError):
        FileHeader.read(ByteCursor.frombytes(header(**kwargs)))


def test_header_is_fatal(fixture: bytes) -> None:
    with pytest.raises(FatalError):
        FileHeader.read(ByteCursor.frombytes(b" " + fixture))
    with pytest.raises(ValueError):
        FileHeader.read(ByteCursor.frombytes(b" " + fixture))


def test_header_truncated(fixture: bytes) -> None:
    with pytest.raises(TruncatedInput):
        FileHeader.read(ByteCursor.frombytes(fixture[:20]))
