"""
Scanline codecs for PSD channel data.

Channel data is stored either RAW or as PackBits RLE (see
:py:mod:`psdparse.compression.rle`). RLE channels begin with a table of
16-bit byte counts, one per scanline, followed by the encoded scanlines.

Key functions:

- :py:func:`row_bytes`: Size of one uncompressed scanline
- :py:func:`decode_row`: Decode one RLE scanline to exactly one row
- :py:func:`encode_rle`: Encode a plane into a count table and scanlines
"""

import array
import io
import logging
import sys

from psdparse.compression import rle

logger = logging.getLogger(__name__)


def row_bytes(width: int, depth: int) -> int:
    """Bytes in one scanline of ``width`` samples at ``depth`` bits."""
    return (width * depth + 7) // 8


def decode_row(data: bytes, row_size: int) -> tuple[bytes, bool]:
    """
    Decode one RLE scanline.

    :param data: encoded scanline bytes.
    :param row_size: expected decoded size.
    :return: tuple of the zero-padded row and whether decoding was complete.
    """
    return rle.decode(data, row_size)


def encode_rle(data: bytes, width: int, height: int, depth: int) -> bytes:
    """
    Encode a plane as stored in a PSD channel: big-endian 16-bit scanline
    byte counts followed by the PackBits scanlines.

    :param data: raw plane bytes, ``height * row_bytes(width, depth)`` long.
    :return: encoded bytes without the compression tag.
    """
    row_size = row_bytes(width, depth)
    with io.BytesIO(data) as fp:
        rows = [rle.encode(fp.read(row_size)) for _ in range(height)]
    counts = array.array("H", map(len, rows))
    if sys.byteorder == "little":
        counts.byteswap()
    logger.debug("encoded %d rows, len=%d" % (height, sum(len(r) for r in rows)))
    return counts.tobytes() + b"".join(rows)
