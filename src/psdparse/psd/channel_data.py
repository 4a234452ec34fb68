"""
Channel pixel data decoding.

A channel group is a 16-bit compression tag followed by the data of one or
more channels that share it. Layer channels are stored one per group, each
with a byte length known from its layer record; the merged image stores all
of its channels in a single group whose length is not declared.

For RLE groups, the 16-bit byte counts of every scanline of every channel in
the group precede all pixel bytes::

    tag | counts[ch0][row0..rowN] ... counts[chM][...] | row data ...

:py:func:`decode_channels` turns the counts (or the fixed raw row size) into a
:py:class:`RowPositionTable` and then decodes each channel in channel-major
order by seeking to every scanline. Damaged rows are zero-filled and
reported on the :py:class:`~psdparse.context.ParseContext`; only an unreadable
count table aborts the file.
"""

import logging
from typing import Optional, TypeVar

from attrs import define, field

from psdparse.compression import decode_row, row_bytes
from psdparse.constants import Compression
from psdparse.context import ParseContext
from psdparse.errors import RLECountError, TruncatedInput
from psdparse.psd.bin_utils import ByteCursor, trimmed_repr

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="RowPositionTable")

#: Rows logged at the start and end of each channel in debug output.
CONTEXT_ROWS = 3


@define(repr=False)
class RowPositionTable:
    """
    Absolute start offset of every (channel, row), plus one past-the-end
    offset per channel.

    .. py:attribute:: positions

        ``positions[channel][row]`` for ``row`` in ``0..rows``; the last entry
        of each list is the end of that channel's data.
    """

    positions: list[list[int]] = field(factory=list)

    def __repr__(self) -> str:
        return "RowPositionTable(channels=%d, rows=%d)" % (
            len(self.positions),
            self.rows,
        )

    @property
    def rows(self) -> int:
        return len(self.positions[0]) - 1 if self.positions else 0

    def start(self, channel: int, row: int) -> int:
        return self.positions[channel][row]

    def span(self, channel: int, row: int) -> int:
        return self.positions[channel][row + 1] - self.positions[channel][row]

    def end(self, channel: int) -> int:
        return self.positions[channel][-1]

    def extent(self, channel: int) -> int:
        """Total stored bytes of a channel."""
        return self.end(channel) - self.start(channel, 0)

    @classmethod
    def raw(cls: type[T], start: int, channels: int, rows: int, row_size: int) -> T:
        """Evenly spaced uncompressed rows."""
        positions = []
        pos = start
        for _ in range(channels):
            row_positions = [pos + row * row_size for row in range(rows + 1)]
            pos = row_positions[-1]
            positions.append(row_positions)
        return cls(positions)

    @classmethod
    def from_counts(cls: type[T], start: int, counts: list[list[int]]) -> T:
        """Accumulate per-row byte counts starting at ``start``."""
        positions = []
        pos = start
        for channel_counts in counts:
            row_positions = [pos]
            for count in channel_counts:
                pos += count
                row_positions.append(pos)
            positions.append(row_positions)
        return cls(positions)


@define(repr=False)
class ChannelGroup:
    """
    Result of decoding one channel group.

    .. py:attribute:: compression

        :py:class:`~psdparse.constants.Compression` used, or ``None`` when the
        group was skipped.

    .. py:attribute:: channels

        One decoded stream per channel, each ``rows * row_bytes`` long.

    .. py:attribute:: row_positions

        The :py:class:`.RowPositionTable` the streams were read from.
    """

    rows: int
    cols: int
    depth: int
    compression: Optional[Compression] = None
    channels: list[bytes] = field(factory=list)
    row_positions: Optional[RowPositionTable] = None

    def __repr__(self) -> str:
        return "ChannelGroup(%s, %d channels, %dx%d, depth=%d)" % (
            self.compression.name if self.compression is not None else "skipped",
            len(self.channels),
            self.cols,
            self.rows,
            self.depth,
        )

    @property
    def skipped(self) -> bool:
        return self.compression is None

    @property
    def row_bytes(self) -> int:
        return row_bytes(self.cols, self.depth)

    @classmethod
    def skip(cls, rows: int, cols: int, depth: int) -> "ChannelGroup":
        return cls(rows, cols, depth)


def _read_counts(
    cursor: ByteCursor,
    ctx: ParseContext,
    channels: int,
    rows: int,
    row_size: int,
) -> list[list[int]]:
    counts = []
    for ch in range(channels):
        channel_counts = []
        last = row_size
        for row in range(rows):
            try:
                count = cursor.read_u16()
            except TruncatedInput as e:
                raise RLECountError(
                    "couldn't read RLE counts (channel %d, row %d)" % (ch, row)
                ) from e
            if count > 2 * row_size:
                # Heuristic only: reuse the previous plausible count.
                ctx.warn(
                    "bad RLE count %5d @ row %5d, using %d",
                    count,
                    row,
                    last,
                    offset=cursor.position() - 2,
                )
                count = last
            channel_counts.append(count)
            last = count
        counts.append(channel_counts)
    return counts


def _dump_row(row: int, data: bytes, count: Optional[int] = None) -> None:
    if count is None:
        logger.debug("   %5d: %s" % (row, trimmed_repr(data)))
    else:
        logger.debug("   %5d: <%5d> %s" % (row, count, trimmed_repr(data)))


def decode_channels(
    cursor: ByteCursor,
    ctx: ParseContext,
    channels: int,
    rows: int,
    cols: int,
    depth: int,
    length: Optional[int] = None,
) -> ChannelGroup:
    """
    Decode a channel group starting at the cursor.

    :param channels: number of channels sharing the compression tag.
    :param rows: scanlines per channel.
    :param cols: samples per scanline.
    :param depth: bits per sample.
    :param length: declared byte length of the group, including the tag.
        Known for layer channels only; when given, the cursor always ends at
        ``start + length``.
    :return: :py:class:`.ChannelGroup`.
    """
    start = cursor.position()
    row_size = row_bytes(cols, depth)
    if length is not None:
        logger.debug(
            ">>> channel group: %d channels filepos=%7d bytes=%7d"
            % (channels, start, length)
        )
        if length < 2:
            ctx.warn("channel too short (%d bytes)", length, offset=start, always=True)
            if length > 0:
                cursor.seek_forward(length)
            return ChannelGroup.skip(rows, cols, depth)
    else:
        logger.debug(">>> channel group: %d channels filepos=%7d" % (channels, start))

    try:
        tag = cursor.read_u16()
    except TruncatedInput:
        # Treated like an unknown tag; rows past the end are zero-filled.
        tag = None
    remaining = None if length is None else length - 2
    if tag in (Compression.RAW, Compression.RLE):
        compression = Compression(tag)
        logger.debug("    compression = %d (%s)" % (tag, compression.name))
    elif remaining is not None:
        if tag is None:
            ctx.warn("couldn't read compression type", offset=start, always=True)
        else:
            ctx.warn("bad compression type %d", tag, offset=start, always=True)
        if tag is None or remaining == rows * row_size:
            compression = Compression.RAW
        else:
            compression = Compression.RLE
        ctx.warn("guessing: %s", compression.name, always=True)
    else:
        if tag is None:
            ctx.warn(
                "couldn't read compression type, skipping channel",
                offset=start,
                always=True,
            )
        else:
            ctx.warn(
                "bad compression type %d, skipping channel",
                tag,
                offset=start,
                always=True,
            )
        return ChannelGroup.skip(rows, cols, depth)
    logger.debug(
        "    uncompressed size %d bytes (row bytes = %d)"
        % (channels * rows * row_size, row_size)
    )

    if compression == Compression.RLE:
        need = 2 * channels * rows
        if remaining is not None and remaining < need:
            ctx.warn(
                "channel too short for RLE row counts (need %d bytes, have %d bytes)",
                need,
                remaining,
                always=True,
            )
        counts = _read_counts(cursor, ctx, channels, rows, row_size)
        table = RowPositionTable.from_counts(cursor.position(), counts)
    else:
        table = RowPositionTable.raw(cursor.position(), channels, rows, row_size)

    decoded = []
    for ch in range(channels):
        logger.debug("    channel %d (@ %7d):" % (ch, table.start(ch, 0)))
        decoded.append(_decode_channel(cursor, ctx, table, ch, compression, row_size))

    if length is not None and cursor.position() != start + length:
        ctx.warn(
            "currentpos = %d, should be %d, resynchronized",
            cursor.position(),
            start + length,
            always=True,
        )
        cursor.seek_absolute(start + length)

    return ChannelGroup(rows, cols, depth, compression, decoded, table)


def _decode_channel(
    cursor: ByteCursor,
    ctx: ParseContext,
    table: RowPositionTable,
    ch: int,
    compression: Compression,
    row_size: int,
) -> bytes:
    rows = table.rows
    result = bytearray()
    for row in range(rows):
        dump = row < CONTEXT_ROWS or row >= rows - CONTEXT_ROWS
        if rows > 3 * CONTEXT_ROWS and row == rows - CONTEXT_ROWS:
            logger.debug("    ...%d rows not shown..." % (rows - 2 * CONTEXT_ROWS))
        cursor.seek_absolute(table.start(ch, row))
        span = table.span(ch, row)
        data = cursor.read(span)
        short = len(data) < span
        if short:
            ctx.warn(
                "couldn't read %s row %d (%d of %d bytes)",
                "RLE" if compression == Compression.RLE else "raw",
                row,
                len(data),
                span,
                offset=table.start(ch, row),
            )
        if compression == Compression.RLE:
            if dump:
                _dump_row(row, data, span)
            data, complete = decode_row(data, row_size)
            if not complete and not short:
                ctx.warn("RLE row %d decoded short, zero-filled", row)
        else:
            if dump:
                _dump_row(row, data)
            data = data.ljust(row_size, b"\x00")
        result += data
    cursor.seek_absolute(table.end(ch))
    return bytes(result)
