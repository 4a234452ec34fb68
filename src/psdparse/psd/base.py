"""
Resynchronization points for length-prefixed sections.

Every length-prefixed structure in a PSD file is parsed in two steps: read
the contents, then position the cursor at the declared end regardless of
what the contents parser consumed. :py:func:`read_section` packages both
steps so a corrupt sub-block cannot desynchronize the structures after it.

Example::

    with read_section(cursor, ctx, "color mode data") as section:
        data = cursor.read(section.length)
    # cursor is now at section.end
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from attrs import define

from psdparse.context import ParseContext
from psdparse.psd.bin_utils import ByteCursor

logger = logging.getLogger(__name__)


@define
class Section:
    """
    A length-prefixed region of the file.

    .. py:attribute:: name
    .. py:attribute:: start

        Offset of the first byte after the length field.

    .. py:attribute:: length

        Declared byte length.

    .. py:attribute:: trailer_expected

        Set by the contents parser when bytes may legitimately remain unread
        (padding, unparsed trailing blocks); stopping short is then
        informational instead of a warning.
    """

    name: str
    start: int
    length: int
    trailer_expected: bool = False

    @property
    def end(self) -> int:
        return self.start + self.length

    def remaining(self, cursor: ByteCursor) -> int:
        return self.end - cursor.position()

    def resync(self, cursor: ByteCursor, ctx: ParseContext) -> None:
        """Position the cursor at the declared end, reporting any mismatch."""
        current = cursor.position()
        if current > self.end:
            ctx.warn(
                "%s overran declared length by %d bytes, resynchronized",
                self.name,
                current - self.end,
                offset=current,
            )
        elif current < self.end:
            if self.trailer_expected:
                logger.debug(
                    "  skipped %d bytes at end of %s" % (self.end - current, self.name)
                )
            else:
                ctx.warn(
                    "skipped %d bytes at end of %s",
                    self.end - current,
                    self.name,
                    offset=current,
                )
        cursor.seek_absolute(self.end)


@contextmanager
def read_section(
    cursor: ByteCursor, ctx: ParseContext, name: str
) -> Iterator[Section]:
    """
    Read a 4-byte length and yield the :py:class:`Section`. The cursor is
    moved to the section end when the block exits normally.
    """
    length = cursor.read_u32()
    section = Section(name, cursor.position(), length)
    logger.debug("reading %s, len=%d, offset=%d" % (name, length, section.start))
    yield section
    section.resync(cursor, ctx)


def skip_block(cursor: ByteCursor, ctx: ParseContext, name: str) -> int:
    """Skip an uninterpreted length-prefixed block, return its length."""
    with read_section(cursor, ctx, name) as section:
        if section.length:
            logger.debug("  ...skipped %s (%d bytes)" % (name, section.length))
        else:
            logger.debug("  (%s is empty)" % name)
        section.trailer_expected = True
    return section.length
