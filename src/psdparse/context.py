"""
Per-file parse state.

A :py:class:`ParseContext` is created (or reset) at the start of every input
file and passed explicitly to each decoding step. It carries the merged-alpha
flag found in the layer section, the bounded warning counter, and the list of
events raised while parsing.

Example::

    from psdparse.context import ParseContext

    ctx = ParseContext(name="example.psd")
    ctx.warn("bad RLE count %d @ row %d", 10000, 3)
    assert ctx.warning_count == 1
"""

import logging
from enum import IntEnum
from typing import Any, Optional

from attrs import define, field

logger = logging.getLogger(__name__)

#: Number of counted warnings emitted per file before the rest are suppressed.
WARN_LIMIT = 10


class Severity(IntEnum):
    """Event severity, aligned with :py:mod:`logging` levels."""

    INFO = logging.INFO
    WARNING = logging.WARNING
    FATAL = logging.CRITICAL


@define(frozen=True)
class Event:
    """
    Something the decoder reports outward.

    .. py:attribute:: severity

        See :py:class:`.Severity`.

    .. py:attribute:: message

        Formatted message.

    .. py:attribute:: offset

        Absolute file offset the event refers to, when known.

    .. py:attribute:: always

        Set on warnings that bypass the per-file warning limit.
    """

    severity: Severity
    message: str
    offset: Optional[int] = None
    always: bool = False


@define
class ParseContext:
    """
    Mutable state threaded through one file's parse.

    .. py:attribute:: name

        Input name, used in log messages.

    .. py:attribute:: merged_alpha

        Set when the layer count is negative: the first extra channel of the
        merged image is its transparency.

    .. py:attribute:: warning_count

        Number of counted warnings raised so far, including suppressed ones.

    .. py:attribute:: events

        List of :py:class:`.Event`.
    """

    name: str = ""
    warn_limit: int = WARN_LIMIT
    merged_alpha: bool = False
    warning_count: int = 0
    events: list[Event] = field(factory=list)
    deferred: bool = field(default=False, repr=False)

    def reset(self, name: Optional[str] = None) -> None:
        """Clear all per-file state."""
        if name is not None:
            self.name = name
        self.merged_alpha = False
        self.warning_count = 0
        self.events = []

    def info(self, msg: str, *args: Any, offset: Optional[int] = None) -> None:
        """Record informational progress."""
        message = msg % args if args else msg
        self.events.append(Event(Severity.INFO, message, offset))
        if not self.deferred:
            logger.info(message)

    def warn(
        self,
        msg: str,
        *args: Any,
        offset: Optional[int] = None,
        always: bool = False,
    ) -> None:
        """
        Record a recoverable-corruption warning.

        Counted warnings past :py:attr:`warn_limit` are kept as events but no
        longer logged. ``always=True`` bypasses both the counter and the
        limit.
        """
        message = msg % args if args else msg
        self.events.append(Event(Severity.WARNING, message, offset, always))
        if self.deferred:
            if not always:
                self.warning_count += 1
            return
        if always:
            logger.warning("%s: %s", self.name, message)
            return
        if self.warning_count == self.warn_limit:
            logger.warning("%s: (further warnings suppressed)", self.name)
        self.warning_count += 1
        if self.warning_count <= self.warn_limit:
            logger.warning("%s: %s", self.name, message)

    def fatal(self, msg: str, *args: Any, offset: Optional[int] = None) -> None:
        """Record the condition that aborted this file."""
        message = msg % args if args else msg
        self.events.append(Event(Severity.FATAL, message, offset))
        logger.error("%s: %s", self.name, message)

    @property
    def warnings(self) -> list[Event]:
        return [e for e in self.events if e.severity == Severity.WARNING]

    @property
    def has_warnings(self) -> bool:
        return any(e.severity == Severity.WARNING for e in self.events)

    def fork(self) -> "ParseContext":
        """
        Child context for a worker. Events are buffered and replayed into the
        parent by :py:meth:`merge`.
        """
        return ParseContext(
            name=self.name,
            warn_limit=self.warn_limit,
            merged_alpha=self.merged_alpha,
            deferred=True,
        )

    def merge(self, child: "ParseContext") -> None:
        """Replay a forked context's events in order."""
        for event in child.events:
            if event.severity == Severity.WARNING:
                self.warn(event.message, offset=event.offset, always=event.always)
            elif event.severity == Severity.FATAL:
                self.fatal(event.message, offset=event.offset)
            else:
                self.info(event.message, offset=event.offset)
