"""
File-level API.

:py:class:`PSDFile` opens one document and exposes its output images;
:py:func:`parse_file` and :py:func:`process_files` wrap parsing so that a
fatal condition in one file is reported as an outcome instead of an
exception, and a batch always continues with the next input.

Example::

    from psdparse import PSDFile

    psdfile = PSDFile.open('example.psd')
    for image in psdfile.images():
        print(image.name, image.model, image.cols, image.rows)
    psdfile.save('example_png')
"""

import io
import logging
import os
from enum import Enum
from typing import BinaryIO, Iterable, Iterator, Optional, TextIO, Union

from attrs import define, field

from psdparse.api import pil_io
from psdparse.api.assembler import ImageAssembler, OutputImage, sanitize_name
from psdparse.constants import ColorMode
from psdparse.context import Event, ParseContext
from psdparse.errors import FatalError
from psdparse.psd.document import PSD
from psdparse.psd.layer_and_mask import Opener

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """Result of processing one input."""

    OK = "ok"
    WARNINGS = "warnings"
    FATAL = "fatal"


class PSDFile:
    """
    Parsed PSD document together with its parse context.

    :param psd: :py:class:`~psdparse.psd.document.PSD`.
    :param ctx: context the document was parsed with.
    :param name: base name used for the merged image.
    """

    def __init__(self, psd: PSD, ctx: ParseContext, name: str = "image"):
        if not isinstance(psd, PSD):
            raise TypeError(f"Expected PSD instance, got {type(psd).__name__}")
        self._record = psd
        self._ctx = ctx
        self.name = name

    def __repr__(self) -> str:
        return "PSDFile(%r, %r)" % (self.name, self._record)

    @classmethod
    def open(
        cls,
        fp: Union[BinaryIO, str, bytes, os.PathLike],
        ctx: Optional[ParseContext] = None,
        workers: int = 1,
        **kwargs: object,
    ) -> "PSDFile":
        """
        Open a PSD document.

        :param fp: filename, bytes or file-like object.
        :param ctx: context to parse with; it is reset first.
        :param workers: size of the per-layer decode pool.
        :param encoding: charset encoding of the pascal strings within the
            file, default 'macroman'.
        :raise psdparse.errors.FatalError: when the file cannot be processed.
        """
        if ctx is None:
            ctx = ParseContext()
        if isinstance(fp, bytes):
            name = "image"
            ctx.reset(name)
            data = fp

            def opener() -> BinaryIO:
                return io.BytesIO(data)

            with opener() as f:
                psd = PSD.read(f, ctx, workers=workers, opener=opener, **kwargs)  # type: ignore[arg-type]
        elif isinstance(fp, (str, os.PathLike)):
            path = os.fspath(fp)
            name = os.path.basename(path)
            ctx.reset(name)

            def opener() -> BinaryIO:
                return open(path, "rb")

            with opener() as f:
                psd = PSD.read(f, ctx, workers=workers, opener=opener, **kwargs)  # type: ignore[arg-type]
        else:
            name = os.path.basename(getattr(fp, "name", "image") or "image")
            ctx.reset(name)
            psd = PSD.read(fp, ctx, workers=workers, opener=_opener_for(fp), **kwargs)  # type: ignore[arg-type]
        return cls(psd, ctx, name)

    @property
    def record(self) -> PSD:
        """Low-level :py:class:`~psdparse.psd.document.PSD`."""
        return self._record

    @property
    def context(self) -> ParseContext:
        return self._ctx

    @property
    def color_mode(self) -> Union[ColorMode, int]:
        return self._record.header.color_mode

    @property
    def width(self) -> int:
        return self._record.header.width

    @property
    def height(self) -> int:
        return self._record.header.height

    @property
    def palette(self) -> Optional[bytes]:
        if self.color_mode == ColorMode.INDEXED:
            return self._record.color_mode_data.interleave()
        return None

    def images(
        self, split_channels: bool = False, numbered: bool = False
    ) -> Iterator[OutputImage]:
        """Output images for every layer, then the merged image."""
        assembler = ImageAssembler(self._record, self._ctx, split_channels, numbered)
        return assembler.images(self.name)

    def save(
        self,
        directory: str,
        split_channels: bool = False,
        numbered: bool = False,
        makedirs: bool = False,
    ) -> list[str]:
        """
        Write every output image as PNG into ``directory``.

        :return: list of written paths.
        """
        os.makedirs(directory, exist_ok=True)
        written = []
        palette = self.palette
        for image in self.images(split_channels, numbered):
            try:
                path = pil_io.save_png(image, directory, palette, makedirs)
            except ValueError as e:
                self._ctx.warn('not writing "%s": %s', image.name, e, always=True)
                continue
            if path:
                written.append(path)
        logger.debug("wrote %d images to %s" % (len(written), directory))
        return written

    def asset_list(self) -> list[tuple[str, int, int, int, int]]:
        """(name, left, top, width, height) of every layer with pixels."""
        items = []
        for record in self._record.layer_info.layer_records:
            if record.skipped or not (record.width and record.height):
                continue
            name = sanitize_name(record.display_name)
            items.append((name, record.left, record.top, record.width, record.height))
        return items

    def write_asset_list(self, fp: TextIO) -> None:
        """Write the asset list in its Lua-table text form."""
        fp.write("assetlist = {\n")
        for name, left, top, width, height in self.asset_list():
            fp.write(
                '\t"%s" = { pos={%4d,%4d}, size={%4d,%4d} },\n'
                % (name, left, top, width, height)
            )
        fp.write("}\n")


def _opener_for(fp: BinaryIO) -> Optional[Opener]:
    if isinstance(fp, io.BytesIO):
        data = fp.getvalue()
        return lambda: io.BytesIO(data)
    name = getattr(fp, "name", None)
    if isinstance(name, str) and os.path.isfile(name):
        return lambda: open(name, "rb")
    return None


@define(repr=False)
class ParseResult:
    """
    Outcome of processing one input.

    .. py:attribute:: path
    .. py:attribute:: outcome

        See :py:class:`.Outcome`.

    .. py:attribute:: psdfile

        :py:class:`.PSDFile`, ``None`` when fatal.

    .. py:attribute:: error

        Message of the fatal condition.

    .. py:attribute:: events

        List of :py:class:`~psdparse.context.Event` raised for the input.
    """

    path: str
    outcome: Outcome
    psdfile: Optional[PSDFile] = None
    error: Optional[str] = None
    events: list[Event] = field(factory=list)

    def __repr__(self) -> str:
        return "ParseResult(%r, %s%s)" % (
            self.path,
            self.outcome.name,
            ", %r" % self.error if self.error else "",
        )

    @property
    def ok(self) -> bool:
        return self.outcome != Outcome.FATAL


def parse_file(
    path: Union[str, os.PathLike],
    ctx: Optional[ParseContext] = None,
    workers: int = 1,
    **kwargs: object,
) -> ParseResult:
    """
    Parse one file without raising on fatal conditions.

    :return: :py:class:`.ParseResult`.
    """
    path = os.fspath(path)
    if ctx is None:
        ctx = ParseContext()
    ctx.reset(os.path.basename(path))
    try:
        psdfile = PSDFile.open(path, ctx, workers=workers, **kwargs)
    except FatalError as e:
        ctx.fatal("%s", e)
        return ParseResult(path, Outcome.FATAL, error=str(e), events=ctx.events)
    except MemoryError:
        ctx.fatal("can't get memory")
        return ParseResult(
            path, Outcome.FATAL, error="can't get memory", events=ctx.events
        )
    except OSError as e:
        ctx.fatal("couldn't open: %s", e)
        return ParseResult(path, Outcome.FATAL, error=str(e), events=ctx.events)

    outcome = Outcome.WARNINGS if ctx.has_warnings else Outcome.OK
    return ParseResult(path, outcome, psdfile, events=ctx.events)


def process_files(
    paths: Iterable[Union[str, os.PathLike]], workers: int = 1, **kwargs: object
) -> Iterator[ParseResult]:
    """Parse files in turn with a fresh context each."""
    for path in paths:
        logger.info('"%s"' % os.fspath(path))
        yield parse_file(path, ParseContext(), workers=workers, **kwargs)
