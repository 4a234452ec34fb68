import argparse
import logging
import os
from typing import Optional

from psdparse.api.psd_image import Outcome, ParseResult, process_files
from psdparse.version import __version__

logger = logging.getLogger(__name__)

DIR_SUFFIX = "_png"
LIST_NAME = "list.txt"


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="psdparse",
        description="Decode PSD files and extract raster layers and the merged image.",
    )
    parser.add_argument("files", nargs="+", metavar="psdfile", help="Input PSD file")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="print more information"
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="work silently")
    parser.add_argument(
        "-w",
        "--writepng",
        action="store_true",
        help="write PNG files of each raster layer (and merged composite)",
    )
    parser.add_argument(
        "-n",
        "--numbered",
        action="store_true",
        help="use 'layerNN' name for file, instead of actual layer name",
    )
    parser.add_argument(
        "-d",
        "--pngdir",
        metavar="dir",
        help="put PNGs in directory (implies --writepng)",
    )
    parser.add_argument(
        "-m",
        "--makedirs",
        action="store_true",
        help="create subdirectory for PNG if layer name contains %s's" % os.sep,
    )
    parser.add_argument(
        "-l",
        "--list",
        action="store_true",
        help="write an 'asset list' of layer sizes and positions",
    )
    parser.add_argument(
        "-s",
        "--split",
        action="store_true",
        help="write each composite channel to individual (grey scale) PNG",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="number of threads decoding layer channels",
    )
    parser.add_argument("--version", action="version", version=__version__)
    args = parser.parse_args(argv)
    if args.pngdir:
        args.writepng = True
    return args


def output_dir(path: str, pngdir: Optional[str] = None) -> str:
    """Output directory for an input file."""
    if pngdir:
        return pngdir
    return os.path.splitext(path)[0] + DIR_SUFFIX


def write_list(result: ParseResult, directory: str) -> None:
    os.makedirs(directory, exist_ok=True)
    with open(os.path.join(directory, LIST_NAME), "w") as f:
        f.write("-- PSD file: %s\n" % result.path)
        if result.psdfile is not None:
            result.psdfile.write_asset_list(f)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(level=logging.WARNING)
    if args.verbose:
        logging.getLogger("psdparse").setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger("psdparse").setLevel(logging.ERROR)
    else:
        logging.getLogger("psdparse").setLevel(logging.INFO)

    status = 0
    for result in process_files(args.files, workers=args.workers):
        directory = output_dir(result.path, args.pngdir)
        try:
            if args.list:
                write_list(result, directory)
            if result.psdfile is not None and args.writepng:
                result.psdfile.save(
                    directory,
                    split_channels=args.split,
                    numbered=args.numbered,
                    makedirs=args.makedirs,
                )
        except OSError as e:
            logger.error('"%s": couldn\'t write output: %s' % (result.path, e))
            status = 1

        if result.outcome == Outcome.FATAL:
            status = 1
        else:
            logger.info(
                "  done%s."
                % (" with warnings" if result.outcome == Outcome.WARNINGS else "")
            )
    return status


if __name__ == "__main__":
    main()
