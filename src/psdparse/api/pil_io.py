"""
PIL IO module.

Image writer for :py:class:`~psdparse.api.assembler.OutputImage`: channel
streams are de-interleaved planes, numpy stacks them into pixels and Pillow
encodes the result.
"""

import logging
import os
from typing import Optional

import numpy as np
from PIL import Image

from psdparse.api.assembler import OutputImage
from psdparse.constants import ColorModel

logger = logging.getLogger(__name__)


def _parse_plane(data: bytes, rows: int, cols: int, depth: int) -> np.ndarray:
    """Decode one channel stream to a (rows, cols) array."""
    if depth == 1:
        packed = np.frombuffer(data, np.uint8).reshape((rows, -1))
        bits = np.unpackbits(packed, axis=1)[:, :cols]
        # In PSD bitmaps 1 is black.
        return np.where(bits, 0, 255).astype(np.uint8)
    elif depth == 8:
        return np.frombuffer(data, np.uint8).reshape((rows, cols))
    elif depth == 16:
        return np.frombuffer(data, ">u2").reshape((rows, cols))
    elif depth == 32:
        return np.frombuffer(data, ">f4").reshape((rows, cols))
    raise ValueError("Unsupported depth %d" % depth)


def _to_uint8(array: np.ndarray, depth: int) -> np.ndarray:
    if depth == 16:
        return (array >> 8).astype(np.uint8)
    if depth == 32:
        return (np.clip(array, 0.0, 1.0) * 255 + 0.5).astype(np.uint8)
    return array.astype(np.uint8)


def get_array(image: OutputImage) -> np.ndarray:
    """Pixel array of shape (rows, cols, channels) in the stored precision."""
    planes = [
        _parse_plane(channel, image.rows, image.cols, image.depth)
        for channel in image.channels
    ]
    return np.stack(planes, axis=-1)


def topil(image: OutputImage, palette: Optional[bytes] = None) -> Image.Image:
    """
    Convert to a PIL Image.

    16-bit single channel images keep their precision (``I;16``); other deep
    images are reduced to 8 bits.

    :param image: :py:class:`~psdparse.api.assembler.OutputImage`.
    :param palette: interleaved RGB palette for
        :py:attr:`~psdparse.constants.ColorModel.PALETTE` images.
    """
    size = (image.cols, image.rows)
    array = get_array(image)
    if image.depth == 16 and image.model == ColorModel.GRAY:
        return Image.frombytes("I;16", size, array[:, :, 0].astype("<u2").tobytes())

    data = _to_uint8(array, image.depth)
    pil_image = Image.frombytes(image.model.value, size, data.tobytes())
    if image.model == ColorModel.PALETTE and palette:
        pil_image.putpalette(palette)
    return pil_image


def output_path(
    directory: str, name: str, makedirs: bool = False, ext: str = ".png"
) -> str:
    """
    File path for an output name. Path separators in the name create
    subdirectories when ``makedirs`` is set and are replaced otherwise.
    """
    if makedirs:
        parts = [p for p in name.split(os.sep) if p and p != ".."]
        path = os.path.join(directory, *parts) if parts else os.path.join(directory, "_")
        os.makedirs(os.path.dirname(path), exist_ok=True)
    else:
        path = os.path.join(directory, name.replace(os.sep, "_"))
    return path + ext


def save_png(
    image: OutputImage,
    directory: str,
    palette: Optional[bytes] = None,
    makedirs: bool = False,
) -> Optional[str]:
    """
    Write an image as PNG. Empty images are not written.

    :return: path written, or ``None``.
    """
    if image.is_empty:
        logger.debug("not writing empty image %r" % image.name)
        return None
    path = output_path(directory, image.name, makedirs)
    topil(image, palette).save(path)
    logger.debug("wrote %s (%dx%d %s)" % (path, image.cols, image.rows, image.model.name))
    return path
