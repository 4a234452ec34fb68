"""
Builders for synthetic PSD byte streams.

Every builder returns ``bytes`` laid out as in a PSD file, so tests can
assemble well-formed files and then damage individual fields.
"""

import logging
import struct
from typing import Optional, Sequence

from psdparse.compression import encode_rle
from psdparse.constants import ColorMode

logging.basicConfig(level=logging.DEBUG)


def header(
    channels: int = 3,
    height: int = 4,
    width: int = 4,
    depth: int = 8,
    color_mode: int = ColorMode.RGB,
    signature: bytes = b"8BPS",
    version: int = 1,
) -> bytes:
    return struct.pack(
        ">4sH6xHIIHH", signature, version, channels, height, width, depth, color_mode
    )


def block(data: bytes) -> bytes:
    """Prefix ``data`` with its 32-bit length."""
    return struct.pack(">I", len(data)) + data


def pascal(name: bytes, padding: int) -> bytes:
    data = bytes([len(name)]) + name
    if len(data) % padding:
        data += b"\x00" * (padding - len(data) % padding)
    return data


def resource(
    key: int, data: bytes = b"", name: bytes = b"", signature: bytes = b"8BIM"
) -> bytes:
    payload = data + b"\x00" * (len(data) % 2)
    return (
        signature
        + struct.pack(">H", key)
        + pascal(name, 2)
        + struct.pack(">I", len(data))
        + payload
    )


def raw_channel(data: bytes) -> bytes:
    return struct.pack(">H", 0) + data


def rle_channel(data: bytes, width: int, height: int, depth: int = 8) -> bytes:
    return struct.pack(">H", 1) + encode_rle(data, width, height, depth)


def layer_record(
    top: int,
    left: int,
    bottom: int,
    right: int,
    channels: Sequence[tuple[int, int]],
    name: bytes = b"",
    mask: bytes = b"",
    blend_mode: bytes = b"norm",
    opacity: int = 255,
) -> bytes:
    """
    :param channels: (channel id, data length) pairs.
    :param mask: layer mask data without its length field.
    """
    data = struct.pack(">4iH", top, left, bottom, right, len(channels))
    for channel_id, length in channels:
        data += struct.pack(">hI", channel_id, length)
    data += struct.pack(">4s4sBBBx", b"8BIM", blend_mode, opacity, 0, 0)
    extra = block(mask) + block(b"") + pascal(name, 4)
    return data + block(extra)


def layer_info(
    records: Sequence[bytes],
    channel_data: Sequence[bytes],
    count: Optional[int] = None,
) -> bytes:
    if count is None:
        count = len(records)
    body = struct.pack(">h", count) + b"".join(records) + b"".join(channel_data)
    body += b"\x00" * (len(body) % 2)
    return block(body)


def layer_and_mask(info: bytes = b"", global_mask: bytes = b"") -> bytes:
    if not info:
        return block(b"")
    return block(info + block(global_mask))


def psd(
    head: Optional[bytes] = None,
    color_mode_data: bytes = b"",
    resources: bytes = b"",
    layers: Optional[bytes] = None,
    image_data: bytes = b"",
) -> bytes:
    return (
        (head if head is not None else header())
        + block(color_mode_data)
        + block(resources)
        + (layers if layers is not None else block(b""))
        + image_data
    )


def merged_raw(planes: Sequence[bytes]) -> bytes:
    return struct.pack(">H", 0) + b"".join(planes)


def merged_rle(planes: Sequence[bytes], width: int, height: int, depth: int = 8) -> bytes:
    """Merged image data: all count tables first, then all scanlines."""
    counts = b""
    rows = b""
    for plane in planes:
        encoded = encode_rle(plane, width, height, depth)
        counts += encoded[: 2 * height]
        rows += encoded[2 * height :]
    return struct.pack(">H", 1) + counts + rows


def rgb_layer_file(
    color_mode: int = ColorMode.RGB,
    alpha: bool = True,
    names: Sequence[bytes] = (b"red", b"blue"),
) -> bytes:
    """Two 2x2 RLE layers with three color channels (plus transparency)."""
    ids = [0, 1, 2] + ([-1] if alpha else [])
    records = []
    data = []
    for index, name in enumerate(names):
        channels = []
        for channel_id in ids:
            plane = bytes([index * 16 + channel_id + 2]) * 4
            encoded = rle_channel(plane, 2, 2)
            channels.append((channel_id, len(encoded)))
            data.append(encoded)
        records.append(layer_record(index, index, index + 2, index + 2, channels, name))
    planes = [bytes([0x80 + i]) * 16 for i in range(3)]
    return psd(
        header(channels=3, color_mode=color_mode),
        layers=layer_and_mask(layer_info(records, data)),
        image_data=merged_rle(planes, 4, 4),
    )
