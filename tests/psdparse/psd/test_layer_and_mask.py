import io
import struct

import pytest

from psdparse.constants import BlendMode, ChannelID, ColorMode
from psdparse.context import ParseContext
from psdparse.psd.bin_utils import ByteCursor
from psdparse.psd.header import FileHeader
from psdparse.psd.layer_and_mask import (
    BlendModeInfo,
    ChannelInfo,
    LayerAndMaskInformation,
    LayerDecodeTask,
    LayerFlags,
    LayerRecord,
    MaskData,
    run_tasks,
)

from ..utils import block, layer_and_mask, layer_info, layer_record, raw_channel, rle_channel

HEADER = FileHeader(channels=3, height=4, width=4, depth=8, color_mode=ColorMode.RGB)


def read_section(data: bytes, ctx: ParseContext, **kwargs) -> LayerAndMaskInformation:
    return LayerAndMaskInformation.read(ByteCursor.frombytes(data), ctx, HEADER, **kwargs)


def test_layer_record_read(ctx) -> None:
    data = layer_record(
        1, 2, 5, 7, [(0, 22), (-1, 22)], name=b"Layer A", blend_mode=b"mul ", opacity=128
    )
    cursor = ByteCursor.frombytes(data + b"next")
    record = LayerRecord.read(cursor, ctx, 0, HEADER)
    assert cursor.position() == len(data)
    assert (record.top, record.left, record.bottom, record.right) == (1, 2, 5, 7)
    assert (record.height, record.width) == (4, 5)
    assert [c.id for c in record.channel_info] == [0, -1]
    assert record.channel_index == {0: 0, -1: 1}
    assert record.channel_position(ChannelID.TRANSPARENCY_MASK) == 1
    assert record.channel_position(2) is None
    assert record.has_transparency
    assert record.total_length == 44
    assert record.name == "Layer A"
    assert record.display_name == "Layer A"
    assert record.blend_mode_info.blend_mode == BlendMode.MULTIPLY
    assert record.blend_mode_info.opacity_percent == 50
    assert record.mask_data is None
    assert not record.skipped
    assert not ctx.has_warnings


def test_layer_record_default_name(ctx) -> None:
    data = layer_record(0, 0, 1, 1, [(0, 3)])
    record = LayerRecord.read(ByteCursor.frombytes(data), ctx, 4, HEADER)
    assert record.name == ""
    assert record.display_name == "layer5"
    assert record.default_name == "layer5"


def test_layer_record_mask_data(ctx) -> None:
    mask = struct.pack(">4iBB", 1, 1, 3, 4, 255, 2) + b"\x00\x00"
    data = layer_record(0, 0, 4, 4, [(0, 18), (-2, 8)], mask=mask)
    cursor = ByteCursor.frombytes(data)
    record = LayerRecord.read(cursor, ctx, 0, HEADER)
    assert cursor.position() == len(data)
    assert record.mask_data.default_color == 255
    assert record.mask_data.disabled
    assert record.channel_geometry(record.channel_info[1]) == (2, 3)
    assert record.channel_geometry(record.channel_info[0]) == (4, 4)


def test_layer_record_short_mask_data(ctx) -> None:
    data = layer_record(0, 0, 4, 4, [(0, 18)], mask=b"\x00" * 8, name=b"m")
    cursor = ByteCursor.frombytes(data)
    record = LayerRecord.read(cursor, ctx, 0, HEADER)
    assert record.mask_data is None
    assert record.name == "m"
    assert ctx.warning_count == 1


def test_layer_record_unexpected_channel_id(ctx) -> None:
    data = layer_record(0, 0, 1, 1, [(0, 3), (7, 3)])
    record = LayerRecord.read(ByteCursor.frombytes(data), ctx, 0, HEADER)
    assert record.channel_index == {0: 0}
    assert len(record.channel_info) == 2
    assert "unexpected channel id 7" in ctx.warnings[0].message


@pytest.mark.parametrize(
    "rect, channels",
    [
        ((5, 0, 1, 4), 1),
        ((0, 5, 4, 1), 1),
        ((0, 0, 4, 4), 65),
    ],
)
def test_layer_record_skipped(ctx, rect, channels) -> None:
    data = layer_record(*rect, [(0, 10)] * channels, name=b"bad")
    cursor = ByteCursor.frombytes(data + b"next")
    record = LayerRecord.read(cursor, ctx, 0, HEADER)
    assert record.skipped
    assert cursor.position() == len(data)
    assert record.total_length == 10 * channels
    assert record.name == ""
    assert "trying to skip layer" in ctx.warnings[0].message


def test_layer_flags() -> None:
    flags = LayerFlags.frombyte(0b11011)
    assert flags.transparency_protected
    assert not flags.visible
    assert flags.bit4_valid
    assert flags.pixel_data_irrelevant


def test_blend_mode_info_unknown_key() -> None:
    info = BlendModeInfo.read(ByteCursor.frombytes(b"8BIMzzzz\xff\x00\x00\x00"))
    assert info.blend_mode is None
    assert info.opacity_percent == 100


def test_mask_data_empty(ctx) -> None:
    assert MaskData.read(ByteCursor.frombytes(b"\x00\x00\x00\x00"), ctx) is None


def test_layer_info(ctx) -> None:
    plane = bytes(range(4))
    channel = raw_channel(plane)
    records = [
        layer_record(0, 0, 2, 2, [(0, len(channel)), (-1, len(channel))], name=b"a"),
        layer_record(1, 1, 3, 3, [(0, len(channel))], name=b"b"),
    ]
    data = layer_and_mask(layer_info(records, [channel] * 3))
    cursor = ByteCursor.frombytes(data + b"\x00\x00")
    info = LayerAndMaskInformation.read(cursor, ctx, HEADER).layer_info
    assert cursor.position() == len(data)
    assert len(info) == 2
    assert info.layer_count == 2
    assert [r.name for r in info.layer_records] == ["a", "b"]
    groups = info.channel_image_data
    assert [len(g) for g in groups] == [2, 1]
    assert all(g.channels == [plane] for layer in groups for g in layer)
    record, layer_groups = list(info)[1]
    assert record.name == "b"
    assert len(layer_groups) == 1
    assert not ctx.merged_alpha
    assert not ctx.has_warnings


def test_layer_count_negative_sets_merged_alpha(ctx) -> None:
    channel = raw_channel(b"\x01" * 4)
    records = [
        layer_record(0, 0, 2, 2, [(0, len(channel))]),
        layer_record(0, 0, 2, 2, [(0, len(channel))]),
    ]
    data = layer_and_mask(layer_info(records, [channel] * 2, count=-2))
    info = read_section(data, ctx).layer_info
    assert info.layer_count == -2
    assert len(info) == 2
    assert ctx.merged_alpha


def test_inverted_layer_is_skipped_and_next_layer_parses(ctx) -> None:
    plane = b"\x01\x02\x03\x04"
    good = raw_channel(plane)
    records = [
        layer_record(5, 0, 1, 4, [(0, 10)], name=b"broken"),
        layer_record(0, 0, 2, 2, [(0, len(good))], name=b"ok"),
    ]
    data = layer_and_mask(layer_info(records, [b"\xee" * 10, good]))
    cursor = ByteCursor.frombytes(data)
    section = LayerAndMaskInformation.read(cursor, ctx, HEADER)
    info = section.layer_info
    assert cursor.position() == len(data)
    assert info.layer_records[0].skipped
    assert info.channel_image_data[0] == []
    assert info.layer_records[1].name == "ok"
    assert info.channel_image_data[1][0].channels == [plane]
    assert len(ctx.warnings) == 1


def test_unlikely_layer_count_gives_up(ctx) -> None:
    body = struct.pack(">h", 100) + b"\x00" * 30
    data = layer_and_mask(block(body))
    cursor = ByteCursor.frombytes(data + b"next")
    info = LayerAndMaskInformation.read(cursor, ctx, HEADER).layer_info
    assert info.layer_records == []
    assert info.layer_count == 100
    assert cursor.position() == len(data)
    assert "unlikely number of layers" in ctx.warnings[0].message


def test_empty_sections(ctx) -> None:
    section = read_section(block(b""), ctx)
    assert len(section.layer_info) == 0
    section = read_section(block(block(b"") + block(b"")), ctx)
    assert len(section.layer_info) == 0
    assert not ctx.has_warnings


def test_global_mask_and_additional_info(ctx) -> None:
    channel = raw_channel(b"\x00")
    info = layer_info([layer_record(0, 0, 1, 1, [(0, len(channel))])], [channel])
    data = block(info + block(b"\x00" * 14) + b"8BIMlnsr\x00\x00\x00\x04abcd")
    cursor = ByteCursor.frombytes(data)
    section = LayerAndMaskInformation.read(cursor, ctx, HEADER)
    assert section.global_layer_mask_length == 14
    assert cursor.position() == len(data)
    assert [e.message for e in ctx.warnings] == [
        "skipped 16 bytes at end of layer and mask info"
    ]


def test_junk_after_global_mask_warns(ctx) -> None:
    channel = raw_channel(b"\x00")
    info = layer_info([layer_record(0, 0, 1, 1, [(0, len(channel))])], [channel])
    junk = block(info + block(b"") + b"\xee" * 8)
    cursor = ByteCursor.frombytes(junk + b"next")
    section = LayerAndMaskInformation.read(cursor, ctx, HEADER)
    assert len(section.layer_info) == 1
    assert cursor.position() == len(junk)
    assert len(ctx.warnings) == 1
    assert ctx.warnings[0].message == "skipped 8 bytes at end of layer and mask info"
    assert ctx.warnings[0].offset == len(junk) - 8


def test_layer_info_overrun_resynchronizes(ctx) -> None:
    channel = raw_channel(b"\x00" * 4)
    record = layer_record(0, 0, 2, 2, [(0, len(channel))])
    # Declared channel data runs past the end of the layer info section.
    body = struct.pack(">h", 1) + record + channel[:4]
    data = layer_and_mask(block(body))
    cursor = ByteCursor.frombytes(data + b"\x00" * 8)
    LayerAndMaskInformation.read(cursor, ctx, HEADER)
    assert cursor.position() == len(data)
    assert any("overran" in e.message for e in ctx.warnings)


def test_mask_channel_without_mask_data_warns(ctx) -> None:
    channel = raw_channel(b"")
    data = layer_record(0, 0, 1, 1, [(-2, len(channel))])
    record = LayerRecord.read(ByteCursor.frombytes(data), ctx, 0, HEADER)
    task = LayerDecodeTask(0, 0, record, 8)
    groups = task.run(ByteCursor.frombytes(channel), ctx)
    assert len(groups) == 1
    assert groups[0].channels == [b""]
    assert "no mask data" in ctx.warnings[0].message


def _tasks_and_source():
    planes = [bytes([i]) * 16 for i in range(4)]
    data = b""
    tasks = []
    for index, plane in enumerate(planes):
        channel = rle_channel(plane, 4, 4)
        record = LayerRecord(
            index=index,
            bottom=4,
            right=4,
            channel_info=[ChannelInfo(0, len(channel))],
            channel_index={0: 0},
        )
        tasks.append(LayerDecodeTask(index, len(data), record, 8))
        data += channel
    return planes, tasks, data


@pytest.mark.parametrize("workers", [1, 3])
def test_run_tasks(ctx, workers) -> None:
    planes, tasks, data = _tasks_and_source()
    cursor = ByteCursor.frombytes(data)
    results = run_tasks(tasks, cursor, ctx, workers, lambda: io.BytesIO(data))
    assert [groups[0].channels[0] for groups in results] == planes


def test_run_tasks_merges_events_in_order(ctx) -> None:
    planes, tasks, data = _tasks_and_source()
    # Damage the tag of layers 1 and 3.
    damaged = bytearray(data)
    for task in (tasks[1], tasks[3]):
        damaged[task.offset : task.offset + 2] = b"\x00\x09"
    data = bytes(damaged)
    run_tasks(tasks, ByteCursor.frombytes(data), ctx, 2, lambda: io.BytesIO(data))
    offsets = [e.offset for e in ctx.warnings if e.offset is not None]
    assert offsets == [tasks[1].offset, tasks[3].offset]
