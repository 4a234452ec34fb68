import logging
import os

import pytest

from psdparse.cli import main, output_dir, parse_args

from .utils import rgb_layer_file


@pytest.fixture
def psd_path(tmp_path):
    path = tmp_path / "layers.psd"
    path.write_bytes(rgb_layer_file())
    return str(path)


@pytest.fixture(autouse=True)
def restore_log_level():
    logger = logging.getLogger("psdparse")
    level = logger.level
    yield
    logger.setLevel(level)


@pytest.mark.parametrize("argv", [["-h"], ["--version"], []])
def test_main_exits(argv) -> None:
    with pytest.raises(SystemExit):
        main(argv)


def test_parse_args() -> None:
    args = parse_args(["-v", "-n", "-d", "out", "a.psd", "b.psd"])
    assert args.verbose
    assert args.numbered
    assert args.writepng
    assert args.pngdir == "out"
    assert args.files == ["a.psd", "b.psd"]
    assert args.workers == 1


def test_output_dir() -> None:
    assert output_dir(os.path.join("dir", "file.psd")) == os.path.join("dir", "file_png")
    assert output_dir("noext") == "noext_png"
    assert output_dir("file.psd", "elsewhere") == "elsewhere"


def test_main_parse_only(psd_path, tmp_path) -> None:
    assert main([psd_path]) == 0
    assert not os.path.exists(str(tmp_path / "layers_png"))


def test_main_writepng(psd_path, tmp_path) -> None:
    assert main(["-q", "-w", psd_path]) == 0
    assert sorted(os.listdir(str(tmp_path / "layers_png"))) == [
        "blue.png",
        "layers.psd.png",
        "red.png",
    ]


def test_main_pngdir_numbered_list(psd_path, tmp_path) -> None:
    out = str(tmp_path / "out")
    assert main(["-n", "-l", "--workers", "2", "-d", out, psd_path]) == 0
    assert sorted(os.listdir(out)) == [
        "layer1.png",
        "layer2.png",
        "layers.psd.png",
        "list.txt",
    ]
    with open(os.path.join(out, "list.txt")) as f:
        lines = f.read().splitlines()
    assert lines[0] == "-- PSD file: %s" % psd_path
    assert lines[1] == "assetlist = {"
    assert lines[2] == '\t"red" = { pos={   0,   0}, size={   2,   2} },'
    assert lines[-1] == "}"


def test_main_split(psd_path, tmp_path) -> None:
    out = str(tmp_path / "split")
    assert main(["-s", "-d", out, psd_path]) == 0
    assert "red.trans.png" in os.listdir(out)
    assert "layers.psd.B.png" in os.listdir(out)


def test_main_continues_after_fatal(psd_path, tmp_path) -> None:
    bad = tmp_path / "bad.psd"
    bad.write_bytes(b"not a psd")
    out = str(tmp_path / "out")
    assert main(["-d", out, str(bad), psd_path]) == 1
    assert "layers.psd.png" in os.listdir(out)
