from __future__ import annotations

import sys
import types
from pathlib import Path

import matplotlib.pyplot as plt
import pytest
from loguru import logger

from plotcapture.cli import main


@pytest.fixture
def target(monkeypatch: pytest.MonkeyPatch) -> str:
    mod = types.ModuleType("plotcapture_cli_fixture")

    def draw() -> None:
        plt.plot([1, 2, 3], [2, 4, 1])

    mod.draw = draw  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "plotcapture_cli_fixture", mod)
    return "plotcapture_cli_fixture:draw"


def test_capture_prints_output_path(
    tmp_path: Path, target: str, capsys: pytest.CaptureFixture[str]
) -> None:
    out = tmp_path / "plot.png"

    rc = main(["capture", target, "--device", "png", "--width", "50", "--height", "40", "-o", str(out)])

    assert rc == 0
    assert capsys.readouterr().out.strip() == str(out)
    assert out.read_bytes().startswith(b"\x89PNG")


def test_capture_to_temp_file(target: str, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["capture", target, "--device", "png", "--width", "50", "--height", "40"])

    assert rc == 0
    out = Path(capsys.readouterr().out.strip())
    try:
        assert out.suffix == ".png"
        assert out.stat().st_size > 0
    finally:
        out.unlink()


def test_tag_prints_img(target: str, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(
        [
            "tag",
            target,
            "--alt",
            "line <chart>",
            "--device",
            "png",
            "--width",
            "40",
            "--height",
            "30",
            "--attr",
            "id=main",
            "--attr",
            "hidden",
        ]
    )

    assert rc == 0
    html = capsys.readouterr().out.strip()
    assert html.startswith('<img src="data:image/png;base64,')
    assert 'alt="line &lt;chart&gt;"' in html
    assert 'id="main"' in html
    assert " hidden" in html


def test_tag_infers_mime_type_from_device(target: str, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["tag", target, "--alt", "x", "--device", "svg", "--pixelratio", "0.02"])

    assert rc == 0
    assert "data:image/svg+xml;base64," in capsys.readouterr().out


def test_tag_writes_page(tmp_path: Path, target: str, capsys: pytest.CaptureFixture[str]) -> None:
    out = tmp_path / "page.html"

    rc = main(
        ["tag", target, "--alt", "chart", "--device", "png", "--width", "40", "--height", "30", "--page", "-o", str(out)]
    )

    assert rc == 0
    assert capsys.readouterr().out.strip() == str(out)
    page = out.read_text(encoding="utf-8")
    assert page.startswith("<!DOCTYPE html>")
    assert "<title>chart</title>" in page
    assert "<img " in page


def test_tag_writes_fragment(tmp_path: Path, target: str) -> None:
    out = tmp_path / "tag.html"

    rc = main(["tag", target, "--alt", "chart", "--device", "png", "--width", "40", "--height", "30", "-o", str(out)])

    assert rc == 0
    assert out.read_text(encoding="utf-8").startswith("<img ")


@pytest.mark.parametrize(
    "argv",
    [
        ["capture", "plotcapture_missing_module_xyz:draw"],
        ["capture", "no_colon_here"],
        ["tag", "plotcapture_missing_module_xyz:draw", "--alt", "x"],
    ],
)
def test_errors_exit_1(argv: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(argv)

    assert rc == 1
    assert capsys.readouterr().err.startswith("plotcapture: error:")


def test_plot_error_exits_1(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    mod = types.ModuleType("plotcapture_cli_broken")

    def draw() -> None:
        raise ValueError("no data to plot")

    mod.draw = draw  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "plotcapture_cli_broken", mod)

    rc = main(["capture", "plotcapture_cli_broken:draw", "--device", "png"])

    assert rc == 1
    assert "no data to plot" in capsys.readouterr().err


def test_verbose_enables_logging(tmp_path: Path, target: str) -> None:
    try:
        rc = main(["--verbose", "capture", target, "--device", "png", "-o", str(tmp_path / "v.png")])
    finally:
        logger.disable("plotcapture")

    assert rc == 0


@pytest.mark.parametrize(("device", "suffix", "magic"), [("svg", ".svg", b"<?xml"), ("pdf", ".pdf", b"%PDF")])
def test_capture_temp_file_suffix_follows_device(
    target: str, capsys: pytest.CaptureFixture[str], device: str, suffix: str, magic: bytes
) -> None:
    rc = main(["capture", target, "--device", device, "--width", "3", "--height", "2"])

    assert rc == 0
    out = Path(capsys.readouterr().out.strip())
    try:
        assert out.suffix == suffix
        assert out.read_bytes().startswith(magic)
    finally:
        out.unlink()


def test_capture_temp_file_suffix_follows_configured_device(
    tmp_path: Path, target: str, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / "plotcapture.ini").write_text(
        "[capture-settings]\ndevice = svg\nwidth = 3\nheight = 2\n", encoding="utf-8"
    )

    rc = main(["capture", target])

    assert rc == 0
    out = Path(capsys.readouterr().out.strip())
    try:
        assert out.suffix == ".svg"
    finally:
        out.unlink()
