from __future__ import annotations

import argparse

import pytest

from plotcapture.cli import _parse_attr, build_parser


def test_cli_parses_capture_args() -> None:
    p = build_parser()
    args = p.parse_args(
        [
            "capture",
            "some.mod:fn",
            "--device",
            "svg",
            "--width",
            "5",
            "--height",
            "4",
            "--res",
            "96",
            "-o",
            "out.svg",
        ]
    )
    assert args.cmd == "capture"
    assert args.target == "some.mod:fn"
    assert args.device == "svg"
    assert args.width == 5
    assert args.height == 4
    assert args.res == 96
    assert args.output == "out.svg"
    assert args.verbose is False


def test_cli_capture_defaults() -> None:
    args = build_parser().parse_args(["capture", "some.mod:fn"])
    assert args.device is None
    assert args.width is None
    assert args.height is None
    assert args.res is None
    assert args.output is None


def test_cli_parses_tag_args() -> None:
    args = build_parser().parse_args(
        [
            "--verbose",
            "tag",
            "plots.py:draw",
            "--alt",
            "Sales by month",
            "--pixelratio",
            "1",
            "--suppress-size",
            "xy",
            "--attr",
            "id=main",
            "--attr",
            "hidden",
            "--page",
        ]
    )
    assert args.verbose is True
    assert args.cmd == "tag"
    assert args.alt == "Sales by month"
    assert args.pixelratio == 1
    assert args.suppress_size == "xy"
    assert args.attr == [("id", "main"), ("hidden", True)]
    assert args.page is True
    assert args.mime_type is None


def test_cli_tag_requires_alt() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["tag", "some.mod:fn"])


def test_cli_rejects_unknown_device() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["capture", "some.mod:fn", "--device", "quartz"])


def test_parse_attr() -> None:
    assert _parse_attr("id=main") == ("id", "main")
    assert _parse_attr("data-query=a=b") == ("data-query", "a=b")
    assert _parse_attr("hidden") == ("hidden", True)
    assert _parse_attr("title=") == ("title", "")

    with pytest.raises(argparse.ArgumentTypeError):
        _parse_attr("=value")
    with pytest.raises(argparse.ArgumentTypeError):
        _parse_attr("  ")
