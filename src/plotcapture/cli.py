from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

from .capture import capture_plot, remove_quietly, temp_plot_path
from .config import get_capture_settings
from .devices import DEVICE_SUFFIXES, DEVICES, get_device
from .errors import PlotCaptureError
from .loader import load_plot_callable
from .tags import SUPPRESS_SIZE_CHOICES, infer_mime_type, plot_tag

_DEVICE_CHOICES = ["auto", *DEVICES]


def _parse_attr(value: str) -> tuple[str, str | bool]:
    """
    "id=main" -> ("id", "main"); a bare "hidden" -> ("hidden", True).
    """
    if "=" not in value:
        name = value.strip()
        if not name:
            raise argparse.ArgumentTypeError("attribute name is empty")
        return name, True
    name, raw = value.split("=", 1)
    name = name.strip()
    if not name:
        raise argparse.ArgumentTypeError(f"attribute name is empty in {value!r}")
    return name, raw


def _add_size_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("target", help="Plotting callable: package.module:function or script.py:function")
    p.add_argument(
        "--device",
        choices=_DEVICE_CHOICES,
        default=None,
        help="Graphics device (default: from plotcapture.ini, else auto)",
    )
    p.add_argument("--width", type=float, default=None, help="Width (default: 400)")
    p.add_argument("--height", type=float, default=None, help="Height (default: 400)")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="plotcapture",
        description="plotcapture – render plots to image files and <img> tags",
    )
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Log device selection and file cleanup to stderr",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    cap_p = sub.add_parser("capture", help="Render a plotting callable to an image file")
    _add_size_args(cap_p)
    cap_p.add_argument("--res", type=float, default=None, help="Resolution in dpi (default: 72)")
    cap_p.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output file (default: a new temp .png file)",
    )

    tag_p = sub.add_parser("tag", help="Render a plotting callable to a self-contained <img> tag")
    _add_size_args(tag_p)
    tag_p.add_argument("--alt", required=True, help="Text description of the image")
    tag_p.add_argument(
        "--pixelratio",
        type=float,
        default=None,
        help="Physical pixels per logical pixel (default: 2)",
    )
    tag_p.add_argument(
        "--mime-type",
        default=None,
        help="MIME type of the image (default: inferred from --device, else image/png)",
    )
    tag_p.add_argument(
        "--suppress-size",
        choices=SUPPRESS_SIZE_CHOICES,
        default="none",
        help="Leave width (x), height (y) or both (xy) out of the style attribute",
    )
    tag_p.add_argument(
        "--attr",
        type=_parse_attr,
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra <img> attribute; may be repeated",
    )
    tag_p.add_argument(
        "--page",
        action="store_true",
        help="Write a standalone HTML page instead of a bare tag",
    )
    tag_p.add_argument("-o", "--output", default=None, help="Write HTML here instead of stdout")

    return p


def _run_capture(args: argparse.Namespace) -> int:
    expr = load_plot_callable(args.target)
    device_name = args.device or get_capture_settings().device
    device = get_device(device_name)

    output = args.output
    generated = output is None
    if generated:
        # a temp file named for what the device writes, e.g. plot.svg
        output = temp_plot_path(DEVICE_SUFFIXES.get(device_name, ".png"))

    try:
        path = capture_plot(
            expr,
            output,
            device=device,
            width=args.width,
            height=args.height,
            res=args.res,
        )
    except BaseException:
        if generated:
            remove_quietly(Path(output))
        raise
    print(path)
    return 0


def _run_tag(args: argparse.Namespace) -> int:
    expr = load_plot_callable(args.target)
    device = get_device(args.device) if args.device else None

    mime_type = args.mime_type
    if mime_type is None and args.device and args.device != "auto":
        mime_type = infer_mime_type(f"plot{DEVICE_SUFFIXES[args.device]}")

    tag = plot_tag(
        expr,
        args.alt,
        device=device,
        width=args.width,
        height=args.height,
        pixelratio=args.pixelratio,
        mime_type=mime_type,
        attribs=dict(args.attr),
        suppress_size=args.suppress_size,
    )

    if args.output is not None:
        out = Path(args.output)
        if args.page:
            tag.save_html(out)
        else:
            out.write_text(str(tag) + "\n", encoding="utf-8")
        print(out)
        return 0

    if args.page:
        print(tag.render_page())
    else:
        print(tag)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logger.enable("plotcapture")

    try:
        if args.cmd == "capture":
            return _run_capture(args)
        if args.cmd == "tag":
            return _run_tag(args)
    except (PlotCaptureError, ImportError, AttributeError, ValueError, TypeError, OSError) as e:
        print(f"plotcapture: error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
