# src/plotcapture/tags.py
from __future__ import annotations

import base64
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Literal, Mapping

from loguru import logger
from markupsafe import Markup, escape

from .capture import capture_plot, remove_quietly, temp_plot_path
from .config import get_capture_settings
from .css import css, validate_css_unit
from .devices import DeviceFunction
from .errors import SuppressSizeValidationError

SuppressSize = Literal["none", "x", "y", "xy"]

SUPPRESS_SIZE_CHOICES: tuple[str, ...] = ("none", "x", "y", "xy")


def infer_mime_type(path: str | Path) -> str:
    suf = Path(path).suffix.lower()
    if suf == ".png":
        return "image/png"
    if suf in (".jpg", ".jpeg"):
        return "image/jpeg"
    if suf == ".gif":
        return "image/gif"
    if suf == ".webp":
        return "image/webp"
    if suf in (".tif", ".tiff"):
        return "image/tiff"
    if suf == ".svg":
        return "image/svg+xml"
    if suf == ".pdf":
        return "application/pdf"
    return "application/octet-stream"


def encode_base64(path: str | Path) -> str:
    """Read a file and return its bytes base64-encoded."""
    return base64.b64encode(Path(path).read_bytes()).decode("ascii")


def data_uri(payload: str, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{payload}"


def _attr_name(name: str) -> str:
    # class_ / for_ are the usual Python spellings of reserved words
    return name[:-1] if name.endswith("_") and len(name) > 1 else name


# attributes whose repeated values combine, and their separators
_MERGED_ATTRS = {"style": "", "class": " "}


def _is_text(value: Any) -> bool:
    return value is not None and not isinstance(value, bool)


def _check_attribs(attribs: Mapping[str, Any]) -> None:
    fixed = {"src", "alt"} & {_attr_name(name) for name in attribs}
    if fixed:
        raise ValueError(
            f"`attribs` cannot set {', '.join(sorted(fixed))}; "
            "the image source and the `alt` argument define them"
        )


def render_attrs(attrs: Mapping[str, Any]) -> Markup:
    """
    Render HTML attributes. None/False values are dropped and True gives a
    bare attribute; everything else is escaped.
    """
    parts: list[Markup] = []
    for name, value in attrs.items():
        if value is None or value is False:
            continue
        key = escape(_attr_name(name))
        if value is True:
            parts.append(Markup(key))
        else:
            parts.append(Markup('{}="{}"').format(key, str(value)))
    return Markup(" ").join(parts)


@dataclass(frozen=True, slots=True)
class ImgTag:
    """
    A self-contained `<img>` tag whose source is a base64 data URI.

    `width`/`height` are the declared display size; `suppress` holds the
    axes ("x", "y") whose size is left out of the style attribute.
    Instances implement `__html__`, so markupsafe and Jinja templates
    embed them without escaping.
    """

    payload: str
    mime_type: str
    alt: str
    width: float | str
    height: float | str
    attribs: Mapping[str, Any] = field(default_factory=dict)
    suppress: frozenset[str] = frozenset()

    @property
    def src(self) -> str:
        return data_uri(self.payload, self.mime_type)

    @property
    def style(self) -> str | None:
        style = css(
            width=None if "x" in self.suppress else validate_css_unit(self.width),
            height=None if "y" in self.suppress else validate_css_unit(self.height),
        )
        return style or None

    def __post_init__(self) -> None:
        _check_attribs(self.attribs)

    @property
    def attrs(self) -> dict[str, Any]:
        """
        Attributes of the tag. Caller `attribs` are merged in: a `style`
        is appended to the sizing style and `class` values are joined.
        """
        out: dict[str, Any] = {"src": self.src}
        if self.style is not None:
            out["style"] = self.style
        out["alt"] = self.alt
        for name, value in self.attribs.items():
            key = _attr_name(name)
            current = out.get(key)
            if key in _MERGED_ATTRS and _is_text(current) and _is_text(value):
                out[key] = _MERGED_ATTRS[key].join([str(current), str(value)])
            else:
                out[key] = value
        return out

    def render(self) -> Markup:
        return Markup("<img {}/>").format(render_attrs(self.attrs))

    def __html__(self) -> str:
        return self.render()

    def __str__(self) -> str:
        return str(self.render())

    def _repr_html_(self) -> str:
        return str(self.render())

    def render_page(self, *, title: str | None = None) -> Markup:
        """A standalone HTML page showing only this image."""
        page_title = escape(title or self.alt or "plot")
        return Markup(
            f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <title>{page_title}</title>
</head>
<body>
  {self.render()}
</body>
</html>
"""
        )

    def save_html(self, path: str | Path, *, title: str | None = None) -> Path:
        out = Path(path)
        out.write_text(str(self.render_page(title=title)), encoding="utf-8")
        return out


def _match_suppress_size(value: str) -> frozenset[str]:
    if value not in SUPPRESS_SIZE_CHOICES:
        choices = ", ".join(repr(c) for c in SUPPRESS_SIZE_CHOICES)
        raise SuppressSizeValidationError(
            f"`suppress_size` should be one of {choices}; got {value!r}"
        )
    if value == "none":
        return frozenset()
    return frozenset(value)


def _as_pixels(value: Any, name: str) -> float:
    """A number of logical pixels; numeric strings such as "375" are accepted."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"`{name}` should be a number of pixels; got {value!r}")
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            raise ValueError(
                f"`{name}` should be a number of pixels, not a CSS length; got {value!r}"
            ) from None
    return value


def plot_tag(
    expr: Callable[[], Any],
    alt: str,
    device: DeviceFunction | None = None,
    width: float | None = None,
    height: float | None = None,
    pixelratio: float | None = None,
    mime_type: str | None = None,
    device_args: Mapping[str, Any] | None = None,
    attribs: Mapping[str, Any] | None = None,
    suppress_size: SuppressSize = "none",
) -> ImgTag:
    """
    Capture a plot as a self-contained `<img>` tag.

    - alt: text description of the image, used by screen readers.
    - width, height: display size of the tag in logical (browser) pixels.
    - pixelratio: physical pixels per logical pixel. Use 2 for PNGs shown on
      high-DPI screens; for devices that measure in inches (such as `svg`)
      try 1/72 or 1/96.
    - mime_type: MIME type matching the device, e.g. "image/svg+xml".
    - device_args: extra keyword arguments for the device function.
    - attribs: extra attributes for the `<img>` (e.g. id, class_).
    - suppress_size: leave the width ("x"), height ("y") or both ("xy") out
      of the style attribute, e.g. when sizing with responsive CSS.

    The intermediate image file is always removed.
    """
    suppress = _match_suppress_size(suppress_size)

    settings = get_capture_settings()
    width = settings.width if width is None else width
    height = settings.height if height is None else height
    pixelratio = settings.pixelratio if pixelratio is None else pixelratio
    mime_type = settings.mime_type if mime_type is None else mime_type

    # fail on bad sizes and attributes before anything is drawn
    width = _as_pixels(width, "width")
    height = _as_pixels(height, "height")
    validate_css_unit(width)
    validate_css_unit(height)
    _check_attribs(attribs or {})

    path = temp_plot_path(".png")
    try:
        capture_plot(
            expr,
            path,
            device=device,
            width=width * pixelratio,
            height=height * pixelratio,
            res=72 * pixelratio,
            **dict(device_args or {}),
        )
        payload = encode_base64(path)
    finally:
        remove_quietly(path)

    logger.debug(f"Encoded {len(payload)} base64 chars as {mime_type}")
    return ImgTag(
        payload=payload,
        mime_type=mime_type,
        alt=alt,
        width=width,
        height=height,
        attribs=dict(attribs or {}),
        suppress=suppress,
    )
