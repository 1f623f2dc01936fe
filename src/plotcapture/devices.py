# src/plotcapture/devices.py
from __future__ import annotations

import importlib.util
import inspect
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Any, Callable, Iterator

import matplotlib.pyplot as plt
from loguru import logger
from matplotlib.figure import Figure

from .errors import InvalidDeviceError, RenderError

DeviceFunction = Callable[..., "Device"]

_MARGIN_KEYS = ("left", "bottom", "right", "top", "wspace", "hspace")

# savefig(backend=...) names for the optional raster libraries
_CAIRO_BACKEND = "cairo"
_MPLCAIRO_BACKEND = "module://mplcairo.base"


@dataclass(frozen=True, slots=True)
class DeviceSignature:
    params: frozenset[str]
    accepts_extra: bool


class Device:
    """
    An open graphics device: one matplotlib Figure bound to one output file.

    Opening a device creates a pyplot figure and makes it the current one, so
    pyplot calls made while the device is open draw on it. `close()` writes
    the file, closes the figure and makes the previously current figure
    current again. Used as a context manager, the device is closed on a
    normal exit and discarded (nothing written) when the block raises.

    pyplot's current figure is process-global: only one device should be
    drawn on at a time.
    """

    def __init__(
        self,
        filename: str | Path,
        *,
        figsize: tuple[float, float],
        dpi: float,
        fmt: str,
        backend: str | None = None,
        bg: str = "white",
        savefig_kwargs: dict[str, Any] | None = None,
    ) -> None:
        if figsize[0] <= 0 or figsize[1] <= 0:
            raise ValueError(f"Device size must be positive; got {figsize!r}")
        if dpi <= 0:
            raise ValueError(f"Device resolution must be positive; got {dpi!r}")

        self.filename = Path(filename)
        self.format = fmt
        self.backend = backend
        self.dpi = dpi
        self.bg = bg
        self._figsize = figsize
        self._savefig_kwargs = dict(savefig_kwargs or {})

        self._preexisting = set(plt.get_fignums())
        self._previous_num = plt.gcf().number if self._preexisting else None

        self.figure: Figure = plt.figure(figsize=figsize, dpi=dpi, facecolor=bg)
        self._owns_figure = True
        self._closed = False
        logger.debug(
            f"Opened {fmt} device for {self.filename} "
            f"({figsize[0] * dpi:g}x{figsize[1] * dpi:g} px at {dpi:g} dpi)"
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def zero_margins(self) -> Iterator[None]:
        """Temporarily set every subplot margin of the page to zero."""
        pars = self.figure.subplotpars
        previous = {k: getattr(pars, k) for k in _MARGIN_KEYS}
        self.figure.subplots_adjust(left=0, bottom=0, right=1, top=1)
        try:
            yield
        finally:
            self.figure.subplots_adjust(**previous)

    def new_page(self) -> None:
        """Clear the page to a blank background."""
        self.figure.clear()
        self.figure.set_facecolor(self.bg)

    def adopt(self, figure: Figure) -> None:
        """
        Make `figure` the page this device writes on close.

        Used for results that draw themselves onto a figure of their own
        (plotnine, seaborn grids, code that calls plt.subplots()). A pyplot
        figure that existed before the device opened is left open afterwards;
        any other adopted figure is owned by the device from now on.
        """
        if figure is self.figure:
            return
        if self._owns_figure:
            plt.close(self.figure)
        self.figure = figure
        self._owns_figure = getattr(figure, "number", None) not in self._preexisting
        logger.debug(f"Device for {self.filename} adopted figure {figure!r}")

    def sync(self) -> None:
        """Adopt the current pyplot figure if it was opened while this device was."""
        nums = plt.get_fignums()
        if not nums:
            return
        current = plt.gcf()
        if current is self.figure or current.number in self._preexisting:
            return
        self.adopt(current)

    def close(self) -> None:
        """Write the output file and release the figure. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            self._write()
        except Exception as e:
            raise RenderError(f"Could not write {self.filename}: {e}") from e
        finally:
            self._release()

    def discard(self) -> None:
        """Release the figure without writing the output file."""
        if self._closed:
            return
        self._closed = True
        self._release()

    def _write(self) -> None:
        fig = self.figure
        size = fig.get_size_inches().copy()
        fig.set_size_inches(self._figsize, forward=False)
        try:
            fig.savefig(
                self.filename,
                format=self.format,
                dpi=self.dpi,
                backend=self.backend,
                **self._savefig_kwargs,
            )
        finally:
            if not self._owns_figure:
                fig.set_size_inches(size, forward=False)

    def _release(self) -> None:
        if self._owns_figure:
            plt.close(self.figure)
        # pyplot figures opened while the device was open belong to it
        for num in plt.get_fignums():
            if num not in self._preexisting:
                plt.close(num)
        if self._previous_num is not None and plt.fignum_exists(self._previous_num):
            plt.figure(self._previous_num)
        logger.debug(f"Closed device for {self.filename}")

    def __enter__(self) -> Device:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.close()
            return
        # Already unwinding: leave the output file alone and never mask the error.
        try:
            self.discard()
        except Exception as release_error:
            logger.debug(
                f"Ignoring release failure while handling {exc_type.__name__}: {release_error}"
            )

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Device {self.format} {str(self.filename)!r} ({state})>"


# Device functions ----------


def _raster(
    filename: str | Path,
    width: float,
    height: float,
    res: float,
    *,
    fmt: str,
    backend: str | None,
    bg: str,
    savefig_kwargs: dict[str, Any] | None = None,
) -> Device:
    return Device(
        filename,
        figsize=(width / res, height / res),
        dpi=res,
        fmt=fmt,
        backend=backend,
        bg=bg,
        savefig_kwargs=savefig_kwargs,
    )


def png(
    filename: str | Path,
    width: float = 480,
    height: float = 480,
    res: float = 72,
    bg: str = "white",
    **savefig_kwargs: Any,
) -> Device:
    """
    PNG device rendered by matplotlib's Agg backend. Always available.

    `width`/`height` are in pixels; extra keywords go to `Figure.savefig`.
    """
    return _raster(
        filename,
        width,
        height,
        res,
        fmt="png",
        backend=None,
        bg=bg,
        savefig_kwargs=savefig_kwargs,
    )


def jpeg(
    filename: str | Path,
    width: float = 480,
    height: float = 480,
    res: float = 72,
    bg: str = "white",
    **savefig_kwargs: Any,
) -> Device:
    """JPEG device rendered by Agg (encoding via Pillow)."""
    return _raster(
        filename,
        width,
        height,
        res,
        fmt="jpeg",
        backend=None,
        bg=bg,
        savefig_kwargs=savefig_kwargs,
    )


def cairo_png(
    filename: str | Path,
    width: float = 480,
    height: float = 480,
    res: float = 72,
    bg: str = "white",
) -> Device:
    """PNG device rendered through pycairo (matplotlib's "cairo" backend)."""
    return _raster(
        filename, width, height, res, fmt="png", backend=_CAIRO_BACKEND, bg=bg
    )


def mplcairo_png(
    filename: str | Path,
    width: float = 480,
    height: float = 480,
    res: float = 72,
    bg: str = "white",
) -> Device:
    """PNG device rendered by mplcairo."""
    return _raster(
        filename, width, height, res, fmt="png", backend=_MPLCAIRO_BACKEND, bg=bg
    )


def svg(
    filename: str | Path,
    width: float = 7,
    height: float = 7,
    bg: str = "white",
) -> Device:
    """SVG device. `width`/`height` are in inches."""
    return Device(filename, figsize=(width, height), dpi=72, fmt="svg", bg=bg)


def pdf(
    filename: str | Path,
    width: float = 7,
    height: float = 7,
    bg: str = "white",
) -> Device:
    """PDF device. `width`/`height` are in inches."""
    return Device(filename, figsize=(width, height), dpi=72, fmt="pdf", bg=bg)


DEVICES: dict[str, DeviceFunction] = {
    "png": png,
    "agg": png,
    "jpeg": jpeg,
    "cairo": cairo_png,
    "mplcairo": mplcairo_png,
    "svg": svg,
    "pdf": pdf,
}

DEVICE_SUFFIXES: dict[str, str] = {
    "png": ".png",
    "agg": ".png",
    "jpeg": ".jpg",
    "cairo": ".png",
    "mplcairo": ".png",
    "svg": ".svg",
    "pdf": ".pdf",
}


# Selection ----------


def _is_installed(module: str) -> bool:
    return importlib.util.find_spec(module) is not None


def _is_macos() -> bool:
    return sys.platform == "darwin"


def default_png_device() -> DeviceFunction:
    """
    Return the best PNG device for this system.

    On macOS the native Agg `png` device is used; elsewhere `mplcairo_png` or
    `cairo_png` are preferred if their libraries are installed, falling back
    to `png`.
    """
    if _is_macos():
        device = png
    elif _is_installed("mplcairo"):
        device = mplcairo_png
    elif _is_installed("cairo"):
        device = cairo_png
    else:
        device = png
    logger.debug(f"Default PNG device: {device.__name__}")
    return device


def get_device(name: str) -> DeviceFunction:
    """
    Resolve a device function by name. "auto" means `default_png_device()`.
    """
    key = name.strip().lower()
    if key == "auto":
        return default_png_device()
    try:
        return DEVICES[key]
    except KeyError:
        known = ", ".join(["auto", *DEVICES])
        raise InvalidDeviceError(
            f"Unknown graphics device {name!r}; expected one of: {known}"
        ) from None


def device_signature(device: Callable[..., Any]) -> DeviceSignature:
    """
    Describe which keyword parameters `device` accepts.

    A device may declare this itself with a `__device_signature__` attribute
    holding a DeviceSignature; otherwise its call signature is inspected.
    Callables whose signature cannot be read are treated as accepting no
    optional parameters.
    """
    declared = getattr(device, "__device_signature__", None)
    if isinstance(declared, DeviceSignature):
        return declared

    try:
        sig = inspect.signature(device)
    except (TypeError, ValueError):
        return DeviceSignature(params=frozenset(), accepts_extra=False)

    params: set[str] = set()
    accepts_extra = False
    for name, p in sig.parameters.items():
        if p.kind is inspect.Parameter.VAR_KEYWORD:
            accepts_extra = True
        elif p.kind is not inspect.Parameter.VAR_POSITIONAL:
            params.add(name)
    return DeviceSignature(params=frozenset(params), accepts_extra=accepts_extra)
