# src/plotcapture/capture.py
from __future__ import annotations

import contextlib
import io
import os
import tempfile
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator

from loguru import logger
from matplotlib.axes import Axes
from matplotlib.figure import Figure, SubFigure

from .config import get_capture_settings
from .devices import Device, DeviceFunction, device_signature, get_device
from .errors import InvalidDeviceError, RenderError

# Optional: plotnine
try:  # pragma: no cover
    from plotnine.ggplot import ggplot as PlotnineGGPlot  # type: ignore[attr-defined]
except Exception:  # pragma: no cover
    PlotnineGGPlot = None  # type: ignore[assignment]


def temp_plot_path(suffix: str = ".png") -> Path:
    """A fresh, not yet existing path in the temp directory."""
    return Path(tempfile.gettempdir()) / f"plotcapture-{uuid.uuid4().hex}{suffix}"


def remove_quietly(path: Path) -> None:
    """Best-effort delete; failures are logged, never raised."""
    try:
        if path.exists():
            path.unlink()
            logger.debug(f"Removed {path}")
    except OSError as e:
        logger.debug(f"Could not remove {path}: {e}")


@contextmanager
def _cleanup_on_error(path: Path, *, enabled: bool) -> Iterator[None]:
    """
    Context manager that removes `path` if the block raises.

    The original exception is always re-raised.
    """
    try:
        yield
    except BaseException:
        if enabled:
            remove_quietly(path)
        raise


def _root_figure(obj: Any) -> Figure | None:
    fig = getattr(obj, "figure", None)
    while isinstance(fig, SubFigure):
        fig = fig.figure
    return fig if isinstance(fig, Figure) else None


def _as_figure(value: Any) -> Figure | None:
    """
    Return the figure a plot-like value draws on, drawing it if needed.

    Supports:
      - matplotlib Figure
      - plotnine ggplot -> .draw()
      - Axes, SubFigure and grid objects with a .figure (seaborn, pandas)
    """
    if isinstance(value, Figure):
        return value

    # Plotnine ggplot
    if PlotnineGGPlot is not None and isinstance(value, PlotnineGGPlot):  # type: ignore[arg-type]
        return value.draw()

    # Generic plotnine-like object (duck typing)
    if hasattr(value, "draw") and value.__class__.__module__.startswith("plotnine"):
        return value.draw()

    if isinstance(value, (Axes, SubFigure)) or hasattr(value, "figure"):
        return _root_figure(value)

    return None


def display(value: Any, device: Device) -> None:
    """
    Show `value` on `device` the way an interactive session would show it.

    Plot-like values are drawn on (or adopted by) the device. For anything
    else the standard repr is produced and discarded, along with anything
    printed while producing it.
    """
    fig = _as_figure(value)
    if fig is not None:
        device.adopt(fig)
        return

    with contextlib.redirect_stdout(io.StringIO()):
        repr(value)


def _device_params(
    device: Callable[..., Any],
    *,
    width: float,
    height: float,
    res: float,
) -> dict[str, Any]:
    """
    Size parameters to pass to `device`.

    Devices that take **kwargs get all three; others only get the ones they
    name, so fixed-signature devices such as `svg` never see `res`.
    """
    args: dict[str, Any] = {"width": width, "height": height, "res": res}
    sig = device_signature(device)
    if not sig.accepts_extra:
        args = {k: v for k, v in args.items() if k in sig.params}
    return args


def _open_device(device: DeviceFunction, filename: Path, args: dict[str, Any]) -> Device:
    name = getattr(device, "__name__", repr(device))
    try:
        handle = device(filename, **args)
    except Exception as e:
        raise RenderError(f"Could not open graphics device {name}: {e}") from e

    if not isinstance(handle, Device):
        close = getattr(handle, "close", None)
        if callable(close):
            close()
        raise InvalidDeviceError(
            f"Graphics device {name} returned {type(handle)!r}, expected a plotcapture Device"
        )
    return handle


def _new_page(handle: Device) -> None:
    # Zero margins while starting the page: very small devices (e.g. 200x50)
    # cannot fit the default subplot margins.
    try:
        with handle.zero_margins():
            handle.new_page()
    except Exception as e:
        raise RenderError(f"Could not start a new page on {handle!r}: {e}") from e


def capture_plot(
    expr: Callable[[], Any],
    filename: str | os.PathLike[str] | None = None,
    device: DeviceFunction | None = None,
    width: float | None = None,
    height: float | None = None,
    res: float | None = None,
    **device_args: Any,
) -> Path:
    """
    Capture a plot as a saved file.

    `expr` is a zero-argument callable that draws a plot (typically with
    pyplot) or returns an object that draws when displayed, such as a
    plotnine ggplot. It is called once, after the graphics device is open.

    - filename: output path. By default a new temp file with a `.png` suffix;
      pass a filename with another suffix when using a non-PNG device.
    - device: a device function; by default `default_png_device()` (or the
      device named in plotcapture.ini).
    - width, height, res: device size (pixels) and resolution. Only passed
      to devices that accept them.
    - device_args: extra keyword arguments for the device function.

    Returns the path of the written file. If `expr` raises, a temp file is
    removed before the error propagates; a caller-supplied file is never
    removed (nor written).
    """
    settings = get_capture_settings()

    if device is None:
        device = get_device(settings.device)
    if not callable(device):
        raise InvalidDeviceError(
            "The `device` argument should be a function, e.g. `plotcapture.devices.png`"
        )
    if not callable(expr):
        raise TypeError(f"`expr` should be a zero-argument callable; got {type(expr)!r}")

    temp_file = filename is None
    path = temp_plot_path(".png") if filename is None else Path(filename)

    args = _device_params(
        device,
        width=settings.width if width is None else width,
        height=settings.height if height is None else height,
        res=settings.res if res is None else res,
    )
    # Explicit device arguments win over the computed size parameters.
    args.update(device_args)

    with _cleanup_on_error(path, enabled=temp_file):
        with _open_device(device, path, args) as handle:
            _new_page(handle)
            result = expr()
            if result is not None:
                display(result, handle)
            handle.sync()

    logger.debug(f"Captured plot to {path}")
    return path
