# src/plotcapture/errors.py
from __future__ import annotations


class PlotCaptureError(Exception):
    """Base class for every error raised by plotcapture."""


class InvalidDeviceError(PlotCaptureError, TypeError):
    """The `device` argument is not a graphics device function."""


class RenderError(PlotCaptureError, RuntimeError):
    """
    A graphics device could not be opened, could not establish its blank
    page, or failed to write its output file.
    """


class SuppressSizeValidationError(PlotCaptureError, ValueError):
    """`suppress_size` is not one of "none", "x", "y" or "xy"."""
