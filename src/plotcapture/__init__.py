# src/plotcapture/__init__.py
from __future__ import annotations

from loguru import logger

from .capture import capture_plot, display
from .config import CaptureSettings, get_capture_settings, reset_capture_settings
from .devices import (
    Device,
    DeviceSignature,
    default_png_device,
    device_signature,
    get_device,
)
from .errors import (
    InvalidDeviceError,
    PlotCaptureError,
    RenderError,
    SuppressSizeValidationError,
)
from .tags import ImgTag, plot_tag

__version__ = "0.1.0"

# Library logging is opt-in: logger.enable("plotcapture")
logger.disable("plotcapture")

__all__ = [
    "__version__",
    "capture_plot",
    "plot_tag",
    "default_png_device",
    "get_device",
    "device_signature",
    "display",
    "Device",
    "DeviceSignature",
    "ImgTag",
    "CaptureSettings",
    "get_capture_settings",
    "reset_capture_settings",
    "PlotCaptureError",
    "InvalidDeviceError",
    "RenderError",
    "SuppressSizeValidationError",
]
