# src/plotcapture/config.py
from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

INI_ENV_VAR = "PLOTCAPTURE_INI"
INI_FILENAME = "plotcapture.ini"
SECTION = "capture-settings"

DEFAULT_DEVICE = "auto"
DEFAULT_WIDTH: float = 400
DEFAULT_HEIGHT: float = 400
DEFAULT_RES: float = 72
DEFAULT_PIXELRATIO: float = 2
DEFAULT_MIME_TYPE = "image/png"


@dataclass(frozen=True, slots=True)
class CaptureSettings:
    device: str = DEFAULT_DEVICE
    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT
    res: float = DEFAULT_RES
    pixelratio: float = DEFAULT_PIXELRATIO
    mime_type: str = DEFAULT_MIME_TYPE

    # ini file the settings came from (None => built-in defaults)
    source: Path | None = None


def _strip_quotes(s: str) -> str:
    s = s.strip()
    if len(s) >= 2 and ((s[0] == s[-1] == "'") or (s[0] == s[-1] == '"')):
        return s[1:-1].strip()
    return s


def _resolve_ini_path() -> Path | None:
    """
    Resolution order:
      1) env var PLOTCAPTURE_INI
      2) ./plotcapture.ini (cwd)
      3) None
    """
    env_path = os.environ.get(INI_ENV_VAR)
    if env_path:
        p = Path(env_path).expanduser()
        if p.exists() and p.is_file():
            return p

    cwd_ini = Path.cwd() / INI_FILENAME
    if cwd_ini.exists() and cwd_ini.is_file():
        return cwd_ini

    return None


def _parse_positive(raw: str, *, default: float) -> float:
    """
    Parse a positive number; anything else falls back to `default`.
    """
    s = _strip_quotes(raw)
    try:
        v = float(s)
    except ValueError:
        return default
    if v != v or v <= 0 or v == float("inf"):
        return default
    return v


def load_capture_settings() -> CaptureSettings:
    """
    Load optional plotcapture.ini and return CaptureSettings.

    Defaults match the built-in argument defaults if no ini is present.
    """
    ini_path = _resolve_ini_path()
    if ini_path is None:
        return CaptureSettings()

    cfg = configparser.ConfigParser()
    cfg.read(ini_path)

    if not cfg.has_section(SECTION):
        # ini exists but doesn't define capture-settings
        return CaptureSettings(source=ini_path)

    device = _strip_quotes(cfg.get(SECTION, "device", fallback=DEFAULT_DEVICE)) or DEFAULT_DEVICE
    mime_type = _strip_quotes(cfg.get(SECTION, "mime_type", fallback=DEFAULT_MIME_TYPE)) or DEFAULT_MIME_TYPE

    settings = CaptureSettings(
        device=device.lower(),
        width=_parse_positive(cfg.get(SECTION, "width", fallback=""), default=DEFAULT_WIDTH),
        height=_parse_positive(cfg.get(SECTION, "height", fallback=""), default=DEFAULT_HEIGHT),
        res=_parse_positive(cfg.get(SECTION, "res", fallback=""), default=DEFAULT_RES),
        pixelratio=_parse_positive(cfg.get(SECTION, "pixelratio", fallback=""), default=DEFAULT_PIXELRATIO),
        mime_type=mime_type,
        source=ini_path,
    )
    logger.debug(f"Loaded capture settings from {ini_path}: {settings}")
    return settings


_CAPTURE_SETTINGS: CaptureSettings | None = None


def get_capture_settings() -> CaptureSettings:
    global _CAPTURE_SETTINGS
    if _CAPTURE_SETTINGS is None:
        _CAPTURE_SETTINGS = load_capture_settings()
    return _CAPTURE_SETTINGS


def reset_capture_settings() -> None:
    """Forget cached settings so the next lookup re-reads the ini file."""
    global _CAPTURE_SETTINGS
    _CAPTURE_SETTINGS = None
