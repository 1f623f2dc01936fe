# tests/conftest.py
from __future__ import annotations

from pathlib import Path
from typing import Iterator

import matplotlib

matplotlib.use("Agg")  # headless
import matplotlib.pyplot as plt
import pytest

import plotcapture.config as cfg


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """
    Never read a real plotcapture.ini, and never leak figures between tests.
    """
    monkeypatch.delenv("PLOTCAPTURE_INI", raising=False)
    monkeypatch.chdir(tmp_path)
    cfg.reset_capture_settings()
    yield
    cfg.reset_capture_settings()
    plt.close("all")
