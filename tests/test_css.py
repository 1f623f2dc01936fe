# tests/test_css.py
from __future__ import annotations

import pytest

from plotcapture.css import css, validate_css_unit


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (375, "375px"),
        (375.0, "375px"),
        (10.5, "10.5px"),
        ("375", "375px"),
        ("100%", "100%"),
        ("2.5em", "2.5em"),
        ("auto", "auto"),
        ("fit-content", "fit-content"),
        ("calc(100% - 2px)", "calc(100% - 2px)"),
        (None, None),
    ],
)
def test_validate_css_unit(raw: object, expected: str | None) -> None:
    assert validate_css_unit(raw) == expected


@pytest.mark.parametrize("raw", ["big", "10 px", True, float("nan"), [1]])
def test_validate_css_unit_rejects(raw: object) -> None:
    with pytest.raises(ValueError):
        validate_css_unit(raw)


def test_css_skips_none_and_hyphenates() -> None:
    assert css(width="375px", height=None, max_width="100%") == "width:375px;max-width:100%;"
    assert css(width=None, height=None) == ""
