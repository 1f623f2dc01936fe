from __future__ import annotations

import sys
import types
from pathlib import Path

import pytest

from plotcapture.loader import load_plot_callable, parse_target


def test_parse_target() -> None:
    t = parse_target("pkg.mod:func")
    assert t.module == "pkg.mod"
    assert t.attr == "func"

    t2 = parse_target("pkg.mod:Charts.sales")
    assert t2.module == "pkg.mod"
    assert t2.attr == "Charts.sales"

    # only the last colon splits, so Windows-style paths survive
    t3 = parse_target(r"C:\plots\draw.py:main")
    assert t3.module == r"C:\plots\draw.py"
    assert t3.attr == "main"


@pytest.mark.parametrize("value", ["no_colon_here", ":func", "pkg.mod:", " : "])
def test_parse_target_rejects(value: str) -> None:
    with pytest.raises(ValueError):
        parse_target(value)


def test_load_plot_callable_from_dynamic_module(monkeypatch: pytest.MonkeyPatch) -> None:
    mod = types.ModuleType("plotcapture_test_mod")

    def draw() -> str:
        return "drawn"

    class Charts:
        @staticmethod
        def sales() -> str:
            return "sales"

    mod.draw = draw  # type: ignore[attr-defined]
    mod.Charts = Charts  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "plotcapture_test_mod", mod)

    assert load_plot_callable("plotcapture_test_mod:draw")() == "drawn"
    assert load_plot_callable("plotcapture_test_mod:Charts.sales")() == "sales"


def test_load_plot_callable_raises_if_not_callable(monkeypatch: pytest.MonkeyPatch) -> None:
    mod = types.ModuleType("plotcapture_test_mod2")
    mod.x = 123  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "plotcapture_test_mod2", mod)

    with pytest.raises(TypeError):
        load_plot_callable("plotcapture_test_mod2:x")


def test_load_plot_callable_missing_attr(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "plotcapture_test_mod3", types.ModuleType("plotcapture_test_mod3"))

    with pytest.raises(AttributeError):
        load_plot_callable("plotcapture_test_mod3:nothing")


def test_load_plot_callable_from_script(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "path", list(sys.path))
    script = tmp_path / "plotcapture_script_fixture.py"
    script.write_text("def draw():\n    return 'from script'\n", encoding="utf-8")

    fn = load_plot_callable(f"{script}:draw")

    assert fn() == "from script"
    assert str(tmp_path.resolve()) in sys.path
    monkeypatch.delitem(sys.modules, "plotcapture_script_fixture")


def test_load_plot_callable_missing_script(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_plot_callable(f"{tmp_path / 'nope.py'}:draw")
