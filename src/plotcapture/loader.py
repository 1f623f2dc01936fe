# src/plotcapture/loader.py
from __future__ import annotations

import importlib
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable


@dataclass(frozen=True, slots=True)
class PlotTarget:
    module: str
    attr: str  # may be dotted, e.g. "Charts.sales"


def parse_target(value: str) -> PlotTarget:
    """
    Parse "package.module:callable" into (module, attr).

    A module part ending in ".py" is read as a file path instead.
    """
    if ":" not in value:
        raise ValueError("Plot target must be in the form 'package.module:callable'")

    module, attr = value.rsplit(":", 1)
    module = module.strip()
    attr = attr.strip()

    if not module:
        raise ValueError("Plot target module part is empty")
    if not attr:
        raise ValueError("Plot target attribute part is empty")

    return PlotTarget(module=module, attr=attr)


def _import_module(module: str) -> Any:
    if module.endswith(".py"):
        path = Path(module).expanduser().resolve()
        if not path.is_file():
            raise FileNotFoundError(f"No such plot script: {module}")
        # scripts import their siblings
        if str(path.parent) not in sys.path:
            sys.path.insert(0, str(path.parent))
        return importlib.import_module(path.stem)
    return importlib.import_module(module)


def load_plot_callable(value: str) -> Callable[[], Any]:
    """
    Load the plotting callable named by "package.module:callable".
    """
    target = parse_target(value)
    obj: Any = _import_module(target.module)
    for part in target.attr.split("."):
        obj = getattr(obj, part)

    if not callable(obj):
        raise TypeError(f"Plot target is not callable: {value!r} (type={type(obj)!r})")
    return obj
