"""Test configuration for module import paths."""

from __future__ import annotations

import sys
from pathlib import Path


def _ensure_on_path() -> None:
    root = Path(__file__).resolve().parents[1]
    for path in (root / "src", root):
        value = str(path)
        if value not in sys.path:
            sys.path.insert(0, value)


_ensure_on_path()
