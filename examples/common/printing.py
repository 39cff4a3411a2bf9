# SPDX-License-Identifier: Apache-2.0
"""
Tiny, dependency-free pretty-print helpers for examples.

Includes:
  • box          - simple boxed section headers
  • print_kv     - aligned key/value output
  • print_json   - pretty JSON (dataclasses and enums included)
  • print_table  - fixed-width ASCII table (auto-fit / truncate)
"""
from __future__ import annotations

import dataclasses
import json
import shutil
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, List, Mapping, Sequence

__all__ = ["box", "print_kv", "print_json", "print_table"]


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _term_width(default: int = 100) -> int:
    """Detect terminal width with a safe fallback."""
    cols = shutil.get_terminal_size((default, 20)).columns
    return max(40, min(cols, 200))


def _plain(x: Any) -> Any:
    """Reduce dataclasses, enums and datetimes to JSON-friendly values."""
    if dataclasses.is_dataclass(x) and not isinstance(x, type):
        return {f.name: _plain(getattr(x, f.name)) for f in dataclasses.fields(x)}
    if isinstance(x, Enum):
        return x.value
    if isinstance(x, datetime):
        return x.isoformat()
    if isinstance(x, Mapping):
        return {str(k): _plain(v) for k, v in x.items()}
    if isinstance(x, (list, tuple)):
        return [_plain(v) for v in x]
    return x


def _to_str(x: Any) -> str:
    x = _plain(x)
    if isinstance(x, (dict, list)):
        return json.dumps(x, ensure_ascii=False)
    return str(x)


# ----------------------------------------------------------------------
# Public functions
# ----------------------------------------------------------------------

def box(title: str, *, fill: str = "─", color: str | None = None) -> None:
    """
    Print a single-line boxed title.

    Args:
        title: Text to display in the box
        fill: Character to use for the horizontal line
        color: Optional ANSI color code (e.g., '36' for cyan)
    """
    width = _term_width()
    title = f" {title.strip()} "
    bar = fill * min(len(title), width - 4)

    color_start = f"\033[{color}m" if color else ""
    color_end = "\033[0m" if color else ""

    print(f"\n{color_start}┌{bar}┐{color_end}")
    print(f"{color_start}│{title.center(len(bar))}│{color_end}")
    print(f"{color_start}└{bar}┘{color_end}\n")


def print_kv(
    pairs: Mapping[str, Any] | Sequence[tuple[str, Any]],
    *,
    indent: int = 2,
) -> None:
    """Print aligned key/value pairs."""
    items = list(pairs.items()) if isinstance(pairs, Mapping) else list(pairs)
    if not items:
        return
    k_width = max(len(str(k)) for k, _ in items)
    for k, v in items:
        print(" " * indent + f"{str(k).rjust(k_width)}: {_to_str(v)}")


def print_json(obj: Any, *, indent: int = 2) -> None:
    print(json.dumps(_plain(obj), indent=indent, ensure_ascii=False))


def print_table(
    rows: Iterable[Mapping[str, Any]],
    headers: Sequence[str],
    *,
    max_width: int | None = None,
    truncate_marker: str = "…",
) -> None:
    """Print dict rows as a fixed-width ASCII table, truncating wide cells."""
    data: List[List[str]] = [[_to_str(r.get(h, "")) for h in headers] for r in rows]
    if not data:
        return

    cols = len(headers)
    col_widths = [max(len(h), *(len(row[i]) for row in data)) for i, h in enumerate(headers)]
    width_limit = max_width or _term_width()
    total_width = sum(col_widths) + 3 * (cols - 1)
    if total_width > width_limit:
        scale = (width_limit - 3 * (cols - 1)) / max(1, sum(col_widths))
        col_widths = [max(4, int(w * scale)) for w in col_widths]

    def fit(cell: str, w: int) -> str:
        if len(cell) <= w:
            return cell.ljust(w)
        return cell[: w - len(truncate_marker)] + truncate_marker

    print(" | ".join(fit(h, col_widths[i]) for i, h in enumerate(headers)))
    print("-+-".join("-" * w for w in col_widths))
    for row in data:
        print(" | ".join(fit(row[i], col_widths[i]) for i in range(cols)))
