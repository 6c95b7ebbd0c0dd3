"""
Diagnostic helpers for operator and graph validation errors.

Lightweight on purpose (no color dependencies); supports "did you mean"
suggestions and a one-line rendering of a graph node for error messages.
"""

from __future__ import annotations

import difflib
from typing import Any, Iterable, List, Sequence


def closest_match(name: str, candidates: Iterable[str], *, n: int = 1) -> List[str]:
    return list(difflib.get_close_matches(str(name), list(candidates), n=n, cutoff=0.6))


def format_node_snippet(node: Any, *, idx: int | None = None) -> str:
    """
    Human-readable node string, e.g. ``node[2]: softmax_bp(x, g, y) -> softmax_bp``.
    """
    op_name = getattr(node, "op", None)
    inputs = list(getattr(node, "inputs", None) or [])
    out = getattr(node, "output", None)
    iargs = list(getattr(node, "iargs", None) or [])
    prefix = f"node[{idx}]: " if isinstance(idx, int) else ""
    suffix = f" iargs={iargs}" if iargs else ""
    return f"{prefix}{op_name}({', '.join(str(i) for i in inputs)}) -> {out}{suffix}"


def unknown_name_message(kind: str, name: str, known: Sequence[str]) -> str:
    lines = [f"unknown {kind}: {name!r}"]
    sugg = closest_match(name, known, n=1)
    if sugg:
        lines.append(f"Note: Did you mean '{sugg[0]}'?")
    lines.append(f"Note: Known {kind}s: {sorted(known)}")
    return "\n".join(lines)


__all__ = [
    "closest_match",
    "format_node_snippet",
    "unknown_name_message",
]
