"""Path-level change detection for JSON-compatible trees."""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any

_MISSING = object()


@dataclass(frozen=True, slots=True)
class ValueChange:
    """A single value delta at a JSON pointer path."""

    path: str
    left: Any
    right: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "left": self.left,
            "right": self.right,
        }


def collect_tree_changes(
    left: Any,
    right: Any,
    *,
    max_changes: int = 32,
) -> tuple[list[ValueChange], bool]:
    """Walk two trees and return (changes, truncated).

    Mapping keys are visited in sorted order and list items by position, so
    the change list is stable for identical inputs.
    """
    changes: list[ValueChange] = []
    truncated = _collect(left, right, path="", out=changes, max_changes=max(1, max_changes))
    return changes, truncated


def render_tree_changes(changes: list[ValueChange], *, truncated: bool) -> str:
    lines = [f"{len(changes)} value change(s):"]
    for change in changes:
        lines.append(
            f"  {change.path or '/'}: {_render_value(change.left)} -> {_render_value(change.right)}"
        )
    if truncated:
        lines.append("  ... additional changes omitted")
    return "\n".join(lines)


def _render_value(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def _record(out: list[ValueChange], change: ValueChange, max_changes: int) -> bool:
    if len(out) >= max_changes:
        return True
    out.append(change)
    return False


def _collect(
    left: Any,
    right: Any,
    *,
    path: str,
    out: list[ValueChange],
    max_changes: int,
) -> bool:
    if left is _MISSING or right is _MISSING:
        change = ValueChange(
            path=path,
            left="<MISSING>" if left is _MISSING else left,
            right="<MISSING>" if right is _MISSING else right,
        )
        return _record(out, change, max_changes)

    if type(left) is not type(right):
        return _record(out, ValueChange(path=path, left=left, right=right), max_changes)

    if isinstance(left, dict):
        truncated = False
        keys = sorted(set(left.keys()) | set(right.keys()), key=str)
        for key in keys:
            truncated |= _collect(
                left.get(key, _MISSING),
                right.get(key, _MISSING),
                path=f"{path}/{_escape_json_pointer(str(key))}",
                out=out,
                max_changes=max_changes,
            )
            if truncated:
                return True
        return False

    if isinstance(left, list):
        truncated = False
        for idx in range(max(len(left), len(right))):
            truncated |= _collect(
                left[idx] if idx < len(left) else _MISSING,
                right[idx] if idx < len(right) else _MISSING,
                path=f"{path}/{idx}",
                out=out,
                max_changes=max_changes,
            )
            if truncated:
                return True
        return False

    if left != right:
        return _record(out, ValueChange(path=path, left=left, right=right), max_changes)
    return False


def _escape_json_pointer(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")
