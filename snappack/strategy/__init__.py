"""Snapshotting and diffing strategies."""

from snappack.strategy.asyncresult import Async, wait_for
from snappack.strategy.canonical import canonical_json, canonicalize
from snappack.strategy.diffing import (
    Attachment,
    DiffResult,
    Diffing,
    data_diffing,
    json_diffing,
    lines_diffing,
)
from snappack.strategy.snapshotting import Snapshotting, data, dump, json_tree, lines, text
from snappack.strategy.treediff import ValueChange, collect_tree_changes, render_tree_changes

__all__ = [
    "Async",
    "wait_for",
    "Attachment",
    "DiffResult",
    "Diffing",
    "lines_diffing",
    "json_diffing",
    "data_diffing",
    "Snapshotting",
    "lines",
    "text",
    "dump",
    "json_tree",
    "data",
    "canonicalize",
    "canonical_json",
    "ValueChange",
    "collect_tree_changes",
    "render_tree_changes",
]
