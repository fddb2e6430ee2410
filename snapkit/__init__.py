"""Stable public API surface for SnapKit.

This module is the supported import path for library users.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, TypeVar

from snappack.assertion import SnapshotAsserter, assert_snapshot, assert_snapshots
from snappack.config import VerifyConfig, load_config_file, use_config
from snappack.exceptions import SnapshotAssertionError, SnapshotError
from snappack.paths import (
    SnapshotCounter,
    SnapshotLocation,
    resolve_snapshot_location,
    sanitize_path_component,
)
from snappack.strategy import (
    Async,
    Attachment,
    Diffing,
    Snapshotting,
    data,
    dump,
    json_tree,
    lines,
    text,
)
from snappack.verify import (
    SnapshotVerification,
    caller_identity,
    verify_snapshot,
    verify_snapshot_result,
)

__version__ = "0.1.0"

Value = TypeVar("Value")
Format = TypeVar("Format")


def check(
    value: Callable[[], Value],
    snapshotting: Snapshotting[Value, Format],
    *,
    name: str | None = None,
    record: bool = False,
    snapshot_directory: str | Path | None = None,
    timeout: float = 5.0,
    config: VerifyConfig | None = None,
) -> SnapshotVerification:
    """Verify a value against its reference and return a structured result.

    The reference location is derived from the calling function's file and
    name, exactly as ``assert_snapshot`` does.

    Args:
        value: Zero-argument callable producing the value.
        snapshotting: Strategy used to render, store and compare the value.
        name: Optional snapshot name replacing the test name segment.
        record: Write a new reference instead of comparing.
        snapshot_directory: Optional reference directory override.
        timeout: Seconds allowed for producing the artifact.
        config: Optional explicit configuration (defaults to the environment).

    Returns:
        Verification result with status, location and failure message.
    """
    source_file, test_name = caller_identity()
    return verify_snapshot_result(
        value,
        snapshotting,
        name=name,
        record=record,
        snapshot_directory=snapshot_directory,
        timeout=timeout,
        source_file=source_file,
        test_name=test_name,
        config=config,
    )


__all__ = [
    "__version__",
    "Async",
    "Attachment",
    "Diffing",
    "Snapshotting",
    "SnapshotAsserter",
    "SnapshotAssertionError",
    "SnapshotCounter",
    "SnapshotError",
    "SnapshotLocation",
    "SnapshotVerification",
    "VerifyConfig",
    "lines",
    "text",
    "dump",
    "json_tree",
    "data",
    "assert_snapshot",
    "assert_snapshots",
    "verify_snapshot",
    "check",
    "resolve_snapshot_location",
    "sanitize_path_component",
    "load_config_file",
    "use_config",
]
