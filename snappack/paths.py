"""Reference file location resolution for snapshot tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import re
import threading
from typing import Any

SNAPSHOTS_DIRNAME = "__snapshots__"
FAILED_SUFFIX = "-failed"

_NON_WORD_RE = re.compile(r"\W+")
_EDGE_SEPARATOR_RE = re.compile(r"^-|-$")


@dataclass(frozen=True, slots=True)
class SnapshotLocation:
    """Where a snapshot's reference and failed copies live."""

    directory: Path
    current_file: Path
    failed_file: Path
    uses_dump_path: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "directory": str(self.directory),
            "current_file": str(self.current_file),
            "failed_file": str(self.failed_file),
            "uses_dump_path": self.uses_dump_path,
        }


@dataclass(slots=True)
class SnapshotCounter:
    """Counts how often each reference path was resolved.

    Used to give repeated unnamed snapshots within one test distinct files.
    """

    _counts: dict[Path, int] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def next(self, key: Path) -> int:
        with self._lock:
            count = self._counts.get(key, 0) + 1
            self._counts[key] = count
            return count

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()


def sanitize_path_component(text: str) -> str:
    """Collapse every run of non-word characters to ``-`` and trim the ends."""
    return _EDGE_SEPARATOR_RE.sub("", _NON_WORD_RE.sub("-", text))


def reference_file_name(
    test_name: str,
    source_file: str | Path,
    *,
    failed: bool = False,
    repeat: int = 1,
) -> str:
    """Return ``<source stem>-<sanitized test name>``.

    Repeats after the first get ``.<repeat>`` after the sanitized segment;
    sanitized names never contain ``.``, so a numbered name cannot collide
    with another test's name. ``-failed`` goes last when requested.
    """
    name = f"{Path(source_file).stem}-{sanitize_path_component(test_name)}"
    if repeat > 1:
        name += f".{repeat}"
    if failed:
        name += FAILED_SUFFIX
    return name


def default_snapshot_directory(source_file: str | Path) -> Path:
    source = Path(source_file)
    return source.parent / SNAPSHOTS_DIRNAME / source.stem


def resolve_snapshot_location(
    source_file: str | Path,
    test_name: str,
    *,
    path_extension: str | None = None,
    snapshot_directory: str | Path | None = None,
    dump_path: str | Path | None = None,
    counter: SnapshotCounter | None = None,
) -> SnapshotLocation:
    """Resolve reference and failed file paths without touching the filesystem.

    A dump path wins over every other directory and yields a flat layout.
    When a ``counter`` is given, the second and later resolutions of the same
    reference file get ``.2``, ``.3``, ... appended to the test segment.
    """
    if dump_path:
        directory = Path(dump_path)
    elif snapshot_directory:
        directory = Path(snapshot_directory)
    else:
        directory = default_snapshot_directory(source_file)

    suffix = f".{path_extension}" if path_extension else ""

    repeat = 1
    if counter is not None:
        repeat = counter.next(directory / f"{reference_file_name(test_name, source_file)}{suffix}")

    current_name = reference_file_name(test_name, source_file, repeat=repeat)
    failed_name = reference_file_name(test_name, source_file, failed=True, repeat=repeat)
    return SnapshotLocation(
        directory=directory,
        current_file=directory / f"{current_name}{suffix}",
        failed_file=directory / f"{failed_name}{suffix}",
        uses_dump_path=bool(dump_path),
    )
