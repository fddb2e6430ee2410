"""Review helpers for failed snapshot copies left behind by mismatches."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import re
from typing import Any

from snappack.paths import FAILED_SUFFIX

logger = logging.getLogger(__name__)

_FAILED_NAME_RE = re.compile(rf"(?P<name>.+){re.escape(FAILED_SUFFIX)}(?P<extension>\.[^.]*)?")


@dataclass(frozen=True, slots=True)
class PendingSnapshot:
    """A failed copy and the reference it would replace."""

    failed_path: Path
    reference_path: Path

    @property
    def reference_exists(self) -> bool:
        return self.reference_path.exists()

    def to_dict(self) -> dict[str, Any]:
        return {
            "failed_path": str(self.failed_path),
            "reference_path": str(self.reference_path),
            "reference_exists": self.reference_exists,
        }


def reference_path_for_failed(failed_path: str | Path) -> Path | None:
    """Map ``<name>-failed<ext>`` to ``<name><ext>``; ``None`` for other files."""
    path = Path(failed_path)
    match = _FAILED_NAME_RE.fullmatch(path.name)
    if match is None:
        return None
    return path.with_name(f"{match.group('name')}{match.group('extension') or ''}")


def find_pending_snapshots(directory: str | Path) -> list[PendingSnapshot]:
    """List failed snapshot copies under ``directory``, sorted by path."""
    root = Path(directory)
    if not root.is_dir():
        return []

    pending: list[PendingSnapshot] = []
    for candidate in sorted(root.rglob(f"*{FAILED_SUFFIX}*")):
        if not candidate.is_file():
            continue
        reference = reference_path_for_failed(candidate)
        if reference is None:
            continue
        pending.append(PendingSnapshot(failed_path=candidate, reference_path=reference))
    return pending


def accept_pending_snapshots(directory: str | Path) -> list[PendingSnapshot]:
    """Promote failed copies over their references and remove the copies.

    Only copies whose reference already exists are promoted. Failed copies
    are written only when comparing against a reference, so a "failed" file
    without one is a reference in its own right (for example the recording
    of a test parametrized with id ``failed``) and is left alone.
    """
    accepted = [item for item in find_pending_snapshots(directory) if item.reference_exists]
    for item in accepted:
        item.failed_path.replace(item.reference_path)
        logger.info("accepted %s -> %s", item.failed_path, item.reference_path)
    return accepted
