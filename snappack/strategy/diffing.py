"""Format codecs and comparators used to store and compare snapshots."""

from __future__ import annotations

from dataclasses import dataclass
import difflib
import json
from typing import Any, Callable, Generic, TypeVar

from snappack.strategy.canonical import canonical_json
from snappack.strategy.treediff import collect_tree_changes, render_tree_changes

Format = TypeVar("Format")


@dataclass(frozen=True, slots=True)
class Attachment:
    """Supplementary failure material, such as a patch or a rendered diff."""

    name: str
    content: bytes
    media_type: str = "application/octet-stream"


DiffResult = tuple[str, list[Attachment]]


@dataclass(frozen=True, slots=True)
class Diffing(Generic[Format]):
    """Converts artifacts to and from bytes and compares two artifacts.

    ``diff`` receives ``(reference, produced)`` and returns ``None`` when they
    match, otherwise a failure description and zero or more attachments.
    ``is_degenerate`` flags produced artifacts that are known to be empty
    because of producer races; the engine then compares the reference with
    itself.
    """

    to_bytes: Callable[[Format], bytes]
    from_bytes: Callable[[bytes], Format]
    diff: Callable[[Format, Format], DiffResult | None]
    is_degenerate: Callable[[Format], bool] | None = None


def lines_diffing() -> Diffing[str]:
    """UTF-8 text compared line by line with a unified diff."""
    return Diffing(
        to_bytes=lambda text: text.encode("utf-8"),
        from_bytes=lambda data: data.decode("utf-8"),
        diff=_diff_lines,
    )


def json_diffing(*, max_changes: int = 32) -> Diffing[Any]:
    """JSON-compatible trees stored as canonical JSON and compared by path."""

    def diff(reference: Any, produced: Any) -> DiffResult | None:
        changes, truncated = collect_tree_changes(reference, produced, max_changes=max_changes)
        if not changes:
            return None
        report = render_tree_changes(changes, truncated=truncated)
        payload = json.dumps(
            [change.to_dict() for change in changes],
            ensure_ascii=True,
            indent=2,
            sort_keys=True,
        )
        return report, [
            Attachment(
                name="changes.json",
                content=payload.encode("utf-8"),
                media_type="application/json",
            )
        ]

    return Diffing(
        to_bytes=lambda tree: canonical_json(tree).encode("utf-8"),
        from_bytes=lambda data: json.loads(data.decode("utf-8")),
        diff=diff,
    )


def data_diffing() -> Diffing[bytes]:
    """Raw bytes compared for exact equality."""
    return Diffing(
        to_bytes=bytes,
        from_bytes=bytes,
        diff=_diff_data,
    )


def _diff_lines(reference: str, produced: str) -> DiffResult | None:
    if reference == produced:
        return None

    patch = "\n".join(
        difflib.unified_diff(
            reference.splitlines(),
            produced.splitlines(),
            fromfile="reference",
            tofile="produced",
            lineterm="",
        )
    )
    if not patch:
        patch = "Texts differ only in line endings or trailing newlines."
    return patch, [
        Attachment(
            name="difference.patch",
            content=patch.encode("utf-8"),
            media_type="text/x-diff",
        )
    ]


def _diff_data(reference: bytes, produced: bytes) -> DiffResult | None:
    if reference == produced:
        return None

    offset = next(
        (idx for idx, (left, right) in enumerate(zip(reference, produced)) if left != right),
        min(len(reference), len(produced)),
    )
    return (
        f"Expected {len(reference)} bytes, got {len(produced)} bytes; "
        f"first difference at offset {offset}.",
        [],
    )
