"""Value-to-artifact strategies bound to a diffing strategy."""

from __future__ import annotations

from dataclasses import dataclass
import pprint
from typing import Any, Callable, Generic, TypeVar

from snappack.strategy.asyncresult import Async
from snappack.strategy.canonical import canonicalize
from snappack.strategy.diffing import Diffing, data_diffing, json_diffing, lines_diffing

Value = TypeVar("Value")
NewValue = TypeVar("NewValue")
Format = TypeVar("Format")


@dataclass(frozen=True, slots=True)
class Snapshotting(Generic[Value, Format]):
    """How to turn a value into a comparable artifact and where to keep it."""

    snapshot: Callable[[Value], Async[Format]]
    diffing: Diffing[Format]
    path_extension: str | None = None

    @classmethod
    def sync(
        cls,
        render: Callable[[Value], Format],
        diffing: Diffing[Format],
        path_extension: str | None = None,
    ) -> Snapshotting[Value, Format]:
        """Build a strategy from a plain rendering function."""
        return cls(
            snapshot=lambda value: Async.of(render(value)),
            diffing=diffing,
            path_extension=path_extension,
        )

    def pullback(self, transform: Callable[[NewValue], Value]) -> Snapshotting[NewValue, Format]:
        """Reuse this strategy for another value type via ``transform``."""
        snapshot = self.snapshot
        return Snapshotting(
            snapshot=lambda value: snapshot(transform(value)),
            diffing=self.diffing,
            path_extension=self.path_extension,
        )

    def async_pullback(
        self,
        transform: Callable[[NewValue], Async[Value]],
    ) -> Snapshotting[NewValue, Format]:
        """Like ``pullback`` for transforms that deliver their result later."""
        snapshot = self.snapshot

        def produce(value: NewValue) -> Async[Format]:
            def run(callback: Callable[[Format], None]) -> None:
                transform(value).run(lambda converted: snapshot(converted).run(callback))

            return Async(run)

        return Snapshotting(
            snapshot=produce,
            diffing=self.diffing,
            path_extension=self.path_extension,
        )


def lines() -> Snapshotting[str, str]:
    return Snapshotting.sync(lambda text: text, lines_diffing(), "txt")


def text() -> Snapshotting[Any, str]:
    """Snapshot ``str(value)`` as text."""
    return lines().pullback(str)


def dump() -> Snapshotting[Any, str]:
    """Snapshot a pretty-printed ``repr`` of any value."""
    return lines().pullback(lambda value: pprint.pformat(value, width=100, sort_dicts=True) + "\n")


def json_tree(
    *,
    ignore_keys: frozenset[str] | set[str] = frozenset(),
    max_changes: int = 32,
) -> Snapshotting[Any, Any]:
    """Snapshot a JSON-compatible value (or dataclass) as canonical JSON.

    Keys listed in ``ignore_keys`` are dropped before storing and comparing,
    which keeps volatile fields such as timestamps out of the reference.
    """
    ignored = frozenset(ignore_keys)
    return Snapshotting.sync(
        lambda value: canonicalize(value, ignore_keys=ignored),
        json_diffing(max_changes=max_changes),
        "json",
    )


def data() -> Snapshotting[bytes, bytes]:
    return Snapshotting.sync(bytes, data_diffing(), "bin")
