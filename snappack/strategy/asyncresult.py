"""Single-shot asynchronous producers and the bounded wait around them."""

from __future__ import annotations

import threading
from typing import Callable, Generic, TypeVar

from snappack.exceptions import SnapshotProductionError, SnapshotTimeoutError

T = TypeVar("T")
U = TypeVar("U")


class Async(Generic[T]):
    """A value delivered once, at some later point, to a callback.

    ``run`` receives a callback and may call it synchronously, or hand it to
    another thread or event loop. Only the first delivery counts.
    """

    __slots__ = ("_run",)

    def __init__(self, run: Callable[[Callable[[T], None]], None]) -> None:
        self._run = run

    @classmethod
    def of(cls, value: T) -> Async[T]:
        """Wrap an already available value."""
        return cls(lambda callback: callback(value))

    def run(self, callback: Callable[[T], None]) -> None:
        self._run(callback)

    def map(self, transform: Callable[[T], U]) -> Async[U]:
        def run(callback: Callable[[U], None]) -> None:
            self._run(lambda value: callback(transform(value)))

        return Async(run)


def wait_for(producer: Async[T | None], *, timeout: float) -> T:
    """Run ``producer`` on a worker thread and block for its first delivery.

    Raises ``SnapshotTimeoutError`` when nothing is delivered within
    ``timeout`` seconds. The worker is not cancelled on timeout. An exception
    raised by the producer before it delivers is re-raised here.
    """
    resolved = threading.Event()
    lock = threading.Lock()
    outcome: dict[str, object] = {}

    def deliver(value: T | None) -> None:
        with lock:
            if resolved.is_set():
                return
            outcome["value"] = value
            resolved.set()

    def work() -> None:
        try:
            producer.run(deliver)
        except Exception as error:
            with lock:
                if resolved.is_set():
                    return
                outcome["error"] = error
                resolved.set()

    worker = threading.Thread(target=work, name="snapkit-producer", daemon=True)
    worker.start()

    if not resolved.wait(timeout):
        raise SnapshotTimeoutError(_timeout_message(timeout))

    error = outcome.get("error")
    if isinstance(error, Exception):
        raise error

    value = outcome.get("value")
    if value is None:
        raise SnapshotProductionError("Couldn't snapshot value")
    return value  # type: ignore[return-value]


def _timeout_message(timeout: float) -> str:
    return (
        f"Exceeded timeout of {timeout} seconds waiting for snapshot.\n"
        "\n"
        "This can happen when asynchronously produced content (for example, content "
        "that loads from an external source) has not settled. Ensure every part of the "
        "value has finished loading to avoid timeouts, or, if a timeout is unavoidable, "
        'consider setting the "timeout" parameter of "assert_snapshot" to a higher value.'
    )
