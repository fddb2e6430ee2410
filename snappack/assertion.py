"""Assertion helpers that fail tests when snapshots do not match."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Sequence, TypeVar

from snappack.config import VerifyConfig
from snappack.exceptions import SnapshotAssertionError
from snappack.paths import SnapshotCounter
from snappack.strategy.snapshotting import Snapshotting
from snappack.verify import (
    DEFAULT_TIMEOUT_SECONDS,
    AttachmentSink,
    default_test_identity,
    describe_error,
    run_verification,
)

Value = TypeVar("Value")
Format = TypeVar("Format")

FailureReport = Callable[[str], None]
Strategies = Mapping[str, Snapshotting[Value, Format]] | Sequence[Snapshotting[Value, Format]]


def assert_snapshot(
    value: Callable[[], Value],
    snapshotting: Snapshotting[Value, Format],
    *,
    name: str | None = None,
    record: bool = False,
    snapshot_directory: str | Path | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    source_file: str | Path | None = None,
    test_name: str | None = None,
    reference: Format | None = None,
    config: VerifyConfig | None = None,
    counter: SnapshotCounter | None = None,
    attachment_sink: AttachmentSink | None = None,
) -> None:
    """Raise ``SnapshotAssertionError`` unless the value matches its reference."""
    source_file, test_name = default_test_identity(source_file, test_name)

    result = run_verification(
        value,
        snapshotting,
        name=name,
        record=record,
        snapshot_directory=snapshot_directory,
        timeout=timeout,
        source_file=source_file,
        test_name=test_name,
        reference=reference,
        config=config,
        counter=counter,
        attachment_sink=attachment_sink,
    )
    if not result.passed:
        raise SnapshotAssertionError(result.message)


def assert_snapshots(
    value: Callable[[], Value],
    strategies: Strategies[Value, Format],
    *,
    record: bool = False,
    snapshot_directory: str | Path | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    source_file: str | Path | None = None,
    test_name: str | None = None,
    config: VerifyConfig | None = None,
    counter: SnapshotCounter | None = None,
    attachment_sink: AttachmentSink | None = None,
    report: FailureReport | None = None,
) -> None:
    """Check one value against several strategies.

    ``strategies`` is either a mapping of snapshot names to strategies or a
    plain sequence. Each mismatch is reported and the batch continues. If
    producing the value itself fails, that failure is reported and the
    remaining strategies are skipped.

    Failures go to ``report`` when given; otherwise they are raised together
    as one ``SnapshotAssertionError`` once the batch is done.
    """
    source_file, test_name = default_test_identity(source_file, test_name)

    if isinstance(strategies, Mapping):
        named = [(f"{test_name}-{key}", strategy) for key, strategy in strategies.items()]
    else:
        named = [(None, strategy) for strategy in strategies]
        if counter is None:
            counter = SnapshotCounter()

    failures: list[str] = []
    emit = report if report is not None else failures.append

    for snapshot_name, strategy in named:
        try:
            produced = value()
        except Exception as error:
            emit(describe_error(error))
            break

        result = run_verification(
            lambda produced=produced: produced,
            strategy,
            name=snapshot_name,
            record=record,
            snapshot_directory=snapshot_directory,
            timeout=timeout,
            source_file=source_file,
            test_name=test_name,
            config=config,
            counter=counter,
            attachment_sink=attachment_sink,
        )
        if not result.passed:
            emit(result.message or "")

    if failures:
        raise SnapshotAssertionError("\n\n".join(failures))


@dataclass(slots=True)
class SnapshotAsserter:
    """Snapshot assertions bound to one test's identity and settings."""

    source_file: Path
    test_name: str
    config: VerifyConfig | None = None
    snapshot_directory: Path | None = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    counter: SnapshotCounter = field(default_factory=SnapshotCounter)
    attachment_sink: AttachmentSink | None = None

    def verify(
        self,
        value: Callable[[], Value],
        snapshotting: Snapshotting[Value, Format],
        *,
        name: str | None = None,
        record: bool = False,
        reference: Format | None = None,
    ) -> str | None:
        result = run_verification(
            value,
            snapshotting,
            name=name,
            record=record,
            snapshot_directory=self.snapshot_directory,
            timeout=self.timeout,
            source_file=self.source_file,
            test_name=self.test_name,
            reference=reference,
            config=self.config,
            counter=self.counter,
            attachment_sink=self.attachment_sink,
        )
        return None if result.passed else result.message

    def assert_match(
        self,
        value: Callable[[], Value],
        snapshotting: Snapshotting[Value, Format],
        *,
        name: str | None = None,
        record: bool = False,
        reference: Format | None = None,
    ) -> None:
        message = self.verify(value, snapshotting, name=name, record=record, reference=reference)
        if message is not None:
            raise SnapshotAssertionError(message)

    def assert_matches(
        self,
        value: Callable[[], Value],
        strategies: Strategies[Value, Format],
        *,
        record: bool = False,
    ) -> None:
        assert_snapshots(
            value,
            strategies,
            record=record,
            snapshot_directory=self.snapshot_directory,
            timeout=self.timeout,
            source_file=self.source_file,
            test_name=self.test_name,
            config=self.config,
            counter=self.counter,
            attachment_sink=self.attachment_sink,
        )
