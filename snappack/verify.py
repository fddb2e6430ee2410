"""Record/compare workflow that checks a value against its reference on disk."""

from __future__ import annotations

from dataclasses import dataclass, field
import inspect
import logging
from pathlib import Path
from typing import Any, Callable, Literal, TypeVar

from snappack.config import VerifyConfig, get_active_config
from snappack.paths import (
    SnapshotCounter,
    SnapshotLocation,
    resolve_snapshot_location,
    sanitize_path_component,
)
from snappack.strategy.asyncresult import wait_for
from snappack.strategy.diffing import Attachment
from snappack.strategy.snapshotting import Snapshotting

logger = logging.getLogger(__name__)

Value = TypeVar("Value")
Format = TypeVar("Format")

VerificationStatus = Literal["pass", "recorded", "missing", "fail", "error"]
AttachmentSink = Callable[[str, list[Attachment]], None]

DEFAULT_TIMEOUT_SECONDS = 5.0
ATTACHMENT_ACTIVITY_NAME = "Attached Failure Diff"


@dataclass(slots=True)
class SnapshotVerification:
    """Outcome of one verification call."""

    test_name: str
    status: VerificationStatus
    location: SnapshotLocation | None = None
    message: str | None = None
    wrote_reference: bool = False
    wrote_failed: bool = False
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.status == "pass"

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "exit_code": self.exit_code,
            "test_name": self.test_name,
            "location": self.location.to_dict() if self.location is not None else None,
            "message": self.message,
            "wrote_reference": self.wrote_reference,
            "wrote_failed": self.wrote_failed,
            "attachments": [attachment.name for attachment in self.attachments],
        }


def verify_snapshot(
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
) -> str | None:
    """Verify that a value matches its reference on disk.

    Returns ``None`` when the value matches, otherwise a failure message.
    Helpers for other test frameworks can be built on top of this function:
    call it with your own arguments and fail the test with the returned
    message when it is not ``None``.

    Args:
        value: Zero-argument callable producing the value to snapshot.
        snapshotting: Strategy for rendering, storing and comparing the value.
        name: Replaces the test name segment of the reference file name.
        record: Write a new reference instead of comparing.
        snapshot_directory: Directory for references. Defaults to
            ``__snapshots__/<source stem>`` next to ``source_file``.
        timeout: Seconds to wait for the artifact to be produced.
        source_file: File the test lives in. Defaults to the caller's file.
        test_name: Name of the test. Defaults to the caller's function name.
        reference: Compare against this artifact instead of the file on disk.
        config: Process switches. Defaults to the active/environment config.
        counter: Numbers repeated resolutions of the same reference file.
        attachment_sink: Receives failure attachments in interactive runs.
    """
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
    return None if result.passed else result.message


def verify_snapshot_result(
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
) -> SnapshotVerification:
    """Same workflow as ``verify_snapshot`` with a structured result."""
    source_file, test_name = default_test_identity(source_file, test_name)

    return run_verification(
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


def run_verification(
    value: Callable[[], Value],
    snapshotting: Snapshotting[Value, Format],
    *,
    source_file: str | Path,
    test_name: str,
    name: str | None = None,
    record: bool = False,
    snapshot_directory: str | Path | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    reference: Format | None = None,
    config: VerifyConfig | None = None,
    counter: SnapshotCounter | None = None,
    attachment_sink: AttachmentSink | None = None,
) -> SnapshotVerification:
    """Run the record/compare workflow with an explicit test identity.

    Every failure, including I/O and decoding errors, is reported through the
    returned result; nothing escapes as an exception.
    """
    identifier = name if name is not None else test_name
    display_name = sanitize_path_component(identifier)
    location: SnapshotLocation | None = None

    try:
        active = config if config is not None else get_active_config()
        recording = record or active.record_all

        location = resolve_snapshot_location(
            source_file,
            identifier,
            path_extension=snapshotting.path_extension,
            snapshot_directory=snapshot_directory,
            dump_path=active.dump_path,
            counter=counter,
        )
        logger.debug(
            "verifying snapshot %s at %s (recording=%s ci=%s)",
            display_name,
            location.current_file,
            recording,
            active.is_ci,
        )
        may_write = not active.is_ci or location.uses_dump_path

        if not active.is_ci and not location.uses_dump_path:
            location.directory.mkdir(parents=True, exist_ok=True)

        produced = wait_for(snapshotting.snapshot(value()), timeout=timeout)
        diffing = snapshotting.diffing

        if recording or (reference is None and not location.current_file.exists()):
            return _record_reference(
                diffing.to_bytes(produced),
                location=location,
                test_name=display_name,
                recording=recording,
                may_write=may_write,
            )

        if reference is not None:
            reference_bytes = diffing.to_bytes(reference)
        else:
            reference_bytes = location.current_file.read_bytes()
        reference_artifact = diffing.from_bytes(reference_bytes)

        if diffing.is_degenerate is not None and diffing.is_degenerate(produced):
            logger.debug("produced artifact for %s is degenerate; using reference", display_name)
            produced = reference_artifact

        outcome = diffing.diff(reference_artifact, produced)
        if outcome is None:
            return SnapshotVerification(test_name=display_name, status="pass", location=location)

        failure, attachments = outcome
        wrote_failed = False
        if may_write:
            location.failed_file.write_bytes(diffing.to_bytes(produced))
            wrote_failed = True
            logger.info("wrote failed snapshot %s", location.failed_file)

        if attachments and active.interactive and attachment_sink is not None:
            attachment_sink(ATTACHMENT_ACTIVITY_NAME, list(attachments))

        return SnapshotVerification(
            test_name=display_name,
            status="fail",
            location=location,
            message=render_mismatch_message(location, failure, diff_tool=active.diff_tool),
            wrote_failed=wrote_failed,
            attachments=list(attachments),
        )
    except Exception as error:
        logger.debug("snapshot %s failed with %r", display_name, error)
        return SnapshotVerification(
            test_name=display_name,
            status="error",
            location=location,
            message=describe_error(error),
        )


def render_mismatch_message(
    location: SnapshotLocation,
    failure: str,
    *,
    diff_tool: str | None = None,
) -> str:
    current = location.current_file
    failed = location.failed_file
    if diff_tool:
        diff_line = f'{diff_tool} "{current}" "{failed}"'
    else:
        diff_line = f'@−\n"{current}"\n@+\n"{failed}"'
    return f"Snapshot does not match reference.\n\n{diff_line}\n\n{failure.strip()}"


def describe_error(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


def caller_identity(depth: int = 1) -> tuple[str, str]:
    """Return (file, function name) of the frame ``depth`` levels above the caller."""
    frame = inspect.currentframe()
    try:
        target = frame.f_back if frame is not None else None
        for _ in range(depth):
            if target is None or target.f_back is None:
                break
            target = target.f_back
        if target is None:
            return "<unknown>", "<unknown>"
        return target.f_code.co_filename, target.f_code.co_name
    finally:
        del frame


def default_test_identity(
    source_file: str | Path | None,
    test_name: str | None,
) -> tuple[str | Path, str]:
    """Fill a missing file or test name from the public API function's caller."""
    if source_file is not None and test_name is not None:
        return source_file, test_name
    caller_file, caller_name = caller_identity(depth=2)
    return (
        source_file if source_file is not None else caller_file,
        test_name if test_name is not None else caller_name,
    )


def _record_reference(
    payload: bytes,
    *,
    location: SnapshotLocation,
    test_name: str,
    recording: bool,
    may_write: bool,
) -> SnapshotVerification:
    if not may_write:
        message = (
            f"Record mode for {test_name} is on."
            if recording
            else "No reference was found on disk."
        )
        return SnapshotVerification(
            test_name=test_name,
            status="recorded" if recording else "missing",
            location=location,
            message=message,
        )

    location.current_file.write_bytes(payload)
    logger.info("recorded snapshot %s", location.current_file)

    if recording:
        message = (
            f'Record mode is on. Turn record mode off and re-run "{test_name}" '
            "to test against the newly-recorded snapshot.\n"
            "\n"
            f'open "{location.current_file}"'
        )
    else:
        message = (
            "No reference was found on disk. Automatically recorded snapshot:\n"
            "\n"
            f'open "{location.current_file}"\n'
            "\n"
            f'Re-run "{test_name}" to test against the newly-recorded snapshot.'
        )
    return SnapshotVerification(
        test_name=test_name,
        status="recorded",
        location=location,
        message=message,
        wrote_reference=True,
    )
