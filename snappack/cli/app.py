import json
from importlib.metadata import PackageNotFoundError, version as package_version
from pathlib import Path
from dataclasses import dataclass
from typing import Any

import typer

from snappack.config import VerifyConfig
from snappack.exceptions import SnapshotConfigError
from snappack.paths import resolve_snapshot_location
from snappack.review import accept_pending_snapshots, find_pending_snapshots
from snappack.strategy import Diffing, data_diffing, json_diffing, lines_diffing

app = typer.Typer(help="SnapKit CLI")


@dataclass(slots=True)
class _OutputOptions:
    quiet: bool = False
    no_color: bool = False
    stable_json: bool = True


_OUTPUT_OPTIONS = _OutputOptions()
_DIFFING_FORMATS = ("lines", "json", "data")


def _resolve_cli_version() -> str:
    try:
        return package_version("snapkit")
    except PackageNotFoundError:
        from snapkit import __version__ as local_version

        return local_version


def _version_callback(value: bool) -> None:
    if not value:
        return
    typer.echo(_resolve_cli_version(), color=False)
    raise typer.Exit()


@app.callback()
def app_options(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show SnapKit version and exit.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        help="Suppress non-error text output.",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable ANSI color output.",
    ),
    stable_json: bool = typer.Option(
        True,
        "--stable-json/--pretty-json",
        help="Emit stable compact JSON (or pretty JSON).",
    ),
) -> None:
    """Global output controls for all CLI commands."""
    _OUTPUT_OPTIONS.quiet = quiet
    _OUTPUT_OPTIONS.no_color = no_color
    _OUTPUT_OPTIONS.stable_json = stable_json


def _echo(message: str, *, err: bool = False, force: bool = False) -> None:
    if _OUTPUT_OPTIONS.quiet and not err and not force:
        return
    typer.echo(message, err=err, color=not _OUTPUT_OPTIONS.no_color)


def _echo_json(payload: dict[str, Any], *, err: bool = False) -> None:
    if _OUTPUT_OPTIONS.stable_json:
        rendered = json.dumps(
            payload,
            ensure_ascii=True,
            sort_keys=True,
            separators=(",", ":"),
        )
    else:
        rendered = json.dumps(
            payload,
            ensure_ascii=True,
            sort_keys=True,
            indent=2,
        )
    typer.echo(rendered, err=err, color=not _OUTPUT_OPTIONS.no_color)


def _diffing_for_format(format_name: str) -> Diffing[Any]:
    normalized = format_name.strip().lower()
    if normalized == "lines":
        return lines_diffing()
    if normalized == "json":
        return json_diffing()
    if normalized == "data":
        return data_diffing()
    raise typer.BadParameter(
        f"Unsupported format: {format_name}. Supported values: {', '.join(_DIFFING_FORMATS)}.",
        param_hint="--format",
    )


def _load_env_config(json_output: bool, command: str) -> VerifyConfig:
    try:
        return VerifyConfig.from_env()
    except SnapshotConfigError as error:
        message = f"{command} failed: {error}"
        if json_output:
            _echo_json({"status": "error", "exit_code": 1, "message": message})
        else:
            _echo(message, err=True)
        raise typer.Exit(code=1) from error


@app.command()
def paths(
    source_file: Path = typer.Argument(..., help="Test source file the snapshot belongs to."),
    test_name: str = typer.Argument(..., help="Test name (sanitized into the file name)."),
    snapshot_dir: Path | None = typer.Option(
        None,
        "--snapshot-dir",
        help="Explicit snapshot directory (defaults to __snapshots__/<file stem>).",
    ),
    extension: str | None = typer.Option(
        None,
        "--extension",
        "-e",
        help="Reference file extension declared by the snapshotting strategy.",
    ),
    name: str | None = typer.Option(
        None,
        "--name",
        help="Snapshot name that replaces the test name segment.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable location output.",
    ),
) -> None:
    """Show where a test's reference and failed snapshot files live."""
    config = _load_env_config(json_output, "paths")
    location = resolve_snapshot_location(
        source_file,
        name if name is not None else test_name,
        path_extension=extension,
        snapshot_directory=snapshot_dir,
        dump_path=config.dump_path,
    )

    if json_output:
        _echo_json({"status": "ok", "exit_code": 0, **location.to_dict()})
        return

    _echo(f"directory: {location.directory}")
    _echo(f"reference: {location.current_file}")
    _echo(f"failed:    {location.failed_file}")
    if location.uses_dump_path:
        _echo("dump path override in effect")


@app.command()
def diff(
    reference: Path = typer.Argument(..., help="Reference snapshot file."),
    candidate: Path = typer.Argument(..., help="Candidate snapshot file."),
    format_name: str = typer.Option(
        "lines",
        "--format",
        "-f",
        help="Diffing format: lines, json or data.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable diff output.",
    ),
) -> None:
    """Compare two snapshot files with a built-in diffing strategy."""
    diffing = _diffing_for_format(format_name)
    try:
        reference_artifact = diffing.from_bytes(reference.read_bytes())
        candidate_artifact = diffing.from_bytes(candidate.read_bytes())
        outcome = diffing.diff(reference_artifact, candidate_artifact)
    except (OSError, ValueError) as error:
        message = f"diff failed: {error}"
        if json_output:
            _echo_json(
                {
                    "status": "error",
                    "exit_code": 1,
                    "reference": str(reference),
                    "candidate": str(candidate),
                    "message": message,
                }
            )
        else:
            _echo(message, err=True)
        raise typer.Exit(code=1) from error

    status = "pass" if outcome is None else "fail"
    failure = outcome[0].strip() if outcome is not None else None
    if json_output:
        _echo_json(
            {
                "status": status,
                "exit_code": 0 if outcome is None else 1,
                "reference": str(reference),
                "candidate": str(candidate),
                "format": format_name,
                "failure": failure,
                "attachments": [item.name for item in outcome[1]] if outcome is not None else [],
            }
        )
    elif outcome is None:
        _echo(f"snapshots match: reference={reference} candidate={candidate}")
    else:
        _echo(
            f"snapshots differ: reference={reference} candidate={candidate}",
            force=True,
        )
        _echo(failure or "", force=True)

    if outcome is not None:
        raise typer.Exit(code=1)


@app.command()
def pending(
    directory: Path = typer.Argument(Path("."), help="Directory to scan for failed snapshots."),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable listing.",
    ),
) -> None:
    """List failed snapshot copies awaiting review."""
    items = find_pending_snapshots(directory)
    if json_output:
        _echo_json(
            {
                "status": "ok",
                "exit_code": 0,
                "directory": str(directory),
                "count": len(items),
                "pending": [item.to_dict() for item in items],
            }
        )
        return

    if not items:
        _echo(f"no failed snapshots under {directory}")
        return
    for item in items:
        marker = "" if item.reference_exists else " (no reference, skipped by accept)"
        _echo(f"{item.failed_path} -> {item.reference_path}{marker}", force=True)


@app.command()
def accept(
    directory: Path = typer.Argument(Path("."), help="Directory to scan for failed snapshots."),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable output.",
    ),
) -> None:
    """Replace references with their failed copies."""
    try:
        accepted = accept_pending_snapshots(directory)
    except OSError as error:
        message = f"accept failed: {error}"
        if json_output:
            _echo_json({"status": "error", "exit_code": 1, "message": message})
        else:
            _echo(message, err=True)
        raise typer.Exit(code=1) from error

    if json_output:
        _echo_json(
            {
                "status": "ok",
                "exit_code": 0,
                "directory": str(directory),
                "count": len(accepted),
                "accepted": [str(item.reference_path) for item in accepted],
            }
        )
        return

    for item in accepted:
        _echo(f"accepted: {item.reference_path}")
    _echo(f"accepted {len(accepted)} snapshot(s)")
