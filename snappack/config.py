"""Verification configuration sourced from the environment or a config file."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
import json
import logging
import os
from pathlib import Path
from typing import Any, Iterator, Mapping

from jsonschema import Draft202012Validator

from snappack.exceptions import SnapshotConfigError

logger = logging.getLogger(__name__)

CI_ENV_VAR = "IS_CI"
DUMP_PATH_ENV_VAR = "SNAPSHOT_DUMP_PATH"
INTERACTIVE_ENV_VAR = "SNAPKIT_INTERACTIVE"
RECORD_ENV_VAR = "SNAPKIT_RECORD"
DIFF_TOOL_ENV_VAR = "SNAPKIT_DIFF_TOOL"
CONFIG_FILE_ENV_VAR = "SNAPKIT_CONFIG"

CONFIG_VERSION = 1

CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "SnapKit configuration",
    "type": "object",
    "required": ["config_version"],
    "additionalProperties": False,
    "properties": {
        "config_version": {"const": CONFIG_VERSION},
        "record_all": {"type": "boolean"},
        "diff_tool": {"type": ["string", "null"], "minLength": 1},
    },
}

_TRUTHY = frozenset({"1", "true", "yes", "on"})

_ACTIVE_CONFIG: ContextVar[VerifyConfig | None] = ContextVar(
    "snappack_active_config",
    default=None,
)


@dataclass(frozen=True, slots=True)
class VerifyConfig:
    """Process-level switches read by the verification engine.

    Built once at the outermost boundary and passed in; the engine never
    mutates it.
    """

    record_all: bool = False
    diff_tool: str | None = None
    is_ci: bool = False
    dump_path: Path | None = None
    interactive: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> VerifyConfig:
        """Read configuration from environment variables.

        ``SNAPKIT_CONFIG`` may point at a JSON config file whose values are
        applied first; the individual variables override them.
        """
        env = os.environ if environ is None else environ

        base = cls()
        config_path = env.get(CONFIG_FILE_ENV_VAR, "").strip()
        if config_path:
            base = load_config_file(config_path)

        record_raw = env.get(RECORD_ENV_VAR)
        diff_tool = env.get(DIFF_TOOL_ENV_VAR, "").strip()
        dump_path = env.get(DUMP_PATH_ENV_VAR, "").strip()

        return cls(
            record_all=(
                record_raw.strip().lower() in _TRUTHY
                if record_raw is not None
                else base.record_all
            ),
            diff_tool=diff_tool or base.diff_tool,
            is_ci=env.get(CI_ENV_VAR) == "true",
            dump_path=Path(dump_path) if dump_path else None,
            interactive=INTERACTIVE_ENV_VAR in env,
        )

    def with_overrides(self, **changes: Any) -> VerifyConfig:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_all": self.record_all,
            "diff_tool": self.diff_tool,
            "is_ci": self.is_ci,
            "dump_path": str(self.dump_path) if self.dump_path is not None else None,
            "interactive": self.interactive,
        }


def load_config_file(path: str | Path) -> VerifyConfig:
    """Load record/diff-tool settings from a JSON config file."""
    config_path = Path(path)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as error:
        raise SnapshotConfigError(f"Config file not found: {config_path}") from error
    except json.JSONDecodeError as error:
        raise SnapshotConfigError(f"Invalid config JSON ({config_path}): {error}") from error

    errors = sorted(
        Draft202012Validator(CONFIG_SCHEMA).iter_errors(raw),
        key=lambda err: list(err.path),
    )
    if errors:
        first = errors[0]
        location = "/".join(str(part) for part in first.path) or "<root>"
        raise SnapshotConfigError(
            f"Invalid config ({config_path}) at {location}: {first.message}"
        )

    logger.debug("loaded snapshot config from %s", config_path)
    return VerifyConfig(
        record_all=raw.get("record_all", False),
        diff_tool=raw.get("diff_tool"),
    )


def get_active_config() -> VerifyConfig:
    """Return the context override, else a fresh read of the environment."""
    config = _ACTIVE_CONFIG.get()
    if config is not None:
        return config
    return VerifyConfig.from_env()


@contextmanager
def use_config(config: VerifyConfig) -> Iterator[VerifyConfig]:
    """Activate a configuration for the current context."""
    token = _ACTIVE_CONFIG.set(config)
    try:
        yield config
    finally:
        _ACTIVE_CONFIG.reset(token)
