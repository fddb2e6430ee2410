from __future__ import annotations

import pytest

from snappack.config import (
    CI_ENV_VAR,
    CONFIG_FILE_ENV_VAR,
    DIFF_TOOL_ENV_VAR,
    DUMP_PATH_ENV_VAR,
    INTERACTIVE_ENV_VAR,
    RECORD_ENV_VAR,
)

pytest_plugins = ["pytester"]


@pytest.fixture(autouse=True)
def _isolated_snapshot_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        CI_ENV_VAR,
        CONFIG_FILE_ENV_VAR,
        DIFF_TOOL_ENV_VAR,
        DUMP_PATH_ENV_VAR,
        INTERACTIVE_ENV_VAR,
        RECORD_ENV_VAR,
    ):
        monkeypatch.delenv(name, raising=False)
