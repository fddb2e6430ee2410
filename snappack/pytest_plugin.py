"""pytest integration: command line switches and the ``snapshot`` fixture."""

from __future__ import annotations

from pathlib import Path

import pytest

from snappack.assertion import SnapshotAsserter
from snappack.config import VerifyConfig, get_active_config
from snappack.strategy.diffing import Attachment

ATTACHMENTS_PROPERTY = "snapshot_attachments"


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("snapkit", "snapshot testing")
    group.addoption(
        "--snapshot-record",
        action="store_true",
        default=False,
        help="Record new references for every snapshot instead of comparing.",
    )
    group.addoption(
        "--snapshot-diff-tool",
        default=None,
        help='Diff command shown in failure messages, e.g. "ksdiff" or "code --diff".',
    )


def session_config(pytest_config: pytest.Config) -> VerifyConfig:
    """Merge pytest command line switches over the environment config."""
    config = get_active_config()
    if pytest_config.getoption("snapshot_record"):
        config = config.with_overrides(record_all=True)
    diff_tool = pytest_config.getoption("snapshot_diff_tool")
    if diff_tool:
        config = config.with_overrides(diff_tool=diff_tool)
    return config


def snapshot_test_name(request: pytest.FixtureRequest) -> str:
    """Return the node name, qualified with its class for test methods."""
    if request.cls is not None:
        return f"{request.cls.__name__}.{request.node.name}"
    return request.node.name


@pytest.fixture
def snapshot(request: pytest.FixtureRequest) -> SnapshotAsserter:
    """Snapshot assertions bound to the requesting test.

    Reference files are named after the test's module, class (if any) and
    node name; the per-test counter gives repeated unnamed snapshots their
    own files.
    """
    node = request.node

    def attach(activity: str, attachments: list[Attachment]) -> None:
        node.user_properties.append(
            (ATTACHMENTS_PROPERTY, {activity: [attachment.name for attachment in attachments]})
        )

    return SnapshotAsserter(
        source_file=Path(node.path),
        test_name=snapshot_test_name(request),
        config=session_config(request.config),
        attachment_sink=attach,
    )
