from pathlib import Path

from snappack.config import VerifyConfig
from snappack.review import (
    accept_pending_snapshots,
    find_pending_snapshots,
    reference_path_for_failed,
)
from snappack.strategy import lines
from snappack.verify import verify_snapshot


def _seed(directory: Path) -> None:
    nested = directory / "__snapshots__" / "test_views"
    nested.mkdir(parents=True)
    (nested / "test_views-test_home.txt").write_text("old\n", encoding="utf-8")
    (nested / "test_views-test_home-failed.txt").write_text("new\n", encoding="utf-8")
    (nested / "test_views-test_new-failed.json").write_text("{}\n", encoding="utf-8")
    (nested / "test_views-test_other.txt").write_text("untouched\n", encoding="utf-8")


def test_reference_path_for_failed_strips_suffix() -> None:
    assert reference_path_for_failed("/x/a-test-failed.txt") == Path("/x/a-test.txt")
    assert reference_path_for_failed("/x/a-test-failed") == Path("/x/a-test")
    assert reference_path_for_failed("/x/a-test.txt") is None
    assert reference_path_for_failed("/x/-failed.txt") is None
    assert reference_path_for_failed("/x/a-test.2-failed.txt") == Path("/x/a-test.2.txt")
    assert reference_path_for_failed("/x/a-test.2-failed") == Path("/x/a-test.2")


def test_find_pending_snapshots_lists_failed_copies(tmp_path: Path) -> None:
    _seed(tmp_path)

    pending = find_pending_snapshots(tmp_path)

    assert [item.failed_path.name for item in pending] == [
        "test_views-test_home-failed.txt",
        "test_views-test_new-failed.json",
    ]
    assert pending[0].reference_exists is True
    assert pending[1].reference_exists is False
    assert find_pending_snapshots(tmp_path / "missing") == []


def test_accept_pending_snapshots_promotes_failed_copies(tmp_path: Path) -> None:
    _seed(tmp_path)
    nested = tmp_path / "__snapshots__" / "test_views"

    accepted = accept_pending_snapshots(tmp_path)

    assert [item.reference_path.name for item in accepted] == ["test_views-test_home.txt"]
    assert (nested / "test_views-test_home.txt").read_text(encoding="utf-8") == "new\n"
    assert not (nested / "test_views-test_home-failed.txt").exists()
    assert (nested / "test_views-test_other.txt").read_text(encoding="utf-8") == "untouched\n"
    assert not (nested / "test_views-test_new.json").exists()
    assert [item.failed_path.name for item in find_pending_snapshots(tmp_path)] == [
        "test_views-test_new-failed.json"
    ]


def test_accept_leaves_references_of_tests_named_failed_alone(tmp_path: Path) -> None:
    config = VerifyConfig()
    for case, rendered in (("ok", "fine\n"), ("failed", "broken\n")):
        verify_snapshot(
            lambda rendered=rendered: rendered,
            lines(),
            snapshot_directory=tmp_path,
            source_file="/repo/tests/test_mod.py",
            test_name=f"test_status[{case}]",
            config=config,
        )

    accepted = accept_pending_snapshots(tmp_path)

    assert accepted == []
    assert sorted(path.name for path in tmp_path.iterdir()) == [
        "test_mod-test_status-failed.txt",
        "test_mod-test_status-ok.txt",
    ]
    assert verify_snapshot(
        lambda: "broken\n",
        lines(),
        snapshot_directory=tmp_path,
        source_file="/repo/tests/test_mod.py",
        test_name="test_status[failed]",
        config=config,
    ) is None
