from dataclasses import dataclass
import threading
from typing import Callable

import pytest

from snappack.exceptions import SnapshotProductionError, SnapshotTimeoutError
from snappack.strategy import (
    Async,
    canonical_json,
    canonicalize,
    collect_tree_changes,
    data,
    data_diffing,
    dump,
    json_diffing,
    json_tree,
    lines,
    lines_diffing,
    text,
    wait_for,
)


@dataclass
class Profile:
    name: str
    tags: tuple[str, ...]


def _resolve(strategy, value):
    return wait_for(strategy.snapshot(value), timeout=1.0)


def test_async_of_and_map_deliver_synchronously() -> None:
    received: list[int] = []

    Async.of(20).map(lambda value: value + 1).run(received.append)

    assert received == [21]


def test_wait_for_keeps_first_delivery_only() -> None:
    def run(callback: Callable[[str], None]) -> None:
        callback("first")
        callback("second")

    assert wait_for(Async(run), timeout=1.0) == "first"


def test_wait_for_waits_for_other_threads() -> None:
    def run(callback: Callable[[str], None]) -> None:
        threading.Thread(target=callback, args=("late",)).start()

    assert wait_for(Async(run), timeout=1.0) == "late"


def test_wait_for_reraises_producer_errors() -> None:
    def run(callback: Callable[[str], None]) -> None:
        raise ValueError("renderer crashed")

    with pytest.raises(ValueError, match="renderer crashed"):
        wait_for(Async(run), timeout=1.0)


def test_wait_for_times_out() -> None:
    with pytest.raises(SnapshotTimeoutError, match="Exceeded timeout of 0.1 seconds"):
        wait_for(Async(lambda callback: None), timeout=0.1)


def test_wait_for_rejects_empty_delivery() -> None:
    with pytest.raises(SnapshotProductionError, match="Couldn't snapshot value"):
        wait_for(Async.of(None), timeout=1.0)


def test_lines_diffing_reports_unified_diff() -> None:
    diffing = lines_diffing()

    assert diffing.diff("a\nb\n", "a\nb\n") is None

    outcome = diffing.diff("a\nb\n", "a\nc\n")
    assert outcome is not None
    failure, attachments = outcome
    assert "--- reference" in failure
    assert "+++ produced" in failure
    assert "-b" in failure and "+c" in failure
    assert attachments[0].name == "difference.patch"
    assert attachments[0].content == failure.encode("utf-8")


def test_lines_diffing_flags_trailing_newline_only_changes() -> None:
    outcome = lines_diffing().diff("a\n", "a")

    assert outcome is not None
    assert "trailing newlines" in outcome[0]


def test_json_diffing_lists_changed_paths() -> None:
    diffing = json_diffing()
    reference = diffing.from_bytes(diffing.to_bytes({"user": {"name": "ada", "roles": ["admin"]}}))

    outcome = diffing.diff(reference, {"user": {"name": "grace", "roles": ["admin", "dev"]}})

    assert outcome is not None
    failure, attachments = outcome
    assert '/user/name: "ada" -> "grace"' in failure
    assert '/user/roles/1: "<MISSING>" -> "dev"' in failure
    assert attachments[0].media_type == "application/json"


def test_tree_changes_are_capped() -> None:
    left = {f"k{idx}": idx for idx in range(10)}
    right = {f"k{idx}": idx + 1 for idx in range(10)}

    changes, truncated = collect_tree_changes(left, right, max_changes=3)

    assert len(changes) == 3
    assert truncated is True

    exact, exact_truncated = collect_tree_changes({"a": 1}, {"a": 2}, max_changes=1)
    assert len(exact) == 1
    assert exact_truncated is False


def test_tree_changes_escape_pointer_tokens() -> None:
    changes, _ = collect_tree_changes({"a/b": 1, "c~d": 1}, {"a/b": 2, "c~d": 2})

    assert [change.path for change in changes] == ["/a~1b", "/c~0d"]


def test_data_diffing_reports_first_differing_offset() -> None:
    outcome = data_diffing().diff(b"abcdef", b"abXdefgh")

    assert outcome == ("Expected 6 bytes, got 8 bytes; first difference at offset 2.", [])
    assert data_diffing().diff(b"abc", b"abc") is None


def test_canonical_json_is_stable_and_readable() -> None:
    rendered = canonical_json({"b": 1.0 / 3.0, "a": (1, 2), "c": "x\r\ny"})

    assert rendered == '{\n  "a": [\n    1,\n    2\n  ],\n  "b": 0.333333333333,\n  "c": "x\\ny"\n}\n'


def test_canonicalize_drops_ignored_keys_and_converts_dataclasses() -> None:
    value = {"profile": Profile(name="ada", tags=("x",)), "updated_at": "2026-01-01"}

    assert canonicalize(value, ignore_keys=frozenset({"updated_at"})) == {
        "profile": {"name": "ada", "tags": ["x"]}
    }


def test_canonicalize_rejects_non_json_values() -> None:
    with pytest.raises(TypeError, match="set"):
        canonicalize({"values": {1, 2}})
    with pytest.raises(ValueError, match="NaN"):
        canonicalize(float("nan"))


def test_builtin_strategies_render_and_declare_extensions() -> None:
    assert _resolve(lines(), "hi\n") == "hi\n"
    assert lines().path_extension == "txt"
    assert _resolve(text(), 42) == "42"
    assert _resolve(dump(), {"b": 2, "a": 1}) == "{'a': 1, 'b': 2}\n"
    assert _resolve(data(), bytearray(b"\x00\x01")) == b"\x00\x01"
    assert data().path_extension == "bin"
    assert json_tree().path_extension == "json"


def test_json_tree_ignores_volatile_keys() -> None:
    strategy = json_tree(ignore_keys={"request_id"})

    first = _resolve(strategy, {"status": "ok", "request_id": "abc"})
    second = _resolve(strategy, {"status": "ok", "request_id": "xyz"})

    assert first == second == {"status": "ok"}
    assert strategy.diffing.diff(first, second) is None


def test_pullback_reuses_diffing_for_new_value_type() -> None:
    strategy = lines().pullback(lambda profile: f"{profile.name}: {', '.join(profile.tags)}\n")

    assert _resolve(strategy, Profile(name="ada", tags=("a", "b"))) == "ada: a, b\n"
    assert strategy.path_extension == "txt"


def test_async_pullback_chains_deferred_transforms() -> None:
    def load_later(key: str) -> Async[str]:
        def run(callback: Callable[[str], None]) -> None:
            threading.Timer(0.01, callback, args=(f"loaded {key}\n",)).start()

        return Async(run)

    strategy = lines().async_pullback(load_later)

    assert _resolve(strategy, "page") == "loaded page\n"
