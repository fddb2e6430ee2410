from pathlib import Path

from snappack.paths import (
    SNAPSHOTS_DIRNAME,
    SnapshotCounter,
    default_snapshot_directory,
    reference_file_name,
    resolve_snapshot_location,
    sanitize_path_component,
)


def test_sanitize_collapses_non_word_runs_and_trims_edges() -> None:
    assert sanitize_path_component("renders user's profile #2") == "renders-user-s-profile-2"
    assert sanitize_path_component("test_render[dark mode]") == "test_render-dark-mode"
    assert sanitize_path_component("  spaced  ") == "spaced"
    assert sanitize_path_component("already-clean") == "already-clean"


def test_sanitize_makes_punctuation_variants_collide() -> None:
    assert sanitize_path_component("a / b") == sanitize_path_component("a...b")


def test_reference_file_name_uses_source_stem() -> None:
    assert reference_file_name("test login", "/src/tests/test_views.py") == "test_views-test-login"
    assert (
        reference_file_name("test login", "/src/tests/test_views.py", failed=True)
        == "test_views-test-login-failed"
    )


def test_default_location_sits_beside_source_file() -> None:
    location = resolve_snapshot_location(
        "/repo/tests/test_views.py",
        "test_home",
        path_extension="txt",
    )

    expected_dir = Path("/repo/tests") / SNAPSHOTS_DIRNAME / "test_views"
    assert location.directory == expected_dir
    assert location.current_file == expected_dir / "test_views-test_home.txt"
    assert location.failed_file == expected_dir / "test_views-test_home-failed.txt"
    assert location.uses_dump_path is False
    assert default_snapshot_directory("/repo/tests/test_views.py") == expected_dir


def test_location_without_extension_has_no_trailing_dot() -> None:
    location = resolve_snapshot_location("/repo/tests/test_views.py", "test_home")

    assert location.current_file.name == "test_views-test_home"
    assert location.failed_file.name == "test_views-test_home-failed"


def test_explicit_snapshot_directory_wins_over_convention(tmp_path: Path) -> None:
    location = resolve_snapshot_location(
        "/repo/tests/test_views.py",
        "test_home",
        path_extension="json",
        snapshot_directory=tmp_path / "refs",
    )

    assert location.current_file == tmp_path / "refs" / "test_views-test_home.json"


def test_dump_path_wins_and_is_flat(tmp_path: Path) -> None:
    location = resolve_snapshot_location(
        "/repo/tests/test_views.py",
        "test_home",
        path_extension="txt",
        snapshot_directory=tmp_path / "refs",
        dump_path=tmp_path / "dump",
    )

    assert location.directory == tmp_path / "dump"
    assert location.current_file == tmp_path / "dump" / "test_views-test_home.txt"
    assert location.uses_dump_path is True


def test_resolution_is_deterministic() -> None:
    first = resolve_snapshot_location("/repo/tests/test_views.py", "test home!", path_extension="txt")
    second = resolve_snapshot_location("/repo/tests/test_views.py", "test home!", path_extension="txt")

    assert first == second


def test_counter_numbers_repeated_resolutions() -> None:
    counter = SnapshotCounter()
    names = [
        resolve_snapshot_location(
            "/repo/tests/test_views.py",
            "test_home",
            path_extension="txt",
            counter=counter,
        ).current_file.name
        for _ in range(3)
    ]

    assert names == [
        "test_views-test_home.txt",
        "test_views-test_home.2.txt",
        "test_views-test_home.3.txt",
    ]

    counter.reset()
    again = resolve_snapshot_location(
        "/repo/tests/test_views.py",
        "test_home",
        path_extension="txt",
        counter=counter,
    )
    assert again.current_file.name == "test_views-test_home.txt"


def test_counter_keys_include_extension() -> None:
    counter = SnapshotCounter()
    text_location = resolve_snapshot_location(
        "/repo/tests/test_views.py", "test_home", path_extension="txt", counter=counter
    )
    json_location = resolve_snapshot_location(
        "/repo/tests/test_views.py", "test_home", path_extension="json", counter=counter
    )

    assert text_location.current_file.name == "test_views-test_home.txt"
    assert json_location.current_file.name == "test_views-test_home.json"


def test_counter_numbering_does_not_collide_with_parametrized_names() -> None:
    counter = SnapshotCounter()
    for _ in range(2):
        repeated = resolve_snapshot_location(
            "/repo/tests/test_views.py", "test_home", path_extension="txt", counter=counter
        )
    parametrized = resolve_snapshot_location(
        "/repo/tests/test_views.py", "test_home[2]", path_extension="txt"
    )

    assert repeated.current_file.name == "test_views-test_home.2.txt"
    assert repeated.failed_file.name == "test_views-test_home.2-failed.txt"
    assert parametrized.current_file.name == "test_views-test_home-2.txt"
