from __future__ import annotations

from pathlib import Path

import pytest

from tests.support.harness import (
    FOO_OPTIONS,
    FOO_TESTS,
    RunOptions,
    generate,
    list_generated,
    program_path,
    write,
)


def test_write_creates_layout(tmp_path: Path) -> None:
    code_dir = tmp_path / "generated-code"
    src = code_dir / "src"

    main_file = write(src, "Main1234abcd", "module Test.Generated.Main1234abcd exposing (main)\n", code_dir, "{}")

    assert main_file == src / "Test" / "Generated" / "Main1234abcd.elm"
    assert main_file.read_text(encoding="utf-8") == "module Test.Generated.Main1234abcd exposing (main)\n"
    assert (code_dir / "elm.json").read_text(encoding="utf-8") == "{}"


def test_write_replaces_existing_files(tmp_path: Path) -> None:
    code_dir = tmp_path / "generated-code"
    src = code_dir / "src"

    write(src, "MainA", "a much longer first version\n" * 10, code_dir, '{"a": 1, "b": 2}')
    main_file = write(src, "MainA", "short\n", code_dir, "{}")

    assert main_file.read_text(encoding="utf-8") == "short\n"
    assert (code_dir / "elm.json").read_text(encoding="utf-8") == "{}"


def test_write_is_fine_when_dirs_exist(tmp_path: Path) -> None:
    code_dir = tmp_path / "generated-code"
    src = code_dir / "src"
    (src / "Test" / "Generated").mkdir(parents=True)

    write(src, "MainB", "b\n", code_dir, "{}")

    assert program_path(src, "MainB").is_file()


def test_write_surfaces_os_errors(tmp_path: Path) -> None:
    blocker = tmp_path / "generated-code"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(OSError):
        write(blocker / "src", "MainC", "c\n", blocker, "{}")


def test_write_manifest_dir_must_exist(tmp_path: Path) -> None:
    src = tmp_path / "src"

    with pytest.raises(FileNotFoundError):
        write(src, "MainD", "d\n", tmp_path / "elsewhere", "{}")

    # No cleanup: the program written before the failure stays.
    assert program_path(src, "MainD").read_text(encoding="utf-8") == "d\n"


def test_list_generated_reads_cached_programs(tmp_path: Path) -> None:
    src = tmp_path / "src"
    first = generate(FOO_TESTS, True, FOO_OPTIONS)
    second = generate({"BarTest": {"testThree"}}, False, RunOptions(processes=2))

    for program in (first, second):
        write(src, program.module_name, program.source, tmp_path, "{}")

    found = list_generated(src)

    assert set(found) == {first.module_name, second.module_name}
    assert found[first.module_name].tests_by_module == {"FooTest": ("testOne", "testTwo")}
    assert found[second.module_name].processes == 2


def test_list_generated_without_cache(tmp_path: Path) -> None:
    assert list_generated(tmp_path / "missing") == {}
