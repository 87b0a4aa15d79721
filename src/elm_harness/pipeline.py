from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .codegen import generate
from .files import (
    MANIFEST_FILENAME,
    PathLike,
    generated_code_dir,
    generated_src_dir,
    program_path,
    runner_path,
)
from .manifest import merge_manifest
from .types import (
    GeneratedProgram,
    MissingManifest,
    ReadManifest,
    RunOptions,
    TestModuleMap,
    WriteGeneratedCode,
)
from .writer import write


@dataclass(frozen=True)
class HarnessResult:
    program: GeneratedProgram
    program_path: Path
    manifest_path: Path
    cached: bool


def read_manifest(root: PathLike) -> str:
    path = Path(root) / MANIFEST_FILENAME

    if not path.is_file():
        raise MissingManifest(path)

    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ReadManifest(path, exc) from exc


def generate_harness(
    root: PathLike,
    tests_by_module: TestModuleMap,
    options: RunOptions,
    supports_color: bool,
    locate_runner: Callable[[], Path] = runner_path,
) -> HarnessResult:
    """
    Generate Main and elm.json under the project's generated-code directory.

    Nothing is written until both the program and the merged manifest exist,
    so a manifest problem never leaves a Main behind (or the reverse).
    """

    root = Path(root)
    code_dir = generated_code_dir(root)
    src_dir = generated_src_dir(root)

    program = generate(tests_by_module, supports_color, options)
    manifest_text = merge_manifest(root, src_dir, read_manifest(root), locate_runner=locate_runner)

    # Same name means same text, so the compiler can reuse its cached build.
    cached = program_path(src_dir, program.module_name).is_file()

    try:
        main_file = write(src_dir, program.module_name, program.source, code_dir, manifest_text)
    except OSError as exc:
        raise WriteGeneratedCode(exc) from exc

    return HarnessResult(
        program=program,
        program_path=main_file,
        manifest_path=code_dir / MANIFEST_FILENAME,
        cached=cached,
    )
