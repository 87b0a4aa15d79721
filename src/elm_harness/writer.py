from __future__ import annotations

from pathlib import Path
from typing import Dict

from .files import MANIFEST_FILENAME, PROGRAM_EXTENSION, PathLike, program_dir, program_path
from .naming import MODULE_PREFIX
from .reader import read_program
from .types import ProgramSummary


def write(
    generated_src: PathLike,
    module_name: str,
    program_text: str,
    generated_code_dir: PathLike,
    manifest_text: str,
) -> Path:
    """
    Persist the generated Main and the merged elm.json.

    Both files are replaced wholesale. OSError propagates as is; a failure part
    way through can leave an empty or stale file behind, so callers must treat
    it as "generation did not complete".
    """

    program_dir(generated_src).mkdir(parents=True, exist_ok=True)

    main_file = program_path(generated_src, module_name)
    main_file.write_text(program_text, encoding="utf-8")

    manifest_file = Path(generated_code_dir) / MANIFEST_FILENAME
    manifest_file.write_text(manifest_text, encoding="utf-8")

    return main_file


def list_generated(generated_src: PathLike) -> Dict[str, ProgramSummary]:
    """Read back every cached Main under the generated-sources root."""
    found: Dict[str, ProgramSummary] = {}
    directory = program_dir(generated_src)

    if not directory.is_dir():
        return found

    for path in sorted(directory.glob(f"{MODULE_PREFIX}*{PROGRAM_EXTENSION}")):
        summary = read_program(path.read_text(encoding="utf-8"))
        found[path.stem] = summary

    return found
