"""Fixed on-disk layout of the generated harness and the runner library location."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional, Union
from typing_extensions import TypeAlias

PathLike: TypeAlias = Union[str, "os.PathLike[str]"]

MANIFEST_FILENAME = "elm.json"
PROGRAM_EXTENSION = ".elm"

GENERATED_CODE_PARTS = ("elm-stuff", "generated-code", "elm-community", "elm-test")
GENERATED_MODULE_PARTS = ("Test", "Generated")

RUNNER_ENV_VAR = "ELM_HARNESS_RUNNER"


def generated_code_dir(root: PathLike) -> Path:
    return Path(root).joinpath(*GENERATED_CODE_PARTS)


def generated_src_dir(root: PathLike) -> Path:
    return generated_code_dir(root) / "src"


def program_dir(generated_src: PathLike) -> Path:
    return Path(generated_src).joinpath(*GENERATED_MODULE_PARTS)


def program_path(generated_src: PathLike, module_name: str) -> Path:
    return program_dir(generated_src) / (module_name + PROGRAM_EXTENSION)


def runner_root(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    env = os.environ if environ is None else environ
    override = env.get(RUNNER_ENV_VAR, "").strip()

    if not override:
        return None

    return Path(override).expanduser()


def runner_path() -> Path:
    """
    Return the runner library's anchor file (its elm.json).

    The runner sources are expected next to it, in a sibling `src` directory.
    The runner root is taken from ELM_HARNESS_RUNNER. Raises FileNotFoundError
    when the variable is unset or names a missing directory.
    """

    root = runner_root()

    if root is None:
        raise FileNotFoundError(f"runner library location unknown (set {RUNNER_ENV_VAR})")

    if not root.is_dir():
        raise FileNotFoundError(f"runner library not found at {root} (set {RUNNER_ENV_VAR})")

    return root.resolve() / MANIFEST_FILENAME
