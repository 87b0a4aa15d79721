from __future__ import annotations

import json
import math
import os
from pathlib import Path
from typing import Callable, List

from .files import PathLike, runner_path
from .types import (
    GenerateError,
    InvalidGeneratedSourceDirectory,
    InvalidRunnerSourceDirectory,
    InvalidSourceDirectory,
    JsonObject,
    MalformedDependencies,
    MalformedSourceDirectories,
    ManifestJsonError,
    ManifestNotObject,
    RunnerLocationError,
    is_json_object,
)

# Test.Runner.Node needs it to create a Seed from the current timestamp.
PINNED_DEPENDENCY = "mgold/elm-random-pcg"
PINNED_CONSTRAINT = "4.0.2 <= v < 6.0.0"

JSON_INDENT = 4


def _render(path: Path, error: Callable[[Path], GenerateError]) -> str:
    """Return the path as text that survives a UTF-8 round trip, or raise."""
    text = os.fspath(path)

    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        raise error(path) from None

    return text


def _reject_constant(text: str) -> Callable[[str], object]:
    """NaN and Infinity are Python extensions, not JSON; elm rejects them."""

    def reject(name: str) -> object:
        raise json.JSONDecodeError(f"{name} is not valid JSON", text, max(text.find(name), 0))

    return reject


def _finite_float(text: str) -> Callable[[str], float]:
    def parse(literal: str) -> float:
        value = float(literal)
        if math.isinf(value):
            raise json.JSONDecodeError(f"number {literal} is out of range", text, max(text.find(literal), 0))
        return value

    return parse


def canonical_source_dir(root: Path, entry: str) -> str:
    try:
        resolved = (root / entry).resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise InvalidSourceDirectory(entry, exc) from exc

    return _render(resolved, lambda _: InvalidSourceDirectory(entry))


def merged_dependencies(document: JsonObject) -> JsonObject:
    dependencies = document.get("dependencies")

    if not is_json_object(dependencies):
        raise MalformedDependencies(dependencies)

    merged = dict(dependencies)
    merged.setdefault(PINNED_DEPENDENCY, PINNED_CONSTRAINT)
    return merged


def merged_source_directories(
    document: JsonObject,
    root: Path,
    generated_src: Path,
    locate_runner: Callable[[], Path],
) -> List[str]:
    entries = document.get("source-directories")

    if not isinstance(entries, list) or not all(isinstance(e, str) for e in entries):
        raise MalformedSourceDirectories(entries)

    source_dirs = [canonical_source_dir(root, entry) for entry in entries]

    # elm-stuff/generated-code/.../src, where the generated Main lives.
    source_dirs.append(_render(generated_src.absolute(), InvalidGeneratedSourceDirectory))

    # The runner's own src, so the generated Main can import Test.Runner.Node.
    try:
        anchor = locate_runner()
    except OSError as exc:
        raise RunnerLocationError(exc) from exc

    runner_src = Path(anchor).absolute().with_name("src")
    source_dirs.append(_render(runner_src, InvalidRunnerSourceDirectory))

    return source_dirs


def merge_manifest(
    root: PathLike,
    generated_src: PathLike,
    current_manifest: str,
    locate_runner: Callable[[], Path] = runner_path,
) -> str:
    """
    Patch the project's elm.json so the generated Main compiles.

    The input text is never modified; a new document is built and serialized.
    Raises a GenerateError subclass on the first problem found.
    """

    try:
        document = json.loads(
            current_manifest,
            parse_constant=_reject_constant(current_manifest),
            parse_float=_finite_float(current_manifest),
        )
    except json.JSONDecodeError as exc:
        raise ManifestJsonError(exc) from exc

    if not is_json_object(document):
        raise ManifestNotObject(document)

    dependencies = merged_dependencies(document)
    source_dirs = merged_source_directories(document, Path(root), Path(generated_src), locate_runner)

    merged: JsonObject = dict(document)
    merged["dependencies"] = dependencies
    merged["source-directories"] = source_dirs

    return json.dumps(merged, indent=JSON_INDENT, ensure_ascii=False, allow_nan=False)
