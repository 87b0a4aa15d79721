from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Set, Tuple
from typing_extensions import TypeAlias, TypeGuard

# ---------- Inputs ----------

TestModuleMap: TypeAlias = Mapping[str, Set[str]]
JsonObject: TypeAlias = Dict[str, Any]

class Report(Enum):
    JSON = "json"
    JUNIT = "junit"
    CONSOLE = "console"

class ColorMode(Enum):
    USE_COLOR = "UseColor"
    MONOCHROME = "Monochrome"

@dataclass(frozen=True)
class RunOptions:
    report: Report = Report.CONSOLE
    processes: int = 1
    fuzz: Optional[int] = None
    seed: Optional[int] = None
    paths: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.processes < 1:
            raise ValueError(f"processes must be positive, got {self.processes}")

        for label, value in (("fuzz", self.fuzz), ("seed", self.seed)):
            if value is not None and value < 0:
                raise ValueError(f"{label} must be non-negative, got {value}")

        # accept any sequence of str/PathLike but store an immutable tuple
        object.__setattr__(self, "paths", tuple(str(p) for p in self.paths))

# ---------- Outputs ----------

@dataclass(frozen=True)
class GeneratedProgram:
    module_name: str
    source: str

    @property
    def file_name(self) -> str:
        return f"{self.module_name}.elm"

@dataclass(frozen=True)
class ProgramSummary:
    """Structure recovered from a generated entry-point program."""

    module_name: str
    imports: Tuple[str, ...]
    tests_by_module: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    runs: Optional[int] = None
    seed: Optional[int] = None
    report: Report = Report.CONSOLE
    color: Optional[ColorMode] = None
    processes: int = 1
    paths: Tuple[str, ...] = ()

def is_json_object(value: object) -> TypeGuard[JsonObject]:
    return isinstance(value, dict)

# ---------- Exceptions ----------

class GenerateError(Exception):
    """Base for every failure raised while generating the test harness."""

class ManifestJsonError(GenerateError):
    def __init__(self, error: json.JSONDecodeError):
        super().__init__(f"elm.json is not valid JSON: {error.msg} (line {error.lineno}, col {error.colno})")
        self.error = error

class MalformedManifest(GenerateError):
    key: Optional[str] = None

    def __init__(self, message: str = "elm.json is malformed"):
        super().__init__(message)

class ManifestNotObject(MalformedManifest):
    def __init__(self, found: object):
        super().__init__(f"elm.json must contain a JSON object, found {type(found).__name__}")
        self.found = found

class MalformedDependencies(MalformedManifest):
    key = "dependencies"

    def __init__(self, found: object):
        if found is None:
            msg = 'elm.json has no "dependencies" object'
        else:
            msg = f'elm.json "dependencies" must be an object, found {type(found).__name__}'
        super().__init__(msg)
        self.found = found

class MalformedSourceDirectories(MalformedManifest):
    key = "source-directories"

    def __init__(self, found: object):
        if found is None:
            msg = 'elm.json has no "source-directories" array'
        else:
            msg = f'elm.json "source-directories" must be an array of strings, found {found!r}'
        super().__init__(msg)
        self.found = found

class InvalidSourceDirectory(GenerateError):
    def __init__(self, path: str, cause: Optional[BaseException] = None):
        super().__init__(f"source directory {path!r} could not be resolved")
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        msg = super().__str__()
        if self.cause is None:
            return msg
        return f"{msg}: {self.cause}"

class InvalidGeneratedSourceDirectory(GenerateError):
    def __init__(self, path: Path):
        super().__init__(f"generated source directory {path!r} is not a valid path string")
        self.path = path

class RunnerLocationError(GenerateError):
    def __init__(self, cause: OSError):
        super().__init__(f"could not locate the test runner library: {cause}")
        self.cause = cause

class InvalidRunnerSourceDirectory(GenerateError):
    def __init__(self, path: Path):
        super().__init__(f"runner source directory {path!r} is not a valid path string")
        self.path = path

class MissingManifest(GenerateError):
    def __init__(self, path: Path):
        super().__init__(f"no elm.json found at {path}")
        self.path = path

class ReadManifest(GenerateError):
    def __init__(self, path: Path, cause: OSError):
        super().__init__(f"could not read {path}: {cause}")
        self.path = path
        self.cause = cause

class WriteGeneratedCode(GenerateError):
    def __init__(self, cause: OSError):
        super().__init__(f"could not write generated code: {cause}")
        self.cause = cause

class MalformedProgram(GenerateError):
    line: Optional[int]
    column: Optional[int]

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        msg = super().__str__()

        if self.line is None:
            return msg

        if self.column is None:
            return f"{msg} (line {self.line})"

        return f"{msg} (line {self.line}, col {self.column})"
