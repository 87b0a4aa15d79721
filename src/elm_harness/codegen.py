"""
Synthesis of the generated test entry point.

Given the exposed tests of every discovered module, build something like:

    module Test.Generated.Main1f2e3d exposing (main)

    import MyTests

    import Test.Reporter.Reporter exposing (Report(..))
    ...

    main : Test.Runner.Node.TestProgram
    main =
        [ Test.describe "MyTests"
            [ MyTests.suite
            ]
        ]
            |> Test.concat
            |> Test.Runner.Node.runWithOptions {runs = Nothing, ...}
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from .naming import module_name_for
from .types import ColorMode, GeneratedProgram, Report, RunOptions, TestModuleMap

RUNNER_IMPORTS = (
    "import Test.Reporter.Reporter exposing (Report(..))",
    "import Console.Text exposing (UseColor(..))",
    "import Test.Runner.Node",
    "import Test",
    "import Json.Encode",
)

GENERATED_NAMESPACE = "Test.Generated"


def sanitize(text: str) -> str:
    # Backslashes first so the quote escapes are not doubled.
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def report_code(report: Report, supports_color: bool) -> str:
    match report:
        case Report.JSON:
            return "JsonReport"
        case Report.JUNIT:
            return "JUnitReport"
        case Report.CONSOLE:
            mode = ColorMode.USE_COLOR if supports_color else ColorMode.MONOCHROME
            return f"(ConsoleReport {mode.value})"


def maybe_code(value: Optional[int]) -> str:
    if value is None:
        return "Nothing"
    return f"Just {value}"


def _elm_list(items: List[str], indent: str) -> str:
    if not items:
        return "[]"

    sep = f"\n{indent}, "
    return f"[ {sep.join(items)}\n{indent}]"


def describe_code(module_name: str, test_names: Iterable[str]) -> str:
    refs = [f"{module_name}.{name}" for name in sorted(test_names)]
    return f"Test.describe {sanitize(module_name)}\n        {_elm_list(refs, '        ')}"


def path_text(path: str) -> str:
    # Paths holding undecodable bytes (surrogate escapes) render as "".
    try:
        path.encode("utf-8")
    except UnicodeEncodeError:
        return ""
    return path


def options_code(options: RunOptions, supports_color: bool) -> str:
    paths = ", ".join(sanitize(path_text(path)) for path in options.paths)
    fields = [
        f"runs = {maybe_code(options.fuzz)}",
        f"report = {report_code(options.report, supports_color)}",
        f"seed = {maybe_code(options.seed)}",
        f"processes = {options.processes}",
        f"paths = [{paths}]",
    ]
    return "{" + ", ".join(fields) + "}"


def program_body(tests_by_module: TestModuleMap, supports_color: bool, options: RunOptions) -> str:
    # Sets of str iterate in a per-process order; sort so the text (and so the
    # module name) is the same on every run.
    modules = sorted(tests_by_module)
    imports = [f"import {module}" for module in modules]
    describes = [describe_code(module, tests_by_module[module]) for module in modules]

    lines = imports + [""] + list(RUNNER_IMPORTS) + [
        "",
        "main : Test.Runner.Node.TestProgram",
        "main =",
        f"    {_elm_list(describes, '    ')}",
        "        |> Test.concat",
        f"        |> Test.Runner.Node.runWithOptions {options_code(options, supports_color)}",
    ]
    return "\n".join(lines) + "\n"


def generate(tests_by_module: TestModuleMap, supports_color: bool, options: RunOptions) -> GeneratedProgram:
    body = program_body(tests_by_module, supports_color, options)
    module_name = module_name_for(body)
    source = f"module {GENERATED_NAMESPACE}.{module_name} exposing (main)\n\n{body}"
    return GeneratedProgram(module_name=module_name, source=source)
