"""
Read a generated entry point back into its structure.

Used to inspect the content-addressed programs cached under generated-code and
to check that what codegen wrote is what the runner will see.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Tuple

from lark import Lark, Token, Transformer, UnexpectedInput
from lark.exceptions import VisitError
from lark.visitors import Discard

from .codegen import GENERATED_NAMESPACE
from .types import ColorMode, MalformedProgram, ProgramSummary, Report

GRAMMAR_PATH = Path(__file__).resolve().with_name("program.lark")

RUN_FUNCTION = "Test.Runner.Node.runWithOptions"

_ESCAPE_RE = re.compile(r"\\(u\{[0-9A-Fa-f]+\}|.)", re.S)
_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    '"': '"',
    "'": "'",
    "\\": "\\",
}

_REPORTS = {
    "JsonReport": Report.JSON,
    "JUnitReport": Report.JUNIT,
}


def unescape(literal: str) -> str:
    """Decode an Elm string literal, quotes included."""
    if len(literal) < 2 or literal[0] != '"' or literal[-1] != '"':
        raise MalformedProgram(f"not a string literal: {literal!r}")

    def replace(match: re.Match[str]) -> str:
        esc = match.group(1)

        if esc in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[esc]

        if esc.startswith("u{"):
            try:
                return chr(int(esc[2:-1], 16))
            except (ValueError, OverflowError):
                raise MalformedProgram(f"invalid unicode escape \\{esc}") from None

        raise MalformedProgram(f"unknown escape \\{esc} in {literal!r}")

    return _ESCAPE_RE.sub(replace, literal[1:-1])


class _Import(NamedTuple):
    name: str

class _Ctor(NamedTuple):
    name: str
    arg: Optional[int]

class _Applied(NamedTuple):
    name: str
    arg: str

class _Pipe(NamedTuple):
    fn: str
    options: Optional[Dict[str, object]]


def _fail_at(message: str, tok: Token) -> MalformedProgram:
    return MalformedProgram(message, getattr(tok, "line", None), getattr(tok, "column", None))


class ProgramBuilder(Transformer):
    def header(self, c):      return c[0]
    def import_line(self, c): return _Import(str(c[0]))
    def exposing(self, c):    return Discard
    def main_sig(self, c):    return Discard
    def main_def(self, c):    return (c[0], c[1:])
    def suite(self, c):       return list(c)
    def record(self, c):      return dict(c)
    def field(self, c):       return (str(c[0]), c[1])
    def int_value(self, c):   return int(c[0])
    def str_list(self, c):    return tuple(unescape(s) for s in c)

    def ctor(self, c):
        arg = int(c[1]) if len(c) > 1 else None
        return _Ctor(str(c[0]), arg)

    def applied_ctor(self, c):
        return _Applied(str(c[0]), str(c[1]))

    def pipe(self, c):
        options = c[1] if len(c) > 1 else None
        return _Pipe(str(c[0]), options)

    def describe(self, c) -> Tuple[str, Tuple[str, ...]]:
        head, label, refs = c[0], c[1], c[2:]

        if head != "Test.describe":
            raise _fail_at(f"expected Test.describe, found {head}", head)

        module = unescape(label)
        prefix = module + "."
        names: List[str] = []

        for ref in refs:
            if not ref.startswith(prefix):
                raise _fail_at(f"test {ref} does not belong to module {module}", ref)
            names.append(ref[len(prefix):])

        return module, tuple(names)


@lru_cache(maxsize=None)
def make_parser(grammar_path: Optional[str] = None) -> Lark:
    path = Path(grammar_path) if grammar_path else GRAMMAR_PATH
    return Lark(
        path.read_text(encoding="utf-8"),
        parser="lalr",
        start="start",
        maybe_placeholders=False,
        propagate_positions=True,
    )


def _maybe_int(options: Dict[str, object], key: str) -> Optional[int]:
    value = options.get(key)

    match value:
        case _Ctor(name="Nothing", arg=None):
            return None
        case _Ctor(name="Just", arg=int() as n):
            return n

    raise MalformedProgram(f"option {key!r} must be Nothing or Just <int>, found {value!r}")


def _report(options: Dict[str, object]) -> Tuple[Report, Optional[ColorMode]]:
    value = options.get("report")

    match value:
        case _Ctor(name=name, arg=None) if name in _REPORTS:
            return _REPORTS[name], None
        case _Applied(name="ConsoleReport", arg=mode):
            try:
                return Report.CONSOLE, ColorMode(mode)
            except ValueError:
                raise MalformedProgram(f"unknown color mode {mode!r}") from None

    raise MalformedProgram(f"unknown report {value!r}")


def _summarize(parts: List[object]) -> ProgramSummary:
    header = str(parts[0])
    imports = tuple(p.name for p in parts[1:-1] if isinstance(p, _Import))
    suite, pipes = parts[-1]

    prefix = GENERATED_NAMESPACE + "."
    if not header.startswith(prefix):
        raise MalformedProgram(f"generated module must live under {GENERATED_NAMESPACE}, found {header}")

    runs = [p for p in pipes if p.fn == RUN_FUNCTION and p.options is not None]
    if len(runs) != 1:
        raise MalformedProgram(f"expected exactly one {RUN_FUNCTION} with options")

    options = runs[0].options
    missing = {"runs", "report", "seed", "processes", "paths"} - set(options)
    if missing:
        raise MalformedProgram(f"options record is missing {', '.join(sorted(missing))}")

    report, color = _report(options)
    processes = options["processes"]
    paths = options["paths"]

    if not isinstance(processes, int):
        raise MalformedProgram(f"processes must be an integer, found {processes!r}")
    if not isinstance(paths, tuple):
        raise MalformedProgram(f"paths must be a list of strings, found {paths!r}")

    return ProgramSummary(
        module_name=header[len(prefix):],
        imports=imports,
        tests_by_module=dict(suite),
        runs=_maybe_int(options, "runs"),
        seed=_maybe_int(options, "seed"),
        report=report,
        color=color,
        processes=processes,
        paths=paths,
    )


def read_program(text: str) -> ProgramSummary:
    try:
        tree = make_parser().parse(text)
    except UnexpectedInput as exc:
        # UnexpectedEOF reports -1 for both, tokens without positions report '?'
        line = exc.line if isinstance(exc.line, int) and exc.line > 0 else None
        column = exc.column if isinstance(exc.column, int) and exc.column > 0 else None
        raise MalformedProgram("unexpected input in generated program", line, column) from exc

    try:
        parts = ProgramBuilder().transform(tree).children
    except VisitError as exc:
        if isinstance(exc.orig_exc, MalformedProgram):
            raise exc.orig_exc from None
        raise MalformedProgram(str(exc.orig_exc)) from exc

    return _summarize(parts)
