from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

from .evaluator import eval_expr
from .lexer_rd import tokenize
from .parser_rd import ParseError, ParseResult, parse_source
from .racket import run_racket
from .stdlib import render_value, root_frame
from .token_types import Diagnostic
from .transpile import print_explicit, transpile
from .tree import pretty
from .types import EvaluatorInvariantError, Frame, Value, is_error
from .utils import debug_py_trace_enabled

USAGE = (
    "usage: tablisp [--eval|--transpile|--explicit|--tree|--tokens|--racket] "
    "[--strict] [--no-blocks] [--racket-bin PATH] [file | - | source]"
)

MODES = {
    "--eval": "eval",
    "--transpile": "transpile",
    "--explicit": "explicit",
    "--tree": "tree",
    "--tokens": "tokens",
    "--racket": "racket",
}

def run(src: str, frame: Optional[Frame] = None, strict: bool = False, block_keywords: bool = True) -> Value:
    """Parse and evaluate source; diagnostics are ignored unless strict."""
    result = parse_source(src, strict=strict, block_keywords=block_keywords)
    return eval_expr(result.node, frame if frame is not None else root_frame())

def transpile_source(src: str, strict: bool = False, block_keywords: bool = True) -> str:
    result = parse_source(src, strict=strict, block_keywords=block_keywords)
    return transpile(result.node)

def render_result(mode: str, parsed: ParseResult, frame: Frame) -> Optional[str]:
    """Produce the text a mode prints for a parsed input, None for nothing."""
    match mode:
        case "transpile":
            return transpile(parsed.node)
        case "explicit":
            return print_explicit(parsed.node)
        case "tree":
            return pretty(parsed.node).rstrip("\n")
        case "eval":
            value = eval_expr(parsed.node, frame)
            if value is None:
                return None
            return render_value(value)
        case _:
            raise ValueError(f"unknown mode {mode!r}")

def report_diagnostics(diagnostics: List[Diagnostic]) -> None:
    for diag in diagnostics:
        print(f"warning: {diag}", file=sys.stderr)

def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    if candidate.is_file():
        return candidate.read_text(encoding="utf-8")

    return arg

def _run_racket_mode(node_text: str, racket_bin: Optional[str]) -> int:
    outcome = run_racket(node_text, executable=racket_bin)

    if not outcome.ok:
        print(f"racket failed with exit code {outcome.returncode}", file=sys.stderr)
        sys.stderr.write(outcome.output)
        return outcome.returncode or 1

    sys.stdout.write(outcome.output)
    return 0

def _evaluate(parsed: ParseResult) -> int:
    try:
        value = eval_expr(parsed.node, root_frame())
    except EvaluatorInvariantError as exc:
        if debug_py_trace_enabled():
            raise
        print(f"Internal error: {exc}", file=sys.stderr)
        return 2
    except RecursionError as exc:
        if debug_py_trace_enabled():
            raise
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if is_error(value):
        print(f"Error: {value}", file=sys.stderr)
        return 1

    if value is not None:
        print(render_value(value))
    return 0

def main(argv: Optional[List[str]] = None) -> int:
    mode = "eval"
    strict = False
    block_keywords = True
    racket_bin: Optional[str] = None
    arg = None
    it = iter(sys.argv[1:] if argv is None else argv)

    for token in it:
        if token in MODES:
            mode = MODES[token]
            continue

        if token == "--strict":
            strict = True
            continue

        if token == "--no-blocks":
            block_keywords = False
            continue

        if token.startswith("--racket-bin="):
            racket_bin = token.split("=", 1)[1]
            continue

        if token == "--racket-bin":
            try:
                racket_bin = next(it)
            except StopIteration:
                raise SystemExit("--racket-bin flag requires a path") from None
            continue

        if token in ("-h", "--help"):
            print(USAGE)
            return 0

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}\n{USAGE}")

    if arg is None and sys.stdin.isatty():
        from .repl import repl

        repl()
        return 0

    source = _load_source(arg)

    if mode == "tokens":
        for tok in tokenize(source, block_keywords=block_keywords):
            print(tok)
        return 0

    try:
        parsed = parse_source(source, strict=strict, block_keywords=block_keywords)
    except ParseError as exc:
        print(f"Parse error: {exc}", file=sys.stderr)
        return 1

    report_diagnostics(parsed.diagnostics)

    if mode == "racket":
        return _run_racket_mode(transpile(parsed.node), racket_bin)

    if mode == "eval":
        return _evaluate(parsed)

    print(render_result(mode, parsed, root_frame()))
    return 0

if __name__ == "__main__":
    sys.exit(main())
