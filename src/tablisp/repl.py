"""Interactive REPL for tablisp, powered by prompt_toolkit."""

from __future__ import annotations

import re
import sys
import traceback
from dataclasses import dataclass, field

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .evaluator import eval_expr
from .lexer_rd import tokenize
from .parser_rd import parse_source
from .repl_highlight import TablispLexer
from .runner import render_result, report_diagnostics
from .stdlib import render_value, root_frame
from .token_types import TT
from .types import EvaluatorInvariantError, Frame, is_error
from .utils import debug_py_trace_enabled, set_debug_py_trace

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/mode": ("Switch output mode", "[eval|transpile|explicit|tree]"),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
    "/reset": ("Reset the REPL environment", ""),
}

REPL_MODES = ("eval", "transpile", "explicit", "tree")


@dataclass
class ReplState:
    frame: Frame = field(default_factory=root_frame)
    mode: str = "eval"


def needs_more(text: str) -> bool:
    """Return True while *text* leaves a '(' or a do-block open."""
    depth = 0
    blocks = 0

    for tok in tokenize(text):
        if tok.type == TT.LPAREN:
            depth += 1
        elif tok.type == TT.RPAREN:
            depth = max(depth - 1, 0)
        elif tok.type == TT.DO:
            blocks += 1
        elif tok.type == TT.END:
            blocks = max(blocks - 1, 0)

    return depth > 0 or blocks > 0


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=desc,
                )


def handle_slash(line: str, state: ReplState) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/mode":
        if arg == "":
            print(f"Mode: {state.mode}")
        elif arg in REPL_MODES:
            state.mode = arg
            print(f"Mode: {state.mode}")
        else:
            print("Usage: /mode [eval|transpile|explicit|tree]", file=sys.stderr)
        return True

    if cmd == "/py-traceback":
        if arg.lower() in ("on", "1", "true", "yes"):
            set_debug_py_trace(True)
        elif arg.lower() in ("off", "0", "false", "no"):
            set_debug_py_trace(False)
        elif arg == "":
            # Toggle.
            set_debug_py_trace(not debug_py_trace_enabled())
        else:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        state_label = "on" if debug_py_trace_enabled() else "off"
        print(f"Python traceback: {state_label}")
        return True

    if cmd == "/reset":
        state.frame = root_frame()
        print("Environment reset.")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def compute_indent(text: str) -> str:
    """Leading tabs of the last line, carried onto the next one."""
    last = text.split("\n")[-1]
    return last[: len(last) - len(last.lstrip("\t"))]


def repl_eval(text: str, state: ReplState) -> None:
    """Parse one submission and print what the current mode produces."""
    parsed = parse_source(text)
    report_diagnostics(parsed.diagnostics)

    if state.mode != "eval":
        print(render_result(state.mode, parsed, state.frame))
        return

    try:
        value = eval_expr(parsed.node, state.frame)
    except RecursionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if debug_py_trace_enabled():
            print("\nPython traceback:", file=sys.stderr)
            traceback.print_exception(exc, file=sys.stderr)
        return

    if is_error(value):
        print(f"Error: {value}", file=sys.stderr)
    elif value is not None:
        print(render_value(value))


def repl() -> None:
    """Interactive read-eval-print loop with prompt_toolkit."""
    state = ReplState()

    history = InMemoryHistory()
    lexer = TablispLexer()

    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    @bindings.add("escape", "enter")
    def _newline(event):
        # Meta+Enter always continues, e.g. before indented call arguments.
        buf = event.app.current_buffer
        buf.insert_text("\n" + compute_indent(buf.text))

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        text = buf.text

        # Single line that closes everything it opens => accept.
        if "\n" not in text:
            if needs_more(text):
                buf.insert_text("\n" + compute_indent(text))
                return

            buf.validate_and_handle()
            return

        # Multiline: if the current (last) line is empty => accept.
        lines = text.split("\n")
        if lines[-1].strip() == "":
            buf.text = "\n".join(lines[:-1])
            buf.cursor_position = len(buf.text)
            buf.validate_and_handle()
            return

        buf.insert_text("\n" + compute_indent(text))

    session: PromptSession[str] = PromptSession(
        history=history,
        lexer=lexer,
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("tablisp repl: Ctrl-D to exit, Meta-Enter for a new line, / for commands")

    while True:
        try:
            text = session.prompt(">>> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = normalize(text)
        if not text.strip():
            continue

        if handle_slash(text, state):
            continue

        try:
            repl_eval(text, state)
        except EvaluatorInvariantError as exc:
            print(f"Internal error: {exc}", file=sys.stderr)
            if debug_py_trace_enabled():
                print("\nPython traceback:", file=sys.stderr)
                traceback.print_exception(exc, file=sys.stderr)
