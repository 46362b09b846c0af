"""prompt_toolkit lexer for live tablisp syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable, Dict, List

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as TabLexer
from .token_types import TT, Tok

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "special": "bold ansimagenta",
    "number": "ansimagenta",
    "identifier": "",
    "function": "bold ansiyellow",
    "punctuation": "",
    "error": "bold ansired",
}

_TT_GROUP = {
    TT.DO: "keyword",
    TT.END: "keyword",
    TT.WORD: "identifier",
    TT.LPAREN: "punctuation",
    TT.RPAREN: "punctuation",
    TT.COMMA: "punctuation",
}

# Heads the evaluator treats as special forms
SPECIAL_FORMS = frozenset({"define", "set", "list"})

_SKIP = {TT.NEWLINE, TT.INDENT, TT.DEDENT, TT.EOF, TT.SPACE}


def _is_call_head(tokens: List[Tok], idx: int) -> bool:
    """A word followed by '(' or, as the first word on the line, by a space."""
    nxt = tokens[idx + 1] if idx + 1 < len(tokens) else None
    if nxt is None:
        return False
    if nxt.type in (TT.LPAREN, TT.DO):
        return True
    if nxt.type != TT.SPACE:
        return False
    return all(tok.type in _SKIP for tok in tokens[:idx])


def _group_for(tokens: List[Tok], idx: int) -> str:
    tok = tokens[idx]
    if tok.type != TT.WORD:
        return _TT_GROUP.get(tok.type, "")
    if tok.value.isdigit():
        return "number"
    if tok.value in SPECIAL_FORMS and _is_call_head(tokens, idx):
        return "special"
    if _is_call_head(tokens, idx):
        return "function"
    return "identifier"


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    lexer = TabLexer(text)
    tokens = lexer.tokenize()

    styles: Dict[int, str] = {}
    for i, tok in enumerate(tokens):
        if tok.type in _SKIP or not tok.value:
            continue
        style = GROUP_STYLE.get(_group_for(tokens, i), "")
        for offset in range(len(tok.value)):
            styles[tok.column - 1 + offset] = style

    for diag in lexer.diagnostics:
        if diag.found is not None:
            styles[diag.column - 1] = GROUP_STYLE["error"]

    # Merge runs of equally styled characters
    result: StyleAndTextTuples = []
    for pos, ch in enumerate(text):
        style = styles.get(pos, "")
        if result and result[-1][0] == style:
            result[-1] = (style, result[-1][1] + ch)
        else:
            result.append((style, ch))

    return result


class TablispLexer(Lexer):
    """prompt_toolkit Lexer that highlights tablisp source using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights for all lines.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
