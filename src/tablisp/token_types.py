"""
Token Types for the tablisp front end

Shared between lexer and parser to avoid circular dependencies.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Content
    WORD = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()
    SPACE = auto()  # significant: separates implicit-call arguments

    # Block form keywords
    DO = auto()
    END = auto()

    # Structural
    NEWLINE = auto()
    INDENT = auto()
    DEDENT = auto()
    EOF = auto()


@dataclass(frozen=True)
class Tok:
    """Token with position info"""

    type: TT
    value: str
    line: int = 1
    column: int = 1

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"


@dataclass(frozen=True)
class Diagnostic:
    """Positioned report of something the lexer or parser had to skip."""

    line: int
    column: int
    message: str
    expected: Optional[str] = None
    found: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.line}:{self.column}: {self.message}"


def describe(tok: Tok) -> str:
    """Human-readable name for a token in diagnostics."""
    if tok.type == TT.WORD:
        return repr(tok.value)
    if tok.type in (TT.LPAREN, TT.RPAREN, TT.COMMA, TT.DO, TT.END):
        return f"'{tok.value}'"
    if tok.type == TT.EOF:
        return "end of input"
    return tok.type.name
