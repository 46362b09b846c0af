"""
Lexer for tablisp - Recursive Descent front end

Tokenizes tablisp source code into a stream of tokens.

Features:
- Single-pass tokenization, never fails
- Tab indentation materialized as INDENT/DEDENT
- Spaces kept as SPACE tokens (they separate implicit-call arguments)
- Position tracking (line, column)
"""

import string
from typing import List

from .token_types import TT, Diagnostic, Tok

WORD_CHARS = frozenset(string.ascii_letters + string.digits + "_")

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    tablisp lexer with indentation handling.

    Indentation model:
    - Only leading tabs count; spaces are never structural
    - Track stack of indentation depths
    - Emit INDENT when depth increases
    - Emit DEDENT per level popped when depth decreases
    - Blank lines leave the stack untouched
    """

    # Keyword mapping (block-form grammar)
    KEYWORDS = {
        'do': TT.DO,
        'end': TT.END,
    }

    PUNCTUATION = {
        '(': TT.LPAREN,
        ')': TT.RPAREN,
        ',': TT.COMMA,
    }

    def __init__(self, source: str, block_keywords: bool = True):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []
        self.diagnostics: List[Diagnostic] = []

        self.block_keywords = block_keywords

        # Indentation tracking
        self.indent_stack = [0]
        self.at_line_start = True

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        # Close every open indentation level
        while len(self.indent_stack) > 1:
            self.indent_stack.pop()
            self.emit(TT.DEDENT, '', self.column)

        self.emit(TT.EOF, '', self.column)
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        if self.at_line_start:
            self.handle_indentation()
            return

        ch = self.peek()
        start = self.column

        if ch in (' ', '\t'):
            # A tab after line start is just another space
            self.emit(TT.SPACE, self.advance(), start)
            return

        if ch == '\n':
            self.scan_newline()
            return

        if ch in self.PUNCTUATION:
            self.emit(self.PUNCTUATION[ch], self.advance(), start)
            return

        if ch in WORD_CHARS:
            self.scan_word()
            return

        self.advance()
        if ch != '\r':
            self.diagnostics.append(Diagnostic(
                self.line, start, f"unexpected character {ch!r}", found=ch,
            ))

    # ========================================================================
    # Indentation Handling
    # ========================================================================

    def handle_indentation(self):
        """
        Handle indentation at start of line.
        Emit INDENT/DEDENT tokens as needed, then drop the leading tabs.
        """
        depth = 0
        while self.peek(depth) == '\t':
            depth += 1

        self.at_line_start = False

        if not self.is_blank_line(depth):
            current = self.indent_stack[-1]

            if depth > current:
                self.indent_stack.append(depth)
                self.emit(TT.INDENT, '', 1)

            elif depth < current:
                while len(self.indent_stack) > 1 and self.indent_stack[-1] > depth:
                    self.indent_stack.pop()
                    self.emit(TT.DEDENT, '', 1)

                if self.indent_stack[-1] != depth:
                    self.diagnostics.append(Diagnostic(
                        self.line, 1,
                        "dedent does not match any outer indentation level",
                    ))

        self.advance(depth)

    def is_blank_line(self, offset: int) -> bool:
        """True if only whitespace remains before the next newline."""
        while self.peek(offset) in (' ', '\t', '\r'):
            offset += 1
        if self.pos + offset >= len(self.source):
            return True
        return self.peek(offset) == '\n'

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_newline(self):
        """Scan newline character"""
        start = self.column
        self.emit(TT.NEWLINE, self.advance(), start)
        self.line += 1
        self.column = 1
        self.at_line_start = True

    def scan_word(self):
        """Scan a maximal run of word characters, or a block keyword"""
        start = self.column
        begin = self.pos

        while self.peek() in WORD_CHARS:
            self.advance()

        value = self.source[begin:self.pos]
        token_type = TT.WORD
        if self.block_keywords:
            token_type = self.KEYWORDS.get(value, TT.WORD)
        self.emit(token_type, value, start)

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = self.source[self.pos:self.pos + n]
        self.pos += n
        self.column += n
        return result

    def emit(self, token_type: TT, value: str, column: int):
        """Emit a token starting at column on the current line"""
        self.tokens.append(Tok(token_type, value, self.line, column))


def tokenize(source: str, block_keywords: bool = True) -> List[Tok]:
    """Convenience function to tokenize source"""
    lexer = Lexer(source, block_keywords=block_keywords)
    return lexer.tokenize()


if __name__ == '__main__':
    import sys

    source = sys.stdin.read()
    for tok in tokenize(source):
        print(tok)
