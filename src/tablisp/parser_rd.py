"""
Recursive Descent Parser for tablisp

Resolves the call notations of the surface syntax into one uniform tree:

    f            reference           Item(f)
    f()          explicit call       List(f, [])
    f(a, b)      explicit call       List(f, [a, b])
    f a b        implicit call       List(f, [a, b])
    f (a, b)     implicit call       List(f, [List(list, [a, b])])
    f a          implicit call with
        b c      continuation line   List(f, [a, List(b, [c])])
    f do a b end block call          List(f, [a, b])

Decisions use the current token plus one token of lookahead; layout comes
from the INDENT/DEDENT tokens the lexer already emitted.

The parser never raises while parsing. Anything it has to skip is recorded
as a Diagnostic and parsing carries on with the next expression.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .lexer_rd import Lexer
from .token_types import TT, Diagnostic, Tok, describe
from .tree import (
    Node, is_item, make_call, make_item, make_list_literal, make_sequence, node_name,
)

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(
            f"{message} at line {line}, col {column}" if line is not None else message
        )

    @classmethod
    def from_diagnostic(cls, diag: Diagnostic) -> 'ParseError':
        return cls(diag.message, diag.line, diag.column)


@dataclass
class ParseResult:
    """Parsed root (None for empty input) plus everything that was skipped."""

    node: Optional[Node]
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics


# Tokens that end the arguments of an implicit call
_IMPLICIT_STOP = (TT.NEWLINE, TT.DO, TT.EOF)

# Layout tokens inside parentheses are plain whitespace
_PAREN_SKIP = (TT.COMMA, TT.SPACE, TT.NEWLINE, TT.INDENT, TT.DEDENT)

# Deepest nesting of parentheses, do-blocks and indented groups
MAX_NESTING = 100


class Parser:
    """
    Recursive descent parser for tablisp.

    Grammar, given the current token:
    1. WORD LPAREN      explicit call, arguments until RPAREN
    2. WORD DO          block call, block elements become arguments
    3. WORD SPACE       implicit call, arguments until NEWLINE/DO/EOF, then
                        an optional do-block or indented continuation lines
    4. WORD             reference
    5. LPAREN           list literal
    """

    def __init__(self, tokens: List[Tok]):
        self.tokens = tokens
        self.pos = 0
        self.current = tokens[0] if tokens else Tok(TT.EOF, '', 1, 1)
        self.diagnostics: List[Diagnostic] = []
        self.depth = 0

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self._eof()

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        self.pos += 1
        if self.pos < len(self.tokens):
            self.current = self.tokens[self.pos]
        else:
            self.current = self._eof()
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def report(self, expected: str, message: Optional[str] = None) -> None:
        """Record that `expected` was wanted but the current token was found."""
        tok = self.current
        found = describe(tok)
        self.diagnostics.append(Diagnostic(
            tok.line, tok.column,
            message or f"expected {expected}, found {found}",
            expected=expected, found=found,
        ))

    def skip_unexpected(self, expected: str) -> None:
        self.report(expected)
        self.advance()

    def too_deep(self, opener: TT, closer: TT) -> bool:
        """
        Refuse one more level of nesting past MAX_NESTING.
        The opener is already consumed; everything up to its matching
        closer is skipped.
        """
        if self.depth < MAX_NESTING:
            return False

        self.report(
            "shallower nesting",
            f"nesting too deep: more than {MAX_NESTING} levels",
        )
        level = 1
        while level and not self.check(TT.EOF):
            tok = self.advance()
            if tok.type == opener:
                level += 1
            elif tok.type == closer:
                level -= 1
        return True

    def _eof(self) -> Tok:
        if self.tokens:
            last = self.tokens[-1]
            return Tok(TT.EOF, '', last.line, last.column)
        return Tok(TT.EOF, '', 1, 1)

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Optional[Node]:
        """Parse entire token stream; None when there is no expression"""
        return self.parse_result().node

    def parse_result(self) -> ParseResult:
        exprs: List[Node] = []

        while not self.check(TT.EOF):
            # Blank lines, stray layout and leading spaces separate statements
            if self.match(TT.NEWLINE, TT.INDENT, TT.DEDENT, TT.SPACE):
                continue

            expr = self.parse_expression()
            if expr is None:
                self.skip_unexpected("expression")
                continue
            exprs.append(expr)

        if not exprs:
            node = None
        elif len(exprs) == 1:
            node = exprs[0]
        else:
            node = make_sequence(exprs)

        return ParseResult(node, list(self.diagnostics))

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expression(self) -> Optional[Node]:
        """
        Parse one expression at statement position.
        Returns None without consuming anything if no expression starts here.
        """
        if self.check(TT.LPAREN):
            return self.parse_list()

        if not self.check(TT.WORD):
            return None

        name = self.advance()

        if self.check(TT.LPAREN):
            return self.parse_explicit_call(name)
        if self.check(TT.DO):
            return self.parse_block_call(name)
        if self.check(TT.SPACE):
            return self.parse_implicit_call(name)

        # Bare word: a reference, never a zero-argument call
        return make_item(name.value, name)

    def parse_argument(self) -> Optional[Node]:
        """
        Parse one argument of a call or list.
        Only explicit calls nest here; a bare word is a reference.
        """
        if self.check(TT.WORD):
            name = self.advance()
            if self.check(TT.LPAREN):
                return self.parse_explicit_call(name)
            return make_item(name.value, name)

        if self.check(TT.LPAREN):
            return self.parse_list()

        return None

    # ========================================================================
    # Call Forms
    # ========================================================================

    def parse_explicit_call(self, name: Tok) -> Node:
        """name(arg, arg ...)"""
        return make_call(name.value, self.parse_delimited(), name)

    def parse_list(self) -> Node:
        """(arg, arg ...) as data"""
        open_tok = self.current
        return make_list_literal(self.parse_delimited(), open_tok)

    def parse_delimited(self) -> List[Node]:
        """Arguments between parentheses, separated by commas and/or spaces"""
        open_tok = self.advance()  # LPAREN
        if self.too_deep(TT.LPAREN, TT.RPAREN):
            return []

        args: List[Node] = []
        self.depth += 1

        while not self.check(TT.RPAREN):
            if self.check(TT.EOF):
                self.report(
                    "')'",
                    f"unterminated '(' opened at line {open_tok.line}, col {open_tok.column}",
                )
                break

            if self.match(*_PAREN_SKIP):
                continue

            arg = self.parse_argument()
            if arg is None:
                self.skip_unexpected("argument")
                continue
            args.append(arg)
        else:
            self.advance()  # RPAREN

        self.depth -= 1
        return args

    def parse_block_call(self, name: Tok) -> Node:
        """name do ... end"""
        self.advance()  # DO
        return make_call(name.value, self.parse_block(), name)

    def parse_implicit_call(self, name: Tok) -> Node:
        """
        name arg arg ...
        A space before '(' passes the parenthesized group as one list value.
        """
        args: List[Node] = []

        while not self.check(*_IMPLICIT_STOP):
            if self.match(TT.SPACE):
                continue

            arg = self.parse_argument()
            if arg is None:
                break
            args.append(arg)

        if self.match(TT.DO):
            args.extend(self.parse_block())
            return make_call(name.value, args, name)

        skip = self.indent_ahead()
        if skip:
            for _ in range(skip):
                self.advance()
            args.extend(self.parse_continuation())
            return make_call(name.value, args, name)

        if not args:
            # Only trailing spaces followed the word
            return make_item(name.value, name)

        return make_call(name.value, args, name)

    # ========================================================================
    # Indentation
    # ========================================================================

    def indent_ahead(self) -> int:
        """
        Number of tokens to skip to reach an INDENT that starts the next
        non-blank line, 0 if the line does not continue into an indent.
        """
        if not self.check(TT.NEWLINE):
            return 0

        offset = 1
        while self.peek(offset).type in (TT.NEWLINE, TT.SPACE):
            offset += 1

        if self.peek(offset).type == TT.INDENT:
            return offset
        return 0

    def parse_continuation(self) -> List[Node]:
        """
        Indented lines under an implicit call, one argument per line.
        A deeper level under a bare-word argument becomes that word's
        list-literal argument.
        """
        self.advance()  # INDENT
        if self.too_deep(TT.INDENT, TT.DEDENT):
            return []

        args: List[Node] = []
        self.depth += 1

        while not self.check(TT.DEDENT, TT.END, TT.EOF):
            if self.match(TT.NEWLINE, TT.SPACE):
                continue

            if self.check(TT.INDENT):
                group = self.parse_group()
                if group is None:
                    continue
                if args and is_item(args[-1]):
                    owner = args[-1]
                    owner_tok = Tok(TT.WORD, node_name(owner), owner.line, owner.column)
                    args[-1] = make_call(owner_tok.value, [group], owner_tok)
                else:
                    args.append(group)
                continue

            expr = self.parse_expression()
            if expr is None:
                self.skip_unexpected("expression")
                continue
            args.append(expr)

        self.match(TT.DEDENT)
        self.depth -= 1
        return args

    def parse_group(self) -> Optional[Node]:
        """INDENT expr... DEDENT collected as one list literal"""
        indent = self.advance()  # INDENT
        if self.too_deep(TT.INDENT, TT.DEDENT):
            return None

        items: List[Node] = []
        self.depth += 1

        while not self.check(TT.DEDENT, TT.END, TT.EOF):
            if self.match(TT.NEWLINE, TT.SPACE):
                continue

            if self.check(TT.INDENT):
                nested = self.parse_group()
                if nested is not None:
                    items.append(nested)
                continue

            expr = self.parse_expression()
            if expr is None:
                self.skip_unexpected("expression")
                continue
            items.append(expr)

        self.match(TT.DEDENT)
        self.depth -= 1

        if not items:
            return None
        return make_list_literal(items, indent)

    def parse_block(self) -> List[Node]:
        """
        Elements of a do-block, DO already consumed.
        Words on the DO line are plain arguments; each later line is a full
        expression; an indented run of lines is grouped into one list literal.
        """
        if self.too_deep(TT.DO, TT.END):
            return []

        start = self.current
        items: List[Node] = []
        self.depth += 1

        # Inline part: `f do a b end`
        while not self.check(TT.NEWLINE, TT.END, TT.EOF):
            if self.match(TT.SPACE):
                continue

            arg = self.parse_argument()
            if arg is None:
                break
            items.append(arg)

        while not self.check(TT.END, TT.EOF):
            if self.match(TT.NEWLINE, TT.SPACE, TT.DEDENT):
                continue

            if self.check(TT.INDENT):
                group = self.parse_group()
                if group is not None:
                    items.append(group)
                continue

            expr = self.parse_expression()
            if expr is None:
                self.skip_unexpected("expression")
                continue
            items.append(expr)

        if not self.match(TT.END):
            self.report(
                "'end'",
                f"unterminated 'do' block started at line {start.line}, col {start.column}",
            )

        self.depth -= 1
        return items


# ============================================================================
# Entry Points
# ============================================================================

def parse(tokens: List[Tok]) -> Optional[Node]:
    """Parse a token list into an AST root, None for empty input"""
    return Parser(tokens).parse()


def parse_tokens(tokens: List[Tok]) -> ParseResult:
    return Parser(tokens).parse_result()


def parse_source(
    source: str,
    *,
    strict: bool = False,
    block_keywords: bool = True,
) -> ParseResult:
    """
    Tokenize and parse source text.
    With strict=True the first lexer or parser diagnostic is raised.
    """
    lexer = Lexer(source, block_keywords=block_keywords)
    tokens = lexer.tokenize()

    result = Parser(tokens).parse_result()
    diagnostics = sorted(
        lexer.diagnostics + result.diagnostics,
        key=lambda d: (d.line, d.column),
    )
    result.diagnostics = diagnostics

    if strict and diagnostics:
        raise ParseError.from_diagnostic(diagnostics[0])

    return result


if __name__ == '__main__':
    import sys

    from .tree import pretty

    strict = '--strict' in sys.argv
    args = [arg for arg in sys.argv[1:] if not arg.startswith('--')]

    if len(args) > 0 and args[0] != '-':
        with open(args[0], 'r', encoding='utf-8') as f:
            source = f.read()
    else:
        source = sys.stdin.read()

    try:
        result = parse_source(source, strict=strict)
    except ParseError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        sys.exit(1)

    for diag in result.diagnostics:
        print(diag, file=sys.stderr)
    print(pretty(result.node), end='')
