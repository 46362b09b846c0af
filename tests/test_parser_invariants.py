from __future__ import annotations

import pytest

from tests.support.harness import ParseError, parse_source, render_explicit, tokenize
from tablisp.parser_rd import Parser, parse, parse_tokens
from tablisp.token_types import TT, Tok
from tablisp.tree import node_children, node_depth, walk


def test_unterminated_paren_keeps_partial_call() -> None:
    result = parse_source("f(a, b")

    assert render_explicit("f(a, b") == "f(a, b)"
    assert not result.ok
    (diag,) = result.diagnostics
    assert diag.expected == "')'"
    assert "unterminated '('" in diag.message
    assert "line 1, col 2" in diag.message


def test_unterminated_block_keeps_partial_call() -> None:
    result = parse_source("f do\na\nb")

    assert render_explicit("f do\na\nb") == "f(a, b)"
    (diag,) = result.diagnostics
    assert diag.expected == "'end'"
    assert "unterminated 'do' block" in diag.message


def test_stray_closing_paren_is_skipped() -> None:
    result = parse_source("a )\nb")

    assert render_explicit("a )\nb") == "(a, b)"
    (diag,) = result.diagnostics
    assert (diag.line, diag.column) == (1, 3)
    assert diag.found == "')'"


def test_stray_end_is_skipped() -> None:
    result = parse_source("end\nf x")

    assert render_explicit("end\nf x") == "f(x)"
    assert [d.found for d in result.diagnostics] == ["'end'"]


def test_lexer_and_parser_diagnostics_are_merged_in_order() -> None:
    result = parse_source("a ) ?\nb(")

    messages = [(d.line, d.column) for d in result.diagnostics]
    assert messages == sorted(messages)
    assert len(result.diagnostics) == 3


def test_strict_raises_first_diagnostic() -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_source("f(a\ng ?", strict=True)

    err = exc_info.value
    assert (err.line, err.column) == (2, 3)
    assert "unexpected character" in str(err)


def test_strict_accepts_clean_source() -> None:
    result = parse_source("f a\n\tb", strict=True)
    assert result.ok


@pytest.mark.parametrize(
    "code",
    [
        pytest.param(")))", id="closing-parens"),
        pytest.param(",,,", id="commas"),
        pytest.param("end end do", id="keywords"),
        pytest.param("f(,)", id="empty-args"),
        pytest.param("f do (", id="open-everything"),
        pytest.param("\t\t)\n)", id="indented-garbage"),
        pytest.param("f a\n\t)\n\t\t)", id="garbage-continuation"),
        pytest.param("f do\n\t)\nend", id="garbage-group"),
    ],
)
def test_parser_always_terminates(code: str) -> None:
    result = parse_source(code)
    assert isinstance(result.diagnostics, list)


@pytest.mark.parametrize(
    "code",
    [
        pytest.param("f(" * 400 + "x" + ")" * 400, id="explicit-calls"),
        pytest.param("(" * 400 + ")" * 400, id="list-literals"),
        pytest.param("f(" * 2000, id="unterminated-calls"),
        pytest.param("f do\n" * 400 + "end\n" * 400, id="do-blocks"),
        pytest.param(
            "f a" + "".join("\n" + "\t" * i + "g b" for i in range(1, 400)),
            id="continuation-lines",
        ),
    ],
)
def test_deep_nesting_is_reported(code: str) -> None:
    result = parse_source(code)

    assert result.node is not None
    assert any("nesting too deep" in diag.message for diag in result.diagnostics)
    with pytest.raises(ParseError):
        parse_source(code, strict=True)


def test_parsing_resumes_after_deep_nesting() -> None:
    result = parse_source("f(" * 400 + "x" + ")" * 400 + "\ng y")

    (diag,) = result.diagnostics
    assert diag.line == 1
    assert "nesting too deep" in diag.message
    assert node_children(result.node)[-1] == parse_source("g y").node


def test_nesting_below_limit_is_clean() -> None:
    result = parse_source("f(" * 50 + "x" + ")" * 50)
    assert result.ok
    assert node_depth(result.node) > 50


def test_parse_on_empty_token_list() -> None:
    assert parse([]) is None
    assert Parser([]).parse_result().diagnostics == []


def test_parse_tokens_matches_parse_source() -> None:
    code = "f a\n\tb c\ng(x)"
    assert parse_tokens(tokenize(code)).node == parse_source(code).node


def test_trees_are_strict_ownership_trees() -> None:
    node = parse_source("f a\n\tb\n\t\tc d\n\te(x, (y, z))").node

    seen = set()
    for child in walk(node):
        assert id(child) not in seen
        seen.add(id(child))


def test_items_never_have_children() -> None:
    node = parse_source("f a (b, c) g(h)").node

    for child in walk(node):
        if not hasattr(child, "children"):
            assert node_children(child) == []


def test_nested_depth() -> None:
    assert node_depth(parse_source("f(g(h(x)))").node) == 4


def test_handmade_tokens_without_eof() -> None:
    tokens = [Tok(TT.WORD, "f", 1, 1), Tok(TT.SPACE, " ", 1, 2), Tok(TT.WORD, "a", 1, 3)]
    result = parse_tokens(tokens)

    assert result.node.data == "f"
    assert result.ok
