"""Shared helpers for working with the two AST variants.

The parser builds plain Lark nodes:

- ``Item(name)`` is a ``lark.Token`` of type ``WORD`` (a leaf, never has children)
- ``List(tag, children)`` is a ``lark.Tree`` whose ``data`` is the tag

An empty tag marks an anonymous sequence, ``"list"`` marks a list literal and
any other tag is the name of the function being called.
"""
from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Union

from lark import Token, Tree
from lark.tree import Meta
from typing_extensions import TypeAlias, TypeGuard

from .token_types import Tok

Node: TypeAlias = Union[Tree, Token]

ITEM_TYPE = "WORD"
LIST_MARKER = "list"
SEQUENCE = ""


def _meta_for(tok: Optional[Tok]) -> Optional[Meta]:
    if tok is None:
        return None

    meta = Meta()
    meta.line = tok.line
    meta.column = tok.column
    meta.empty = False
    return meta


def make_item(name: str, tok: Optional[Tok] = None) -> Token:
    if tok is None:
        return Token(ITEM_TYPE, name)

    return Token(
        ITEM_TYPE, name,
        line=tok.line, column=tok.column,
        end_line=tok.line, end_column=tok.column + len(name),
    )


def make_call(tag: str, children: Iterable[Node], tok: Optional[Tok] = None) -> Tree:
    return Tree(tag, list(children), _meta_for(tok))


def make_list_literal(children: Iterable[Node], tok: Optional[Tok] = None) -> Tree:
    return make_call(LIST_MARKER, children, tok)


def make_sequence(children: Iterable[Node]) -> Tree:
    return Tree(SEQUENCE, list(children))


def is_item(node: object) -> TypeGuard[Token]:
    return isinstance(node, Token)

def is_list(node: object) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_list_literal(node: object) -> bool:
    return is_list(node) and node.data == LIST_MARKER

def is_sequence(node: object) -> bool:
    return is_list(node) and node.data == SEQUENCE

def is_call(node: object) -> bool:
    return is_list(node) and node.data not in (SEQUENCE, LIST_MARKER)

def node_name(node: Node) -> str:
    """Item text or List tag."""
    if is_item(node):
        return str(node)
    return node.data

def node_children(node: Node) -> List[Node]:
    if not is_list(node):
        return []
    return list(node.children)

def node_position(node: Node) -> tuple[Optional[int], Optional[int]]:
    """Best-effort (line, column) of a node, (None, None) when unknown."""
    if is_item(node):
        return node.line, node.column

    meta = getattr(node, "_meta", None)
    if meta is None or meta.empty:
        return None, None
    return meta.line, meta.column


def walk(node: Node) -> Iterator[Node]:
    """Yield node and all its descendants, parents before children."""
    yield node
    for child in node_children(node):
        yield from walk(child)

def node_depth(node: Node) -> int:
    children = node_children(node)
    if not children:
        return 1
    return 1 + max(node_depth(ch) for ch in children)


def pretty(node: Optional[Node], indent: str = '  ') -> str:
    """Return pretty-printed tree representation."""
    def _label(n: Tree) -> str:
        if n.data == SEQUENCE:
            return '<sequence>'
        if n.data == LIST_MARKER:
            return '<list>'
        return n.data

    def _pretty(n: Node, level: int = 0) -> str:
        if is_item(n):
            return f'{indent * level}{n.type}\t{n.value!r}\n'
        lines = [f'{indent * level}{_label(n)}\n']
        for child in n.children:
            lines.append(_pretty(child, level + 1))
        return ''.join(lines)

    if node is None:
        return '<empty>\n'
    return _pretty(node)
