"""Syntax-to-syntax renderers for parsed trees.

``transpile`` emits fully parenthesized prefix notation that any Lisp-family
reader accepts; ``print_explicit`` writes the same tree back in this
language's explicit call notation.
"""

from __future__ import annotations

from typing import Optional

from .tree import LIST_MARKER, SEQUENCE, Node, is_item


def transpile(node: Optional[Node]) -> str:
    if node is None:
        return ""

    if is_item(node):
        return str(node)

    parts = [transpile(child) for child in node.children]

    # Top-level statements are spliced, not wrapped
    if node.data == SEQUENCE:
        return " ".join(parts)

    return "(" + " ".join([node.data, *parts]) + ")"


def print_explicit(node: Optional[Node]) -> str:
    if node is None:
        return ""

    if is_item(node):
        return str(node)

    inner = ", ".join(print_explicit(child) for child in node.children)

    if node.data in (SEQUENCE, LIST_MARKER):
        return f"({inner})"
    return f"{node.data}({inner})"
