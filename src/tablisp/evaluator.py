from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional

from lark import Token, Tree

from .stdlib import root_frame
from .tree import LIST_MARKER, SEQUENCE, Node, is_item, node_name, node_position
from .types import (
    Builtin,
    EvalError,
    EvaluatorInvariantError,
    Frame,
    Function,
    NameNotFound,
    Value,
    is_error,
)

_INTEGER_RE = re.compile(r"[0-9]+")

EvalFunc = Callable[[Tree, Frame], Value]


def _error_at(node: Node, message: str) -> EvalError:
    line, column = node_position(node)
    return EvalError(message, line, column)

# ---------------- Public API ----------------

def eval_expr(ast: Optional[Node], frame: Optional[Frame] = None) -> Value:
    """Evaluate a parsed root; a fresh root frame is built when none is given."""
    if frame is None:
        frame = root_frame()

    if ast is None:
        return None
    return eval_node(ast, frame)

# ---------------- Core evaluator ----------------

def eval_node(n: Node, frame: Frame) -> Value:
    if isinstance(n, Token):
        return _eval_item(n, frame)

    if not isinstance(n, Tree):
        raise EvaluatorInvariantError(f"Unexpected node type {type(n).__name__}")

    handler = _NODE_DISPATCH.get(n.data)
    if handler is not None:
        return handler(n, frame)
    return eval_call(n, frame)


def _eval_item(n: Token, frame: Frame) -> Value:
    name = str(n)

    if _INTEGER_RE.fullmatch(name):
        return int(name)

    try:
        return frame.get(name)
    except NameNotFound:
        # Unbound words evaluate to their own text
        return name

# ---------------- Special forms ----------------

def eval_sequence(n: Tree, frame: Frame) -> Value:
    """Statements in order; the first error value stops the run."""
    result: Value = None
    for child in n.children:
        result = eval_node(child, frame)
        if is_error(result):
            return result
    return result

def eval_list(n: Tree, frame: Frame) -> Value:
    items: List[Value] = []
    for child in n.children:
        value = eval_node(child, frame)
        if is_error(value):
            return value
        items.append(value)
    return items

def eval_define(n: Tree, frame: Frame) -> Value:
    """define name(params...) body...  /  define name body..."""
    if not n.children:
        return _error_at(n, "define expects a name")

    signature, *body = n.children
    params: List[str] = []

    if not is_item(signature):
        if signature.data in (SEQUENCE, LIST_MARKER):
            return _error_at(signature, "define expects a name")

        for param in signature.children:
            if not is_item(param):
                return _error_at(param, f"malformed parameter in define {signature.data}")
            params.append(str(param))

    name = node_name(signature)
    frame.define(name, Function(name=name, params=params, body=list(body), frame=frame))
    return None

def eval_set(n: Tree, frame: Frame) -> Value:
    """set name value -- binds in the current frame only"""
    if len(n.children) < 2:
        return _error_at(n, "set expects a name and a value")

    target, value_node = n.children[0], n.children[1]
    if not is_item(target):
        return _error_at(target, "set expects a plain name")

    value = eval_node(value_node, frame)
    frame.define(str(target), value)
    return value

_NODE_DISPATCH: Dict[str, EvalFunc] = {
    SEQUENCE: eval_sequence,
    LIST_MARKER: eval_list,
    'define': eval_define,
    'set': eval_set,
}

# ---------------- Calls ----------------

def eval_call(n: Tree, frame: Frame) -> Value:
    name = n.data

    try:
        callee = frame.get(name)
    except NameNotFound:
        return _error_at(n, f"undefined function: {name}")

    args: List[Value] = []
    for child in n.children:
        value = eval_node(child, frame)
        if is_error(value):
            return value
        args.append(value)

    return call_value(callee, args, n)

def call_value(callee: Value, args: List[Value], n: Tree) -> Value:
    if isinstance(callee, Builtin):
        return callee.fn(*args)

    if isinstance(callee, Function):
        return _call_function(callee, args)

    return _error_at(n, f"not a function: {n.data}")

def _call_function(fn: Function, args: List[Value]) -> Value:
    if not isinstance(fn.frame, Frame) or not all(isinstance(p, str) for p in fn.params):
        raise EvaluatorInvariantError(f"Corrupted function record for {fn.name}")

    call_frame = fn.frame.child()

    # Missing arguments leave parameters unbound, extras are ignored
    for param, arg in zip(fn.params, args):
        call_frame.define(param, arg)

    result: Value = None
    for stmt in fn.body:
        result = eval_node(stmt, call_frame)
        if is_error(result):
            return result
    return result
