"""Built-in functions (plus, print) and the root frame that exposes them."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from .types import Builtin, BuiltinFn, EvalError, Frame, Value

STDLIB: Dict[str, Builtin] = {}

def register_stdlib(name: str):
    def dec(fn: BuiltinFn):
        STDLIB[name] = Builtin(name=name, fn=fn)
        return fn

    return dec

def render_value(value: Value) -> str:
    if value is None:
        return "nil"

    if isinstance(value, list):
        return "(" + " ".join(render_value(item) for item in value) + ")"

    if isinstance(value, EvalError):
        return f"error: {value}"
    return str(value)

@register_stdlib("plus")
def std_plus(*args: Value) -> int:
    # Non-integers are skipped, not rejected
    return sum(arg for arg in args if type(arg) is int)

@register_stdlib("print")
def std_print(*args: Value) -> None:
    print(*(render_value(arg) for arg in args))
    return None

def root_frame(extra: Optional[Mapping[str, Value]] = None) -> Frame:
    """Build a fresh root environment holding the builtins plus host bindings."""
    frame = Frame()

    for name, builtin in STDLIB.items():
        frame.define(name, builtin)

    if extra:
        for name, value in extra.items():
            frame.define(name, value)

    return frame
