from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Union

from typing_extensions import TypeAlias, TypeGuard

from .tree import Node

# ---------- Value Model ----------
# Plain data stays native: int, str, list and None. Only callables and errors
# get their own types so a call site can branch on them.

@dataclass(frozen=True)
class EvalError:
    """Semantic failure returned as a value, never raised."""
    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        if self.column is None:
            return f"{self.message} (line {self.line})"
        return f"{self.message} (line {self.line}, col {self.column})"

BuiltinFn = Callable[..., 'Value']

@dataclass(frozen=True)
class Builtin:
    name: str
    fn: BuiltinFn

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"

@dataclass
class Function:
    name: str
    params: List[str]
    body: List[Node]
    frame: 'Frame' = field(repr=False)  # Closure frame

    def __repr__(self) -> str:
        param_desc = ", ".join(self.params) if self.params else "nullary"
        return f"<fn {self.name} params={param_desc}>"

Value: TypeAlias = Union[int, str, list, None, Builtin, Function, EvalError]

def is_error(value: object) -> TypeGuard[EvalError]:
    return isinstance(value, EvalError)

# ---------- Environment ----------

class Frame:
    """One lexical scope. Lookups walk outward, writes stay local."""

    def __init__(self, parent: Optional['Frame'] = None):
        self.parent = parent
        self.vars: Dict[str, Value] = {}

    def define(self, name: str, val: Value) -> None:
        self.vars[name] = val

    def get(self, name: str) -> Value:
        frame: Optional[Frame] = self
        while frame is not None:
            if name in frame.vars:
                return frame.vars[name]
            frame = frame.parent

        raise NameNotFound(name)

    def __contains__(self, name: object) -> bool:
        try:
            self.get(str(name))
        except NameNotFound:
            return False
        return True

    def child(self) -> 'Frame':
        return Frame(parent=self)

# ---------- Exceptions ----------

class NameNotFound(LookupError):
    """Internal lookup signal; the evaluator turns it into a value."""
    def __init__(self, name: str):
        super().__init__(f"Name '{name}' not found")
        self.name = name

class EvaluatorInvariantError(RuntimeError):
    """Broken internal contract; evaluation must abort."""
