from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import run_runtime_case
from tablisp.types import Frame, NameNotFound

SCENARIOS = [
    pytest.param(
        dedent(
            """\
            set x 1
            define shadow(x)
            \tx
            shadow(2)
            """
        ),
        ("int", 2),
        id="param-shadows-outer",
    ),
    pytest.param(
        dedent(
            """\
            set x 1
            define shadow(x)
            \tx
            shadow(2)
            x
            """
        ),
        ("int", 1),
        id="outer-untouched-after-call",
    ),
    pytest.param(
        dedent(
            """\
            set x 1
            define local()
            \tset x 5
            local()
            x
            """
        ),
        ("int", 1),
        id="set-writes-call-frame",
    ),
    pytest.param(
        dedent(
            """\
            set base 10
            define addbase(n)
            \tplus base n
            addbase(5)
            """
        ),
        ("int", 15),
        id="reads-defining-scope",
    ),
    pytest.param(
        dedent(
            """\
            set base 10
            define addbase(n)
            \tplus base n
            set base 20
            addbase(5)
            """
        ),
        ("int", 25),
        id="closure-sees-later-rebinding",
    ),
    pytest.param(
        dedent(
            """\
            define outer(a)
            \tdefine inner(b)
            \t\tplus a b
            \tinner(10)
            outer(1)
            """
        ),
        ("int", 11),
        id="nested-function-closes-over-param",
    ),
    pytest.param(
        dedent(
            """\
            define outer(a)
            \tdefine inner(b)
            \t\tplus a b
            outer(1)
            inner(2)
            """
        ),
        ("error", "undefined function: inner"),
        id="inner-not-visible-outside",
    ),
    pytest.param(
        dedent(
            """\
            define caller(x)
            \tpeek()
            define peek()
            \tx
            caller(7)
            """
        ),
        ("string", "x"),
        id="no-dynamic-scope",
    ),
    pytest.param(
        dedent(
            """\
            define twice(f, x)
            \tf(f(x))
            define inc(n)
            \tplus n 1
            twice(inc, 5)
            """
        ),
        ("int", 7),
        id="functions-passed-as-arguments",
    ),
    pytest.param(
        dedent(
            """\
            set plus 3
            plus
            """
        ),
        ("int", 3),
        id="builtins-can-be-shadowed",
    ),
]


@pytest.mark.parametrize("source, expectation", SCENARIOS)
def test_scoping(source: str, expectation) -> None:
    run_runtime_case(source, expectation)


def test_frame_lookup_walks_outward() -> None:
    root = Frame()
    root.define("a", 1)
    child = root.child()
    child.define("b", 2)

    assert child.get("a") == 1
    assert child.get("b") == 2
    assert "a" in child
    assert "b" not in root


def test_frame_define_shadows_parent() -> None:
    root = Frame()
    root.define("a", 1)
    child = root.child()
    child.define("a", 2)

    assert child.get("a") == 2
    assert root.get("a") == 1


def test_frame_missing_name_raises() -> None:
    with pytest.raises(NameNotFound) as exc_info:
        Frame().get("missing")

    assert exc_info.value.name == "missing"
