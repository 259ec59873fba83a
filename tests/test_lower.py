from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    EXAMPLES_DIR,
    ParseError,
    ResolveError,
    lower,
    parse_source,
)
from laspa.lower import FunctionInfo


def _lower(source: str, **kwargs):
    return lower(parse_source(source), **kwargs)


def test_collatz_lowers_to_one_function() -> None:
    source = (EXAMPLES_DIR / "collatz.laspa").read_text(encoding="utf-8")
    lowered = _lower(source)

    assert list(lowered.functions) == ["collatz"]
    info = lowered.functions["collatz"]
    assert info.params == ("n",)
    assert info.arity == 1
    # Rebinding a parameter does not make it a local.
    assert info.locals == ()
    assert lowered.globals == ()
    assert len(lowered.main) == 1
    assert lowered.builtins == {"print": 1}


def test_locals_and_globals_in_binding_order() -> None:
    source = (EXAMPLES_DIR / "fib.laspa").read_text(encoding="utf-8")
    lowered = _lower(source)

    assert set(lowered.functions) == {"fib_rec", "fib_iter"}
    assert lowered.functions["fib_iter"].locals == ("a", "b", "t")
    assert lowered.functions["fib_rec"].locals == ()
    assert lowered.globals == ("i",)


def test_main_excludes_definitions() -> None:
    lowered = _lower("let x 1\ndef f\n x\nend\nf print")

    assert isinstance(lowered.functions["f"], FunctionInfo)
    assert [type(stmt).__name__ for stmt in lowered.main] == ["VariableDef", "Call"]
    assert lowered.program.statements[1].name == "f"


def test_globals_bound_inside_top_level_blocks() -> None:
    lowered = _lower("if 1\n let a 1\nend\nloop 0\n let b 2\nend\na b +")
    assert lowered.globals == ("a", "b")


def test_function_sees_globals_bound_later() -> None:
    lowered = _lower("def f\n later\nend\nlet later 5\nf")
    assert lowered.globals == ("later",)


def test_describe() -> None:
    lowered = _lower("let g 1\ndef add a b\n let s a b +\n s\nend\n1 2 add")

    assert lowered.describe() == dedent(
        """\
        globals: g
        fn add/2 params: a b locals: s
        main: 2 statement(s)"""
    )


RESOLVE_ERROR_CASES = [
    pytest.param(
        "def outer\n def inner\n 1\n end\nend",
        "Nested function 'inner' is not supported by the backend",
        (2, 2),
        id="nested-def",
    ),
    pytest.param(
        "if 1\n def f\n end\nend",
        "Nested function 'f' is not supported by the backend",
        (2, 2),
        id="def-inside-block",
    ),
    pytest.param(
        "def f\n later\nend",
        "Symbol 'later' is never bound",
        (2, 2),
        id="unbound-in-function",
    ),
    pytest.param(
        "1 nope +",
        "Symbol 'nope' is never bound",
        (1, 3),
        id="unbound-in-main",
    ),
    pytest.param(
        "def f\n let a 1\nend\ndef g\n a\nend",
        "Symbol 'a' is never bound",
        (5, 2),
        id="other-functions-locals-invisible",
    ),
    pytest.param(
        "set nope 1",
        "'set' target 'nope' is never bound",
        (1, 1),
        id="set-unbound",
    ),
    pytest.param(
        "def f\nend\ndef f\nend",
        "Function 'f' is defined more than once",
        (3, 1),
        id="duplicate-def",
    ),
    pytest.param(
        "if x\nend",
        "Symbol 'x' is never bound",
        (1, 4),
        id="unbound-condition",
    ),
]


@pytest.mark.parametrize("source, msg, position", RESOLVE_ERROR_CASES)
def test_resolve_errors(source: str, msg: str, position) -> None:
    with pytest.raises(ResolveError) as exc_info:
        _lower(source)

    err = exc_info.value
    assert isinstance(err, ParseError)
    assert err.message == msg
    assert (err.line, err.column) == position
    assert str(err) == f"{msg} at line {position[0]}, col {position[1]}"


def test_unknown_builtin_is_rejected() -> None:
    program = parse_source("1 emit", builtins={"emit": 1})

    with pytest.raises(ResolveError, match="Function 'emit' is never defined"):
        lower(program)

    assert lower(program, builtins={"emit": 1}).builtins == {"emit": 1}


def test_builtin_arity_checked_against_table() -> None:
    program = parse_source("1 2 emit", builtins={"emit": 2})

    with pytest.raises(ResolveError, match=r"'emit' expects 1 argument\(s\); got 2"):
        lower(program, builtins={"emit": 1})


@pytest.mark.parametrize("op", ["+", "-", "*", "/", "%", ">", "<", ">=", "<=", "==", "!="])
def test_operators_are_not_resolved_as_functions(op: str) -> None:
    lowered = _lower(f"let a 1\na 2 {op}")

    assert lowered.functions == {}
    assert lowered.globals == ("a",)


def test_operators_inside_function_bodies() -> None:
    lowered = _lower("def half n\n if n 2 % 0 ==\n  return n 2 /\n end\n n\nend\n8 half")
    assert lowered.functions["half"].arity == 1
