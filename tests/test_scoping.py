from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    DivisionByZero,
    Frame,
    UndefinedSymbol,
    run_program,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param(
        dedent(
            """\
            def f
                let local 1
                local
            end
            f
            local
            """
        ),
        None,
        UndefinedSymbol,
        id="function-locals-do-not-leak",
    ),
    pytest.param(
        "def f x\n x\nend\n1 f\nx",
        None,
        UndefinedSymbol,
        id="params-do-not-leak",
    ),
    pytest.param(
        "let g 10\ndef f\n g\nend\nf",
        ("number", 10),
        None,
        id="function-reads-global",
    ),
    pytest.param(
        dedent(
            """\
            let x 1
            def f
                let x 2
                x
            end
            f
            x
            """
        ),
        ("number", 1),
        None,
        id="let-in-function-shadows-global",
    ),
    pytest.param(
        dedent(
            """\
            let x 1
            def f
                set x 2
            end
            f
            x
            """
        ),
        ("number", 2),
        None,
        id="set-in-function-updates-global",
    ),
    pytest.param(
        dedent(
            """\
            let x 1
            def show
                x
            end
            def wrap x
                show
            end
            99 wrap
            """
        ),
        ("number", 1),
        None,
        id="lexical-not-dynamic",
    ),
    pytest.param(
        dedent(
            """\
            def f
                later
            end
            let later 5
            f
            """
        ),
        ("number", 5),
        None,
        id="global-bound-before-call",
    ),
    pytest.param(
        dedent(
            """\
            def f n
                let local n
                if n 0 >
                    n 1 - f
                end
                local
            end
            3 f
            """
        ),
        ("number", 3),
        None,
        id="each-call-gets-own-frame",
    ),
    pytest.param(
        "def f\n set nope 1\nend\nf",
        None,
        UndefinedSymbol,
        id="set-never-creates",
    ),
    pytest.param(
        dedent(
            """\
            def counter
                let n 0
                def bump
                    set n n 1 +
                end
                bump
                bump
                n
            end
            counter
            """
        ),
        ("number", 2),
        None,
        id="inner-function-sets-enclosing-local",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_scoping(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_independent_runs_do_not_share_state() -> None:
    assert run_program("let x 1\nx") == 1.0

    with pytest.raises(UndefinedSymbol):
        run_program("x")


def test_shared_frame_persists_bindings() -> None:
    frame = Frame()
    run_program("let x 1\ndef inc v\n v 1 +\nend", frame=frame)

    assert run_program("x inc inc", frame=frame) == 3.0
    assert frame.get("x") == 1.0


def test_call_frame_released_after_return() -> None:
    frame = Frame()
    run_program("def f a\n let tmp a\n tmp\nend\n5 f", frame=frame)

    assert set(frame.vars) == {"f"}
    assert frame.depth == 0


def test_call_frame_released_after_error() -> None:
    frame = Frame()
    run_program("def f a\n let tmp a\n tmp 0 /\nend", frame=frame)

    with pytest.raises(DivisionByZero):
        run_program("5 f", frame=frame)

    assert set(frame.vars) == {"f"}
    assert frame.depth == 0
    with pytest.raises(DivisionByZero):
        run_program("0 f", frame=frame)

    run_program("def g a\n a 2 *\nend", frame=frame)
    assert run_program("4 g", frame=frame) == 8.0
    assert set(frame.vars) == {"f", "g"}
