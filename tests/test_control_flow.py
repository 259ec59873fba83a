from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    TypeMismatch,
    UndefinedSymbol,
    run_output_case,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param("if 1\n 10\nelse\n 20\nend", ("number", 10), None, id="if-true-branch"),
    pytest.param("if 0\n 10\nelse\n 20\nend", ("number", 20), None, id="if-false-branch"),
    pytest.param("if 0\n 10\nend", ("unit", None), None, id="if-no-else-is-unit"),
    pytest.param("if 0.5\n 1\nelse\n 2\nend", ("number", 1), None, id="fraction-is-truthy"),
    pytest.param("if -1\n 1\nelse\n 2\nend", ("number", 1), None, id="negative-is-truthy"),
    pytest.param("if -0\n 1\nelse\n 2\nend", ("number", 2), None, id="negative-zero-is-falsy"),
    pytest.param("if 1\nend", ("unit", None), None, id="empty-then-is-unit"),
    pytest.param(
        dedent(
            """\
            let x 5
            if x 3 >
                set x 0
            end
            x
            """
        ),
        ("number", 0),
        None,
        id="if-mutates-enclosing",
    ),
    pytest.param(
        dedent(
            """\
            let x 7
            if x 5 >
                if x 6 >
                    100
                else
                    50
                end
            else
                0
            end
            """
        ),
        ("number", 100),
        None,
        id="nested-if",
    ),
    pytest.param(
        dedent(
            """\
            if 1
                let inner 3
            end
            inner
            """
        ),
        ("number", 3),
        None,
        id="if-block-shares-scope",
    ),
    pytest.param("let x 4", ("number", 4), None, id="let-yields-bound-value"),
    pytest.param("let x 4\nset x x 1 +", ("number", 5), None, id="set-yields-new-value"),
    pytest.param("return 7\n1", ("number", 7), None, id="top-level-return-ends-program"),
    pytest.param("return\n1", ("unit", None), None, id="bare-top-level-return"),
    pytest.param("def u\nend\nif u\n 1\nend", None, TypeMismatch, id="unit-condition"),
    pytest.param("set x 1", None, UndefinedSymbol, id="set-requires-existing"),
    pytest.param("", ("unit", None), None, id="empty-program"),
    pytest.param("// only a comment", ("unit", None), None, id="comment-only-program"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_control_flow(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


OUTPUT_SCENARIOS = [
    pytest.param("1 print\n2 print\n3 print", ["1", "2", "3"], id="print-order"),
    pytest.param("12.5 print", ["12.5"], id="print-fraction"),
    pytest.param("-4 print", ["-4"], id="print-negative"),
    pytest.param("1 3 / print", [str(1 / 3)], id="print-repeating"),
    pytest.param("1 print print", ["1", "1"], id="print-returns-argument"),
    pytest.param("5 print\nreturn 0\n6 print", ["5"], id="return-stops-output"),
    pytest.param(
        "if 0\n 1 print\nelse\n 2 print\nend",
        ["2"],
        id="only-taken-branch-runs",
    ),
]


@pytest.mark.parametrize("source, expected_lines", OUTPUT_SCENARIOS)
def test_output(source: str, expected_lines) -> None:
    run_output_case(source, expected_lines)
