from __future__ import annotations

import io

import pytest

from tests.support.harness import (
    EvalError,
    LexError,
    RecursionLimit,
    StackUnderflow,
    TypeMismatch,
    UndefinedSymbol,
    run_program,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param("x", None, UndefinedSymbol, id="unbound-symbol"),
    pytest.param("1 x +", None, UndefinedSymbol, id="unbound-operand"),
    pytest.param("def u\nend\nu print", None, TypeMismatch, id="print-needs-number"),
    pytest.param("#", None, LexError, id="lex-error-surfaces"),
    pytest.param("4 +", None, StackUnderflow, id="parse-error-surfaces"),
    pytest.param("1 0 /", None, EvalError, id="eval-errors-share-base"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_error_handling(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_unbound_symbol_carries_name_and_position() -> None:
    with pytest.raises(UndefinedSymbol) as exc_info:
        run_program("let y 1\n  y x +")

    err = exc_info.value
    assert err.name == "x"
    assert (err.line, err.column) == (2, 5)
    assert str(err) == "Undefined symbol 'x' (line 2, col 5)"


def test_error_position_is_innermost_node() -> None:
    with pytest.raises(UndefinedSymbol) as exc_info:
        run_program("def f\n  nope\nend\n\nf")

    err = exc_info.value
    assert (err.line, err.column) == (2, 3)


def test_error_without_position_renders_bare_message() -> None:
    err = UndefinedSymbol("q")
    assert str(err) == "Undefined symbol 'q'"


def test_output_before_error_is_kept() -> None:
    out = io.StringIO()
    with pytest.raises(UndefinedSymbol):
        run_program("1 print\n2 print\nmissing\n3 print", out=out)

    assert out.getvalue().splitlines() == ["1", "2"]


def test_type_mismatch_message() -> None:
    with pytest.raises(TypeMismatch) as exc_info:
        run_program("def u\nend\nu 1 +")

    assert "'+' expects a number; got ()" in str(exc_info.value)


def test_recursion_limit_is_configurable(monkeypatch: pytest.MonkeyPatch) -> None:
    source = "def count n\n if n 0 ==\n  return 0\n end\n n 1 - count\nend\n20 count"

    assert run_program(source) == 0.0

    monkeypatch.setenv("LASPA_MAX_CALL_DEPTH", "10")
    with pytest.raises(RecursionLimit) as exc_info:
        run_program(source)

    assert exc_info.value.limit == 10
    assert exc_info.value.name == "count"


def test_recursion_limit_counts_nested_calls(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LASPA_MAX_CALL_DEPTH", "5")
    source = "def count n\n if n 0 ==\n  return 0\n end\n n 1 - count\nend\n{} count"

    # 4 count nests 5 calls (4, 3, 2, 1, 0).
    assert run_program(source.format(4)) == 0.0
    with pytest.raises(RecursionLimit):
        run_program(source.format(5))


def test_bad_call_depth_setting_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    from laspa.utils import DEFAULT_MAX_CALL_DEPTH, max_call_depth

    monkeypatch.setenv("LASPA_MAX_CALL_DEPTH", "lots")
    assert max_call_depth() == DEFAULT_MAX_CALL_DEPTH

    monkeypatch.setenv("LASPA_MAX_CALL_DEPTH", "-3")
    assert max_call_depth() == DEFAULT_MAX_CALL_DEPTH


def test_huge_call_depth_setting_is_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    from laspa.utils import MAX_CALL_DEPTH_CEILING, max_call_depth

    monkeypatch.setenv("LASPA_MAX_CALL_DEPTH", "10000000")
    assert max_call_depth() == MAX_CALL_DEPTH_CEILING

    with pytest.raises(RecursionLimit) as exc_info:
        run_program("def down n\n n 1 - down\nend\n0 down")

    assert exc_info.value.limit == MAX_CALL_DEPTH_CEILING
