from __future__ import annotations

import argparse
import sys
import traceback
from pathlib import Path
from typing import Dict, List, Optional, Sequence, TextIO, Tuple, Union

from loguru import logger

from . import __version__
from .evaluator import eval_expr
from .lexer import LexError, tokenize
from .log import configure
from .lower import lower
from .parser import ParseError, parse_tokens
from .runtime import Builtin, EvalError, Frame, Function, Value, format_value, init_stdlib, stdlib_arities
from .tree import Call, NumberLiteral, Program, SymbolRef
from .utils import debug_py_trace_enabled

LaspaError = (LexError, ParseError, EvalError)

def frame_bindings(frame: Frame) -> Dict[str, Optional[int]]:
    """Parse-time view of a live frame: function arities, None for variables."""
    bindings: Dict[str, Optional[int]] = dict(stdlib_arities())

    chain: List[Frame] = []
    cur: Optional[Frame] = frame
    while cur is not None:
        chain.append(cur)
        cur = cur.parent

    # Outermost first so inner bindings shadow outer ones.
    for scope in reversed(chain):
        for name, val in scope.vars.items():
            bindings[name] = val.arity if isinstance(val, (Function, Builtin)) else None

    return bindings

def parse(src: str, frame: Optional[Frame]=None) -> Program:
    tokens = tokenize(src)
    builtins = frame_bindings(frame) if frame is not None else None
    return parse_tokens(tokens, builtins=builtins)

def run(src: str, frame: Optional[Frame]=None, out: Optional[TextIO]=None) -> Optional[Value]:
    """Lex, parse and evaluate `src`.

    Passing a frame keeps bindings across runs; functions it already holds
    are callable from the new source.
    """
    init_stdlib()
    ast = parse(src, frame)
    return eval_expr(ast, frame, source=src, out=out)

def run_file(path: Union[str, Path], frame: Optional[Frame]=None, out: Optional[TextIO]=None) -> Optional[Value]:
    p = Path(path)
    logger.debug("running {}", p)
    return run(p.read_text(encoding="utf-8"), frame=frame, out=out)

def repl_eval(src: str, frame: Frame) -> Tuple[Optional[Value], bool]:
    """Evaluate one REPL entry; the flag is True when the entry ended in a statement."""
    ast = parse(src, frame)
    result = eval_expr(ast, frame, source=src)

    last = ast.statements[-1] if ast.statements else None
    is_stmt = not isinstance(last, (NumberLiteral, SymbolRef, Call))
    return result, is_stmt

def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Otherwise read the named file.
    """

    if arg is None or arg == "-":
        return sys.stdin.read()

    return Path(arg).read_text(encoding="utf-8")

def _emit(stage: str, src: str) -> None:
    if stage == "tokens":
        for tok in tokenize(src):
            print(f"{tok.line}:{tok.column}\t{tok.kind.name}\t{tok.lexeme!r}")
        return

    ast = parse(src)

    if stage == "ast":
        print(ast.pretty())
        return

    print(lower(ast).describe())

def _report(exc: BaseException) -> None:
    print(f"error: {exc}", file=sys.stderr)

    if debug_py_trace_enabled():
        print("\nPython traceback:", file=sys.stderr)
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)

def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="laspa", description="Run Laspa programs.")
    ap.add_argument("file", nargs="?", help="source file; '-' or omitted reads stdin")
    ap.add_argument("--repl", action="store_true", help="start the interactive REPL")
    ap.add_argument(
        "--emit",
        choices=("result", "tokens", "ast", "lowered"),
        help="print a pipeline stage instead of only running the program",
    )
    ap.add_argument("-v", "--verbose", action="count", default=0, help="raise log verbosity (repeatable)")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap

def main(argv: Optional[Sequence[str]]=None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure(args.verbose)

    if args.repl:
        from .repl import repl
        repl()
        return 0

    try:
        src = _load_source(args.file)
    except OSError as exc:
        print(f"error: cannot read {args.file}: {exc.strerror or exc}", file=sys.stderr)
        return 1

    try:
        if args.emit in ("tokens", "ast", "lowered"):
            _emit(args.emit, src)
            return 0

        result = run(src)
    except LaspaError as exc:
        _report(exc)
        return 1

    if args.emit == "result":
        print(format_value(result))

    return 0

if __name__ == "__main__":
    sys.exit(main())
