from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from .compiler import Compiler
from .config import CompilerOptions, Settings
from .errors import CallDepthExceeded, ParseError, StepLimitExceeded, context_window
from .lexer import tokenize
from .log import setup_logging
from .nodes import format_tree
from .parser import MAX_NESTING
from .vm import TapeMachine, decode_output, to_input_bytes


def _read_source(path: Optional[str]) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return source_path.read_text(encoding="utf-8")


def _write_output(path: str, data: str) -> None:
    output_path = Path(path)
    output_path.write_text(data, encoding="utf-8")


def _nesting_depth(value: str) -> int:
    depth = int(value)
    if not 1 <= depth <= MAX_NESTING:
        raise argparse.ArgumentTypeError(f"must be between 1 and {MAX_NESTING}")
    return depth


def _build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compile tape programs into Go source")
    parser.add_argument(
        "source",
        nargs="?",
        help="Path to the program source (default: read standard input)",
    )
    parser.add_argument(
        "-o",
        "--emit",
        help="Destination file for the generated Go (default: print to stdout)",
    )
    parser.add_argument(
        "--classic",
        action="store_true",
        default=not settings.extended,
        help="Treat '{', '}' and '!' as comments and omit closure slots",
    )
    parser.add_argument(
        "--max-depth",
        type=_nesting_depth,
        default=settings.max_depth,
        help=f"Maximum bracket nesting depth (default: {settings.max_depth})",
    )
    dump = parser.add_mutually_exclusive_group()
    dump.add_argument("--tokens", action="store_true", help="Print the token list and exit")
    dump.add_argument("--ast", action="store_true", help="Print the parse tree and exit")
    dump.add_argument(
        "--run",
        action="store_true",
        help="Execute the program in the reference VM instead of emitting Go",
    )
    parser.add_argument(
        "--input",
        default="",
        help="Input string supplied to the program when running",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=settings.max_steps,
        help=f"Step limit when running (default: {settings.max_steps:,})",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help=f"Logging level (default: {settings.log_level})",
    )
    return parser


def main(argv: Optional[list[str]] = None, settings: Optional[Settings] = None) -> int:
    settings = settings or Settings()
    args = _build_parser(settings).parse_args(argv)
    setup_logging(args.log_level.upper())

    try:
        source_text = _read_source(args.source)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    options = CompilerOptions(extended=not args.classic, max_depth=args.max_depth)
    if args.tokens:
        sys.stdout.write(format_tree(tokenize(source_text, extended=options.extended)) + "\n")
        return 0

    compiler = Compiler(options)
    try:
        tree = compiler.parse(source_text)
    except ParseError as exc:
        print(exc.message, file=sys.stderr)
        print(
            f"Details: {context_window(source_text, exc.span, settings.context_width)}",
            file=sys.stderr,
        )
        return 1

    if args.ast:
        sys.stdout.write(format_tree(tree) + "\n")
        return 0

    if args.run:
        machine = TapeMachine()
        try:
            output = machine.run(
                tree,
                input_data=to_input_bytes(args.input),
                max_steps=args.max_steps,
            )
        except (StepLimitExceeded, CallDepthExceeded) as exc:
            print(f"Execution error: {exc}", file=sys.stderr)
            return 1
        sys.stdout.write(decode_output(output))
        return 0

    go_code = compiler.encode(tree)
    if args.emit:
        _write_output(args.emit, go_code)
    else:
        sys.stdout.write(go_code)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
