from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import BinaryIO, Optional

from .parser import ParseError, Program, parse
from .runtime import DEFAULT_MEMORY_SIZE, Eof, ExecutionError, Runtime
from .symbols import DIALECTS, SymbolTable, SymbolTableError, get_dialect
from .visualizer import format_program, format_state

NESTING_ERROR = "loops are nested too deeply"


def _read_source(args: argparse.Namespace, input_stream: BinaryIO) -> str:
    if args.expression is not None:
        return args.expression
    if args.source is None or args.source == "-":
        return input_stream.read().decode("utf-8")
    source_path = Path(args.source)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {args.source}")
    return source_path.read_text(encoding="utf-8")


def _load_symbols(args: argparse.Namespace) -> SymbolTable:
    if args.symbols is None:
        return get_dialect(args.dialect)
    data = json.loads(Path(args.symbols).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise SymbolTableError("Symbol file must contain a JSON object")
    return SymbolTable.from_mapping(data)


def _execute(
    program: Program,
    runtime: Runtime,
    input_stream: BinaryIO,
    output_stream: BinaryIO,
    trace: bool,
) -> None:
    if not trace:
        runtime.run(program, input_stream, output_stream)
        return
    for state in runtime.step(program, input_stream, output_stream):
        print(format_state(state), file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="metlang", description="Metlang interpreter")
    parser.add_argument(
        "source",
        nargs="?",
        metavar="FILE",
        help="Source file ('-' or omitted: read from standard input)",
    )
    parser.add_argument("-e", "--expression", help="Execute the expression")
    parser.add_argument(
        "-n",
        "--no-newline",
        action="store_true",
        help="Do not output the trailing newline",
    )
    parser.add_argument(
        "--memory-size",
        type=int,
        default=DEFAULT_MEMORY_SIZE,
        help=f"Number of tape cells (default: {DEFAULT_MEMORY_SIZE})",
    )
    symbols = parser.add_mutually_exclusive_group()
    symbols.add_argument(
        "--dialect",
        default="metlang",
        choices=sorted(DIALECTS),
        help="Built-in symbol set (default: metlang)",
    )
    symbols.add_argument(
        "--symbols",
        help="JSON file mapping operation names to symbol strings",
    )
    parser.add_argument(
        "--dump-ast",
        action="store_true",
        help="Print the parsed instruction tree instead of running it",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Write the machine state after every instruction to stderr",
    )
    return parser


def main(
    argv: Optional[list[str]] = None,
    *,
    input_stream: Optional[BinaryIO] = None,
    output_stream: Optional[BinaryIO] = None,
) -> int:
    args = build_parser().parse_args(argv)
    reader = input_stream if input_stream is not None else sys.stdin.buffer
    writer = output_stream if output_stream is not None else sys.stdout.buffer

    try:
        symbols = _load_symbols(args)
    except (OSError, ValueError) as exc:
        print(f"error: cannot load symbols: {exc}", file=sys.stderr)
        return 1

    try:
        source_text = _read_source(args, reader)
    except (OSError, UnicodeDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    try:
        program = parse(source_text, symbols)
    except ParseError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except RecursionError:
        print(f"error: {NESTING_ERROR}", file=sys.stderr)
        return 1

    if args.dump_ast:
        try:
            dump = format_program(program)
        except RecursionError:
            print(f"error: {NESTING_ERROR}", file=sys.stderr)
            return 1
        writer.write(dump.encode("utf-8") + b"\n")
        writer.flush()
        return 0

    try:
        runtime = Runtime(args.memory_size)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    try:
        _execute(program, runtime, reader, writer, args.trace)
    except Eof:
        pass
    except ExecutionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except RecursionError:
        print(f"error: {NESTING_ERROR}", file=sys.stderr)
        return 1

    if not args.no_newline:
        writer.write(b"\n")
        writer.flush()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
