from .parser import (
    DataAdjust,
    Input,
    Loop,
    Output,
    ParseError,
    Parser,
    PointerAdjust,
    UnexpectedEndOfLoop,
    UnexpectedEndOfSource,
    parse,
)
from .runtime import Eof, ExecutionError, ExecutionState, IoError, MemoryOutOfBound, Runtime, run
from .symbols import BRAINFUCK_SYMBOLS, METLANG_SYMBOLS, OperationKind, SymbolTable
from .tokenizer import Tokenizer

__all__ = [
    "BRAINFUCK_SYMBOLS",
    "DataAdjust",
    "Eof",
    "ExecutionError",
    "ExecutionState",
    "Input",
    "IoError",
    "Loop",
    "METLANG_SYMBOLS",
    "MemoryOutOfBound",
    "OperationKind",
    "Output",
    "ParseError",
    "Parser",
    "PointerAdjust",
    "Runtime",
    "SymbolTable",
    "Tokenizer",
    "UnexpectedEndOfLoop",
    "UnexpectedEndOfSource",
    "parse",
    "run",
]
