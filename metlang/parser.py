from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple, Union

from .symbols import METLANG_SYMBOLS, OperationKind, SymbolTable
from .tokenizer import Tokenizer


class ParseError(Exception):
    pass


class UnexpectedEndOfSource(ParseError):
    def __init__(self) -> None:
        super().__init__("Unexpected end of source: a loop was never closed")


class UnexpectedEndOfLoop(ParseError):
    def __init__(self) -> None:
        super().__init__("Unexpected end of loop: no loop is open")


# === Instruction Nodes ===


@dataclass(frozen=True)
class PointerAdjust:
    delta: int


@dataclass(frozen=True)
class DataAdjust:
    delta: int


@dataclass(frozen=True)
class Output:
    pass


@dataclass(frozen=True)
class Input:
    pass


@dataclass(frozen=True)
class Loop:
    body: Tuple["Instruction", ...]


Instruction = Union[PointerAdjust, DataAdjust, Output, Input, Loop]
Program = List[Instruction]


_POINTER_STEPS = {
    OperationKind.POINTER_INCREMENT: 1,
    OperationKind.POINTER_DECREMENT: -1,
}

_DATA_STEPS = {
    OperationKind.DATA_INCREMENT: 1,
    OperationKind.DATA_DECREMENT: -1,
}


# === Parser ===


class Parser:
    def __init__(self, symbols: SymbolTable = METLANG_SYMBOLS) -> None:
        self.symbols = symbols

    def parse(self, source: str) -> Program:
        self.tokenizer = Tokenizer(source, self.symbols)
        return self._parse_instructions(nested=False)

    def _parse_instructions(self, nested: bool) -> Program:
        instructions: Program = []
        while True:
            token = self.tokenizer.next_token()
            if token is None:
                if nested:
                    raise UnexpectedEndOfSource()
                return instructions
            if token in _POINTER_STEPS:
                delta = self._coalesce(_POINTER_STEPS[token], _POINTER_STEPS)
                if delta:
                    instructions.append(PointerAdjust(delta))
            elif token in _DATA_STEPS:
                delta = self._coalesce(_DATA_STEPS[token], _DATA_STEPS)
                if delta:
                    instructions.append(DataAdjust(delta))
            elif token is OperationKind.OUTPUT:
                instructions.append(Output())
            elif token is OperationKind.INPUT:
                instructions.append(Input())
            elif token is OperationKind.LOOP_HEAD:
                body = self._parse_instructions(nested=True)
                instructions.append(Loop(tuple(body)))
            elif token is OperationKind.LOOP_END:
                if not nested:
                    raise UnexpectedEndOfLoop()
                return instructions

    def _coalesce(self, delta: int, steps: dict) -> int:
        """Fold following tokens on the same axis into ``delta``."""
        while True:
            token = self.tokenizer.next_token()
            if token is None:
                return delta
            if token not in steps:
                self.tokenizer.unget_token(token)
                return delta
            delta += steps[token]


def parse(source: str, symbols: SymbolTable = METLANG_SYMBOLS) -> Program:
    return Parser(symbols).parse(source)


__all__ = [
    "DataAdjust",
    "Input",
    "Instruction",
    "Loop",
    "Output",
    "ParseError",
    "Parser",
    "PointerAdjust",
    "Program",
    "UnexpectedEndOfLoop",
    "UnexpectedEndOfSource",
    "parse",
]
