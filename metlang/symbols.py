from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Mapping, Tuple


class SymbolTableError(ValueError):
    """Raised when a symbol table does not describe all eight operations."""


class OperationKind(str, Enum):
    POINTER_INCREMENT = "pointer_increment"
    POINTER_DECREMENT = "pointer_decrement"
    DATA_INCREMENT = "data_increment"
    DATA_DECREMENT = "data_decrement"
    OUTPUT = "output"
    INPUT = "input"
    LOOP_HEAD = "loop_head"
    LOOP_END = "loop_end"


@dataclass(frozen=True)
class SymbolTable:
    """Ordered (pattern, kind) pairs consulted by the tokenizer.

    Patterns are tried in the stored order. When one pattern is a prefix of
    another, the longer one has to come first; this is not checked.
    """

    entries: Tuple[Tuple[str, OperationKind], ...]

    def __post_init__(self) -> None:
        normalized = tuple((pattern, OperationKind(kind)) for pattern, kind in self.entries)
        if len(normalized) != len(OperationKind):
            raise SymbolTableError(
                f"Symbol table needs exactly {len(OperationKind)} entries, got {len(normalized)}"
            )
        seen: Dict[OperationKind, str] = {}
        for pattern, kind in normalized:
            if not pattern:
                raise SymbolTableError(f"Empty pattern for {kind.value}")
            if kind in seen:
                raise SymbolTableError(f"Duplicate entry for {kind.value}")
            seen[kind] = pattern
        object.__setattr__(self, "entries", normalized)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "SymbolTable":
        """Build a table from ``{kind name: pattern}``, longest pattern first."""
        try:
            pairs = [(pattern, OperationKind(name)) for name, pattern in mapping.items()]
        except ValueError as exc:
            raise SymbolTableError(str(exc)) from exc
        for pattern, kind in pairs:
            if not isinstance(pattern, str):
                raise SymbolTableError(f"Pattern for {kind.value} must be a string")
        pairs.sort(key=lambda pair: len(pair[0]), reverse=True)
        return cls(pairs)

    def __iter__(self) -> Iterator[Tuple[str, OperationKind]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def as_dict(self) -> Dict[str, str]:
        return {kind.value: pattern for pattern, kind in self.entries}


METLANG_SYMBOLS = SymbolTable(
    [
        ("にゃうね", OperationKind.POINTER_INCREMENT),
        ("にゃん", OperationKind.POINTER_DECREMENT),
        ("にゃう", OperationKind.DATA_INCREMENT),
        ("にゃ？", OperationKind.DATA_DECREMENT),
        ("これになりたい", OperationKind.OUTPUT),
        ("これすき", OperationKind.INPUT),
        ("ポチった", OperationKind.LOOP_HEAD),
        ("ねる", OperationKind.LOOP_END),
    ]
)

BRAINFUCK_SYMBOLS = SymbolTable(
    [
        (">", OperationKind.POINTER_INCREMENT),
        ("<", OperationKind.POINTER_DECREMENT),
        ("+", OperationKind.DATA_INCREMENT),
        ("-", OperationKind.DATA_DECREMENT),
        (".", OperationKind.OUTPUT),
        (",", OperationKind.INPUT),
        ("[", OperationKind.LOOP_HEAD),
        ("]", OperationKind.LOOP_END),
    ]
)

DIALECTS: Dict[str, SymbolTable] = {
    "metlang": METLANG_SYMBOLS,
    "brainfuck": BRAINFUCK_SYMBOLS,
}


def get_dialect(name: str) -> SymbolTable:
    try:
        return DIALECTS[name.lower()]
    except KeyError as exc:
        known = ", ".join(sorted(DIALECTS))
        raise KeyError(f"Unknown dialect: {name} (known: {known})") from exc


__all__ = [
    "BRAINFUCK_SYMBOLS",
    "DIALECTS",
    "METLANG_SYMBOLS",
    "OperationKind",
    "SymbolTable",
    "SymbolTableError",
    "get_dialect",
]
