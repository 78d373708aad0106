from __future__ import annotations

from typing import Iterator, List, Optional

from .symbols import METLANG_SYMBOLS, OperationKind, SymbolTable


class PushbackError(RuntimeError):
    """Raised when a second token is pushed back before the first was consumed."""


class Tokenizer:
    """Scans source text for symbol patterns, skipping everything else."""

    def __init__(self, source: str, symbols: SymbolTable = METLANG_SYMBOLS) -> None:
        self.source = source
        self.symbols = symbols
        self.pos = 0
        self._pending: Optional[OperationKind] = None

    def next_token(self) -> Optional[OperationKind]:
        if self._pending is not None:
            token, self._pending = self._pending, None
            return token

        length = len(self.source)
        while self.pos < length:
            for pattern, kind in self.symbols:
                if self.source.startswith(pattern, self.pos):
                    self.pos += len(pattern)
                    return kind
            self.pos += 1
        return None

    def unget_token(self, token: OperationKind) -> None:
        if self._pending is not None:
            raise PushbackError("A token has already been pushed back")
        self._pending = token

    def __iter__(self) -> Iterator[OperationKind]:
        while True:
            token = self.next_token()
            if token is None:
                return
            yield token


def tokenize(source: str, symbols: SymbolTable = METLANG_SYMBOLS) -> List[OperationKind]:
    return list(Tokenizer(source, symbols))


__all__ = ["PushbackError", "Tokenizer", "tokenize"]
