from __future__ import annotations

import contextlib
import sys
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator, List, Optional, Sequence

from .parser import DataAdjust, Input, Instruction, Loop, Output, PointerAdjust

DEFAULT_MEMORY_SIZE = 30000


class ExecutionError(RuntimeError):
    """Base class for failures raised while running a program."""


class MemoryOutOfBound(ExecutionError):
    def __init__(self, pointer: int) -> None:
        super().__init__(f"Memory access out of bounds at pointer {pointer}")
        self.pointer = pointer


class IoError(ExecutionError):
    def __init__(self, error: OSError) -> None:
        super().__init__(f"I/O error: {error}")
        self.error = error


class Eof(ExecutionError):
    """Input was requested after the input stream ended.

    Callers treat this as a normal end of the program, not as a failure.
    """

    def __init__(self) -> None:
        super().__init__("End of input stream")


@dataclass
class ExecutionState:
    step: int
    instruction: Optional[str]
    pointer: int
    tape_start: int
    tape: List[int]
    written: int


@dataclass
class Runtime:
    memory_size: int = DEFAULT_MEMORY_SIZE

    tape: bytearray = field(init=False, repr=False)
    pointer: int = field(init=False, repr=False)
    written: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.memory_size < 1:
            raise ValueError("memory_size must be at least 1")
        self.reset()

    def reset(self) -> None:
        self.tape = bytearray(self.memory_size)
        self.pointer = 0
        self.written = 0

    def run(
        self,
        program: Sequence[Instruction],
        input_stream: Optional[BinaryIO] = None,
        output_stream: Optional[BinaryIO] = None,
    ) -> None:
        for _ in self._drive(program, input_stream, output_stream, 0, trace=False):
            pass

    def step(
        self,
        program: Sequence[Instruction],
        input_stream: Optional[BinaryIO] = None,
        output_stream: Optional[BinaryIO] = None,
        tape_window: int = 10,
    ) -> Iterator[ExecutionState]:
        """Execute ``program``, yielding a snapshot after every instruction.

        Loops are not reported themselves; the instructions in their bodies
        are. A final snapshot with ``instruction=None`` marks completion.
        """
        return self._drive(program, input_stream, output_stream, tape_window, trace=True)

    def _drive(
        self,
        program: Sequence[Instruction],
        input_stream: Optional[BinaryIO],
        output_stream: Optional[BinaryIO],
        tape_window: int,
        trace: bool,
    ) -> Iterator[ExecutionState]:
        self.reset()
        reader = input_stream if input_stream is not None else sys.stdin.buffer
        writer = output_stream if output_stream is not None else sys.stdout.buffer
        counter = [0]
        try:
            yield from self._execute(program, reader, writer, counter, tape_window, trace)
        except ExecutionError:
            # the original error wins over a failed flush
            with contextlib.suppress(IoError):
                self._flush(writer)
            raise
        self._flush(writer)
        if trace:
            yield self._snapshot(counter[0], None, tape_window)

    def _execute(
        self,
        instructions: Sequence[Instruction],
        reader: BinaryIO,
        writer: BinaryIO,
        counter: List[int],
        tape_window: int,
        trace: bool,
    ) -> Iterator[ExecutionState]:
        for instruction in instructions:
            if isinstance(instruction, Loop):
                while self.tape[self._address()] != 0:
                    yield from self._execute(
                        instruction.body, reader, writer, counter, tape_window, trace
                    )
                continue

            if isinstance(instruction, PointerAdjust):
                self.pointer += instruction.delta
            elif isinstance(instruction, DataAdjust):
                address = self._address()
                self.tape[address] = (self.tape[address] + instruction.delta) % 256
            elif isinstance(instruction, Output):
                address = self._address()
                self._write_byte(writer, self.tape[address])
            elif isinstance(instruction, Input):
                address = self._address()
                self.tape[address] = self._read_byte(reader)
            else:
                raise TypeError(f"Unknown instruction: {instruction!r}")

            counter[0] += 1
            if trace:
                yield self._snapshot(counter[0], type(instruction).__name__, tape_window)

    def _address(self) -> int:
        if not 0 <= self.pointer < self.memory_size:
            raise MemoryOutOfBound(self.pointer)
        return self.pointer

    def _write_byte(self, writer: BinaryIO, value: int) -> None:
        try:
            writer.write(bytes((value,)))
        except OSError as exc:
            raise IoError(exc) from exc
        self.written += 1

    def _read_byte(self, reader: BinaryIO) -> int:
        try:
            data = reader.read(1)
        except OSError as exc:
            raise IoError(exc) from exc
        if not data:
            raise Eof()
        return data[0]

    def _flush(self, writer: BinaryIO) -> None:
        flush = getattr(writer, "flush", None)
        if flush is None:
            return
        try:
            flush()
        except OSError as exc:
            raise IoError(exc) from exc

    def _snapshot(self, step: int, instruction: Optional[str], tape_window: int) -> ExecutionState:
        start = max(0, self.pointer - tape_window)
        end = min(self.memory_size, self.pointer + tape_window + 1)
        return ExecutionState(
            step=step,
            instruction=instruction,
            pointer=self.pointer,
            tape_start=start,
            tape=list(self.tape[start:end]),
            written=self.written,
        )


def run(
    program: Sequence[Instruction],
    input_stream: Optional[BinaryIO] = None,
    output_stream: Optional[BinaryIO] = None,
    memory_size: int = DEFAULT_MEMORY_SIZE,
) -> None:
    Runtime(memory_size).run(program, input_stream, output_stream)


__all__ = [
    "DEFAULT_MEMORY_SIZE",
    "Eof",
    "ExecutionError",
    "ExecutionState",
    "IoError",
    "MemoryOutOfBound",
    "Runtime",
    "run",
]
