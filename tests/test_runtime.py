import io
import unittest
from unittest import mock

from metlang import (
    BRAINFUCK_SYMBOLS,
    DataAdjust,
    Eof,
    IoError,
    MemoryOutOfBound,
    Output,
    PointerAdjust,
    Runtime,
    parse,
    run,
)


class FailingStream(io.RawIOBase):
    def read(self, size=-1):
        raise OSError("device unavailable")

    def write(self, data):
        raise OSError("disk full")


class UnflushableStream(io.BytesIO):
    def flush(self):
        raise OSError("flush failed")


class RuntimeTests(unittest.TestCase):
    def execute(self, source: str, data: bytes = b"", memory_size: int = 30000) -> bytes:
        output = io.BytesIO()
        run(parse(source, BRAINFUCK_SYMBOLS), io.BytesIO(data), output, memory_size)
        return output.getvalue()

    def test_three_increments_then_output(self) -> None:
        output = io.BytesIO()
        run(parse("にゃうにゃうにゃうこれになりたい"), io.BytesIO(), output)
        self.assertEqual(output.getvalue(), b"\x03")

    def test_echo_single_byte(self) -> None:
        self.assertEqual(self.execute(",.", b"A"), b"A")

    def test_input_on_empty_stream_raises_eof(self) -> None:
        output = io.BytesIO()
        with self.assertRaises(Eof):
            run(parse(",.", BRAINFUCK_SYMBOLS), io.BytesIO(), output)
        self.assertEqual(output.getvalue(), b"")

    def test_wraps_below_zero(self) -> None:
        self.assertEqual(self.execute("-."), b"\xff")

    def test_wraps_above_255(self) -> None:
        self.assertEqual(self.execute("+" * 255 + ".+."), b"\xff\x00")
        self.assertEqual(self.execute("+" * 300 + "."), bytes([300 % 256]))

    def test_loop_with_zero_entry_is_skipped(self) -> None:
        self.assertEqual(self.execute("[.]+."), b"\x01")

    def test_multiplication_loop(self) -> None:
        self.assertEqual(self.execute("++++++++[>++++++++<-]>+."), b"A")

    def test_copy_until_zero_byte(self) -> None:
        self.assertEqual(self.execute(",[.,]", b"hi\x00ignored"), b"hi")

    def test_pointer_below_zero_is_out_of_bound(self) -> None:
        with self.assertRaises(MemoryOutOfBound) as ctx:
            self.execute("<+")
        self.assertEqual(ctx.exception.pointer, -1)

    def test_pointer_past_end_is_out_of_bound(self) -> None:
        with self.assertRaises(MemoryOutOfBound) as ctx:
            self.execute(">.", memory_size=1)
        self.assertEqual(ctx.exception.pointer, 1)

    def test_loop_condition_is_bounds_checked(self) -> None:
        with self.assertRaises(MemoryOutOfBound):
            self.execute("<[]")

    def test_pointer_move_alone_is_not_checked(self) -> None:
        self.assertEqual(self.execute("<<<<"), b"")
        program = [PointerAdjust(-5), PointerAdjust(5), DataAdjust(2), Output()]
        output = io.BytesIO()
        Runtime(memory_size=1).run(program, io.BytesIO(), output)
        self.assertEqual(output.getvalue(), b"\x02")

    def test_write_failure_is_io_error(self) -> None:
        with self.assertRaises(IoError) as ctx:
            run(parse(".", BRAINFUCK_SYMBOLS), io.BytesIO(), FailingStream())
        self.assertIsInstance(ctx.exception.error, OSError)
        self.assertIs(ctx.exception.__cause__, ctx.exception.error)

    def test_read_failure_is_io_error(self) -> None:
        with self.assertRaises(IoError):
            run(parse(",", BRAINFUCK_SYMBOLS), FailingStream(), io.BytesIO())

    def test_flush_failure_is_io_error(self) -> None:
        with self.assertRaises(IoError):
            run(parse("+.", BRAINFUCK_SYMBOLS), io.BytesIO(), UnflushableStream())

    def test_flush_failure_does_not_mask_eof(self) -> None:
        output = UnflushableStream()
        with self.assertRaises(Eof):
            run(parse("+.,", BRAINFUCK_SYMBOLS), io.BytesIO(), output)
        self.assertEqual(output.getvalue(), b"\x01")

    def test_flush_failure_does_not_mask_out_of_bound(self) -> None:
        with self.assertRaises(MemoryOutOfBound):
            run(parse("<+", BRAINFUCK_SYMBOLS), io.BytesIO(), UnflushableStream())

    def test_input_is_bounds_checked_before_reading(self) -> None:
        source = io.BytesIO(b"x")
        output = io.BytesIO()
        with self.assertRaises(MemoryOutOfBound) as ctx:
            run(parse("<,", BRAINFUCK_SYMBOLS), source, output)
        self.assertEqual(ctx.exception.pointer, -1)
        self.assertEqual(source.tell(), 0)
        self.assertEqual(output.getvalue(), b"")

    def test_run_takes_no_snapshots(self) -> None:
        program = parse("+++[->+<]>.", BRAINFUCK_SYMBOLS)
        output = io.BytesIO()
        with mock.patch.object(Runtime, "_snapshot") as snapshot:
            Runtime().run(program, io.BytesIO(), output)
        snapshot.assert_not_called()
        self.assertEqual(output.getvalue(), b"\x03")

    def test_program_can_be_reused(self) -> None:
        program = parse("+++.", BRAINFUCK_SYMBOLS)
        runtime = Runtime()
        first, second = io.BytesIO(), io.BytesIO()
        runtime.run(program, io.BytesIO(), first)
        runtime.run(program, io.BytesIO(), second)
        self.assertEqual(first.getvalue(), b"\x03")
        self.assertEqual(second.getvalue(), b"\x03")

    def test_rejects_empty_memory(self) -> None:
        with self.assertRaises(ValueError):
            Runtime(memory_size=0)


class RuntimeStepTests(unittest.TestCase):
    def test_step_reports_each_instruction(self) -> None:
        program = parse("++>+[-]", BRAINFUCK_SYMBOLS)
        states = list(Runtime(memory_size=8).step(program, io.BytesIO(), io.BytesIO(), tape_window=2))
        names = [state.instruction for state in states]
        self.assertEqual(
            names,
            ["DataAdjust", "PointerAdjust", "DataAdjust", "DataAdjust", None],
        )
        final = states[-1]
        self.assertEqual(final.step, 4)
        self.assertEqual(final.pointer, 1)
        self.assertEqual(final.tape_start, 0)
        self.assertEqual(final.tape, [2, 0, 0, 0])

    def test_step_counts_written_bytes(self) -> None:
        program = parse("+..", BRAINFUCK_SYMBOLS)
        states = list(Runtime().step(program, io.BytesIO(), io.BytesIO()))
        self.assertEqual([state.written for state in states], [0, 1, 2, 2])


if __name__ == "__main__":
    unittest.main()
