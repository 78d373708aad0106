from __future__ import annotations

from typing import List, Sequence

from .parser import DataAdjust, Input, Instruction, Loop, Output, PointerAdjust
from .runtime import ExecutionState


def format_state(state: ExecutionState) -> str:
    lines: List[str] = []
    name = state.instruction if state.instruction is not None else "(end)"
    lines.append(
        f"step={state.step} instruction={name} pointer={state.pointer} written={state.written}"
    )
    tape_parts: List[str] = []
    for idx, value in enumerate(state.tape):
        absolute = state.tape_start + idx
        cell_repr = f"{absolute}:{value:03}"
        if absolute == state.pointer:
            tape_parts.append(f"[{cell_repr}]")
        else:
            tape_parts.append(f" {cell_repr} ")
    lines.append("tape=" + " ".join(tape_parts))
    return "\n".join(lines)


def format_program(program: Sequence[Instruction], indent: str = "  ") -> str:
    lines: List[str] = []
    _format_instructions(program, 0, indent, lines)
    return "\n".join(lines)


def _format_instructions(
    instructions: Sequence[Instruction],
    depth: int,
    indent: str,
    lines: List[str],
) -> None:
    prefix = indent * depth
    for instruction in instructions:
        if isinstance(instruction, PointerAdjust):
            lines.append(f"{prefix}PointerAdjust({instruction.delta:+d})")
        elif isinstance(instruction, DataAdjust):
            lines.append(f"{prefix}DataAdjust({instruction.delta:+d})")
        elif isinstance(instruction, Output):
            lines.append(f"{prefix}Output")
        elif isinstance(instruction, Input):
            lines.append(f"{prefix}Input")
        elif isinstance(instruction, Loop):
            lines.append(f"{prefix}Loop")
            _format_instructions(instruction.body, depth + 1, indent, lines)


__all__ = ["format_program", "format_state"]
