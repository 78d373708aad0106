from __future__ import annotations

import io
from typing import Dict, List, Sequence

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from metlang.parser import (
    DataAdjust,
    Input,
    Instruction,
    Loop,
    Output,
    ParseError,
    PointerAdjust,
    parse,
)
from metlang.runtime import DEFAULT_MEMORY_SIZE, Eof, ExecutionError, MemoryOutOfBound, Runtime
from metlang.symbols import DIALECTS, get_dialect

MAX_MEMORY_SIZE = 1_000_000
NESTING_ERROR = "loops are nested too deeply"


def _instruction_to_dict(instruction: Instruction) -> dict:
    if isinstance(instruction, PointerAdjust):
        return {"type": "pointer_adjust", "delta": instruction.delta}
    if isinstance(instruction, DataAdjust):
        return {"type": "data_adjust", "delta": instruction.delta}
    if isinstance(instruction, Output):
        return {"type": "output"}
    if isinstance(instruction, Input):
        return {"type": "input"}
    if isinstance(instruction, Loop):
        return {"type": "loop", "body": _program_to_list(instruction.body)}
    raise TypeError(f"Unknown instruction: {instruction!r}")


def _program_to_list(program: Sequence[Instruction]) -> List[dict]:
    return [_instruction_to_dict(instruction) for instruction in program]


def _validate_dialect(value: str) -> str:
    normalized = value.lower()
    if normalized not in DIALECTS:
        known = ", ".join(sorted(DIALECTS))
        raise ValueError(f"dialect must be one of: {known}")
    return normalized


class DialectInfo(BaseModel):
    name: str
    symbols: Dict[str, str]


class ParseRequest(BaseModel):
    source: str
    dialect: str = "metlang"

    @field_validator("dialect")
    @classmethod
    def validate_dialect(cls, value: str) -> str:
        return _validate_dialect(value)


class ParseResponse(BaseModel):
    dialect: str
    program: List[dict]


class RunRequest(BaseModel):
    source: str
    input: str = ""
    dialect: str = "metlang"
    memory_size: int = Field(default=DEFAULT_MEMORY_SIZE, ge=1, le=MAX_MEMORY_SIZE)

    @field_validator("dialect")
    @classmethod
    def validate_dialect(cls, value: str) -> str:
        return _validate_dialect(value)


class RunResponse(BaseModel):
    output: List[int]
    text: str
    terminated_by_eof: bool


def _parse_or_422(source: str, dialect: str):
    try:
        return parse(source, get_dialect(dialect))
    except ParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except RecursionError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=NESTING_ERROR,
        ) from exc


def create_app() -> FastAPI:
    app = FastAPI(title="Metlang API", version="0.1.0")

    @app.get("/api/dialects", response_model=List[DialectInfo])
    def list_dialects() -> List[DialectInfo]:
        return [
            DialectInfo(name=name, symbols=table.as_dict())
            for name, table in sorted(DIALECTS.items())
        ]

    @app.post("/api/parse", response_model=ParseResponse)
    def parse_source(payload: ParseRequest) -> ParseResponse:
        program = _parse_or_422(payload.source, payload.dialect)
        try:
            tree = _program_to_list(program)
        except RecursionError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=NESTING_ERROR,
            ) from exc
        return ParseResponse(dialect=payload.dialect, program=tree)

    @app.post("/api/run", response_model=RunResponse)
    def run_source(payload: RunRequest) -> RunResponse:
        program = _parse_or_422(payload.source, payload.dialect)
        input_stream = io.BytesIO(payload.input.encode("utf-8"))
        output_stream = io.BytesIO()
        terminated_by_eof = False
        try:
            Runtime(payload.memory_size).run(program, input_stream, output_stream)
        except Eof:
            terminated_by_eof = True
        except MemoryOutOfBound as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"message": str(exc), "pointer": exc.pointer},
            ) from exc
        except ExecutionError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"message": str(exc)},
            ) from exc
        except RecursionError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=NESTING_ERROR,
            ) from exc

        data = output_stream.getvalue()
        return RunResponse(
            output=list(data),
            text=data.decode("utf-8", errors="replace"),
            terminated_by_eof=terminated_by_eof,
        )

    return app


__all__ = ["create_app"]
