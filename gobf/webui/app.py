from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from gobf.compiler import Compiler
from gobf.config import CompilerOptions, Settings
from gobf.errors import CallDepthExceeded, ParseError, StepLimitExceeded, context_window
from gobf.nodes import Node, NodeKind, walk
from gobf.parser import MAX_NESTING
from gobf.vm import TapeMachine, decode_output, to_input_bytes

logger = logging.getLogger(__name__)


def _count_kind(tree: List[Node], kind: NodeKind) -> int:
    return sum(1 for node in walk(tree) if node.kind is kind)


class CompileRequest(BaseModel):
    source: str = ""
    extended: Optional[bool] = None
    max_depth: Optional[int] = Field(default=None, ge=1, le=MAX_NESTING)


class CompileResponse(BaseModel):
    code: str
    uses_input: bool
    uses_output: bool
    loops: int
    functions: int


class RunRequest(BaseModel):
    source: str = ""
    input: str = ""
    extended: Optional[bool] = None
    max_steps: Optional[int] = Field(default=None, ge=1)


class RunResponse(BaseModel):
    output: str
    steps: int
    cursor: int


class ParseErrorDetail(BaseModel):
    message: str
    start: int
    end: int
    context: str


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    app_settings = settings or Settings()
    app = FastAPI(title="gobf compiler API", version="0.1.0")

    def _compiler(extended: Optional[bool], max_depth: Optional[int] = None) -> Compiler:
        options = CompilerOptions.from_settings(app_settings)
        if extended is not None:
            options.extended = extended
        if max_depth is not None:
            options.max_depth = max_depth
        return Compiler(options)

    def _parse(compiler: Compiler, source: str) -> List[Node]:
        try:
            return compiler.parse(source)
        except ParseError as exc:
            logger.info("Rejected program: %s", exc.reason)
            detail = ParseErrorDetail(
                message=exc.message,
                start=exc.span.start,
                end=exc.span.end,
                context=context_window(source, exc.span, app_settings.context_width),
            )
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=detail.model_dump(),
            ) from exc

    @app.get("/api/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.post("/api/compile", response_model=CompileResponse)
    def compile_program(payload: CompileRequest) -> CompileResponse:
        compiler = _compiler(payload.extended, payload.max_depth)
        tree = _parse(compiler, payload.source)
        preamble = tree[0]
        return CompileResponse(
            code=compiler.encode(tree),
            uses_input=getattr(preamble, "uses_input", False),
            uses_output=getattr(preamble, "uses_output", False),
            loops=_count_kind(tree, NodeKind.LOOP),
            functions=_count_kind(tree, NodeKind.FUNCTION_DEF),
        )

    @app.post("/api/run", response_model=RunResponse)
    def run_program(payload: RunRequest) -> RunResponse:
        compiler = _compiler(payload.extended)
        tree = _parse(compiler, payload.source)
        machine = TapeMachine()
        max_steps = payload.max_steps or app_settings.max_steps
        try:
            output = machine.run(tree, input_data=to_input_bytes(payload.input), max_steps=max_steps)
        except (StepLimitExceeded, CallDepthExceeded) as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=str(exc),
            ) from exc
        state = machine.snapshot()
        return RunResponse(output=decode_output(output), steps=state.steps, cursor=state.cursor)

    return app


__all__ = ["create_app"]
