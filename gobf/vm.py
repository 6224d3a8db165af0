from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence

from .encoder import CELL_MODULUS, TAPE_SIZE
from .errors import CallDepthExceeded, StepLimitExceeded
from .nodes import (
    CountedNode,
    FunctionDef,
    FunctionExec,
    Input,
    Loop,
    Node,
    NodeKind,
    Output,
)

logger = logging.getLogger(__name__)


@dataclass
class MachineState:
    steps: int
    cursor: int
    tape: List[int]
    output: bytes


@dataclass
class TapeMachine:
    """Executes a parse tree with the same semantics as the emitted Go program.

    Loop conditions read the live cursor on every iteration, reads past the
    end of input store 0, and closures are bound to the slot of the cursor
    at definition time.
    """

    tape_length: int = TAPE_SIZE
    max_call_depth: int = 100

    tape: List[int] = field(init=False, repr=False)
    functions: List[Optional[FunctionDef]] = field(init=False, repr=False)
    cursor: int = field(init=False, repr=False)
    steps: int = field(init=False, repr=False)
    output_buffer: bytearray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.tape = [0] * self.tape_length
        self.functions = [None] * self.tape_length
        self.cursor = 0
        self.steps = 0
        self.output_buffer = bytearray()
        self._call_depth = 0
        self._input_iter: Iterator[int] = iter(())
        self._max_steps: Optional[int] = None

    def run(
        self,
        tree: Sequence[Node],
        input_data: Optional[Iterable[int]] = None,
        max_steps: Optional[int] = None,
    ) -> bytes:
        self.reset()
        self._input_iter = iter(list(input_data or []))
        self._max_steps = max_steps
        self._execute(tree)
        logger.debug("Program finished after %d steps", self.steps)
        return bytes(self.output_buffer)

    def snapshot(self) -> MachineState:
        return MachineState(
            steps=self.steps,
            cursor=self.cursor,
            tape=self.tape.copy(),
            output=bytes(self.output_buffer),
        )

    def _tick(self) -> None:
        if self._max_steps is not None and self.steps >= self._max_steps:
            raise StepLimitExceeded("Program exceeded allowed step count")
        self.steps += 1

    def _execute(self, nodes: Sequence[Node]) -> None:
        for node in nodes:
            self._execute_node(node)

    def _execute_node(self, node: Node) -> None:
        if isinstance(node, CountedNode):
            self._tick()
            self._execute_counted(node)
        elif isinstance(node, Output):
            self._tick()
            self.output_buffer.append(self.tape[self.cursor])
        elif isinstance(node, Input):
            self._tick()
            self.tape[self.cursor] = self._read()
        elif isinstance(node, Loop):
            while True:
                self._tick()
                if self.tape[self.cursor] == 0:
                    break
                self._execute(node.body)
        elif isinstance(node, FunctionDef):
            self._tick()
            self.functions[self.cursor] = node
        elif isinstance(node, FunctionExec):
            self._tick()
            function = self.functions[self.cursor]
            if function is not None:
                self._call(function)

    def _execute_counted(self, node: CountedNode) -> None:
        if node.kind is NodeKind.INCREMENT:
            self.tape[self.cursor] = (self.tape[self.cursor] + node.count) % CELL_MODULUS
        elif node.kind is NodeKind.DECREMENT:
            self.tape[self.cursor] = (self.tape[self.cursor] - node.count) % CELL_MODULUS
        elif node.kind is NodeKind.SHIFT_NEXT:
            self.cursor = (self.cursor + node.count) % self.tape_length
        elif node.kind is NodeKind.SHIFT_PREV:
            self.cursor = (self.cursor - node.count) % self.tape_length

    def _call(self, function: FunctionDef) -> None:
        if self._call_depth >= self.max_call_depth:
            raise CallDepthExceeded(
                f"Closure calls nested deeper than {self.max_call_depth} levels"
            )
        self._call_depth += 1
        try:
            self._execute(function.body)
        finally:
            self._call_depth -= 1

    def _read(self) -> int:
        try:
            return next(self._input_iter) % CELL_MODULUS
        except StopIteration:
            return 0


def to_input_bytes(data: str) -> List[int]:
    return list(data.encode("utf-8", "surrogatepass"))


def decode_output(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


__all__ = ["MachineState", "TapeMachine", "decode_output", "to_input_bytes"]
