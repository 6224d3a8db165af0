from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

from .nodes import (
    CountedNode,
    Decrement,
    FunctionDef,
    FunctionExec,
    Increment,
    Input,
    Loop,
    Node,
    NodeKind,
    Output,
    Postamble,
    Preamble,
    ShiftNext,
    ShiftPrev,
    walk,
)

logger = logging.getLogger(__name__)

TAPE_SIZE = 100
CELL_MODULUS = 256
INDENT = "\t"

_FUNCTION_KINDS = frozenset({NodeKind.FUNCTION_DEF, NodeKind.FUNCTION_EXEC})


@dataclass
class EncoderState:
    output: List[str]
    depth: int
    closures: bool
    uses_output: bool


class GoEncoder:
    """Emit a Go program simulating the tape machine described by a parse tree."""

    def __init__(self, extended: bool = True) -> None:
        self.extended = extended

    def encode(self, tree: Sequence[Node]) -> str:
        closures = self.extended or any(node.kind in _FUNCTION_KINDS for node in walk(tree))
        uses_output = any(isinstance(node, Preamble) and node.uses_output for node in tree)
        state = EncoderState(output=[], depth=1, closures=closures, uses_output=uses_output)
        for node in tree:
            self._emit_node(node, state)
        code = "".join(state.output)
        logger.debug("Encoded %d top-level nodes into %d characters of Go", len(tree), len(code))
        return code

    # --- Helpers ---

    def _line(self, text: str, state: EncoderState) -> None:
        if text:
            state.output.append(INDENT * state.depth + text + "\n")
        else:
            state.output.append("\n")

    def _lines(self, lines: Sequence[str], state: EncoderState) -> None:
        for text in lines:
            self._line(text, state)

    def _emit_block(self, header: str, body: Sequence[Node], state: EncoderState) -> None:
        self._line(header, state)
        state.depth += 1
        for child in body:
            self._emit_node(child, state)
        state.depth -= 1
        self._line("}", state)

    # --- Node emitters ---

    def _emit_node(self, node: Node, state: EncoderState) -> None:
        if isinstance(node, Preamble):
            self._emit_preamble(node, state)
        elif isinstance(node, Postamble):
            self._emit_postamble(node, state)
        elif isinstance(node, (Increment, Decrement)):
            self._emit_arithmetic(node, state)
        elif isinstance(node, ShiftNext):
            self._emit_shift_next(node, state)
        elif isinstance(node, ShiftPrev):
            self._emit_shift_prev(node, state)
        elif isinstance(node, Output):
            self._line("stdout.WriteByte(registers[currentIndex])", state)
        elif isinstance(node, Input):
            self._emit_input(state)
        elif isinstance(node, Loop):
            self._emit_block("for registers[currentIndex] != 0 {", node.body, state)
        elif isinstance(node, FunctionDef):
            self._emit_block("functions[currentIndex] = func() {", node.body, state)
        elif isinstance(node, FunctionExec):
            self._lines(
                [
                    "if functions[currentIndex] != nil {",
                    INDENT + "functions[currentIndex]()",
                    "}",
                ],
                state,
            )
        elif node.produces_code:
            raise TypeError(f"No Go encoding for node kind {node.kind.value!r}")

    def _emit_preamble(self, node: Preamble, state: EncoderState) -> None:
        imports = ["os"]
        if node.uses_input or node.uses_output:
            imports.append("bufio")
        if node.uses_input:
            imports.append("io")
        state.output.append("package main\n\nimport (\n")
        for name in sorted(imports):
            state.output.append(f'{INDENT}"{name}"\n')
        state.output.append(")\n\n")
        state.output.append(f"const REGISTERS = {TAPE_SIZE}\n\n")
        state.output.append("func main() {\n")

        declarations = ["registers := make([]byte, REGISTERS)"]
        if state.closures:
            declarations.append("functions := make([]func(), REGISTERS)")
        declarations.append("currentIndex := 0")
        if node.uses_input:
            declarations.append("stdin := bufio.NewReader(os.Stdin)")
        if node.uses_output:
            declarations.append("stdout := bufio.NewWriter(os.Stdout)")
        self._lines(declarations, state)

        self._line("", state)
        self._line("// Reference the machine state so empty programs compile", state)
        self._line("registers[currentIndex] = 0", state)
        if state.closures:
            self._line("functions[currentIndex] = nil", state)
        self._line("", state)
        self._line("// Program begin", state)

    def _emit_postamble(self, node: Postamble, state: EncoderState) -> None:
        self._line("", state)
        self._line("// Program end", state)
        if node.uses_output:
            self._line("stdout.Flush()", state)
        self._line("os.Stdout.Sync()", state)
        state.output.append("}\n")

    def _emit_arithmetic(self, node: CountedNode, state: EncoderState) -> None:
        operator = "+=" if node.kind is NodeKind.INCREMENT else "-="
        self._line(f"registers[currentIndex] {operator} {node.count % CELL_MODULUS}", state)

    def _emit_shift_next(self, node: CountedNode, state: EncoderState) -> None:
        self._line(f"currentIndex = (currentIndex + {node.count % TAPE_SIZE}) % REGISTERS", state)

    def _emit_shift_prev(self, node: CountedNode, state: EncoderState) -> None:
        # (i + REGISTERS - n) % REGISTERS stays in [0, REGISTERS) for any n < REGISTERS.
        self._line(
            f"currentIndex = (currentIndex + REGISTERS - {node.count % TAPE_SIZE}) % REGISTERS",
            state,
        )

    def _emit_input(self, state: EncoderState) -> None:
        on_error = []
        if state.uses_output:
            on_error.append(INDENT * 2 + "stdout.Flush()")
        on_error += [
            INDENT * 2 + 'os.Stderr.WriteString("read error: " + err.Error() + "\\n")',
            INDENT * 2 + "os.Exit(1)",
        ]
        self._lines(
            [
                "{",
                INDENT + "value, err := stdin.ReadByte()",
                INDENT + "if err == io.EOF {",
                INDENT * 2 + "registers[currentIndex] = 0",
                INDENT + "} else if err != nil {",
                *on_error,
                INDENT + "} else {",
                INDENT * 2 + "registers[currentIndex] = value",
                INDENT + "}",
                "}",
            ],
            state,
        )


def encode(tree: Sequence[Node], extended: bool = True) -> str:
    return GoEncoder(extended=extended).encode(tree)


__all__ = ["CELL_MODULUS", "GoEncoder", "TAPE_SIZE", "encode"]
