from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterable, Iterator, List


@dataclass(frozen=True)
class Span:
    """Half-open ``[start, end)`` range of UTF-8 byte offsets into the source."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start


class NodeKind(str, Enum):
    INCREMENT = "increment"
    DECREMENT = "decrement"
    SHIFT_PREV = "shift_prev"
    SHIFT_NEXT = "shift_next"
    OUTPUT = "output"
    INPUT = "input"
    FUNCTION_EXEC = "function_exec"
    LOOP_OPEN = "loop_open"
    LOOP_CLOSE = "loop_close"
    FUNC_OPEN = "func_open"
    FUNC_CLOSE = "func_close"
    LOOP = "loop"
    FUNCTION_DEF = "function_def"
    PREAMBLE = "preamble"
    POSTAMBLE = "postamble"


COUNTABLE_KINDS = frozenset(
    {NodeKind.INCREMENT, NodeKind.DECREMENT, NodeKind.SHIFT_PREV, NodeKind.SHIFT_NEXT}
)
MARKER_KINDS = frozenset(
    {NodeKind.LOOP_OPEN, NodeKind.LOOP_CLOSE, NodeKind.FUNC_OPEN, NodeKind.FUNC_CLOSE}
)
OPENER_KINDS = frozenset({NodeKind.LOOP_OPEN, NodeKind.FUNC_OPEN})
CLOSER_KINDS = frozenset({NodeKind.LOOP_CLOSE, NodeKind.FUNC_CLOSE})
CONTAINER_KINDS = frozenset({NodeKind.LOOP, NodeKind.FUNCTION_DEF})


# === Base Nodes ===


@dataclass
class Node:
    kind: ClassVar[NodeKind]

    span: Span

    @property
    def pos(self) -> int:
        return self.span.start

    @property
    def end(self) -> int:
        return self.span.end

    @property
    def countable(self) -> bool:
        return self.kind in COUNTABLE_KINDS

    @property
    def produces_code(self) -> bool:
        return self.kind not in MARKER_KINDS


@dataclass
class CountedNode(Node):
    count: int = 1


@dataclass
class Container(Node):
    body: List[Node] = field(default_factory=list)


# === Countable leaves ===


@dataclass
class Increment(CountedNode):
    kind: ClassVar[NodeKind] = NodeKind.INCREMENT


@dataclass
class Decrement(CountedNode):
    kind: ClassVar[NodeKind] = NodeKind.DECREMENT


@dataclass
class ShiftPrev(CountedNode):
    kind: ClassVar[NodeKind] = NodeKind.SHIFT_PREV


@dataclass
class ShiftNext(CountedNode):
    kind: ClassVar[NodeKind] = NodeKind.SHIFT_NEXT


# === Singleton leaves ===


@dataclass
class Output(Node):
    kind: ClassVar[NodeKind] = NodeKind.OUTPUT


@dataclass
class Input(Node):
    kind: ClassVar[NodeKind] = NodeKind.INPUT


@dataclass
class FunctionExec(Node):
    kind: ClassVar[NodeKind] = NodeKind.FUNCTION_EXEC


# === Markers (consumed by the parser) ===


@dataclass
class LoopOpen(Node):
    kind: ClassVar[NodeKind] = NodeKind.LOOP_OPEN


@dataclass
class LoopClose(Node):
    kind: ClassVar[NodeKind] = NodeKind.LOOP_CLOSE


@dataclass
class FuncOpen(Node):
    kind: ClassVar[NodeKind] = NodeKind.FUNC_OPEN


@dataclass
class FuncClose(Node):
    kind: ClassVar[NodeKind] = NodeKind.FUNC_CLOSE


# === Containers ===


@dataclass
class Loop(Container):
    kind: ClassVar[NodeKind] = NodeKind.LOOP


@dataclass
class FunctionDef(Container):
    kind: ClassVar[NodeKind] = NodeKind.FUNCTION_DEF


# === Frames ===


@dataclass
class Preamble(Node):
    kind: ClassVar[NodeKind] = NodeKind.PREAMBLE

    uses_input: bool = False
    uses_output: bool = False


@dataclass
class Postamble(Node):
    kind: ClassVar[NodeKind] = NodeKind.POSTAMBLE

    uses_output: bool = False


# Source character for every leaf kind, used when dumping token streams.
SYMBOLS = {
    NodeKind.INCREMENT: "+",
    NodeKind.DECREMENT: "-",
    NodeKind.SHIFT_PREV: "<",
    NodeKind.SHIFT_NEXT: ">",
    NodeKind.OUTPUT: ".",
    NodeKind.INPUT: ",",
    NodeKind.FUNCTION_EXEC: "!",
    NodeKind.LOOP_OPEN: "[",
    NodeKind.LOOP_CLOSE: "]",
    NodeKind.FUNC_OPEN: "{",
    NodeKind.FUNC_CLOSE: "}",
}


def walk(nodes: Iterable[Node]) -> Iterator[Node]:
    """Yield every node depth-first, in declaration order."""
    for node in nodes:
        yield node
        if isinstance(node, Container):
            yield from walk(node.body)


def format_tree(nodes: Iterable[Node], indent: str = "  ") -> str:
    lines: List[str] = []
    _format_into(nodes, lines, indent, 0)
    return "\n".join(lines)


def _format_into(nodes: Iterable[Node], lines: List[str], indent: str, depth: int) -> None:
    for node in nodes:
        prefix = indent * depth
        where = f"[{node.pos}:{node.end})"
        if isinstance(node, CountedNode):
            lines.append(f"{prefix}{node.kind.value} x{node.count} {where}")
        elif isinstance(node, Container):
            lines.append(f"{prefix}{node.kind.value} ({len(node.body)} children) {where}")
            _format_into(node.body, lines, indent, depth + 1)
        elif isinstance(node, Preamble):
            lines.append(
                f"{prefix}{node.kind.value} input={node.uses_input} output={node.uses_output}"
            )
        elif isinstance(node, Postamble):
            lines.append(f"{prefix}{node.kind.value}")
        else:
            lines.append(f"{prefix}{node.kind.value} {SYMBOLS[node.kind]!r} {where}")


__all__ = [
    "CLOSER_KINDS",
    "CONTAINER_KINDS",
    "COUNTABLE_KINDS",
    "MARKER_KINDS",
    "OPENER_KINDS",
    "Container",
    "CountedNode",
    "Decrement",
    "FuncClose",
    "FuncOpen",
    "FunctionDef",
    "FunctionExec",
    "Increment",
    "Input",
    "Loop",
    "LoopClose",
    "LoopOpen",
    "Node",
    "NodeKind",
    "Output",
    "Postamble",
    "Preamble",
    "ShiftNext",
    "ShiftPrev",
    "Span",
    "format_tree",
    "walk",
]
