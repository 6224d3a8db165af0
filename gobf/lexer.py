from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator, List, Optional

from .nodes import (
    COUNTABLE_KINDS,
    CountedNode,
    Decrement,
    FuncClose,
    FuncOpen,
    FunctionExec,
    Increment,
    Input,
    LoopClose,
    LoopOpen,
    Node,
    Output,
    Postamble,
    Preamble,
    ShiftNext,
    ShiftPrev,
    Span,
)

logger = logging.getLogger(__name__)


NodeFactory = Callable[[Span], Node]

CLASSIC_TOKENS: Dict[str, NodeFactory] = {
    "+": Increment,
    "-": Decrement,
    "<": ShiftPrev,
    ">": ShiftNext,
    "[": LoopOpen,
    "]": LoopClose,
    ".": Output,
    ",": Input,
}

EXTENDED_TOKENS: Dict[str, NodeFactory] = {
    **CLASSIC_TOKENS,
    "{": FuncOpen,
    "}": FuncClose,
    "!": FunctionExec,
}


class TokenList:
    """Flat token sequence that merges runs of the same countable operation."""

    def __init__(self) -> None:
        self.nodes: List[Node] = []
        self._last: Optional[Node] = None

    def append(self, node: Node) -> None:
        last = self._last
        if (
            node.kind in COUNTABLE_KINDS
            and last is not None
            and last.kind is node.kind
            and isinstance(last, CountedNode)
        ):
            last.count += 1
            last.span = Span(last.span.start, node.span.end)
            return
        self.nodes.append(node)
        self._last = node

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index: int) -> Node:
        return self.nodes[index]


def tokenize(source: str, extended: bool = True) -> TokenList:
    table = EXTENDED_TOKENS if extended else CLASSIC_TOKENS
    tokens = TokenList()
    tokens.append(Preamble(Span(0, 0)))

    offset = 0
    for char in source:
        width = len(char.encode("utf-8", "surrogatepass"))
        factory = table.get(char)
        if factory is not None:
            tokens.append(factory(Span(offset, offset + width)))
        offset += width

    tokens.append(Postamble(Span(0, 0)))
    logger.debug("Tokenized %d bytes into %d tokens", offset, len(tokens))
    return tokens


__all__ = ["CLASSIC_TOKENS", "EXTENDED_TOKENS", "TokenList", "tokenize"]
