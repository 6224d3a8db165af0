from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple, Type

from .errors import (
    MismatchedCloserError,
    NestingTooDeepError,
    UnclosedOpenerError,
    UnmatchedCloserError,
)
from .lexer import tokenize
from .nodes import (
    CLOSER_KINDS,
    OPENER_KINDS,
    Container,
    FunctionDef,
    Loop,
    Node,
    NodeKind,
    Postamble,
    Preamble,
    Span,
    walk,
)

logger = logging.getLogger(__name__)

MAX_NESTING = 256
DEFAULT_MAX_DEPTH = MAX_NESTING

ParseList = List[Node]

_CLOSER_FOR = {
    NodeKind.LOOP_OPEN: NodeKind.LOOP_CLOSE,
    NodeKind.FUNC_OPEN: NodeKind.FUNC_CLOSE,
}
_CONTAINER_FOR: Dict[NodeKind, Type[Container]] = {
    NodeKind.LOOP_OPEN: Loop,
    NodeKind.FUNC_OPEN: FunctionDef,
}
_LABELS = {
    NodeKind.LOOP_OPEN: "Loop",
    NodeKind.LOOP_CLOSE: "Loop",
    NodeKind.FUNC_OPEN: "Func",
    NodeKind.FUNC_CLOSE: "Func",
}


# === Parser ===


class Parser:
    """Recursive-descent parser turning a flat token list into a nested tree.

    Each opener recurses one level deeper; the matching closer ends that
    level. Recursion depth equals bracket nesting depth and is capped by
    ``max_depth``.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if not 1 <= max_depth <= MAX_NESTING:
            raise ValueError(f"max_depth must be between 1 and {MAX_NESTING}")
        self.max_depth = max_depth
        self.tokens: Sequence[Node] = ()
        self.pos = 0
        self._closer: Optional[Node] = None

    def parse_tokens(self, tokens: Sequence[Node], nesting: int = 0) -> Tuple[ParseList, int]:
        """Parse ``tokens`` starting at ``nesting`` depth.

        Returns the parsed nodes and the number of tokens consumed, including
        the closer that ended a nested level.
        """
        self.tokens = tokens
        self.pos = 0
        nodes = self._parse_block(opener=None, depth=nesting)
        return nodes, self.pos

    def _parse_block(self, opener: Optional[Node], depth: int) -> ParseList:
        nodes: ParseList = []
        while self.pos < len(self.tokens):
            node = self.tokens[self.pos]
            self.pos += 1
            if node.kind in OPENER_KINDS:
                nodes.append(self._parse_container(node, depth))
            elif node.kind in CLOSER_KINDS:
                if depth == 0:
                    raise UnmatchedCloserError(
                        node.span, f"{_LABELS[node.kind]} closed while not open"
                    )
                if opener is not None and _CLOSER_FOR[opener.kind] is not node.kind:
                    raise MismatchedCloserError(
                        node.span,
                        f"{_LABELS[node.kind]} closed while {_LABELS[opener.kind].lower()} is open",
                    )
                self._closer = node
                return nodes
            elif node.produces_code:
                nodes.append(node)
        if opener is not None:
            raise UnclosedOpenerError(
                opener.span, f"{_LABELS[opener.kind]} opened but never closed"
            )
        if depth > 0:
            raise UnclosedOpenerError(
                self._last_positioned_span(), "Scope opened but never closed"
            )
        return nodes

    def _last_positioned_span(self) -> Span:
        for node in reversed(self.tokens):
            if len(node.span):
                return node.span
        return Span(0, 0)

    def _parse_container(self, opener: Node, depth: int) -> Container:
        if depth + 1 > self.max_depth:
            raise NestingTooDeepError(
                opener.span, f"Nesting deeper than {self.max_depth} levels"
            )
        body = self._parse_block(opener=opener, depth=depth + 1)
        if body:
            span = Span(body[0].pos, body[-1].end)
        else:
            closer = self._closer
            span = Span(opener.pos, closer.end if closer is not None else opener.end)
        return _CONTAINER_FOR[opener.kind](span, body)


def parse_tokens(
    tokens: Sequence[Node],
    nesting: int = 0,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Tuple[ParseList, int]:
    return Parser(max_depth=max_depth).parse_tokens(tokens, nesting)


def summarize(tree: Sequence[Node]) -> Tuple[bool, bool]:
    """Return ``(uses_input, uses_output)`` for a parsed tree."""
    uses_input = False
    uses_output = False
    for node in walk(tree):
        if node.kind is NodeKind.INPUT:
            uses_input = True
        elif node.kind is NodeKind.OUTPUT:
            uses_output = True
    return uses_input, uses_output


def with_frames(tree: ParseList) -> ParseList:
    """Rebuild the leading Preamble and trailing Postamble from the tree contents."""
    uses_input, uses_output = summarize(tree)
    framed: ParseList = []
    for node in tree:
        if isinstance(node, Preamble):
            node = Preamble(node.span, uses_input=uses_input, uses_output=uses_output)
        elif isinstance(node, Postamble):
            node = Postamble(node.span, uses_output=uses_output)
        framed.append(node)
    return framed


def parse(source: str, extended: bool = True, max_depth: int = DEFAULT_MAX_DEPTH) -> ParseList:
    tokens = tokenize(source, extended=extended)
    tree, _ = parse_tokens(tokens.nodes, max_depth=max_depth)
    tree = with_frames(tree)
    logger.debug("Parsed %d tokens into %d top-level nodes", len(tokens), len(tree))
    return tree


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "MAX_NESTING",
    "ParseList",
    "Parser",
    "parse",
    "parse_tokens",
    "summarize",
    "with_frames",
]
