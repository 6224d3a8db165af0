from __future__ import annotations

from .nodes import Span


class GobfError(Exception):
    pass


class ParseError(GobfError):
    """Raised when the token stream is not properly nested."""

    def __init__(self, span: Span, reason: str) -> None:
        self.span = span
        self.reason = reason
        super().__init__(f"Error: {reason}, Position: {span.start} - {span.end}")

    @property
    def message(self) -> str:
        return str(self)


class UnmatchedCloserError(ParseError):
    pass


class MismatchedCloserError(ParseError):
    pass


class UnclosedOpenerError(ParseError):
    pass


class NestingTooDeepError(ParseError):
    pass


class StepLimitExceeded(GobfError, RuntimeError):
    """Raised when program execution exceeds the configured step budget."""


class CallDepthExceeded(GobfError, RuntimeError):
    """Raised when closure invocations nest beyond the machine's call depth."""


def context_window(source: str, span: Span, width: int = 10) -> str:
    """Return the source around ``span``, ``width`` bytes on each side."""
    data = source.encode("utf-8", "surrogatepass")
    start = max(span.start - width, 0)
    end = min(span.end + width, len(data))
    return data[start:end].decode("utf-8", errors="replace")


__all__ = [
    "CallDepthExceeded",
    "GobfError",
    "MismatchedCloserError",
    "NestingTooDeepError",
    "ParseError",
    "StepLimitExceeded",
    "UnclosedOpenerError",
    "UnmatchedCloserError",
    "context_window",
]
