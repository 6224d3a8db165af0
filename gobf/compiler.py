from __future__ import annotations

from typing import Optional

from .config import CompilerOptions
from .encoder import encode
from .parser import ParseList, parse


class Compiler:
    """Parse and encode a tape program into Go source."""

    def __init__(self, options: Optional[CompilerOptions] = None) -> None:
        self.options = options or CompilerOptions()

    def parse(self, source: str) -> ParseList:
        return parse(source, extended=self.options.extended, max_depth=self.options.max_depth)

    def encode(self, tree: ParseList) -> str:
        return encode(tree, extended=self.options.extended)

    def compile(self, source: str) -> str:
        return self.encode(self.parse(source))


def compile_source(source: str, options: Optional[CompilerOptions] = None) -> str:
    return Compiler(options).compile(source)


__all__ = ["Compiler", "compile_source"]
