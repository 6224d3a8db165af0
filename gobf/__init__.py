from .compiler import Compiler, compile_source
from .config import CompilerOptions, Settings
from .encoder import GoEncoder, encode
from .errors import (
    CallDepthExceeded,
    GobfError,
    MismatchedCloserError,
    NestingTooDeepError,
    ParseError,
    StepLimitExceeded,
    UnclosedOpenerError,
    UnmatchedCloserError,
)
from .lexer import TokenList, tokenize
from .parser import Parser, parse, parse_tokens
from .vm import TapeMachine

__all__ = [
    "CallDepthExceeded",
    "Compiler",
    "CompilerOptions",
    "GobfError",
    "GoEncoder",
    "MismatchedCloserError",
    "NestingTooDeepError",
    "ParseError",
    "Parser",
    "Settings",
    "StepLimitExceeded",
    "TapeMachine",
    "TokenList",
    "UnclosedOpenerError",
    "UnmatchedCloserError",
    "compile_source",
    "encode",
    "parse",
    "parse_tokens",
    "tokenize",
]
