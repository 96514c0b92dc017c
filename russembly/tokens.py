"""Token and program structures for Russembly.

The tokenizer produces one `Line` per source line, each holding the
`Token`s recognised on it. The function extractor groups those lines into
`Function` records, and a `Program` ties the result together for the
interpreter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TokenKind(Enum):
    OPCODE = 'OpCode'
    ACCUMULATOR = 'Accumulator'
    PORT = 'Port'
    STACK = 'Stack'
    JUMP_LOCATION = 'JumpLocation'
    FUNCTION_NAME = 'FunctionName'
    VAR_NAME = 'VarName'
    BRACKET = 'Bracket'
    KEYWORD = 'Keyword'
    STRING = 'String'
    NUMBER = 'Number'
    COMMENT = 'Comment'
    COMMA = 'Comma'
    NEWLINE = 'NewLine'
    GENERIC = 'Generic'


@dataclass(frozen=True)
class JumpLocation:
    """A `LABEL:` marker and the 1-based line it was declared on."""
    name: str
    line: int


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    number: Optional[int] = None  # set for NUMBER tokens
    location: Optional[JumpLocation] = None  # set for JUMP_LOCATION tokens
    column: int = 0

    def __repr__(self) -> str:
        return f"Token({self.kind.value}, {self.value!r})"


@dataclass(frozen=True)
class Line:
    tokens: List[Token]
    source: str
    number: int
    comment: Optional[str] = None

    @property
    def first(self) -> Optional[Token]:
        return self.tokens[0] if self.tokens else None

    def values(self) -> List[str]:
        return [tok.value for tok in self.tokens]


@dataclass
class Function:
    name: str
    arguments: List[Token]
    lines: List[Line]

    def __repr__(self) -> str:
        return f"<function {self.name}>"


@dataclass
class Program:
    """Tokenized and grouped source, ready to be run."""
    functions: List[Function] = field(default_factory=list)
    dangling_lines: List[Line] = field(default_factory=list)
    lines: List[Line] = field(default_factory=list)
    error_count: int = 0

    def find_function(self, name: str) -> Optional[Function]:
        # first match wins; names are not required to be unique
        for func in self.functions:
            if func.name == name:
                return func
        return None

    def jump_locations(self) -> List[JumpLocation]:
        return [
            tok.location
            for line in self.lines
            for tok in line.tokens
            if tok.kind is TokenKind.JUMP_LOCATION and tok.location is not None
        ]
