"""Grouping of tokenized lines into functions.

A line whose first token is ``fn`` opens a new function:

    fn NAME ( ARG , ARG ) {
        ...body lines...
    }

The header is read from the tokens of that line alone. Every following
line belongs to the function until the next ``fn`` line or the end of the
source; braces are not balanced.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from .diagnostics import Diagnostics
from .tokens import Function, Line, Token, TokenKind

FN_SYNTAX = "\nfn `name` (`arguments`) {\n`code`\n}"


def starts_function(line: Line) -> bool:
    return line.first is not None and line.first.value == 'fn'


class FunctionExtractor:
    """Second pass over the tokenized lines, counting structural errors."""
    def __init__(self, diagnostics: Optional[Diagnostics] = None):
        self.diagnostics = diagnostics or Diagnostics()
        self.error_count = 0

    def _error(self, message: str, hint: bool = False):
        self.error_count += 1
        self.diagnostics.error(message)
        if hint:
            self.diagnostics.syntax(FN_SYNTAX)

    def extract(self, lines: List[Line]) -> Tuple[List[Function], List[Line]]:
        functions: List[Function] = []
        dangling: List[Line] = []
        current: Optional[Function] = None
        orphaned = False

        for line in lines:
            if starts_function(line):
                if current is not None:
                    functions.append(current)
                current = self.parse_header(line)
                orphaned = current is None
                continue
            if current is not None:
                current.lines.append(line)
                continue
            dangling.append(line)
            if line.tokens and not orphaned:
                self._error(f"Top level code is not allowed (line {line.number})")

        if current is not None:
            functions.append(current)
        return functions, dangling

    def parse_header(self, line: Line) -> Optional[Function]:
        """Read `fn NAME ( ARGS )` from `line`.

        Returns None when the header is malformed. Statements written after
        the closing parenthesis become the first body line.
        """
        tokens = line.tokens[1:]
        if not tokens or tokens[0].kind is not TokenKind.FUNCTION_NAME:
            # already counted by the tokenizer
            self.diagnostics.syntax(FN_SYNTAX)
            return None
        name_tok = tokens[0]
        if len(tokens) < 2:
            self._error(f"Expected opening brackets after `{name_tok.value}` at line {line.number}", hint=True)
            return None
        bracket = tokens[1]
        if bracket.value != '(':
            self._error(f"Expected `(` but found {bracket.value}", hint=True)
            return None

        arguments: List[Token] = []
        rest = tokens[2:]
        closed = False
        i = 0
        while i < len(rest):
            tok = rest[i]
            i += 1
            if tok.value == ')':
                closed = True
                break
            if tok.value == '(':
                self._error(f"Unexpected `(` in argument list of `{name_tok.value}`", hint=True)
                continue
            arguments.append(tok)
        if not closed:
            self._error(f"Expected closing brackets for `{name_tok.value}`", hint=True)

        body: List[Line] = []
        inline = [tok for tok in rest[i:] if tok.kind is not TokenKind.BRACKET]
        if inline:
            body.append(Line(tokens=inline, source=line.source, number=line.number))
        return Function(name=name_tok.value, arguments=arguments, lines=body)


def extract_functions(lines: List[Line],
                      diagnostics: Optional[Diagnostics] = None) -> Tuple[List[Function], List[Line]]:
    return FunctionExtractor(diagnostics).extract(lines)
