"""Tokenizer for Russembly source.

Tokenizing works one source line at a time:

1. **Scanning**: a Lark lexer splits the line into words. Whitespace
   separates words and each of the delimiters ``( ) { } [ ] , = + - * "``
   is a word of its own, even when written without spaces.

2. **Classification**: every word is classified on its own, except for the
   few words that swallow their successors (``call``, ``fn`` and ``let``
   take a name, ``"`` collects a string literal, ``;`` comments out the
   rest of the line).

`tokenize` is the public entry point: it tokenizes a whole source text and
hands the lines to the function extractor, returning a `Program`.
"""

from __future__ import annotations

import re
from typing import Callable, Iterator, List, Optional

from lark import Lark

from .diagnostics import Diagnostics
from .functions import FunctionExtractor
from .tokens import JumpLocation, Line, Program, Token, TokenKind

OPCODES = frozenset({
    'push', 'pop', 'mov',
    'add', 'sub', 'mul', 'div',
    'adds', 'subs', 'muls', 'divs',
    'djnz', 'djnzs', 'jmp', 'setb', 'end', 'prnt',
})
BRACKETS = frozenset('(){}[]')
COMMENT_MARKER = ';'

WORD_GRAMMAR = r"""
    start: (DELIM | WORD)*

    DELIM: /[(){}\[\],=+\-*"]/
    WORD: /[^\s(){}\[\],=+\-*"]+/

    WS: /\s+/
    %ignore WS
"""

WORD_LEXER = Lark(WORD_GRAMMAR, parser='lalr', lexer='basic')

_NUMBER = re.compile(r'[0-9]+')

ProgressCallback = Callable[[int, int], None]


class _Word:
    __slots__ = ('text', 'column')

    def __init__(self, text: str, column: int):
        self.text = text
        self.column = column


class _Words:
    """Peekable cursor over the words of one line."""
    def __init__(self, words: List[_Word]):
        self._words = words
        self._pos = 0

    def peek(self) -> Optional[_Word]:
        if self._pos < len(self._words):
            return self._words[self._pos]
        return None

    def next(self) -> Optional[_Word]:
        word = self.peek()
        if word is not None:
            self._pos += 1
        return word

    def rest(self) -> List[_Word]:
        words = self._words[self._pos:]
        self._pos = len(self._words)
        return words


def split_words(line: str) -> List[str]:
    """Split a source line into the words the classifier sees."""
    return [w.text for w in _scan(line)]


def _scan(line: str) -> List[_Word]:
    return [_Word(str(tok), tok.start_pos) for tok in WORD_LEXER.lex(line)]


class Lexer:
    """Turns source lines into `Line`s and counts lexical errors."""
    def __init__(self, diagnostics: Optional[Diagnostics] = None,
                 progress: Optional[ProgressCallback] = None):
        self.diagnostics = diagnostics or Diagnostics()
        self.progress = progress
        self.lines: List[Line] = []
        self.error_count = 0

    def line_number(self) -> int:
        return len(self.lines) + 1

    def _error(self, message: str):
        self.error_count += 1
        self.diagnostics.error(message)

    def tokenize_line(self, raw_line: str, total_lines: int) -> Line:
        """Tokenize one line and append it to `self.lines`.

        `total_lines` is only used for progress reporting.
        """
        number = self.line_number()
        tokens: List[Token] = []
        comment: Optional[str] = None
        words = _Words(_scan(raw_line))

        while words.peek() is not None:
            word = words.next()
            text = word.text
            col = word.column
            if text in OPCODES:
                tokens.append(Token(TokenKind.OPCODE, text, column=col))
            elif text == 'call':
                tokens.append(Token(TokenKind.OPCODE, text, column=col))
                name = words.next()
                if name is None:
                    self._error(f"Expected function name at line {number}")
                    continue
                tokens.append(Token(TokenKind.FUNCTION_NAME, name.text, column=name.column))
            elif text in BRACKETS:
                tokens.append(Token(TokenKind.BRACKET, text, column=col))
            elif text == 'fn':
                tokens.append(Token(TokenKind.KEYWORD, text, column=col))
                nxt = words.peek()
                if nxt is None or nxt.text == '{':
                    self._error(f"Expected function name at line {number}")
                    continue
                words.next()
                tokens.append(Token(TokenKind.FUNCTION_NAME, nxt.text, column=nxt.column))
            elif text == 'let':
                tokens.append(Token(TokenKind.KEYWORD, text, column=col))
                name = words.next()
                if name is not None:
                    tokens.append(Token(TokenKind.VAR_NAME, name.text, column=name.column))
            elif text == '"':
                tokens.append(self._string_literal(words, col, number))
            elif text == 'A':
                tokens.append(Token(TokenKind.ACCUMULATOR, text, column=col))
            elif text == 'Stack':
                tokens.append(Token(TokenKind.STACK, text, column=col))
            elif text == ',':
                tokens.append(Token(TokenKind.COMMA, text, column=col))
            elif text == 'nl':
                tokens.append(Token(TokenKind.NEWLINE, text, column=col))
            elif text.startswith('P'):
                tokens.append(Token(TokenKind.PORT, text, column=col))
            elif text.startswith(COMMENT_MARKER):
                rest = [text] + [w.text for w in words.rest()]
                comment = ' '.join(rest)[len(COMMENT_MARKER):].strip()
            elif text.endswith(':'):
                location = JumpLocation(text[:-1], number)
                tokens.append(Token(TokenKind.JUMP_LOCATION, text, location=location, column=col))
            elif _NUMBER.fullmatch(text):
                tokens.append(Token(TokenKind.NUMBER, text, number=int(text), column=col))
            elif tokens:
                tokens.append(Token(TokenKind.GENERIC, text, column=col))
            else:
                self.diagnostics.lexer(f"unexpected word `{text}`")
                self._error(f"Unexpected instruction at line {number}")

        if self.progress is not None and total_lines > 0:
            self.progress(number, total_lines)

        line = Line(tokens=tokens, source=raw_line, number=number, comment=comment)
        self.lines.append(line)
        return line

    def _string_literal(self, words: _Words, column: int, number: int) -> Token:
        parts: List[str] = []
        closed = False
        while words.peek() is not None:
            word = words.next()
            if word.text == '"':
                closed = True
                break
            parts.append(word.text)
        if not closed:
            self._error(f"Unterminated string literal at line {number}")
        value = ' '.join(parts).replace('\\n', '\n')
        return Token(TokenKind.STRING, value, column=column)


def iter_source_lines(text: str, tilde_newlines: bool = False) -> Iterator[str]:
    """Yield the lines of `text`, broken on `\\n` and `\\r\\n` only."""
    if tilde_newlines:
        text = text.replace('~', '\n')
    lines = re.split(r'\r?\n', text)
    if lines[-1] == '':
        lines.pop()
    yield from lines


def tokenize(text: str, diagnostics: Optional[Diagnostics] = None,
             progress: Optional[ProgressCallback] = None,
             tilde_newlines: bool = False) -> Program:
    """Tokenize `text` and group its lines into functions.

    Lexical and structural problems are reported through `diagnostics` and
    counted in `Program.error_count`; they never stop tokenizing.
    """
    diagnostics = diagnostics or Diagnostics()
    lexer = Lexer(diagnostics, progress)
    source_lines = list(iter_source_lines(text, tilde_newlines))
    if not source_lines:
        diagnostics.error("Please provide some code")
    for raw in source_lines:
        lexer.tokenize_line(raw, len(source_lines))
    diagnostics.lexer(f"Parsing the tokens returned {lexer.error_count} errors")

    extractor = FunctionExtractor(diagnostics)
    functions, dangling = extractor.extract(lexer.lines)
    if not functions:
        diagnostics.error("No functions found (empty)")
    return Program(
        functions=functions,
        dangling_lines=dangling,
        lines=list(lexer.lines),
        error_count=lexer.error_count + extractor.error_count,
    )
