"""Human readable diagnostics for Russembly programs.

Messages are printed on a `rich` console with a category prefix
(`[Error]`, `[Info]`, `[Lexer]`, `[Cpu]`, `[Syntax]`). Errors tied to a
source line are rendered as a caret annotated block:

      |
    3 | prnt y
      |      ^ not found in this scope
      |

Nothing in this module counts errors; callers record the error first and
then ask for it to be shown.
"""

from __future__ import annotations

import re
from typing import List, Optional

from rich.console import Console
from rich.text import Text
from rich.theme import Theme

THEME = Theme(
    {
        'diag.error': 'bold red',
        'diag.info': 'green',
        'diag.lexer': 'blue',
        'diag.cpu': 'yellow',
        'diag.syntax': 'yellow',
        'diag.bar': 'blue',
        'diag.caret': 'red',
    }
)

PREFIXES = {
    'error': '[Error]: ',
    'info': '[Info]: ',
    'lexer': '[Lexer]: ',
    'cpu': '[Cpu]: ',
    'syntax': '[Syntax]: ',
}

_WORD = re.compile(r'\S+')


def word_index_at(source_line: str, column: int) -> int:
    """Index of the whitespace separated word covering `column`."""
    index = 0
    for index, match in enumerate(_WORD.finditer(source_line)):
        if match.end() > column:
            return index
    return index


def render_error(message: str, source_line: str, line_number: int,
                 word_index: int, label: str = '') -> Text:
    """Build the caret block pointing at word `word_index` of `source_line`.

    The first line of the result is `message`; the caret line carries
    `label` after the carets.
    """
    gutter = ' ' * (len(str(line_number)) + 1)
    text = Text()
    text.append(message + '\n', style='diag.error')
    text.append(gutter)
    text.append('|\n', style='diag.bar')
    text.append(str(line_number), style='diag.bar')
    text.append(' ')
    text.append('|', style='diag.bar')
    text.append(f' {source_line}\n')

    pad = ''
    carets = ''
    for i, match in enumerate(_WORD.finditer(source_line)):
        if i == word_index:
            pad = ' ' * match.start()
            carets = '^' * len(match.group())
            break
    text.append(gutter)
    text.append('|', style='diag.bar')
    text.append(' ' + pad)
    text.append(carets, style='diag.caret')
    if label:
        text.append(' ' + label, style='diag.caret')
    text.append('\n')
    text.append(gutter)
    text.append('|', style='diag.bar')
    return text


class Diagnostics:
    """Prints categorized messages and keeps their plain text."""
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True, theme=THEME, highlight=False)
        self.messages: List[str] = []

    def _emit(self, category: str, message: str):
        self.messages.append(PREFIXES[category] + message)
        line = Text(PREFIXES[category], style=f'diag.{category}')
        line.append(message)
        self.console.print(line)

    def error(self, message: str):
        self._emit('error', message)

    def info(self, message: str):
        self._emit('info', message)

    def lexer(self, message: str):
        self._emit('lexer', message)

    def cpu(self, message: str):
        self._emit('cpu', message)

    def syntax(self, message: str):
        self._emit('syntax', message)

    def line_error(self, message: str, source_line: str, line_number: int,
                   word_index: int, label: str = ''):
        block = render_error(message, source_line, line_number, word_index, label)
        self.messages.append(PREFIXES['error'] + block.plain)
        self.console.print(Text(PREFIXES['error'], style='diag.error') + block)
