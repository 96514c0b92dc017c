"""Execution engine for Russembly programs.

The interpreter walks the lines of one function at a time. Each line is
read through a peekable token cursor; the leading token decides what runs
(an opcode, a keyword, or nothing at all) and the handler consumes its own
operands from the same cursor.

Errors in the program are counted in `MachineState.error_count` and
reported, and execution carries on with the next token. Only operations
that cannot produce a value at all (arithmetic on a short stack, division
by zero, runaway recursion) raise a `MachineError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .diagnostics import Diagnostics, word_index_at
from .errors import CallDepthError, DivisionByZeroError, StackUnderflowError
from .lexer import tokenize
from .machine import MachineState, NumberVar, StringVar
from .tokens import Line, Program, Token, TokenKind

MOV_SYNTAX = "mov <Port or Accu> <,> <value>"


class TokenCursor:
    """Peekable iterator over the tokens of one line."""
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> Optional[Token]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def next(self) -> Optional[Token]:
        tok = self.peek()
        if tok is not None:
            self.pos += 1
        return tok


@dataclass
class RunResult:
    output: str
    error_count: int
    state: MachineState


def _truncating_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


ARITHMETIC: Dict[str, Callable[[int, int], int]] = {
    'adds': lambda a, b: a + b,
    'subs': lambda a, b: a - b,
    'muls': lambda a, b: a * b,
    'divs': _truncating_div,
}

# Mnemonics the tokenizer accepts that have no effect when run.
INERT_OPCODES = frozenset({'djnz', 'djnzs', 'jmp', 'setb', 'end', 'add', 'sub', 'mul', 'div'})

###############################################################################
# Interpreter implementation
###############################################################################


class Interpreter:
    """Runs the functions of a `Program` against a `MachineState`."""
    def __init__(self, diagnostics: Optional[Diagnostics] = None,
                 debug_level: int = 0, debug_file: str = 'debug.txt'):
        self.diagnostics = diagnostics or Diagnostics()
        self.program = Program()
        self.state = MachineState()
        self.output: List[str] = []
        self.debug_level = debug_level
        self.debug_file = debug_file
        self.debug_fp = None

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    # Public API
    def run(self, program: Program, entry: str = 'main') -> RunResult:
        """Run function `entry` of `program` on a fresh machine.

        `MachineError`s propagate to the caller; `self.state` and
        `self.output` still hold whatever the run produced until then.
        """
        self.program = program
        self.state = MachineState(
            jump_locations=program.jump_locations(),
            error_count=program.error_count,
        )
        self.output = []
        if self.debug_level > 0:
            # one trace file per run, closed again when the run ends
            self.debug_fp = open(self.debug_file, 'w', encoding='utf-8')
        try:
            self.run_function(entry)
        except RecursionError as exc:
            self.state.error_count += 1
            raise CallDepthError(f"call stack exhausted while running `{entry}`") from exc
        finally:
            self.close()
        return RunResult(self.output_text(), self.state.error_count, self.state)

    def output_text(self) -> str:
        return ''.join(self.output)

    def write(self, text: str):
        self.output.append(text)

    # Errors
    def error(self, message: str):
        self.state.error_count += 1
        self.diagnostics.error(message)

    def line_error(self, message: str, line: Line, token: Token, label: str = ''):
        self.state.error_count += 1
        index = word_index_at(line.source, token.column)
        self.diagnostics.line_error(message, line.source, line.number, index, label)

    def fatal(self, exc_type, message: str, line: Line):
        self.state.error_count += 1
        raise exc_type(message, line.number)

    # Functions
    def run_function(self, name: str):
        func = self.program.find_function(name)
        if func is None:
            self.error(f"function `{name}` not found")
            return
        if self.debug_level >= 1:
            self.debug(f"enter {name} ({len(func.lines)} lines)")
        self.run_lines(func.lines)
        # the variable table is flat: returning from any call empties it
        self.state.clear_vars()
        if self.debug_level >= 1:
            self.debug(f"leave {name}")

    def run_lines(self, lines: List[Line]):
        for line in lines:
            cursor = TokenCursor(line.tokens)
            while cursor.peek() is not None:
                token = cursor.next()
                kind = token.kind
                if self.debug_level >= 3:
                    self.debug(f"line {line.number}: dispatch {token!r}")
                if kind is TokenKind.OPCODE:
                    self.run_opcode(cursor, token, line)
                elif kind is TokenKind.KEYWORD:
                    self.run_keyword(cursor, token, line)
                elif kind in (TokenKind.JUMP_LOCATION, TokenKind.BRACKET,
                              TokenKind.STRING, TokenKind.COMMENT):
                    continue
                elif kind is TokenKind.NEWLINE:
                    self.write('\n')
                else:
                    self.error(f"unexpected token '{token.value}' at line {line.number}")

    # Keywords
    def run_keyword(self, cursor: TokenCursor, token: Token, line: Line):
        if token.value != 'let':
            return
        name_tok = cursor.next()
        if name_tok is None:
            self.error(f"Expected arguments after let at line {line.number}")
            return
        if name_tok.kind is not TokenKind.VAR_NAME:
            self.error(f"Expected variable name at line {line.number}")
            return
        comma = cursor.next()
        if comma is not None and comma.kind is TokenKind.COMMA:
            value = cursor.next()
        else:
            self.error(f"Expected comma at line {line.number}")
            value = comma
        if value is None:
            self.error(f"Expected value for let at line {line.number}")
            return
        if value.kind is TokenKind.STRING:
            self.state.define(StringVar(name_tok.value, value.value))
        elif value.kind is TokenKind.NUMBER:
            self.state.define(NumberVar(name_tok.value, value.number))
        else:
            self.error("You can only store Strings and Numbers inside a Variable")
            return
        if self.debug_level >= 2:
            self.debug(f"let {name_tok.value} = {value.value!r}")

    # Opcodes
    def run_opcode(self, cursor: TokenCursor, token: Token, line: Line):
        op = token.value
        if self.debug_level >= 2:
            self.debug(f"line {line.number}: {op}")
        if op == 'push':
            self.op_push(cursor, line)
        elif op == 'pop':
            if self.state.stack:
                self.state.stack.pop()
        elif op == 'mov':
            self.op_mov(cursor, line)
        elif op in ARITHMETIC:
            self.op_arithmetic(op, line)
        elif op == 'prnt':
            self.op_prnt(cursor, token, line)
        elif op == 'call':
            self.op_call(cursor, line)
        elif op in INERT_OPCODES:
            pass

    def op_push(self, cursor: TokenCursor, line: Line):
        value = cursor.next()
        if value is None:
            self.error(f"Expected number after push at line {line.number}")
        elif value.kind is not TokenKind.NUMBER:
            self.error(f"You can only push numbers to the stack (line {line.number})")
        else:
            self.state.stack.append(value.number)

    def op_mov(self, cursor: TokenCursor, line: Line):
        dest, comma, source = cursor.next(), cursor.next(), cursor.next()
        if dest is None or comma is None or source is None:
            self.error(f"Expected more tokens after mov at line {line.number}")
            self.diagnostics.syntax(MOV_SYNTAX)
            return
        if comma.kind is not TokenKind.COMMA:
            self.error(f"Expected comma at line {line.number}")
        if dest.kind is TokenKind.PORT:
            index = self.state.port_index(dest.value)
            if index is None:
                self.line_error(f"invalid port `{dest.value}`", line, dest, "expected P0 - P7")
                return
            value = self.mov_source(source, line, "this Port")
            if value is not None:
                self.state.ports[index] = value
        elif dest.kind is TokenKind.ACCUMULATOR:
            value = self.mov_source(source, line, "the Accumulator")
            if value is not None:
                self.state.accumulator = value
        else:
            self.error(f"Expected Port or Accu at line {line.number}")

    def mov_source(self, source: Token, line: Line, target: str) -> Optional[int]:
        if source.kind is TokenKind.NUMBER:
            return source.number
        if source.kind is TokenKind.PORT:
            index = self.state.port_index(source.value)
            if index is None:
                self.line_error(f"invalid port `{source.value}`", line, source, "expected P0 - P7")
                return None
            return self.state.ports[index]
        self.error(f"You can only move a number or the value of a Port to {target}")
        return None

    def op_arithmetic(self, op: str, line: Line):
        stack = self.state.stack
        if len(stack) < 2:
            self.fatal(StackUnderflowError, f"`{op}` needs two values on the stack", line)
        a = stack.pop()
        b = stack.pop()
        if op == 'divs' and b == 0:
            stack.append(b)
            stack.append(a)
            self.fatal(DivisionByZeroError, "division by zero", line)
        stack.append(ARITHMETIC[op](a, b))

    def op_prnt(self, cursor: TokenCursor, token: Token, line: Line):
        operand = cursor.next()
        if operand is None:
            self.line_error("expected token after prnt statement", line, token)
            return
        kind = operand.kind
        if kind is TokenKind.STRING:
            self.write(operand.value)
        elif kind is TokenKind.NUMBER:
            self.write(str(operand.number))
        elif kind is TokenKind.ACCUMULATOR:
            self.write(str(self.state.accumulator))
        elif kind is TokenKind.STACK:
            self.write(str(self.state.stack))
        elif kind is TokenKind.PORT:
            index = self.state.port_index(operand.value)
            if index is None:
                self.line_error(f"invalid port `{operand.value}`", line, operand, "expected P0 - P7")
                return
            self.write(str(self.state.ports[index]))
        else:
            var = self.state.lookup(operand.value)
            if var is None:
                self.line_error(
                    f"cannot find value `{operand.value}` in this scope",
                    line, operand, "not found in this scope",
                )
                return
            self.write(str(var.value))

    def op_call(self, cursor: TokenCursor, line: Line):
        name = cursor.next()
        if name is None or name.kind is not TokenKind.FUNCTION_NAME:
            self.error(f"Expected function name after call at line {line.number}")
            return
        # the callee's declared arguments are never bound
        self.run_function(name.value)


def run(program: Program, entry: str = 'main',
        diagnostics: Optional[Diagnostics] = None) -> RunResult:
    return Interpreter(diagnostics=diagnostics).run(program, entry)


def run_program(source: str, entry: str = 'main', debug_level: int = 0,
                diagnostics: Optional[Diagnostics] = None) -> RunResult:
    """Convenience function to tokenize and run a Russembly program from source."""
    diagnostics = diagnostics or Diagnostics()
    program = tokenize(source, diagnostics)
    interpreter = Interpreter(diagnostics=diagnostics, debug_level=debug_level)
    return interpreter.run(program, entry)


def load_file(file_path: str, diagnostics: Optional[Diagnostics] = None) -> Program:
    """Read and tokenize a `.rusm` file."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    return tokenize(source, diagnostics)
