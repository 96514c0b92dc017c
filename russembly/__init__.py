# Russembly language package
# This package provides a tokenizer and interpreter for the Russembly language.
from .errors import MachineError, RusmError
from .interpreter import Interpreter, RunResult, load_file, run, run_program
from .lexer import tokenize
from .machine import MachineState

__all__ = [
    'tokenize',
    'run',
    'run_program',
    'load_file',
    'Interpreter',
    'RunResult',
    'MachineState',
    'MachineError',
    'RusmError',
]
