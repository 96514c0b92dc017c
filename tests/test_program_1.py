from pathlib import Path

from russembly.interpreter import Interpreter
from russembly.lexer import tokenize

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_1_hello():
    with open(EXAMPLES / 'program_1.rusm', 'r', encoding='utf-8') as f:
        source = f.read()
    program = tokenize(source)
    result = Interpreter().run(program)
    assert result.output == 'Hello World!!'
    assert result.error_count == 0
