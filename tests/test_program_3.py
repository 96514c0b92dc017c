from pathlib import Path

from russembly.interpreter import Interpreter
from russembly.lexer import tokenize

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_3_ports_and_accumulator():
    with open(EXAMPLES / 'program_3.rusm', 'r', encoding='utf-8') as f:
        source = f.read()
    program = tokenize(source)
    result = Interpreter().run(program)
    assert result.output.split('\n') == ['5', '255']
    assert result.state.accumulator == 5
    assert result.state.ports == [5, 0, 0, 0, 0, 0, 0, 255]
