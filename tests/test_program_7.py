from pathlib import Path

from russembly.interpreter import Interpreter
from russembly.lexer import tokenize
from russembly.tokens import JumpLocation

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_7_labels_are_inert():
    with open(EXAMPLES / 'program_7.rusm', 'r', encoding='utf-8') as f:
        source = f.read()
    program = tokenize(source)
    result = Interpreter().run(program)
    assert result.output == '[4]'
    assert result.error_count == 0
    assert result.state.jump_locations == [JumpLocation('loop', 2)]
