from pathlib import Path

from russembly.interpreter import Interpreter
from russembly.lexer import tokenize

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_5_call_clears_variables():
    with open(EXAMPLES / 'program_5.rusm', 'r', encoding='utf-8') as f:
        source = f.read()
    program = tokenize(source)
    assert [f.name for f in program.functions] == ['greet', 'main']
    assert [a.value for a in program.functions[0].arguments] == ['name']
    result = Interpreter().run(program)
    assert result.output == 'hello from greet\n'
    # `prnt x` after the call no longer finds x
    assert result.error_count == 1
