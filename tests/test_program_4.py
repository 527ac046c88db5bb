from pathlib import Path

from lox.interpreter import Interpreter
from lox.parser import parse_program

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_4_closure_outlives_block(capsys):
    with open(EXAMPLES / 'program_4.lox', 'r', encoding='utf-8') as f:
        source = f.read()
    parsed = parse_program(source)
    interp = Interpreter()
    result = interp.run(parsed.statements)
    out = capsys.readouterr().out.strip()
    assert result.ok
    assert out == '3'
    # the block scope captured by `increment` is kept alive with globals
    assert interp.environments.live_count() == 2
