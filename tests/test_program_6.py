from pathlib import Path

from lox.parser import parse_program

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_6_two_parse_errors(capsys):
    with open(EXAMPLES / 'program_6.lox', 'r', encoding='utf-8') as f:
        source = f.read()
    parsed = parse_program(source)
    err_lines = capsys.readouterr().err.strip().split('\n')
    assert not parsed.ok
    assert len(parsed.errors) == 2
    assert err_lines == [
        "[line 2] Error at ';': Expect expression.",
        "[line 4] Error at '=': Expect variable name.",
    ]
    # only the valid print statement survives
    assert len(parsed.statements) == 1
