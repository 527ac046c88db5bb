"""CLI entry point for the Lox interpreter.

Usage:
    python -m lox [-v|-vv|-vvv|-vvvv]                 (interactive prompt)
    python -m lox [-v...] <script>
    python -m lox [-v...] --emit-ast <script>
    python -m lox [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --emit-ast    Parse the given script and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file

Exit status follows the sysexits convention: 65 when the script has
syntax errors (nothing is executed), 70 when execution stops on a
runtime error, 66 when the input file does not exist. Debug information
is written to `debug.txt` in the current directory when verbosity is
greater than zero.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .ast_json import ast_to_obj, ast_from_obj
from .interpreter import Interpreter, RunResult
from .parser import parse_program
from .shell import Shell

EX_DATAERR = 65
EX_NOINPUT = 66
EX_SOFTWARE = 70


def exit_status(result: RunResult) -> int:
    if result.status == 'parse_error':
        return EX_DATAERR
    if result.status == 'runtime_error':
        return EX_SOFTWARE
    return 0


def read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(EX_NOINPUT)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog='lox', description="Lox language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='LOX_FILE', help='emit AST JSON for the given .lox file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('script', nargs='?', help='Lox script to execute; omit for a prompt')
    args = parser.parse_args(argv)

    # Emit AST mode
    if args.emit_ast:
        program_file = Path(args.emit_ast)
        parsed = parse_program(read_source(program_file))
        if not parsed.ok:
            sys.exit(EX_DATAERR)
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(ast_to_obj(parsed.statements), out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    # Execute from AST JSON
    if args.ast:
        ast_path = Path(args.ast)
        if not ast_path.exists():
            print(f"Error: file {ast_path} not found", file=sys.stderr)
            sys.exit(EX_NOINPUT)
        with open(ast_path, 'r', encoding='utf-8') as f:
            statements = ast_from_obj(json.load(f))
        with Interpreter(debug_level=args.v) as interpreter:
            result = interpreter.run(statements)
        sys.exit(exit_status(result))

    # No script: interactive prompt
    if not args.script:
        with Interpreter(debug_level=args.v) as interpreter:
            Shell(interpreter).cmdloop()
        return

    source = read_source(Path(args.script))
    with Interpreter(debug_level=args.v) as interpreter:
        result = interpreter.run_source(source)
    sys.exit(exit_status(result))


if __name__ == '__main__':
    main()
