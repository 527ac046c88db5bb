"""Interactive prompt for the Lox interpreter. Uses cmd as backend."""

import cmd
from typing import Optional

from .ast import ExprStmt
from .interpreter import Interpreter
from .parser import parse_program
from .types import to_string


class Shell(cmd.Cmd):
    """Lox prompt.

    Every line is parsed and run on its own against one interpreter, so
    globals defined on one line are visible on the next. A line that
    fails to parse or run does not end the session.
    """
    intro = "Lox interpreter. Type 'exit' or press Ctrl-D to leave."
    prompt = "> "

    def __init__(self, interpreter: Optional[Interpreter] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.interpreter = interpreter if interpreter is not None else Interpreter()

    def default(self, line):
        """Runs a line of Lox source."""
        parsed = parse_program(line, self.interpreter.on_error)
        if not parsed.ok:
            return
        result = self.interpreter.run(parsed.statements)
        # echo the value of a trailing bare expression, like most REPLs
        if result.ok and parsed.statements and isinstance(parsed.statements[-1], ExprStmt):
            self.stdout.write(to_string(result.value) + '\n')

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        self.stdout.write('\n')
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
