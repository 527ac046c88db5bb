import io

from lox.ast import Literal, PrintStmt, ReturnStmt
from lox.errors import LoxRuntimeError, UndefinedVariable
from lox.interpreter import Interpreter, run_program
from lox.lexer import tokenize


def interpret(source):
    """Run source on a fresh interpreter; return (stdout text, result)."""
    out = io.StringIO()
    errors = []
    interp = Interpreter(out=out, on_error=errors.append)
    result = interp.run_source(source)
    return out.getvalue(), result


def test_empty_program():
    out, result = interpret('')
    assert out == ''
    assert result.ok
    assert result.status == 'ok'


def test_math_expressions():
    assert interpret('print 2 + 2 * 2;')[0] == '6\n'
    assert interpret('print (2 + 2) * 2;')[0] == '8\n'
    assert interpret('print 10 / 4 - 1;')[0] == '1.5\n'


def test_boolean_logic_returns_operands():
    code = '''
        print "hi" or 2;
        print nil or "yes";
        print nil and undefined_name;
        print 1 and 2;
    '''
    out, result = interpret(code)
    assert result.ok
    assert out == 'hi\nyes\nnil\n2\n'


def test_if_statements():
    code = '''
        if (true) {
            print true;
        } else {
            print false;
        }

        if (true) print true; else print false;

        if (false) {
            print true;
        } else {
            print false;
        }

        if (false) print true; else print false;
    '''
    assert interpret(code)[0] == 'true\ntrue\nfalse\nfalse\n'


def test_while_statements():
    code = '''
        var n = 3;
        while (n > 0) {
            print n;
            n = n - 1;
        }
    '''
    assert interpret(code)[0] == '3\n2\n1\n'


def test_for_statements():
    code = '''
        var a = 0;
        var temp;

        for (var b = 1; a < 100; b = temp + b) {
            print a;
            temp = a;
            a = b;
        }
    '''
    assert interpret(code)[0] == '0\n1\n1\n2\n3\n5\n8\n13\n21\n34\n55\n89\n'


def test_functions():
    code = '''
        fun sayHi(first, last) {
            print "Hi, " + first + " " + last + "!";
        }

        sayHi("Dear", "Reader");
    '''
    assert interpret(code)[0] == 'Hi, Dear Reader!\n'


def test_iterative_fibonacci():
    code = '''
        fun fibonacci(n) {
            var a = 0;
            var b = 1;

            for (var i = 0; i < n; i = i + 1) {
                var temp = a;
                a = b;
                b = temp + b;
            }
            return a;
        }

        print fibonacci(12);
    '''
    assert interpret(code)[0] == '144\n'


def test_recursive_fibonacci():
    code = '''
        fun fibonacci(n) {
            if (n <= 1) return n;
            return fibonacci(n - 2) + fibonacci(n - 1);
        }

        print fibonacci(12);
    '''
    assert interpret(code)[0] == '144\n'


def test_nested_function_cannot_see_enclosing_locals():
    code = '''
        var a = 1;

        fun main() {
            var b = 2;

            fun nested() {
                print a;
                print b;
            }

            nested();
        }
        main();
    '''
    out, result = interpret(code)
    assert out == '1\n'
    err = result.runtime_error
    assert isinstance(err, UndefinedVariable)
    assert err.name == 'b'
    assert err.token.lexeme == 'b'
    assert err.line == 9


def test_closure_over_block_scope_outlives_block():
    code = '''
        var show;
        {
            var message = "kept";
            fun f() { print message; }
            show = f;
        }
        show();
    '''
    out, result = interpret(code)
    assert result.ok
    assert out == 'kept\n'


def test_return_without_value_is_nil():
    out, _ = interpret('fun f() { return; } print f();')
    assert out == 'nil\n'
    out, _ = interpret('fun g() { } print g();')
    assert out == 'nil\n'


def test_return_unwinds_loops():
    code = '''
        fun first_over(limit) {
            var i = 0;
            while (true) {
                if (i > limit) return i;
                i = i + 1;
            }
        }
        print first_over(4);
    '''
    assert interpret(code)[0] == '5\n'


def test_display_forms():
    code = '''
        print nil;
        print true;
        print false;
        print 3;
        print 2.5;
        print "raw text";
        fun f() {}
        print f;
    '''
    assert interpret(code)[0] == 'nil\ntrue\nfalse\n3\n2.5\nraw text\n<fn f>\n'


def test_division_follows_ieee():
    out, result = interpret('print 1 / 0; print -1 / 0; print 0 / 0;')
    assert result.ok
    assert out == 'inf\n-inf\nNaN\n'


def test_equality_never_errors():
    code = '''
        print 1 == 1;
        print 1 == "1";
        print nil == nil;
        print nil == false;
        print "ab" == "a" + "b";
        print true != 1;
        print (0 / 0) == (0 / 0);
    '''
    out, result = interpret(code)
    assert result.ok
    assert out == 'true\nfalse\ntrue\nfalse\ntrue\ntrue\nfalse\n'


def test_truthiness():
    code = '''
        print !nil;
        print !false;
        print !0;
        print !"";
    '''
    assert interpret(code)[0] == 'true\ntrue\nfalse\nfalse\n'


def test_unary_minus_needs_a_number():
    out, result = interpret('print -"a";')
    assert isinstance(result.runtime_error, LoxRuntimeError)
    assert result.runtime_error.message == 'Operand must be a number.'
    assert result.status == 'runtime_error'


def test_plus_needs_two_numbers_or_two_strings():
    _, result = interpret('print 1 + "a";')
    assert result.runtime_error.message == 'Operands must be two numbers or two strings.'
    assert result.runtime_error.token.lexeme == '+'


def test_comparison_needs_numbers():
    _, result = interpret('print "a" < "b";')
    assert result.runtime_error.message == 'Operands must be numbers.'


def test_runtime_error_halts_the_rest_of_the_program():
    out, result = interpret('print 1;\nprint -"x";\nprint 2;')
    assert out == '1\n'
    assert result.runtime_error.line == 2


def test_runtime_error_is_reported(capsys):
    result = run_program('var a = 1;\na = a + nil;')
    err = capsys.readouterr().err.strip()
    assert err == '[line 2] RuntimeError: Operands must be two numbers or two strings.'
    assert result.status == 'runtime_error'


def test_assignment_to_undeclared_variable():
    _, result = interpret('x = 1;')
    assert isinstance(result.runtime_error, UndefinedVariable)
    assert result.runtime_error.name == 'x'


def test_redeclaration_overwrites():
    assert interpret('var a = 1; var a = 2; print a;')[0] == '2\n'


def test_uninitialized_variable_is_nil():
    assert interpret('var a; print a;')[0] == 'nil\n'


def test_call_errors():
    _, result = interpret('fun f(a) {} f();')
    assert result.runtime_error.message == 'Expected 1 arguments but got 0.'
    _, result = interpret('"text"();')
    assert result.runtime_error.message == 'Can only call functions.'


def test_parse_errors_prevent_execution(capsys):
    result = run_program('print "before";\nprint ;')
    captured = capsys.readouterr()
    assert captured.out == ''
    assert result.status == 'parse_error'
    assert len(result.parse_errors) == 1
    assert captured.err.strip() == "[line 2] Error at ';': Expect expression."


def test_pure_expression_program_is_idempotent():
    source = '(1 + 2) * 3 - 4 / 2;'
    values = [run_program(source).value for _ in range(3)]
    assert values == [7.0, 7.0, 7.0]


def test_globals_persist_on_one_interpreter():
    out = io.StringIO()
    interp = Interpreter(out=out, on_error=lambda error: None)
    assert interp.run_source('var count = 1; fun bump() { count = count + 1; }').ok
    assert interp.run_source('print count +;').status == 'parse_error'
    assert interp.run_source('bump(); print count;').ok
    assert interp.run_source('print missing;').status == 'runtime_error'
    assert interp.run_source('bump(); print count;').ok
    assert out.getvalue() == '2\n3\n'


def test_scopes_are_released_after_calls_and_blocks():
    interp = Interpreter(out=io.StringIO())
    interp.run_source('fun f(n) { { var x = n; } return n; } f(1); f(2);')
    # globals only; f closes over globals which is always alive
    assert interp.environments.live_count() == 1
    assert interp.environment == interp.globals


def test_debug_trace(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    with Interpreter(out=io.StringIO(), debug_level=4, debug_file=str(debug_file)) as interp:
        interp.run_source('var a = 1; fun f(x) { return x; } if (a) f(a);')
    trace = debug_file.read_text()
    assert 'declare a: number = 1' in trace
    assert 'define function f' in trace
    assert 'if on line 1 -> True' in trace
    assert 'call f(1)' in trace


def test_large_and_small_numbers_print_positionally():
    code = '''
        print 10000000000000000;
        print 0.00001;
        print 2.5 * 1000;
        print 1000000000 * 1000000000000;
        print -0;
    '''
    out, result = interpret(code)
    assert result.ok
    assert out == '10000000000000000\n0.00001\n2500\n1000000000000000000000\n-0\n'


def test_deep_recursion():
    code = '''
        fun depth(n) {
            if (n == 0) return 0;
            return depth(n - 1) + 1;
        }
        print depth(500);
    '''
    out, result = interpret(code)
    assert result.ok
    assert out == '500\n'


def test_unbounded_recursion_is_a_runtime_error():
    out = io.StringIO()
    interp = Interpreter(out=out, on_error=lambda error: None)
    result = interp.run_source('fun forever(n) {\n  return forever(n + 1);\n}\nforever(0);')
    assert result.status == 'runtime_error'
    assert result.runtime_error.message == 'Stack overflow.'
    assert result.runtime_error.line == 2
    assert interp.calls == []
    assert interp.environment == interp.globals
    assert interp.run_source('print "after";').ok
    assert out.getvalue() == 'after\n'


def test_return_at_top_level_of_a_loaded_ast():
    keyword = tokenize('return 1;')[0]
    statements = [PrintStmt(Literal('before')), ReturnStmt(keyword, Literal(1.0))]
    out = io.StringIO()
    result = Interpreter(out=out, on_error=lambda error: None).run(statements)
    assert out.getvalue() == 'before\n'
    assert result.status == 'runtime_error'
    assert result.runtime_error.message == "Can't return from top-level code."
