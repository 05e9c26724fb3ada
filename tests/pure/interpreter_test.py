import unittest

from mlox.pure.interpreter import Interpreter
from mlox.pure.lexical import Scanner
from mlox.pure.parser import Parser
from mlox.pure.resolver import Resolver


def run(source):
    """Runs source through the whole pipeline; returns (printed lines, runtime errors)."""
    parser = Parser(Scanner(source).scan())
    statements = parser.parse()
    assert not parser.errors, parser.errors

    resolver = Resolver()
    side_table = resolver.resolve(statements)
    assert not resolver.errors, resolver.errors

    output, errors = [], []
    interpreter = Interpreter(output.append, errors.append)
    interpreter.resolve(side_table)
    interpreter.interpret(statements)
    return output, errors


class ExpressionTestCase(unittest.TestCase):

    def test_arithmetic(self):
        cases = {
            "print 8 + 3;": ["11"],
            "print 1-5*3;": ["-14"],
            "print (1 - 5) * 3;": ["-12"],
            "print 7 / 2;": ["3.5"],
            "print -(2 - 4);": ["2"],
            "print 1 / 0;": ["Infinity"],
            "print -1 / 0;": ["-Infinity"],
            "print 0 / 0;": ["NaN"],
            'print "foo" + "bar";': ["foobar"],
            "print 10000000000000000;": ["10000000000000000"],
            "print 0.0000001;": ["1e-7"],
            "print -0;": ["0"],
            "print 1000000 * 1000000 * 1000000 * 1000;": ["1e+21"],
        }
        for case, expected in cases.items():
            self.assertEqual((expected, []), run(case), case)

    def test_comparison_and_equality(self):
        cases = {
            "print 1 < 2;": ["true"],
            "print 2 <= 2;": ["true"],
            "print 1 > 2;": ["false"],
            "print 3 >= 4;": ["false"],
            "print 1 == 1;": ["true"],
            "print 1 != 1;": ["false"],
            "print nil == nil;": ["true"],
            "print nil == false;": ["false"],
            'print "1" == 1;': ["false"],
            "print true == 1;": ["false"],
            "print 0 == false;": ["false"],
            'print "a" == "a";': ["true"],
        }
        for case, expected in cases.items():
            self.assertEqual((expected, []), run(case), case)

    def test_truthiness(self):
        source = """
            if (0) print "zero";
            if ("") print "empty";
            if (nil) print "nil"; else print "else nil";
            if (false) print "false"; else print "else false";
            print !nil;
            print !0;
        """
        self.assertEqual((["zero", "empty", "else nil", "else false", "true", "false"], []), run(source))

    def test_logical_short_circuit(self):
        cases = {
            'print nil or "x";': ["x"],
            'print "left" or undefined;': ["left"],
            "print false and undefined;": ["false"],
            "print 1 and 2;": ["2"],
            "print nil and 2;": ["nil"],
        }
        for case, expected in cases.items():
            self.assertEqual((expected, []), run(case), case)

    def test_operand_errors(self):
        should_fail = {
            'print -"a";': "Operand must be a number.",
            "print -nil;": "Operand must be a number.",
            'print 1 + "a";': "Operands must be two numbers or two strings.",
            'print "a" + nil;': "Operands must be two numbers or two strings.",
            'print 1 < "a";': "Operands must be numbers.",
            "print true * 2;": "Operands must be numbers.",
            'print "a" - "b";': "Operands must be numbers.",
        }
        for case, message in should_fail.items():
            output, errors = run(case)
            self.assertEqual([], output, case)
            self.assertEqual([message], [error.message for error in errors], case)


class StatementTestCase(unittest.TestCase):

    def test_variables(self):
        self.assertEqual((["3"], []), run("var a = 5; a = 3; print a;"))
        self.assertEqual((["nil"], []), run("var a; print a;"))
        self.assertEqual((["2", "2"], []), run("var a; var b; a = b = 2; print a; print b;"))

    def test_nested_blocks(self):
        source = """
            var a = "global a";
            var b = "global b";
            var c = "global c";
            {
              var a = "outer a";
              var b = "outer b";
              {
                var a = "inner a";
                print a;
                print b;
                print c;
              }
              print a;
              print b;
              print c;
            }
            print a;
            print b;
            print c;
        """
        expected = ["inner a", "outer b", "global c", "outer a", "outer b", "global c", "global a", "global b",
                    "global c"]
        self.assertEqual((expected, []), run(source))

    def test_block_scope_ends(self):
        output, errors = run("{ var hidden = 1; } print hidden;")
        self.assertEqual("Undefined variable 'hidden'.", errors[0].message)

    def test_while_executes(self):
        source = "var i = 0; while (i < 3) { print i; i = i + 1; }"
        self.assertEqual((["0", "1", "2"], []), run(source))

    def test_for(self):
        self.assertEqual((["0", "1", "2"], []), run("for (var i = 0; i < 3; i = i + 1) print i;"))

        output, errors = run("for (var i = 0; i < 1; i = i + 1) {} print i;")
        self.assertEqual("Undefined variable 'i'.", errors[0].message)

        source = """
            var a = 0;
            var temp;
            for (var b = 1; a < 50; b = temp + b) {
              print a;
              temp = a;
              a = b;
            }
        """
        self.assertEqual(["0", "1", "1", "2", "3", "5", "8", "13", "21", "34"], run(source)[0])

    def test_runtime_error_aborts_run(self):
        output, errors = run("print 1; print -nil; print 2;")
        self.assertEqual(["1"], output)
        self.assertEqual(1, len(errors))
        self.assertEqual(1, errors[0].token.line)

    def test_undefined_variables(self):
        should_fail = {
            "print missing;": "Undefined variable 'missing'.",
            "missing = 1;": "Undefined variable 'missing'.",
        }
        for case, message in should_fail.items():
            self.assertEqual([message], [error.message for error in run(case)[1]], case)


class FunctionTestCase(unittest.TestCase):

    def test_calls(self):
        cases = {
            "fun add(a, b) { return a + b; } print add(1, 2);": ["3"],
            "fun f() {} print f();": ["nil"],
            "fun f() { return; } print f();": ["nil"],
            "fun f() { while (true) { return \"done\"; } } print f();": ["done"],
            "fun fib(n) { if (n < 2) return n; return fib(n - 1) + fib(n - 2); } print fib(15);": ["610"],
            "fun f() {} print f;": ["<fn f>"],
            "print clock;": ["<native fn>"],
            "print clock() > 0;": ["true"],
        }
        for case, expected in cases.items():
            self.assertEqual((expected, []), run(case), case)

    def test_arguments_evaluated_in_order(self):
        source = """
            fun show(x) { print x; return x; }
            fun three(a, b, c) {}
            three(show(1), show(2), show(3));
        """
        self.assertEqual((["1", "2", "3"], []), run(source))

    def test_call_errors(self):
        should_fail = {
            '"text"();': "Can only call functions and classes.",
            "nil();": "Can only call functions and classes.",
            "fun f(a) {} f();": "Expected 1 arguments but got 0.",
            "fun f() {} f(1, 2);": "Expected 0 arguments but got 2.",
            "clock(1);": "Expected 0 arguments but got 1.",
            "class P { init(a, b) {} } P(1);": "Expected 2 arguments but got 1.",
        }
        for case, message in should_fail.items():
            self.assertEqual([message], [error.message for error in run(case)[1]], case)

    def test_closures_capture_by_reference(self):
        source = """
            fun makeCounter() {
              var i = 0;
              fun count() {
                i = i + 1;
                print i;
              }
              return count;
            }
            var counter = makeCounter();
            counter();
            counter();
        """
        self.assertEqual((["1", "2"], []), run(source))

    def test_independent_closures(self):
        source = """
            fun makeCounter() { var i = 0; fun count() { i = i + 1; return i; } return count; }
            var a = makeCounter();
            var b = makeCounter();
            a(); a();
            print a();
            print b();
        """
        self.assertEqual((["3", "1"], []), run(source))

    def test_static_scoping(self):
        source = """
            var a = "global";
            {
              fun showA() {
                print a;
              }

              showA();
              var a = "block";
              showA();
            }
        """
        self.assertEqual((["global", "global"], []), run(source))


class ClassTestCase(unittest.TestCase):

    def test_instances(self):
        source = """
            class Foo {}
            var a = Foo();
            var b = Foo();
            print a;
            print Foo;
            print a == b;
            print a == a;
        """
        self.assertEqual((["Foo instance", "Foo", "false", "true"], []), run(source))

    def test_fields_and_methods(self):
        source = """
            class Point {
              init(x) { this.x = x; }
              getX() { return this.x; }
            }
            var p = Point(5);
            print p.getX();
            p.x = 7;
            print p.x;
            var method = p.getX;
            print method();
            p.extra = "new field";
            print p.extra;
        """
        self.assertEqual((["5", "7", "7", "new field"], []), run(source))

    def test_initializer_returns_this(self):
        source = """
            class Foo {
              init() {
                print this;
              }
            }
            var f = Foo();
            print f.init();
        """
        self.assertEqual((["Foo instance"] * 3, []), run(source))

        source = "class A { init() { this.v = 1; return; this.v = 2; } } print A().v;"
        self.assertEqual((["1"], []), run(source))

    def test_class_refers_to_itself(self):
        source = """
            class Node {
              make() { return Node(); }
            }
            print Node().make();
        """
        self.assertEqual((["Node instance"], []), run(source))

    def test_inheritance(self):
        source = """
            class Doughnut {
              cook() {
                print "Fry until golden brown.";
              }
            }
            class BostonCream < Doughnut {
              cook() {
                super.cook();
                print "Pipe full of custard and coat with chocolate.";
              }
            }
            BostonCream().cook();
        """
        expected = ["Fry until golden brown.", "Pipe full of custard and coat with chocolate."]
        self.assertEqual((expected, []), run(source))

        source = 'class A { greet() { print "hi"; } } class B < A {} B().greet();'
        self.assertEqual((["hi"], []), run(source))

    def test_super_is_lexical(self):
        source = """
            class A {
              method() { print "A method"; }
            }
            class B < A {
              method() { print "B method"; }
              test() { super.method(); }
            }
            class C < B {}
            C().test();
        """
        self.assertEqual((["A method"], []), run(source))

    def test_inherited_initializer(self):
        source = """
            class Base { init(name) { this.name = name; } }
            class Derived < Base {
              init(name) { super.init(name + "!"); }
            }
            print Derived("hey").name;
        """
        self.assertEqual((["hey!"], []), run(source))

    def test_property_errors(self):
        should_fail = {
            "var x = 1; x.y;": "Only instances have properties.",
            "var x = 1; x.y = 2;": "Only instances have fields.",
            "class A {} A().missing;": "Undefined property 'missing'.",
            "class A {} class B < A { f() { return super.missing; } } B().f();": "Undefined property 'missing'.",
            "var NotAClass = 1; class B < NotAClass {}": "Superclass must be a class.",
        }
        for case, message in should_fail.items():
            self.assertEqual([message], [error.message for error in run(case)[1]], case)


if __name__ == '__main__':
    unittest.main()
