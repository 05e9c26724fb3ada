import unittest

from mlox.pure.lexical import Scanner
from mlox.pure.parser import Parser
from mlox.pure.resolver import Resolver


def resolve(source):
    """Returns (statements, side table, resolver) for source, which must parse cleanly."""
    parser = Parser(Scanner(source).scan())
    statements = parser.parse()
    assert not parser.errors, parser.errors

    resolver = Resolver()
    return statements, resolver.resolve(statements), resolver


def messages(source):
    __, __, resolver = resolve(source)
    return [error.message for error in resolver.errors]


class SideTableTestCase(unittest.TestCase):

    def test_globals_are_not_resolved(self):
        __, table, resolver = resolve("var a = 1; print a; a = 2; fun f() { return a; }")
        self.assertEqual({}, table)
        self.assertEqual([], resolver.errors)

    def test_block_distances(self):
        statements, table, __ = resolve("{ var a = 1; { print a; } print a; }")
        inner_print = statements[0].statements[1].statements[0]
        outer_print = statements[0].statements[2]

        self.assertEqual(1, table[inner_print.expression.node_id])
        self.assertEqual(0, table[outer_print.expression.node_id])

    def test_assign_is_resolved(self):
        statements, table, __ = resolve("{ var a; { { a = 1; } } }")
        assign = statements[0].statements[1].statements[0].statements[0].expression
        self.assertEqual(2, table[assign.node_id])

    def test_parameters_and_closures(self):
        statements, table, __ = resolve("fun outer(x) { fun inner() { return x; } return inner; }")
        inner = statements[0].body[0]
        returned = statements[0].body[1].value

        self.assertEqual(1, table[inner.body[0].value.node_id])  # x, one scope up from inner's body
        self.assertEqual(0, table[returned.node_id])             # inner, declared in outer's body

    def test_declaration_point_decides(self):
        # the first "a" is read before the local one is declared, so it stays global
        statements, table, __ = resolve("{ fun show() { print a; } var a = 1; print a; }")
        show = statements[0].statements[0]
        self.assertNotIn(show.body[0].expression.node_id, table)
        self.assertEqual(0, table[statements[0].statements[2].expression.node_id])

    def test_this_and_super(self):
        statements, table, __ = resolve("class A { f() { return this; } } class B < A { g() { return super.f; } }")
        this = statements[0].methods[0].body[0].value
        sup = statements[1].methods[0].body[0].value

        self.assertEqual(1, table[this.node_id])
        self.assertEqual(2, table[sup.node_id])


class ErrorTestCase(unittest.TestCase):

    def test_should_fail(self):
        should_fail = {
            "{ var a = a; }": "Can't read local variable in its own initializer.",
            "{ var a; var a; }": "Already a variable with this name in this scope.",
            "fun f(a, a) {}": "Already a variable with this name in this scope.",
            "return 1;": "Can't return from top-level code.",
            "class A { init() { return 1; } }": "Can't return a value from an initializer.",
            "print this;": "Can't use 'this' outside of a class.",
            "fun f() { return this; }": "Can't use 'this' outside of a class.",
            "class A < A {}": "A class can't inherit from itself.",
            "super.f();": "Can't use 'super' outside of a class.",
            "class A { f() { super.f(); } }": "Can't use 'super' in a class with no superclass.",
        }
        for case, message in should_fail.items():
            self.assertEqual([message], messages(case), case)

    def test_should_pass(self):
        should_pass = [
            "var a = a;",                                 # globals are late bound
            "var a; var a;",                              # redeclaring a global is allowed
            "{ var a; { var a; } }",                      # shadowing
            "class A { init() { return; } }",             # empty return from an initializer
            "fun f() { return 1; }",
            "fun f() { fun g() { return; } }",
            "class A { f() { fun g() { return this; } } }",
            "class A {} class B < A { f() { return super.f; } }",
        ]
        for case in should_pass:
            self.assertEqual([], messages(case), case)

    def test_errors_are_collected(self):
        self.assertEqual(2, len(messages("return 1; print this;")))

        __, __, resolver = resolve("{\nvar a;\nvar a;\n}")
        error = resolver.errors[0]
        self.assertEqual((3, " at 'a'"), (error.line, error.where))


class WarningTestCase(unittest.TestCase):

    def test_unused_locals(self):
        cases = {
            "{ var unused = 1; }": ["Local variable 'unused' is never used."],
            "{ var a = 1; print a; }": [],
            "{ var a; a = 1; }": [],
            "fun f(unused) {}": [],
            "var global = 1;": [],
            "class A { f() { return this; } }": [],
        }
        for case, expected in cases.items():
            __, __, resolver = resolve(case)
            self.assertEqual(expected, [warning.message for warning in resolver.warnings], case)


if __name__ == '__main__':
    unittest.main()
