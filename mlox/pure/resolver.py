"""Static scope resolution for the mlox language.

A single pass over the statement list with a stack of scopes (name: whether its initializer has finished). For every
reference (Variable, Assign, This, Super) it records how many scopes separate the reference from the declaration,
keyed by node_id. References found in no scope are left out of the table and treated as globals by the interpreter.
The top level is not a scope: globals are late bound.

Errors are collected in self.errors and never raised; any error means the program must not be interpreted.
"""

import enum

from mlox.lang.error import Diagnostic
from mlox.pure.syntax import (Assign, Binary, Block, Call, Class, Expression, Function, Get, Grouping, If, Literal,
                              Logical, Print, Return, Set, Super, This, Unary, Var, Variable, While)


class FunctionType(enum.Enum):
    NONE = enum.auto()
    FUNCTION = enum.auto()
    INITIALIZER = enum.auto()
    METHOD = enum.auto()


class ClassType(enum.Enum):
    NONE = enum.auto()
    CLASS = enum.auto()
    SUBCLASS = enum.auto()


class Resolver:
    """Produces the side table {node_id: scope distance} for a statement list."""

    def __init__(self):
        self.scopes = []
        self.locals = {}
        self.errors = []
        self.warnings = []

        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

        self._used = []  # parallel to self.scopes: names read at least once, plus their declaring tokens
        self._declared = []

    def resolve(self, statements):
        """Resolves statements and returns the side table."""
        for stmt in statements:
            self.statement(stmt)
        return self.locals

    def error(self, token, message):
        self.errors.append(Diagnostic.at(token, message))

    # ------------------------------------------------------------------------------------------------------ scopes

    def begin_scope(self):
        self.scopes.append({})
        self._used.append(set())
        self._declared.append({})

    def end_scope(self):
        """Pops the innermost scope, recording a warning for every local that was never read."""
        used = self._used.pop()
        for name, token in self._declared.pop().items():
            if name not in used and name not in ("this", "super"):
                self.warnings.append(Diagnostic.at(token, f"Local variable '{name}' is never used."))
        self.scopes.pop()

    def declare(self, name):
        if not self.scopes:
            return

        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False
        self._declared[-1][name.lexeme] = name

    def define(self, name):
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def bind(self, name):
        """Declares and defines a name that is not user-visible as a declaration ("this", "super")."""
        self.scopes[-1][name] = True

    def resolve_local(self, expr, name):
        """Records the distance to the innermost scope declaring name, if any."""
        for distance, scope in enumerate(reversed(self.scopes)):
            if name in scope:
                self.locals[expr.node_id] = distance
                self._used[len(self.scopes) - 1 - distance].add(name)
                return

    def function(self, function, function_type):
        enclosing_function = self.current_function
        self.current_function = function_type

        self.begin_scope()
        for param in function.params:
            self.declare(param)
            self.define(param)
            self._used[-1].add(param.lexeme)  # unused parameters are fine
        for stmt in function.body:
            self.statement(stmt)
        self.end_scope()

        self.current_function = enclosing_function

    # -------------------------------------------------------------------------------------------------- statements

    def statement(self, stmt):  # noqa: C901
        if isinstance(stmt, Block):
            self.begin_scope()
            for inner in stmt.statements:
                self.statement(inner)
            self.end_scope()

        elif isinstance(stmt, Var):
            self.declare(stmt.name)
            if stmt.initializer is not None:
                self.expression(stmt.initializer)
            self.define(stmt.name)

        elif isinstance(stmt, Function):
            self.declare(stmt.name)
            self.define(stmt.name)  # defined eagerly so the function can refer to itself
            self.function(stmt, FunctionType.FUNCTION)

        elif isinstance(stmt, Class):
            self.class_declaration(stmt)

        elif isinstance(stmt, (Expression, Print)):
            self.expression(stmt.expression)

        elif isinstance(stmt, If):
            self.expression(stmt.condition)
            self.statement(stmt.then_branch)
            if stmt.else_branch is not None:
                self.statement(stmt.else_branch)

        elif isinstance(stmt, While):
            self.expression(stmt.condition)
            self.statement(stmt.body)

        elif isinstance(stmt, Return):
            if self.current_function is FunctionType.NONE:
                self.error(stmt.keyword, "Can't return from top-level code.")
            if stmt.value is not None:
                if self.current_function is FunctionType.INITIALIZER:
                    self.error(stmt.keyword, "Can't return a value from an initializer.")
                self.expression(stmt.value)

        else:
            raise TypeError(f"unknown statement {stmt!r}")

    def class_declaration(self, stmt):
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self.declare(stmt.name)
        self.define(stmt.name)
        if self.scopes:
            self._used[-1].add(stmt.name.lexeme)  # classes never warn

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self.error(stmt.superclass.name, "A class can't inherit from itself.")
            self.current_class = ClassType.SUBCLASS
            self.expression(stmt.superclass)

            self.begin_scope()
            self.bind("super")

        self.begin_scope()
        self.bind("this")

        for method in stmt.methods:
            function_type = FunctionType.INITIALIZER if method.name.lexeme == "init" else FunctionType.METHOD
            self.function(method, function_type)

        self.end_scope()
        if stmt.superclass is not None:
            self.end_scope()

        self.current_class = enclosing_class

    # ------------------------------------------------------------------------------------------------- expressions

    def expression(self, expr):  # noqa: C901
        if isinstance(expr, Variable):
            if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
                self.error(expr.name, "Can't read local variable in its own initializer.")
            self.resolve_local(expr, expr.name.lexeme)

        elif isinstance(expr, Assign):
            self.expression(expr.value)
            self.resolve_local(expr, expr.name.lexeme)

        elif isinstance(expr, This):
            if self.current_class is ClassType.NONE:
                self.error(expr.keyword, "Can't use 'this' outside of a class.")
                return
            self.resolve_local(expr, "this")

        elif isinstance(expr, Super):
            if self.current_class is ClassType.NONE:
                self.error(expr.keyword, "Can't use 'super' outside of a class.")
                return
            if self.current_class is not ClassType.SUBCLASS:
                self.error(expr.keyword, "Can't use 'super' in a class with no superclass.")
                return
            self.resolve_local(expr, "super")

        elif isinstance(expr, (Binary, Logical)):
            self.expression(expr.left)
            self.expression(expr.right)

        elif isinstance(expr, Unary):
            self.expression(expr.right)

        elif isinstance(expr, Grouping):
            self.expression(expr.expression)

        elif isinstance(expr, Call):
            self.expression(expr.callee)
            for argument in expr.arguments:
                self.expression(argument)

        elif isinstance(expr, Get):
            self.expression(expr.object)

        elif isinstance(expr, Set):
            self.expression(expr.value)
            self.expression(expr.object)

        elif isinstance(expr, Literal):
            pass

        else:
            raise TypeError(f"unknown expression {expr!r}")


def resolve(statements):
    """Returns (side table, errors, warnings) for statements."""
    resolver = Resolver()
    return resolver.resolve(statements), resolver.errors, resolver.warnings
