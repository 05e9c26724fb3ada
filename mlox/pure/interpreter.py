"""Tree-walking evaluator for the mlox language.

Statements are executed by execute, which returns their completion: None when control falls through, or a ReturnValue
when a "return" ran. Blocks and loops hand a ReturnValue straight back up; LoxFunction.call consumes it, so it never
crosses a call boundary. Expressions are evaluated by evaluate.

Variable lookups use the resolver's side table: a reference with a recorded distance is read exactly that many
enclosing links up from the current environment, anything else is a global.
"""

from mlox.lang.error import LoxRuntimeError
from mlox.pure.environment import Environment
from mlox.pure.lexical import TokenType
from mlox.pure.runtime import (LoxCallable, LoxClass, LoxFunction, LoxInstance, NATIVES, ReturnValue, divide,
                               is_equal, is_number, is_truthy, stringify)
from mlox.pure.syntax import (Assign, Binary, Block, Call, Class, Expression, Function, Get, Grouping, If, Literal,
                              Logical, Print, Return, Set, Super, This, Unary, Var, Variable, While)


class Interpreter:
    """Executes statement lists against a globals environment that persists across calls to interpret."""

    def __init__(self, output=print, report_runtime_error=None):
        """output receives the text of every executed "print"; report_runtime_error receives the LoxRuntimeError
        that aborts a run.
        """
        self.output = output
        self.report_runtime_error = report_runtime_error

        self.globals = Environment()
        self.environment = self.globals
        self.locals = {}  # node_id: scope distance, accumulated from the resolver

        for native in NATIVES:
            self.globals.define(native.name, native)

    def resolve(self, side_table):
        """Adds a resolver side table. Tables of earlier runs are kept: closures from them may still be called."""
        self.locals.update(side_table)

    def interpret(self, statements):
        """Executes statements in order. Returns False if a runtime error aborted the run, True otherwise."""
        try:
            for stmt in statements:
                self.execute(stmt)
        except LoxRuntimeError as error:
            if self.report_runtime_error is not None:
                self.report_runtime_error(error)
            return False
        return True

    # -------------------------------------------------------------------------------------------------- statements

    def execute(self, stmt):  # noqa: C901
        """Executes stmt and returns its completion (None or a ReturnValue)."""
        if isinstance(stmt, Expression):
            self.evaluate(stmt.expression)

        elif isinstance(stmt, Print):
            self.output(stringify(self.evaluate(stmt.expression)))

        elif isinstance(stmt, Var):
            value = self.evaluate(stmt.initializer) if stmt.initializer is not None else None
            self.environment.define(stmt.name.lexeme, value)

        elif isinstance(stmt, Block):
            return self.execute_block(stmt.statements, Environment(self.environment))

        elif isinstance(stmt, If):
            if is_truthy(self.evaluate(stmt.condition)):
                return self.execute(stmt.then_branch)
            if stmt.else_branch is not None:
                return self.execute(stmt.else_branch)

        elif isinstance(stmt, While):
            while is_truthy(self.evaluate(stmt.condition)):
                completion = self.execute(stmt.body)
                if completion is not None:
                    return completion

        elif isinstance(stmt, Function):
            self.environment.define(stmt.name.lexeme, LoxFunction(stmt, self.environment))

        elif isinstance(stmt, Return):
            return ReturnValue(self.evaluate(stmt.value) if stmt.value is not None else None)

        elif isinstance(stmt, Class):
            self.class_declaration(stmt)

        else:
            raise TypeError(f"unknown statement {stmt!r}")

        return None

    def execute_block(self, statements, environment):
        """Runs statements in environment, restoring the current environment however the block is left."""
        previous = self.environment
        try:
            self.environment = environment
            for stmt in statements:
                completion = self.execute(stmt)
                if completion is not None:
                    return completion
        finally:
            self.environment = previous
        return None

    def class_declaration(self, stmt):
        superclass = None
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError(stmt.superclass.name, "Superclass must be a class.")

        # declared first so that methods can refer to the class by name
        self.environment.define(stmt.name.lexeme, None)

        if superclass is not None:
            self.environment = Environment(self.environment)
            self.environment.define("super", superclass)

        methods = {}
        for method in stmt.methods:
            methods[method.name.lexeme] = LoxFunction(method, self.environment, method.name.lexeme == "init")
        klass = LoxClass(stmt.name.lexeme, superclass, methods)

        if superclass is not None:
            self.environment = self.environment.enclosing

        self.environment.assign(stmt.name, klass)

    # ------------------------------------------------------------------------------------------------- expressions

    def evaluate(self, expr):  # noqa: C901
        if isinstance(expr, Literal):
            return expr.value

        if isinstance(expr, Grouping):
            return self.evaluate(expr.expression)

        if isinstance(expr, Unary):
            right = self.evaluate(expr.right)
            if expr.operator.kind is TokenType.MINUS:
                self.check_number_operands(expr.operator, right)
                return -right
            return not is_truthy(right)  # "!"

        if isinstance(expr, Binary):
            return self.binary(expr)

        if isinstance(expr, Logical):
            left = self.evaluate(expr.left)
            if expr.operator.kind is TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(expr.right)

        if isinstance(expr, (Variable, This)):
            return self.look_up_variable(expr.name if isinstance(expr, Variable) else expr.keyword, expr)

        if isinstance(expr, Assign):
            value = self.evaluate(expr.value)
            distance = self.locals.get(expr.node_id)
            if distance is not None:
                self.environment.assign_at(distance, expr.name.lexeme, value)
            else:
                self.globals.assign(expr.name, value)
            return value

        if isinstance(expr, Call):
            return self.call(expr)

        if isinstance(expr, Get):
            obj = self.evaluate(expr.object)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError(expr.name, "Only instances have properties.")
            return obj.get(expr.name)

        if isinstance(expr, Set):
            obj = self.evaluate(expr.object)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError(expr.name, "Only instances have fields.")
            value = self.evaluate(expr.value)
            obj.set(expr.name, value)
            return value

        if isinstance(expr, Super):
            return self.super_method(expr)

        raise TypeError(f"unknown expression {expr!r}")

    def look_up_variable(self, name, expr):
        distance = self.locals.get(expr.node_id)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def binary(self, expr):  # noqa: C901
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        kind = expr.operator.kind

        if kind is TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if kind is TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        if kind is TokenType.PLUS:
            if is_number(left) and is_number(right):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise LoxRuntimeError(expr.operator, "Operands must be two numbers or two strings.")

        self.check_number_operands(expr.operator, left, right)

        if kind is TokenType.MINUS:
            return left - right
        if kind is TokenType.STAR:
            return left * right
        if kind is TokenType.SLASH:
            return divide(left, right)
        if kind is TokenType.GREATER:
            return left > right
        if kind is TokenType.GREATER_EQUAL:
            return left >= right
        if kind is TokenType.LESS:
            return left < right
        if kind is TokenType.LESS_EQUAL:
            return left <= right

        raise TypeError(f"unknown binary operator {expr.operator!r}")

    def call(self, expr):
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")
        if len(arguments) != callee.arity:
            raise LoxRuntimeError(expr.paren, f"Expected {callee.arity} arguments but got {len(arguments)}.")

        return callee.call(self, arguments)

    def super_method(self, expr):
        """super.method: looked up from the superclass of the class the expression appears in, bound to "this"."""
        distance = self.locals[expr.node_id]
        superclass = self.environment.get_at(distance, "super")
        instance = self.environment.get_at(distance - 1, "this")  # "this" is always bound just inside "super"

        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise LoxRuntimeError(expr.method, f"Undefined property '{expr.method.lexeme}'.")
        return method.bind(instance)

    @staticmethod
    def check_number_operands(operator, *operands):
        if all(is_number(operand) for operand in operands):
            return
        if len(operands) == 1:
            raise LoxRuntimeError(operator, "Operand must be a number.")
        raise LoxRuntimeError(operator, "Operands must be numbers.")
