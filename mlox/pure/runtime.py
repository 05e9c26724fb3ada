"""Runtime value model for the mlox language.

Values map onto Python values as follows:
- nil -> None, booleans -> bool, numbers -> float, strings -> str
- callables -> LoxCallable subclasses (NativeFunction, LoxFunction, LoxClass)
- instances -> LoxInstance

Objects compare by identity; primitives by value, never across types.
"""

from dataclasses import dataclass
import decimal
import math
import time

from mlox.lang.error import LoxRuntimeError
from mlox.pure.environment import Environment


@dataclass(frozen=True)
class ReturnValue:
    """Completion of a statement that executed "return". Statement execution hands it back up to the nearest call;
    normal completion is None.
    """
    value: object = None


class LoxCallable:
    """Anything that can appear as a callee: has a name, an arity and can be called with evaluated arguments."""
    name = None

    @property
    def arity(self):
        raise NotImplementedError()

    def call(self, interpreter, arguments):
        raise NotImplementedError()


class NativeFunction(LoxCallable):
    """Function implemented in Python. func receives the evaluated arguments."""

    def __init__(self, name, arity, func):
        self.name = name
        self._arity = arity
        self.func = func

    @property
    def arity(self):
        return self._arity

    def call(self, interpreter, arguments):
        return self.func(*arguments)

    def __str__(self):
        return "<native fn>"


def clock():
    """Seconds since the epoch as a float."""
    return time.time()


NATIVES = [NativeFunction("clock", 0, clock)]


class LoxFunction(LoxCallable):
    """User function or method: its declaration plus the environment it closes over."""

    def __init__(self, declaration, closure, is_initializer=False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer
        self.name = declaration.name.lexeme

    @property
    def arity(self):
        return len(self.declaration.params)

    def bind(self, instance):
        """Returns this method with "this" bound to instance, in a scope of its own between closure and body."""
        environment = Environment(self.closure)
        environment.define("this", instance)
        return LoxFunction(self.declaration, environment, self.is_initializer)

    def call(self, interpreter, arguments):
        environment = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)

        completion = interpreter.execute_block(self.declaration.body, environment)

        if self.is_initializer:
            return self.closure.get_at(0, "this")  # init always yields the instance, even on an empty return
        if isinstance(completion, ReturnValue):
            return completion.value
        return None

    def __str__(self):
        return f"<fn {self.name}>"


class LoxClass(LoxCallable):
    """A class is called to make instances. find_method walks the superclass chain."""

    def __init__(self, name, superclass, methods):
        self.name = name
        self.superclass = superclass
        self.methods = methods  # name: LoxFunction

    def find_method(self, name):
        klass = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    @property
    def arity(self):
        initializer = self.find_method("init")
        return initializer.arity if initializer is not None else 0

    def call(self, interpreter, arguments):
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self):
        return self.name


class LoxInstance:
    """Instance of a LoxClass. Fields are created on first assignment and shadow methods of the same name."""

    def __init__(self, klass):
        self.klass = klass
        self.fields = {}

    def get(self, name):
        """name is the property's token."""
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)

        raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name, value):
        self.fields[name.lexeme] = value

    def __str__(self):
        return f"{self.klass.name} instance"


def is_truthy(value):
    """Only nil and false are falsy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(left, right):
    """Equality without coercion: values of different types are never equal (so true != 1)."""
    if left is None and right is None:
        return True
    if type(left) is not type(right):
        return False
    if isinstance(left, (bool, float, str)):
        return left == right
    return left is right


def is_number(value):
    return isinstance(value, float)


def divide(left, right):
    """IEEE-754 division: dividing by zero gives an infinity or NaN instead of raising."""
    if right == 0.0:
        if left == 0.0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def stringify(value):
    """Textual form of a value, as printed by "print"."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return format_number(value)
    return str(value)


def format_number(value):
    """Shortest round-trip digits of a finite float, laid out like JavaScript's Number.prototype.toString: plain
    digits for 1e-6 <= |value| < 1e21, otherwise scientific notation with a bare exponent ("1e-7", "1e+21").
    """
    if value == 0.0:
        return "0"  # also -0

    sign, digits, exponent = decimal.Decimal(repr(value)).normalize().as_tuple()
    digits = "".join(map(str, digits))
    point = len(digits) + exponent  # value is 0.<digits> * 10 ** point

    if len(digits) <= point <= 21:
        text = digits + "0" * (point - len(digits))
    elif 0 < point <= 21:
        text = digits[:point] + "." + digits[point:]
    elif -6 < point <= 0:
        text = "0." + "0" * -point + digits
    else:
        mantissa = digits if len(digits) == 1 else digits[0] + "." + digits[1:]
        text = f"{mantissa}e{point - 1:+d}"

    return "-" + text if sign else text
