"""Runtime scopes. Environments form a tree through their enclosing links: a block's environment encloses the one that
was active when the block began, a call's environment encloses the callee's closure. Closures keep a reference to
their defining environment, so it outlives the call that created it.
"""

from mlox.lang.error import LoxRuntimeError


class Environment:
    """name: value mapping with an optional enclosing Environment."""

    def __init__(self, enclosing=None):
        self.values = {}
        self.enclosing = enclosing

    def define(self, name, value):
        """Binds name in this scope. Redefinition is allowed (it only happens at the top level)."""
        self.values[name] = value

    def get(self, token):
        """Looks token's name up through the enclosing chain."""
        environment = self
        while environment is not None:
            if token.lexeme in environment.values:
                return environment.values[token.lexeme]
            environment = environment.enclosing
        raise LoxRuntimeError(token, f"Undefined variable '{token.lexeme}'.")

    def assign(self, token, value):
        """Rebinds an existing name, searching the enclosing chain. Never creates a binding."""
        environment = self
        while environment is not None:
            if token.lexeme in environment.values:
                environment.values[token.lexeme] = value
                return
            environment = environment.enclosing
        raise LoxRuntimeError(token, f"Undefined variable '{token.lexeme}'.")

    def ancestor(self, distance):
        """Returns the environment distance enclosing links up."""
        environment = self
        for __ in range(distance):
            environment = environment.enclosing
        return environment

    def get_at(self, distance, name):
        """Reads name exactly distance scopes up. The resolver guarantees it was declared there."""
        return self.ancestor(distance).values[name]

    def assign_at(self, distance, name, value):
        self.ancestor(distance).values[name] = value

    def __repr__(self):
        return f"Environment({self.values!r}, enclosing={self.enclosing!r})"
