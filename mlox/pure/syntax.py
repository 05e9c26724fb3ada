"""Abstract syntax tree for the mlox language. Two closed sets of immutable variants, Expr and Stmt, carrying only
their syntactic children. Operations over the tree (resolving, evaluating) dispatch on the variant with isinstance.

Expressions that refer to a variable binding (Variable, Assign, This, Super) carry a node_id assigned by the parser.
The resolver's side table is keyed by it, so it must be unique for the lifetime of a session. node_id does not take
part in equality, which keeps trees comparable structurally.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from mlox.pure.lexical import Token


class Expr:
    """Superclass of all expression variants."""


class Stmt:
    """Superclass of all statement variants."""


@dataclass(frozen=True)
class Literal(Expr):
    value: object  # None, bool, float or str


@dataclass(frozen=True)
class Grouping(Expr):
    expression: Expr


@dataclass(frozen=True)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Logical(Expr):
    """"and"/"or": only evaluates right if left does not decide the result."""
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Variable(Expr):
    name: Token
    node_id: int = field(default=-1, compare=False)


@dataclass(frozen=True)
class Assign(Expr):
    name: Token
    value: Expr
    node_id: int = field(default=-1, compare=False)


@dataclass(frozen=True)
class Call(Expr):
    callee: Expr
    paren: Token  # closing paren, used to report errors on the call's line
    arguments: List[Expr]


@dataclass(frozen=True)
class Get(Expr):
    object: Expr
    name: Token


@dataclass(frozen=True)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr


@dataclass(frozen=True)
class This(Expr):
    keyword: Token
    node_id: int = field(default=-1, compare=False)


@dataclass(frozen=True)
class Super(Expr):
    keyword: Token
    method: Token
    node_id: int = field(default=-1, compare=False)


@dataclass(frozen=True)
class Expression(Stmt):
    expression: Expr


@dataclass(frozen=True)
class Print(Stmt):
    expression: Expr


@dataclass(frozen=True)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr] = None


@dataclass(frozen=True)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(frozen=True)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None


@dataclass(frozen=True)
class While(Stmt):
    condition: Expr
    body: Stmt


@dataclass(frozen=True)
class Function(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(frozen=True)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr] = None


@dataclass(frozen=True)
class Class(Stmt):
    name: Token
    superclass: Optional[Variable]
    methods: List[Function]
