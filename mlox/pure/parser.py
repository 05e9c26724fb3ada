"""Recursive-descent parser for the mlox language.

```
program     ::= declaration* EOF
declaration ::= classDecl | funDecl | varDecl | statement
classDecl   ::= "class" IDENTIFIER ( "<" IDENTIFIER )? "{" function* "}"
funDecl     ::= "fun" function
function    ::= IDENTIFIER "(" parameters? ")" block
parameters  ::= IDENTIFIER ( "," IDENTIFIER )*
varDecl     ::= "var" IDENTIFIER ( "=" expression )? ";"

statement   ::= exprStmt | forStmt | ifStmt | printStmt | returnStmt | whileStmt | block
exprStmt    ::= expression ";"
forStmt     ::= "for" "(" ( varDecl | exprStmt | ";" ) expression? ";" expression? ")" statement
ifStmt      ::= "if" "(" expression ")" statement ( "else" statement )?
printStmt   ::= "print" expression ";"
returnStmt  ::= "return" expression? ";"
whileStmt   ::= "while" "(" expression ")" statement
block       ::= "{" declaration* "}"

expression  ::= assignment
assignment  ::= ( call "." )? IDENTIFIER "=" assignment | logic_or
logic_or    ::= logic_and ( "or" logic_and )*
logic_and   ::= equality ( "and" equality )*
equality    ::= comparison ( ( "!=" | "==" ) comparison )*
comparison  ::= term ( ( ">" | ">=" | "<" | "<=" ) term )*
term        ::= factor ( ( "-" | "+" ) factor )*
factor      ::= unary ( ( "/" | "*" ) unary )*
unary       ::= ( "!" | "-" ) unary | call
call        ::= primary ( "(" arguments? ")" | "." IDENTIFIER )*
arguments   ::= expression ( "," expression )*
primary     ::= "true" | "false" | "nil" | "this" | NUMBER | STRING | IDENTIFIER | "(" expression ")"
              | "super" "." IDENTIFIER
```

"for" has no node of its own: it is desugared into Block/While.
"""

import itertools

from mlox.lang.error import Diagnostic
from mlox.pure.lexical import TokenType
from mlox.pure.syntax import (Assign, Binary, Block, Call, Class, Expression, Function, Get, Grouping, If, Literal,
                              Logical, Print, Return, Set, Super, This, Unary, Var, Variable, While)


class ParseError(Exception):
    """Unwinds the parser to the enclosing declaration, which then synchronizes. Never leaves Parser.parse."""


class Parser:
    """Turns a token list into a statement list. Malformed declarations are reported, skipped, and parsing goes on,
    so the statement list may be partial but is always well formed.
    """
    MAX_ARGUMENTS = 255

    # tokens that start a declaration or statement: safe places to resume after an error
    SYNCHRONIZE_TOKEN_TYPES = (
        TokenType.CLASS,
        TokenType.FUN,
        TokenType.VAR,
        TokenType.FOR,
        TokenType.IF,
        TokenType.WHILE,
        TokenType.PRINT,
        TokenType.RETURN,
    )

    def __init__(self, tokens, ids=None):
        """ids yields node ids for reference-bearing expressions. A session passes one shared counter to every
        parser so that ids stay unique across REPL lines.
        """
        self.tokens = tokens
        self.ids = ids if ids is not None else itertools.count()
        self.current = 0
        self.errors = []

    peek = property(lambda self: self.tokens[self.current], doc="the token about to be consumed")
    previous = property(lambda self: self.tokens[self.current - 1], doc="the last consumed token")
    is_at_end = property(lambda self: self.peek.kind is TokenType.EOF)

    def parse(self):
        """program ::= declaration* EOF"""
        statements = []
        while not self.is_at_end:
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)
        return statements

    # ---------------------------------------------------------------------------------------------------- helpers

    def advance(self):
        if not self.is_at_end:
            self.current += 1
        return self.previous

    def check(self, kind):
        if self.is_at_end:
            return False
        return self.peek.kind is kind

    def match(self, *kinds):
        """Consumes the next token if it is any of kinds."""
        for kind in kinds:
            if self.check(kind):
                self.advance()
                return True
        return False

    def consume(self, kind, message):
        if self.check(kind):
            return self.advance()
        raise self.error(self.peek, message)

    def error(self, token, message):
        """Records an error at token and returns (does not raise) a ParseError for callers that need to unwind."""
        self.errors.append(Diagnostic.at(token, message))
        return ParseError(message)

    def synchronize(self):
        """Discards tokens until a statement boundary: just past a ";" or right before a declaration keyword."""
        self.advance()
        while not self.is_at_end:
            if self.previous.kind is TokenType.SEMICOLON:
                return
            if self.peek.kind in Parser.SYNCHRONIZE_TOKEN_TYPES:
                return
            self.advance()

    # ------------------------------------------------------------------------------------------------ declarations

    def declaration(self):
        try:
            if self.match(TokenType.CLASS):
                return self.class_declaration()
            if self.match(TokenType.FUN):
                return self.function("function")
            if self.match(TokenType.VAR):
                return self.var_declaration()
            return self.statement()
        except ParseError:
            self.synchronize()
            return None

    def class_declaration(self):
        name = self.consume(TokenType.IDENTIFIER, "Expect class name.")

        superclass = None
        if self.match(TokenType.LESS):
            self.consume(TokenType.IDENTIFIER, "Expect superclass name.")
            superclass = Variable(self.previous, next(self.ids))

        self.consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")

        methods = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end:
            methods.append(self.function("method"))

        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")
        return Class(name, superclass, methods)

    def function(self, kind):
        """kind is "function" or "method", only used in error messages."""
        name = self.consume(TokenType.IDENTIFIER, f"Expect {kind} name.")
        self.consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")

        params = []
        if not self.check(TokenType.RIGHT_PAREN):
            params.append(self.consume(TokenType.IDENTIFIER, "Expect parameter name."))
            while self.match(TokenType.COMMA):
                if len(params) >= Parser.MAX_ARGUMENTS:
                    self.error(self.peek, f"Can't have more than {Parser.MAX_ARGUMENTS} parameters.")
                params.append(self.consume(TokenType.IDENTIFIER, "Expect parameter name."))
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")

        self.consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        return Function(name, params, self.block())

    def var_declaration(self):
        name = self.consume(TokenType.IDENTIFIER, "Expect variable name.")
        initializer = self.expression() if self.match(TokenType.EQUAL) else None
        self.consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return Var(name, initializer)

    # -------------------------------------------------------------------------------------------------- statements

    def statement(self):
        if self.match(TokenType.FOR):
            return self.for_statement()
        if self.match(TokenType.IF):
            return self.if_statement()
        if self.match(TokenType.PRINT):
            return self.print_statement()
        if self.match(TokenType.RETURN):
            return self.return_statement()
        if self.match(TokenType.WHILE):
            return self.while_statement()
        if self.match(TokenType.LEFT_BRACE):
            return Block(self.block())
        return self.expression_statement()

    def for_statement(self):
        """Desugars into { initializer; while (condition) { body; increment; } }."""
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self.match(TokenType.SEMICOLON):
            initializer = None
        elif self.match(TokenType.VAR):
            initializer = self.var_declaration()
        else:
            initializer = self.expression_statement()

        condition = None
        if not self.check(TokenType.SEMICOLON):
            condition = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self.check(TokenType.RIGHT_PAREN):
            increment = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self.statement()

        if increment is not None:
            body = Block([body, Expression(increment)])
        if condition is None:
            condition = Literal(True)
        body = While(condition, body)
        if initializer is not None:
            body = Block([initializer, body])

        return body

    def if_statement(self):
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self.statement()
        else_branch = self.statement() if self.match(TokenType.ELSE) else None
        return If(condition, then_branch, else_branch)

    def print_statement(self):
        value = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return Print(value)

    def return_statement(self):
        keyword = self.previous
        value = None
        if not self.check(TokenType.SEMICOLON):
            value = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return Return(keyword, value)

    def while_statement(self):
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        return While(condition, self.statement())

    def block(self):
        """Parses declarations up to the closing brace. The opening brace has already been consumed."""
        statements = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end:
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)

        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def expression_statement(self):
        expr = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return Expression(expr)

    # ------------------------------------------------------------------------------------------------- expressions

    def expression(self):
        return self.assignment()

    def assignment(self):
        """The target is parsed as an ordinary expression first, then reinterpreted if an "=" follows."""
        expr = self.logic_or()

        if self.match(TokenType.EQUAL):
            equals = self.previous
            value = self.assignment()

            if isinstance(expr, Variable):
                return Assign(expr.name, value, next(self.ids))
            if isinstance(expr, Get):
                return Set(expr.object, expr.name, value)

            self.error(equals, "Invalid assignment target.")  # reported, but no need to synchronize

        return expr

    def logic_or(self):
        expr = self.logic_and()
        while self.match(TokenType.OR):
            operator = self.previous
            expr = Logical(expr, operator, self.logic_and())
        return expr

    def logic_and(self):
        expr = self.equality()
        while self.match(TokenType.AND):
            operator = self.previous
            expr = Logical(expr, operator, self.equality())
        return expr

    def _binary(self, operand, *kinds):
        """Left-associative binary level: operand ( kinds operand )*"""
        expr = operand()
        while self.match(*kinds):
            operator = self.previous
            expr = Binary(expr, operator, operand())
        return expr

    def equality(self):
        return self._binary(self.comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def comparison(self):
        return self._binary(self.term, TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS,
                            TokenType.LESS_EQUAL)

    def term(self):
        return self._binary(self.factor, TokenType.MINUS, TokenType.PLUS)

    def factor(self):
        return self._binary(self.unary, TokenType.SLASH, TokenType.STAR)

    def unary(self):
        if self.match(TokenType.BANG, TokenType.MINUS):
            operator = self.previous
            return Unary(operator, self.unary())
        return self.call()

    def call(self):
        expr = self.primary()

        while True:
            if self.match(TokenType.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenType.DOT):
                name = self.consume(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = Get(expr, name)
            else:
                break

        return expr

    def finish_call(self, callee):
        arguments = []
        if not self.check(TokenType.RIGHT_PAREN):
            arguments.append(self.expression())
            while self.match(TokenType.COMMA):
                if len(arguments) >= Parser.MAX_ARGUMENTS:
                    self.error(self.peek, f"Can't have more than {Parser.MAX_ARGUMENTS} arguments.")
                arguments.append(self.expression())

        paren = self.consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, arguments)

    def primary(self):
        if self.match(TokenType.FALSE):
            return Literal(False)
        if self.match(TokenType.TRUE):
            return Literal(True)
        if self.match(TokenType.NIL):
            return Literal(None)

        if self.match(TokenType.NUMBER, TokenType.STRING):
            return Literal(self.previous.literal)

        if self.match(TokenType.SUPER):
            keyword = self.previous
            self.consume(TokenType.DOT, "Expect '.' after 'super'.")
            method = self.consume(TokenType.IDENTIFIER, "Expect superclass method name.")
            return Super(keyword, method, next(self.ids))

        if self.match(TokenType.THIS):
            return This(self.previous, next(self.ids))

        if self.match(TokenType.IDENTIFIER):
            return Variable(self.previous, next(self.ids))

        if self.match(TokenType.LEFT_PAREN):
            expr = self.expression()
            self.consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)

        raise self.error(self.peek, "Expect expression.")


def parse(tokens, ids=None):
    """Returns (statements, errors) for tokens."""
    parser = Parser(tokens, ids)
    return parser.parse(), parser.errors
