"""Lexical analysis for the mlox language: turns source text into a flat list of Tokens.

Lexical grammar, loosely:

```
NUMBER      ::= DIGIT+ ( "." DIGIT+ )?           ; no leading or trailing "."
STRING      ::= "\"" <any char except "\"">* "\""  ; may span lines, no escapes
IDENTIFIER  ::= ALPHA ( ALPHA | DIGIT )*         ; ALPHA includes "_"
comment     ::= "//" <any char except newline>*
```

The `pure` directory contains the language pipeline itself (scanner, parser, resolver and evaluator) and does no I/O:
errors are collected as Diagnostics and handed back to the caller.
"""

from dataclasses import dataclass, field
import enum

from mlox.lang.error import Diagnostic


class TokenType(enum.Enum):
    """Token kinds."""
    # single-character tokens
    LEFT_PAREN = enum.auto()
    RIGHT_PAREN = enum.auto()
    LEFT_BRACE = enum.auto()
    RIGHT_BRACE = enum.auto()
    COMMA = enum.auto()
    DOT = enum.auto()
    MINUS = enum.auto()
    PLUS = enum.auto()
    SEMICOLON = enum.auto()
    SLASH = enum.auto()
    STAR = enum.auto()

    # one or two character tokens
    BANG = enum.auto()
    BANG_EQUAL = enum.auto()
    EQUAL = enum.auto()
    EQUAL_EQUAL = enum.auto()
    GREATER = enum.auto()
    GREATER_EQUAL = enum.auto()
    LESS = enum.auto()
    LESS_EQUAL = enum.auto()

    # literals
    IDENTIFIER = enum.auto()
    STRING = enum.auto()
    NUMBER = enum.auto()

    # keywords
    AND = enum.auto()
    CLASS = enum.auto()
    ELSE = enum.auto()
    FALSE = enum.auto()
    FUN = enum.auto()
    FOR = enum.auto()
    IF = enum.auto()
    NIL = enum.auto()
    OR = enum.auto()
    PRINT = enum.auto()
    RETURN = enum.auto()
    SUPER = enum.auto()
    THIS = enum.auto()
    TRUE = enum.auto()
    VAR = enum.auto()
    WHILE = enum.auto()

    EOF = enum.auto()


KEYWORDS = {
    "and": TokenType.AND,
    "class": TokenType.CLASS,
    "else": TokenType.ELSE,
    "false": TokenType.FALSE,
    "for": TokenType.FOR,
    "fun": TokenType.FUN,
    "if": TokenType.IF,
    "nil": TokenType.NIL,
    "or": TokenType.OR,
    "print": TokenType.PRINT,
    "return": TokenType.RETURN,
    "super": TokenType.SUPER,
    "this": TokenType.THIS,
    "true": TokenType.TRUE,
    "var": TokenType.VAR,
    "while": TokenType.WHILE,
}

SINGLE = {
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    "-": TokenType.MINUS,
    "+": TokenType.PLUS,
    ";": TokenType.SEMICOLON,
    "*": TokenType.STAR,
}

# char: (kind if followed by "=", kind otherwise)
DOUBLE = {
    "!": (TokenType.BANG_EQUAL, TokenType.BANG),
    "=": (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
    "<": (TokenType.LESS_EQUAL, TokenType.LESS),
    ">": (TokenType.GREATER_EQUAL, TokenType.GREATER),
}


@dataclass(frozen=True)
class Token:
    """A lexeme together with its kind, literal value (None, float or str) and source line."""
    kind: TokenType
    lexeme: str
    literal: object
    line: int
    column: int = field(default=-1, compare=False)  # offset in its line; -1 for EOF and multi-line strings

    @property
    def is_eof(self):
        return self.kind is TokenType.EOF

    def __str__(self):
        return f"{self.kind.name} {self.lexeme} {self.literal}"


def is_alpha(char):
    return ("a" <= char <= "z") or ("A" <= char <= "Z") or char == "_"


def is_digit(char):
    return "0" <= char <= "9"


class Scanner:
    """Single left-to-right pass over source. Errors do not stop the scan, so one run may surface several."""

    def __init__(self, source):
        self.source = source
        self.tokens = []
        self.errors = []

        self.start = 0    # first char of the lexeme being scanned
        self.current = 0  # char about to be consumed
        self.line = 1
        self.line_start = 0  # index of the first char of the current line

    @property
    def is_at_end(self):
        return self.current >= len(self.source)

    @property
    def peek(self):
        return "\0" if self.is_at_end else self.source[self.current]

    @property
    def peek_next(self):
        if self.current + 1 >= len(self.source):
            return "\0"
        return self.source[self.current + 1]

    def scan(self):
        """Returns the token list, always terminated by an EOF token. Errors are left in self.errors."""
        while not self.is_at_end:
            self.start = self.current
            self.scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line))
        return self.tokens

    def advance(self):
        char = self.source[self.current]
        self.current += 1
        return char

    def match(self, expected):
        """Consumes the next char only if it is expected."""
        if self.peek != expected or self.is_at_end:
            return False
        self.current += 1
        return True

    def newline(self):
        self.line += 1
        self.line_start = self.current

    @property
    def column(self):
        """Offset of the current lexeme in its line, or -1 if the lexeme started on an earlier line."""
        return self.start - self.line_start if self.start >= self.line_start else -1

    def error(self, message, lexeme=""):
        self.errors.append(Diagnostic(self.line, "", message, lexeme, self.column))

    def add_token(self, kind, literal=None):
        self.tokens.append(Token(kind, self.source[self.start:self.current], literal, self.line, self.column))

    def scan_token(self):
        char = self.advance()

        if char in SINGLE:
            self.add_token(SINGLE[char])
        elif char in DOUBLE:
            with_equal, alone = DOUBLE[char]
            self.add_token(with_equal if self.match("=") else alone)
        elif char == "/":
            if self.match("/"):
                while self.peek != "\n" and not self.is_at_end:
                    self.advance()
            else:
                self.add_token(TokenType.SLASH)
        elif char in " \r\t":
            pass
        elif char == "\n":
            self.newline()
        elif char == '"':
            self.string()
        elif is_digit(char):
            self.number()
        elif is_alpha(char):
            self.identifier()
        else:
            self.error("Unexpected character.", char)

    def string(self):
        while self.peek != '"' and not self.is_at_end:
            if self.advance() == "\n":
                self.newline()

        if self.is_at_end:
            self.error("Unterminated string.")
            return

        self.advance()  # closing quote
        self.add_token(TokenType.STRING, self.source[self.start + 1:self.current - 1])

    def number(self):
        while is_digit(self.peek):
            self.advance()

        if self.peek == "." and is_digit(self.peek_next):
            self.advance()
            while is_digit(self.peek):
                self.advance()

        self.add_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def identifier(self):
        while is_alpha(self.peek) or is_digit(self.peek):
            self.advance()

        text = self.source[self.start:self.current]
        self.add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))


def scan(source):
    """Returns (tokens, errors) for source."""
    scanner = Scanner(source)
    return scanner.scan(), scanner.errors
