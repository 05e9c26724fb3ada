"""Error handling for the mlox language. Static problems (lexical, syntax and resolution errors) are collected as
Diagnostics by each stage and never raised past it; runtime problems are LoxRuntimeErrors, which unwind the evaluator
up to Interpreter.interpret. GenericExceptions are reserved for the host (unreadable files and the like): if any other
type of error makes it all the way to ErrorHandler, it is assumed to be an internal issue.
"""

from dataclasses import dataclass
import sys

from termcolor import colored


@dataclass(frozen=True)
class Diagnostic:
    """A static error or warning. where is "" for lexical errors, otherwise " at end" or " at '<lexeme>'"."""
    line: int
    where: str
    message: str
    lexeme: str = ""  # used to highlight the offending part of the source line
    column: int = -1  # offset of lexeme in its line, -1 if unknown

    @classmethod
    def at(cls, token, message):
        """Builds a Diagnostic pointing at token."""
        if token.is_eof:
            return cls(token.line, " at end", message)
        return cls(token.line, f" at '{token.lexeme}'", message, token.lexeme, token.column)

    def __str__(self):
        return f"[line {self.line}] Error{self.where}: {self.message}"


class LoxRuntimeError(Exception):
    """Raised while evaluating; carries the token that triggered it so the error can be reported with a line."""

    def __init__(self, token, message):
        super().__init__(message)
        self.token = token
        self.message = message

    def __str__(self):
        return f"{self.message}\n[line {self.token.line}]"


class GenericException(Exception):
    """Host-level mlox error (e.g. a script that cannot be opened). msg is formatted with exprs, which are bolded."""

    def __init__(self, msg, exprs=None, internal=False):
        if exprs is None:
            exprs = []
        if isinstance(exprs, str):
            exprs = [exprs]

        super().__init__(msg.format(*exprs))
        self.msg = msg.format(*(colored(expr, attrs=["bold"]) for expr in exprs))
        self.internal = internal


class ErrorHandler:
    """Reports mlox errors and warnings. Also a context manager that suppresses Python errors and reports them as mlox
    errors instead.
    """
    ERROR = "red"
    WARNING = "magenta"

    def __init__(self, fatal=True, stream=None):
        self.fatal = fatal
        self.stream = stream  # None means sys.stderr at report time, so that redirection is honoured
        self.sources = {}     # path: source text, for echoing offending lines
        self.had_error = False

    def register_file(self, path, source):
        """Registers source under path so that diagnostics can quote it."""
        self.sources[path] = source

    def _print(self, text):
        print(text, file=self.stream if self.stream is not None else sys.stderr)

    def _quote(self, path, line_num):
        lines = self.sources.get(path, "").split("\n")
        if 0 < line_num <= len(lines):
            return lines[line_num - 1]
        return None

    @staticmethod
    def diagnose(line, lexeme, warning=False, column=-1):
        """Returns line with lexeme highlighted and underlined: at column if it is known, otherwise its first
        occurrence.
        """
        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR

        if not lexeme:
            start = -1
        elif column >= 0 and line.startswith(lexeme, column):
            start = column
        else:
            start = line.find(lexeme)
        if start == -1:
            return "  " + line
        end = start + len(lexeme)

        diagnosis = "  " + line[:start]
        diagnosis += colored(line[start:end], color, attrs=["bold"])
        diagnosis += line[end:] + "\n"

        diagnosis += "  " + " " * start
        diagnosis += colored("^" + "~" * (end - start - 1), color, attrs=["bold"])

        return diagnosis

    def report(self, diagnostic, path="<in>"):
        """Prints a static diagnostic (lexical, syntax or resolution error)."""
        self.had_error = True

        error_msg = colored(f"{path}:{diagnostic.line}: ", attrs=["bold"])
        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + str(diagnostic)
        self._print(error_msg)

        line = self._quote(path, diagnostic.line)
        if line:
            self._print(ErrorHandler.diagnose(line, diagnostic.lexeme, column=diagnostic.column))

    def warn(self, diagnostic, path="<in>"):
        """Prints a warning. Warnings never affect the outcome of a run."""
        error_msg = colored(f"{path}:{diagnostic.line}: ", attrs=["bold"])
        error_msg += colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + diagnostic.message
        self._print(error_msg)

        line = self._quote(path, diagnostic.line)
        if line:
            self._print(ErrorHandler.diagnose(line, diagnostic.lexeme, True, diagnostic.column))

    def runtime(self, error, path="<in>"):
        """Prints a LoxRuntimeError. Called at most once per run, since the error aborts it."""
        self.had_error = True

        error_msg = colored(f"{path}:{error.token.line}: ", attrs=["bold"])
        error_msg += colored("runtime error: ", ErrorHandler.ERROR, attrs=["bold"]) + str(error)
        self._print(error_msg)

        line = self._quote(path, error.token.line)
        if line:
            self._print(ErrorHandler.diagnose(line, error.token.lexeme, column=error.token.column))

    def throw(self, error):
        """Prints a GenericException and exits if fatal."""
        self.had_error = True

        error_msg = ""
        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.msg
        self._print(error_msg)

        if self.fatal:
            sys.exit(1)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt"))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            # unbounded recursion in a script exhausts the host stack; the session cannot recover
            self.fatal = True
            self.throw(GenericException("stack overflow: maximum recursion depth exceeded"))
        elif exc_type is GenericException:
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException("unknown error: '{}: {}'", (exc_type.__name__, str(exc_val)), internal=True))
            do_exit = True

        return not do_exit
