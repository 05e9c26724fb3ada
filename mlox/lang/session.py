"""Session control for the mlox language: runs source text through the whole pipeline (scan, parse, resolve,
interpret), either once for a script or line by line in command-line mode.

A session owns one Interpreter, and therefore one globals environment, for its whole lifetime: in command-line mode
every line is scanned, parsed, resolved and interpreted on its own, but sees the globals left behind by earlier lines.
"""

import enum
import itertools

from mlox.lang.error import GenericException
from mlox.pure.interpreter import Interpreter
from mlox.pure.lexical import Scanner
from mlox.pure.parser import Parser
from mlox.pure.resolver import Resolver


class RunStatus(enum.Enum):
    """Outcome of Session.run. Mapping it to an exit code is up to the caller."""
    CLEAN = enum.auto()
    STATIC_ERROR = enum.auto()   # lexical, syntax or resolution error: nothing was executed
    RUNTIME_ERROR = enum.auto()  # execution started and was aborted


class Session:
    """Governs an mlox session: a script file, or the command-line interpreter."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path=SH_FILE, output=print, warnings=False):
        self.error_handler = error_handler
        self.path = path          # used for error messages
        self.warnings = warnings  # whether to print resolver warnings (unused locals)

        self.ids = itertools.count()  # node ids, shared by every parse in this session
        self.interpreter = Interpreter(output, self._report_runtime_error)

        self.source = None
        self.errors = []  # static diagnostics or runtime error of the latest run

        if path == Session.SH_FILE:
            self.error_handler.fatal = False
        else:
            try:
                with open(path, "r") as file:
                    self.source = file.read()
            except OSError:
                raise GenericException("'{}' could not be opened", path)

    @staticmethod
    def preprocess_line(line, prev=""):
        """Joins line to the unfinished prev and returns (line, add_to_prev), where add_to_prev tells whether braces
        or parentheses are still open, i.e. whether the shell should wait for a continuation line. Brackets inside
        strings and comments do not count.
        """
        if prev:
            line = prev + "\n" + line

        balance = 0
        in_string = False
        idx = 0
        while idx < len(line):
            char = line[idx]
            if in_string:
                in_string = char != '"'
            elif char == '"':
                in_string = True
            elif line.startswith("//", idx):
                newline = line.find("\n", idx)
                if newline == -1:
                    break
                idx = newline
            elif char in "({":
                balance += 1
            elif char in ")}":
                balance -= 1
            idx += 1

        return line, balance > 0 or in_string

    def run(self, source):
        """Runs source and returns a RunStatus. Errors are reported through the error handler, never raised."""
        self.error_handler.register_file(self.path, source)
        self.errors = []

        scanner = Scanner(source)
        tokens = scanner.scan()

        parser = Parser(tokens, self.ids)
        statements = parser.parse()

        self.errors = scanner.errors + parser.errors
        if self.errors:
            # a lexical error alone does not stop parsing: report everything found so far in source order
            for diagnostic in sorted(self.errors, key=lambda diagnostic: diagnostic.line):
                self.error_handler.report(diagnostic, self.path)
            return RunStatus.STATIC_ERROR

        resolver = Resolver()
        side_table = resolver.resolve(statements)

        if self.warnings:
            for warning in resolver.warnings:
                self.error_handler.warn(warning, self.path)

        if resolver.errors:
            self.errors = resolver.errors
            for diagnostic in resolver.errors:
                self.error_handler.report(diagnostic, self.path)
            return RunStatus.STATIC_ERROR

        self.interpreter.resolve(side_table)
        if not self.interpreter.interpret(statements):
            return RunStatus.RUNTIME_ERROR
        return RunStatus.CLEAN

    def run_file(self):
        """Runs the script this session was opened with."""
        if self.source is None:
            raise GenericException("'{}' is not a script", self.path)
        return self.run(self.source)

    def _report_runtime_error(self, error):
        self.errors = [error]
        self.error_handler.runtime(error, self.path)
