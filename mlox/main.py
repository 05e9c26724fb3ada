"""Runs .lox scripts or the command-line interpreter, inside the error handling context manager. Called from the mlox
console script.

Exit codes follow the usual interpreter conventions: 65 for static (lexical, syntax, resolution) errors, 70 for runtime
errors, 1 for host errors such as an unreadable script, 64 for bad usage.
"""

import argparse
import sys

from mlox.lang.error import ErrorHandler
from mlox.lang.session import RunStatus, Session
from mlox.lang.shell import Shell


EXIT_CODES = {
    RunStatus.CLEAN: 0,
    RunStatus.STATIC_ERROR: 65,
    RunStatus.RUNTIME_ERROR: 70,
}

EX_USAGE = 64

RECURSION_LIMIT = 10000  # every mlox call costs a handful of Python frames


class ArgumentParser(argparse.ArgumentParser):
    """Reports bad usage with the conventional EX_USAGE exit code instead of argparse's 2."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EX_USAGE, f"{self.prog}: error: {message}\n")


def main(argv=None):
    """Runs mlox interpreter. Called from mlox executable script."""
    with ErrorHandler() as error_handler:
        parser = ArgumentParser(prog="mlox")
        parser.add_argument("script", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
        parser.add_argument("--warnings", action="store_true", help="warn about local variables that are never used")
        args = parser.parse_args(argv)

        sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))

        if args.script is not None:
            sess = Session(error_handler, args.script, warnings=args.warnings)
            status = sess.run_file()
            if status is not RunStatus.CLEAN:
                sys.exit(EXIT_CODES[status])

        else:
            Shell(Session(error_handler, Session.SH_FILE, warnings=args.warnings)).cmdloop()


if __name__ == "__main__":
    main()
