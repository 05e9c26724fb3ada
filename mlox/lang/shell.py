"""Handles interactive/command-line mode for the mlox interpreter. Uses cmd as backend."""

import cmd


class Shell(cmd.Cmd):
    """mlox interpreter shell."""
    intro = ("mlox interpreter :: Python backend\n"
             "Type 'help' for more information; 'exit', Ctrl-D or an empty line to leave.")
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self._tmp_line = ""

    def default(self, line):
        """Runs an arbitrary line of mlox. Errors are reported and the shell carries on."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            line, add_to_prev = self.sess.preprocess_line(line, self._tmp_line)

            if add_to_prev:
                self._tmp_line = line
                self.prompt = self.secondary_prompt
            else:
                self._tmp_line = ""
                self.prompt = self._tmp_prompt
                self.sess.run(line)

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the mlox interpreter!\n\n"
              "mlox is a small dynamically-typed scripting language with first-class functions, closures and\n"
              "classes with single inheritance. Statements end with ';' and values are shown with 'print'.\n\n"
              "Try it out by typing 'var greeting = \"hello\";' and then 'print greeting + \" world\";'.\n"
              "Globals persist from one line to the next; a line with open braces continues on the next one.")

    def emptyline(self):
        """An empty line leaves the interpreter, unless it belongs to an unfinished (continued) line."""
        if self._tmp_line:
            return self.default("")
        return self.do_exit("")

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
