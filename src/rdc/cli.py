from os import isatty
import sys
from argparse import ArgumentParser, OPTIONAL
from importlib.metadata import version, PackageNotFoundError
import logging
import traceback

from prompt_toolkit import PromptSession

from .errors import DCError, ParserError, EOP
from .parser import parse
from .vm import Interpreter


class Expression:
    '''
    Program text given on the command line.
    '''

    def __init__(self, text):
        self.text = text

    def read(self):
        return self.text.encode()

    def __str__(self):
        return self.text


class File:
    '''
    Program read from a file.
    '''

    def __init__(self, path):
        self.path = path

    def read(self):
        with open(self.path, 'rb') as fp:
            return fp.read()

    def __str__(self):
        return self.path


class InteractiveInput:
    '''
    Lines typed at a terminal, as bytes.
    '''

    def __init__(self, prompt):
        self.prompt = prompt

    def __iter__(self):
        try:
            session = PromptSession(message=self.prompt,
                                    vi_mode=True,
                                    enable_suspend=True,
                                    enable_open_in_editor=True,
                                    prompt_continuation=' ' * len(self.prompt),
                                    # Certainly not! But be explicit.
                                    erase_when_done=False)
            while True:
                yield session.prompt().encode() + b'\n'
        except EOFError:
            return


def _version():
    try:
        return version('rdc')
    except PackageNotFoundError:
        return 'unknown'


class CLI:
    '''
    Command line interface to dc.
    '''

    DEFAULT_PROMPT = '> '

    def _report(self, error):
        sys.stdout.flush()
        print('rdc:', error, file=sys.stderr)
        if self.args.verbose:
            traceback.print_exception(type(error), error, error.__traceback__)

    def _eval(self, interpreter, program):
        '''
        Run program, reporting any run-time error.

        Returns False once dc was told to quit, None after an error.
        '''
        try:
            return interpreter.eval(program)
        except DCError as e:
            self._report(e)
            return None

    def _execute(self, interpreter, buffer, interactive=False):
        '''
        Parse and run buffer, carrying on past invalid characters.

        Returns the unfinished tail an interactive session should complete
        with the next line, b'' once the buffer is done with, or None to quit.
        '''
        while True:
            try:
                program, error = parse(buffer), None
            except ParserError as e:
                program, error = e.program, e
            running = self._eval(interpreter, program)
            if running is None:
                # A run-time error ends the rest of the source too.
                return b''
            if not running:
                return None
            if error is None:
                return b''
            if isinstance(error.kind, EOP):
                if interactive:
                    return error.unparsed
                self._report(error)
                return b''
            self._report(error)
            # Skip the offending byte and resume.
            buffer = error.unparsed[1:]

    def executor(self):
        '''
        Run every program source in order, on the same interpreter.
        '''
        interpreter = Interpreter(sink=sys.stdout.buffer)
        sources = self.args.sources + [File(path) for path in self.args.files]
        if not sources:
            self._run_stdin(interpreter)
            return
        for source in sources:
            try:
                buffer = source.read()
            except OSError as e:
                print('rdc: {}: {}'.format(source, e.strerror),
                      file=sys.stderr)
                continue
            if self._execute(interpreter, buffer) is None:
                break
        sys.stdout.flush()

    def _run_stdin(self, interpreter):
        if not self._interactive():
            self._execute(interpreter, sys.stdin.buffer.read())
            return
        pending = b''
        for line in InteractiveInput(prompt=self.args.prompt or
                                     self.DEFAULT_PROMPT):
            pending = self._execute(interpreter, pending + line,
                                    interactive=True)
            sys.stdout.flush()
            if pending is None:
                return
        if pending:
            self._execute(interpreter, pending)

    def _interactive(self):
        '''
        True if a prompt was explicitly asked for, or both stdin/out are a tty.
        '''
        if self.args.prompt:
            return True
        try:
            return isatty(sys.stdin.fileno()) and isatty(sys.stdout.fileno())
        except OSError:
            # Not backed by a file descriptor at all.
            return False

    def __init__(self):
        '''
        Create ready to run CLI.

        Does not run or parse command line arguments.
        '''
        self.argument_parser = ArgumentParser(
            prog='rdc',
            description='dc, the arbitrary precision RPN calculator')
        self.argument_parser.add_argument('-V', '--version',
                                          action='version',
                                          version='%(prog)s ' + _version())
        self.argument_parser.add_argument('-v', '--verbose',
                                          action='store_true')
        # Both append to the same list, so they run in the order given.
        self.argument_parser.add_argument('-e', '--expression',
                                          action='append',
                                          type=Expression,
                                          dest='sources')
        self.argument_parser.add_argument('-f', '--file',
                                          action='append',
                                          type=File,
                                          dest='sources')
        self.argument_parser.add_argument('-p', '--prompt',
                                          nargs=OPTIONAL,
                                          const=self.DEFAULT_PROMPT)
        self.argument_parser.add_argument('files', nargs='*')
        self.argument_parser.set_defaults(sources=[])

    def run(self, *, args=None):
        '''
        Run CLI, given these args, or the process's command line arguments.
        '''
        self.args = self.argument_parser.parse_args(args)
        logging.basicConfig(
            level=logging.DEBUG if self.args.verbose else logging.WARNING,
            format='rdc: %(message)s',
            stream=sys.stderr,
            force=True)
        try:
            self.executor()
        except KeyboardInterrupt:
            sys.exit(1)
