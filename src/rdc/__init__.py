'''
dc, the arbitrary precision reverse-Polish calculator.

Reads dc programs as raw bytes, parses them in a single pass into an
instruction list, and runs that on a stack machine whose cells are either
strings or arbitrary precision decimal numbers.

Layout:

- instructions: the instruction set and its text rendering.
- parser: bytes to instructions.
- number: dc arithmetic and radix conversion on Decimal.
- stack: the string-or-number value stack.
- registers: the 256 register stacks and their arrays.
- vm: the interpreter.
- cli: the dc command.
'''

# TODO: Negative number literals with a leading '_', as other dcs accept.

from .cli import CLI
from .errors import DCError, ParserError
from .instructions import Instruction, Opcode, Program, RegisterOperation
from .parser import Parser, parse
from .stack import DCStack, MemoryCell
from .vm import Interpreter


__all__ = ('CLI', 'DCError', 'ParserError', 'Instruction', 'Opcode',
           'Program', 'RegisterOperation', 'Parser', 'parse', 'DCStack',
           'MemoryCell', 'Interpreter')
