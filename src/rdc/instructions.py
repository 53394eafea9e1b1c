'''
Instruction set shared by the parser and the interpreter.

Pure data: every instruction knows how to render itself back to the dc text
it was parsed from, and nothing else.
'''

from collections import namedtuple
from enum import Enum


class Opcode(Enum):
    NOP = 'nop'
    NUM = 'num'
    STR = 'str'
    # print
    PRINT_LN = 'print_ln'
    PRINT_POP = 'print_pop'
    PRETTY_PRINT = 'pretty_print'
    PRINT_STACK = 'print_stack'
    # arithmetic
    ADD = 'add'
    SUB = 'sub'
    MUL = 'mul'
    DIV = 'div'
    MOD = 'mod'
    DIVMOD = 'divmod'
    EXP = 'exp'
    MODEXP = 'modexp'
    SQRT = 'sqrt'
    # stack
    CLEAR = 'clear'
    DUP = 'dup'
    SWAP = 'swap'
    # registers
    REGISTER = 'register'
    # parameters
    SET_INPUT_RADIX = 'set_input_radix'
    SET_OUTPUT_RADIX = 'set_output_radix'
    SET_PRECISION = 'set_precision'
    GET_INPUT_RADIX = 'get_input_radix'
    GET_OUTPUT_RADIX = 'get_output_radix'
    GET_PRECISION = 'get_precision'
    # strings
    OP_TO_STRING = 'op_to_string'
    EXECUTE_TOS = 'execute_tos'
    EXECUTE_INPUT = 'execute_input'
    RETURN_CALLER = 'return_caller'
    RETURN_N = 'return_n'
    # status enquiry
    DIGITS = 'digits'
    FRACTION_DIGITS = 'fraction_digits'
    STACK_DEPTH = 'stack_depth'
    # miscellaneous
    SYSTEM = 'system'
    COMMENT = 'comment'


class RegisterOperation(Enum):
    '''
    Operators that take a register name. The value is the operator text.
    '''
    STORE = b's'
    LOAD = b'l'
    STORE_STACK = b'S'
    LOAD_STACK = b'L'
    SET_ARRAY = b':'
    GET_ARRAY = b';'
    TOS_GT_EXECUTE = b'>'
    TOS_LT_EXECUTE = b'<'
    TOS_EQ_EXECUTE = b'='
    TOS_GE_EXECUTE = b'!>'
    TOS_LE_EXECUTE = b'!<'
    TOS_NE_EXECUTE = b'!='


# One byte, one instruction, no operands.
SIMPLE = {
    Opcode.NOP: b'\0',
    Opcode.PRINT_LN: b'p',
    Opcode.PRINT_POP: b'n',
    Opcode.PRETTY_PRINT: b'P',
    Opcode.PRINT_STACK: b'f',
    Opcode.ADD: b'+',
    Opcode.SUB: b'-',
    Opcode.MUL: b'*',
    Opcode.DIV: b'/',
    Opcode.MOD: b'%',
    Opcode.DIVMOD: b'~',
    Opcode.EXP: b'^',
    Opcode.MODEXP: b'|',
    Opcode.SQRT: b'v',
    Opcode.CLEAR: b'c',
    Opcode.DUP: b'd',
    Opcode.SWAP: b'r',
    Opcode.SET_INPUT_RADIX: b'i',
    Opcode.SET_OUTPUT_RADIX: b'o',
    Opcode.SET_PRECISION: b'k',
    Opcode.GET_INPUT_RADIX: b'I',
    Opcode.GET_OUTPUT_RADIX: b'O',
    Opcode.GET_PRECISION: b'K',
    Opcode.OP_TO_STRING: b'a',
    Opcode.EXECUTE_TOS: b'x',
    Opcode.EXECUTE_INPUT: b'?',
    Opcode.RETURN_CALLER: b'q',
    Opcode.RETURN_N: b'Q',
    Opcode.DIGITS: b'Z',
    Opcode.FRACTION_DIGITS: b'X',
    Opcode.STACK_DEPTH: b'z',
}

# (opening, closing) text around a captured span.
DELIMITERS = {
    Opcode.STR: (b'[', b']'),
    Opcode.SYSTEM: (b'!', b'\n'),
    Opcode.COMMENT: (b'#', b'\n'),
}


class Span:
    '''
    Byte range of a shared source buffer.

    Nothing is copied until the span is converted with :func:`bytes`. Spans
    compare equal to other spans and to bytes by content.
    '''
    __slots__ = ('buffer', 'start', 'end')

    def __init__(self, buffer, start=0, end=None):
        self.buffer = buffer
        self.start = start
        self.end = len(buffer) if end is None else end

    def __bytes__(self):
        return bytes(self.buffer[self.start:self.end])

    def __len__(self):
        return self.end - self.start

    def __bool__(self):
        return self.end > self.start

    def __eq__(self, other):
        if isinstance(other, Span):
            other = bytes(other)
        if isinstance(other, (bytes, bytearray)):
            return bytes(self) == other
        return NotImplemented

    def __hash__(self):
        return hash(bytes(self))

    def __repr__(self):
        return 'Span({!r})'.format(bytes(self))


class Instruction(namedtuple('Instruction', 'opcode args')):
    '''
    One dc instruction.

    ``args`` depends on the opcode: ``(integer, fraction)`` spans for
    ``NUM``, ``(span,)`` for ``STR``, ``SYSTEM`` and ``COMMENT``,
    ``(kind, register)`` for ``REGISTER`` and ``()`` otherwise.
    '''
    __slots__ = ()

    def __new__(cls, opcode, args=()):
        return super().__new__(cls, opcode, tuple(args))

    @classmethod
    def num(cls, integer, fraction=None):
        '''
        Number literal from bytes; a dot is assumed iff fraction is given.
        '''
        if fraction is None:
            buffer = bytes(integer)
            return cls(Opcode.NUM, (Span(buffer), Span(buffer, len(buffer))))
        buffer = bytes(integer) + b'.' + bytes(fraction)
        dot = len(integer)
        return cls(Opcode.NUM, (Span(buffer, 0, dot), Span(buffer, dot + 1)))

    @classmethod
    def capture(cls, opcode, text):
        return cls(opcode, (Span(bytes(text)),))

    @classmethod
    def register(cls, kind, register):
        if isinstance(register, (bytes, str)):
            register = ord(register)
        return cls(Opcode.REGISTER, (kind, register))

    @property
    def span(self):
        return self.args[0]

    @property
    def kind(self):
        return self.args[0]

    @property
    def register_id(self):
        return self.args[1]

    def has_dot(self):
        '''
        True if a number literal was written with a radix point.
        '''
        integer, fraction = self.args
        if isinstance(integer, Span) and isinstance(fraction, Span) \
           and integer.buffer is fraction.buffer:
            return fraction.start > integer.end
        return bool(fraction)

    def __eq__(self, other):
        if not isinstance(other, Instruction):
            return NotImplemented
        if not tuple.__eq__(self, other):
            return False
        # '1' and '1.' share their spans' contents but not their text.
        return self.opcode is not Opcode.NUM or \
            self.has_dot() == other.has_dot()

    def __ne__(self, other):
        equal = self.__eq__(other)
        return equal if equal is NotImplemented else not equal

    def __hash__(self):
        return tuple.__hash__(self)

    def render(self):
        '''
        Return the dc text of this instruction.
        '''
        opcode = self.opcode
        if opcode in SIMPLE:
            return SIMPLE[opcode]
        elif opcode is Opcode.NUM:
            integer, fraction = self.args
            if self.has_dot():
                return bytes(integer) + b'.' + bytes(fraction)
            return bytes(integer)
        elif opcode is Opcode.REGISTER:
            kind, register = self.args
            return kind.value + bytes([register])
        opening, closing = DELIMITERS[opcode]
        return opening + bytes(self.span) + closing

    def __repr__(self):
        if not self.args:
            return self.opcode.name
        if self.opcode is Opcode.REGISTER:
            kind, register = self.args
            return 'REGISTER({}, {!r})'.format(kind.name, bytes([register]))
        return '{}({})'.format(self.opcode.name,
                               ', '.join(repr(bytes(arg))
                                         for arg
                                         in self.args))


class Program:
    '''
    Ordered instructions parsed from one source buffer.
    '''

    def __init__(self, source=b'', instructions=()):
        self.source = source
        self.instructions = list(instructions)

    def append(self, instruction):
        self.instructions.append(instruction)

    def __iter__(self):
        return iter(self.instructions)

    def __len__(self):
        return len(self.instructions)

    def __getitem__(self, index):
        return self.instructions[index]

    def __eq__(self, other):
        if isinstance(other, Program):
            other = other.instructions
        if isinstance(other, (list, tuple)):
            return self.instructions == list(other)
        return NotImplemented

    def __repr__(self):
        return 'Program({!r})'.format(self.instructions)

    def render(self):
        '''
        Return dc text that parses back to the same instructions.

        Adjacent numbers get a separating space only where they would
        otherwise merge into one literal.
        '''
        chunks = []
        previous = None
        for instruction in self.instructions:
            if _merges(previous, instruction):
                chunks.append(b' ')
            chunks.append(instruction.render())
            previous = instruction
        return b''.join(chunks)


def _merges(previous, following):
    '''
    True if following, written right after previous, would extend its literal.
    '''
    if previous is None or previous.opcode is not Opcode.NUM \
       or following.opcode is not Opcode.NUM:
        return False
    integer, fraction = following.args
    # A leading dot only joins a literal that has none yet.
    return bool(integer) or not previous.has_dot()
