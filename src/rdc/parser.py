'''
dc parser.

A single pass over the source bytes, one explicit state at a time. Each step
looks at exactly one byte and yields the next state, maybe an instruction, and
whether the byte was used up; bytes that end a number are looked at again from
the top level.
'''

from collections import namedtuple
from enum import Enum

from .errors import ParserError, InvalidCharacter, EOP
from .instructions import (Instruction, Opcode, Program, RegisterOperation,
                           SIMPLE, Span)


class Terminator(Enum):
    '''
    Byte that ends a raw capture, and what the capture becomes.
    '''
    STRING = (ord(']'), Opcode.STR)
    SYSTEM = (ord('\n'), Opcode.SYSTEM)
    COMMENT = (ord('\n'), Opcode.COMMENT)

    @property
    def byte(self):
        return self.value[0]

    @property
    def opcode(self):
        return self.value[1]


TopLevel = namedtuple('TopLevel', ())
Num = namedtuple('Num', 'start end dot_position')
PrepareToReadUntil = namedtuple('PrepareToReadUntil', 'terminator')
ReadUntilByte = namedtuple('ReadUntilByte', 'terminator start end')
Register = namedtuple('Register', 'kind')
Mark = namedtuple('Mark', ())

TOP_LEVEL = TopLevel()
MARK = Mark()

DOT = ord('.')
# Hex digits are part of a literal whatever the input radix.
DIGITS = frozenset(b'0123456789ABCDEF')
WHITESPACE = frozenset(b' \n')

OPCODES = {byte[0]: opcode for opcode, byte in SIMPLE.items()}
REGISTER_OPERATIONS = {kind.value[0]: kind
                       for kind
                       in RegisterOperation
                       if len(kind.value) == 1}
# Second byte after '!'.
NEGATED = {
    ord('>'): RegisterOperation.TOS_GE_EXECUTE,
    ord('<'): RegisterOperation.TOS_LE_EXECUTE,
    ord('='): RegisterOperation.TOS_NE_EXECUTE,
}
CAPTURES = {
    ord('['): Terminator.STRING,
    ord('#'): Terminator.COMMENT,
}


class Parser:
    '''
    Parser for one dc source buffer.

    For consistency with the rest of the package, needs to be instantiated;
    the state itself only lives for the duration of :meth:`parse`.
    '''

    def __init__(self, source):
        self.source = bytes(source)

    def parse(self):
        '''
        Return the :class:`Program` for the whole source.

        Raises :class:`ParserError` on the first byte no rule accepts, or when
        input ends in the middle of a string or before a register name.
        '''
        source = self.source
        program = Program(source)
        state = TOP_LEVEL
        # Where the token being built started, for error recovery.
        token_start = 0
        position = 0
        try:
            while position < len(source):
                if state is TOP_LEVEL:
                    token_start = position
                state, instruction, consumed = self.step(state,
                                                         source[position],
                                                         position)
                if instruction is not None:
                    program.append(instruction)
                if consumed:
                    position += 1
            instruction = self.finish(state, position)
        except _Failure as failure:
            raise ParserError(failure.position,
                              failure.kind,
                              program,
                              source[token_start:]) from None
        if instruction is not None:
            program.append(instruction)
        return program

    def step(self, state, byte, position):
        '''
        Transition function: return (state, instruction or None, consumed).
        '''
        return type(self).TRANSITIONS[type(state)](self, state, byte, position)

    def finish(self, state, position):
        '''
        Flush whatever literal is still open at end of input.
        '''
        if isinstance(state, Num):
            return self._number(state)
        elif isinstance(state, Register):
            raise _Failure(position, EOP('was expecting a register'))
        elif isinstance(state, (PrepareToReadUntil, ReadUntilByte)):
            # A calculator cannot guess where an open string was meant to end.
            if state.terminator is Terminator.STRING:
                raise _Failure(position, EOP('string not completed'))
            start = getattr(state, 'start', position)
            end = getattr(state, 'end', position)
            return self._capture(state.terminator, start, end)
        return None

    def _top_level(self, state, byte, position):
        if byte in OPCODES:
            return TOP_LEVEL, Instruction(OPCODES[byte]), True
        elif byte in DIGITS:
            return Num(position, position + 1, None), None, True
        elif byte == DOT:
            return Num(position, position + 1, position), None, True
        elif byte in REGISTER_OPERATIONS:
            return Register(REGISTER_OPERATIONS[byte]), None, True
        elif byte == ord('!'):
            return MARK, None, True
        elif byte in CAPTURES:
            return PrepareToReadUntil(CAPTURES[byte]), None, True
        elif byte in WHITESPACE:
            return TOP_LEVEL, None, True
        raise _Failure(position, InvalidCharacter(byte))

    def _num(self, state, byte, position):
        if byte in DIGITS:
            return state._replace(end=position + 1), None, True
        elif byte == DOT and state.dot_position is None:
            return (state._replace(end=position + 1, dot_position=position),
                    None,
                    True)
        return TOP_LEVEL, self._number(state), False

    def _register(self, state, byte, position):
        return TOP_LEVEL, Instruction.register(state.kind, byte), True

    def _mark(self, state, byte, position):
        if byte in NEGATED:
            return Register(NEGATED[byte]), None, True
        elif byte == Terminator.SYSTEM.byte:
            return (TOP_LEVEL,
                    self._capture(Terminator.SYSTEM, position, position),
                    True)
        return (ReadUntilByte(Terminator.SYSTEM, position, position + 1),
                None,
                True)

    def _prepare_to_read_until(self, state, byte, position):
        terminator = state.terminator
        if byte == terminator.byte:
            return TOP_LEVEL, self._capture(terminator, position, position), True
        return ReadUntilByte(terminator, position, position + 1), None, True

    def _read_until_byte(self, state, byte, position):
        if byte == state.terminator.byte:
            return (TOP_LEVEL,
                    self._capture(state.terminator, state.start, state.end),
                    True)
        return state._replace(end=position + 1), None, True

    def _number(self, state):
        source = self.source
        if state.dot_position is None:
            return Instruction(Opcode.NUM,
                               (Span(source, state.start, state.end),
                                Span(source, state.end, state.end)))
        return Instruction(Opcode.NUM,
                           (Span(source, state.start, state.dot_position),
                            Span(source, state.dot_position + 1, state.end)))

    def _capture(self, terminator, start, end):
        return Instruction(terminator.opcode, (Span(self.source, start, end),))

    TRANSITIONS = {
        TopLevel: _top_level,
        Num: _num,
        Register: _register,
        Mark: _mark,
        PrepareToReadUntil: _prepare_to_read_until,
        ReadUntilByte: _read_until_byte,
    }


class _Failure(Exception):
    '''
    Carries an error out of the state machine, to be completed by parse().
    '''

    def __init__(self, position, kind):
        super().__init__(position, kind)
        self.position = position
        self.kind = kind


def parse(source):
    '''
    Parse dc source bytes into a :class:`Program`.
    '''
    return Parser(source).parse()
