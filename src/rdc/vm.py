'''
dc interpreter.

One :class:`Interpreter` lives for a whole invocation: its stack, registers,
radixes and precision carry over from one program to the next.
'''

from functools import partial
from os import environ
import logging
import operator
import subprocess
import sys

from . import number
from .errors import (InvalidInputRadix, InvalidOutputRadix, InvalidPrecision,
                     DivideByZero, NegativeSquareRoot, NegativeExponent,
                     InvalidArrayIndex, InvalidQuitLevel, wrap_user_errors)
from .instructions import Opcode, RegisterOperation
from .parser import parse
from .registers import Registers, describe
from .stack import DCStack, MemoryCell


log = logging.getLogger(__name__)

DEFAULT_LINE_LENGTH = 70


def default_line_length():
    '''
    Number output line length from DC_LINE_LENGTH; 0 turns wrapping off.
    '''
    try:
        length = int(environ.get('DC_LINE_LENGTH', DEFAULT_LINE_LENGTH))
    except ValueError:
        return DEFAULT_LINE_LENGTH
    return length if length >= 0 else DEFAULT_LINE_LENGTH


class Frame:
    '''
    A program being run and how far along it is.

    ``levels`` counts the macro levels folded into this frame by tail calls,
    so that ``q`` and ``Q`` still unwind the right number of them.
    '''
    __slots__ = ('program', 'index', 'levels')

    def __init__(self, program, levels=1):
        self.program = program
        self.index = 0
        self.levels = levels

    def exhausted(self):
        return self.index >= len(self.program)


class Interpreter:
    '''
    dc stack machine.

    :param sink: Binary stream output is written to; standard output by
                 default.
    :param source: Binary stream ``?`` reads lines from; standard input by
                   default.
    :param line_length: Wrap printed numbers longer than this.
    '''

    DEFAULT_INPUT_RADIX = 10
    DEFAULT_OUTPUT_RADIX = 10
    DEFAULT_PRECISION = 0

    def __init__(self, sink=None, source=None, line_length=None):
        self.stack = DCStack()
        self.registers = Registers()
        self.input_radix = type(self).DEFAULT_INPUT_RADIX
        self.output_radix = type(self).DEFAULT_OUTPUT_RADIX
        self.precision = type(self).DEFAULT_PRECISION
        self.sink = sys.stdout.buffer if sink is None else sink
        self.source = source
        self.line_length = default_line_length() if line_length is None \
            else line_length
        self.frames = []
        self.quitting = False

    def eval(self, program):
        '''
        Run every instruction of program.

        Returns False once ``q`` asked for the whole invocation to stop.
        Raises the first run-time error, abandoning the rest of the program;
        output written before it stays written.
        '''
        self.frames = [Frame(program)]
        try:
            while self.frames:
                frame = self.frames[-1]
                if frame.exhausted():
                    self.frames.pop()
                    continue
                instruction = frame.program[frame.index]
                frame.index += 1
                log.debug('%r (%d frames)', instruction, len(self.frames))
                self.eval_instruction(instruction)
        finally:
            self.frames = []
        return not self.quitting

    def execute(self, source):
        '''
        Parse and run dc source bytes.
        '''
        return self.eval(parse(source))

    def eval_instruction(self, instruction):
        type(self).DISPATCH[instruction.opcode](self, instruction)

    def depth(self):
        '''
        How many macros deep execution currently is.
        '''
        return sum(frame.levels for frame in self.frames) - 1

    def _enter(self, program):
        '''
        Start running program as a macro, replacing the caller's frame if it
        has nothing left to run.
        '''
        levels = 1
        if self.frames and self.frames[-1].exhausted():
            levels += self.frames.pop().levels
        log.debug('macro %r (%d levels)', program, levels)
        self.frames.append(Frame(program, levels))

    def _leave(self, levels):
        while levels > 0:
            levels -= self.frames.pop().levels

    def _macro(self, cell):
        '''
        Parsed program for a string cell; None for a number.
        '''
        if cell.is_str():
            return parse(cell.value)
        return None

    # Output

    def _wrap(self, text):
        width = self.line_length - 1
        if width < 1 or len(text) <= width:
            return text
        return b'\\\n'.join(text[start:start + width]
                            for start
                            in range(0, len(text), width))

    def format_cell(self, cell):
        '''
        Bytes for a cell: strings as they are, numbers in the output radix.
        '''
        if cell.is_str():
            return cell.value
        if self.output_radix > 16:
            text = number.to_groups(cell.value, self.output_radix)
            return self._wrap(text.encode('ascii'))
        return self._wrap(cell.to_str_radix(self.output_radix))

    def _write_line(self, cell):
        self.sink.write(self.format_cell(cell) + b'\n')

    def nop(self, instruction):
        pass

    def push_num(self, instruction):
        integer, fraction = instruction.args
        self.stack.push_bytes_as_num(integer, fraction, self.input_radix)

    def push_str(self, instruction):
        self.stack.push_str(bytes(instruction.span))

    def print_ln(self, instruction):
        self._write_line(self.stack.peek())

    def print_pop(self, instruction):
        self._write_line(self.stack.peek())
        self.stack.pop()

    def pretty_print(self, instruction):
        '''
        Strings as they are, numbers as a base 256 byte stream; no newline.
        '''
        cell = self.stack.peek()
        if cell.is_str():
            data = cell.value
        else:
            value = abs(number.to_int(cell.value))
            data = value.to_bytes((value.bit_length() + 7) // 8, 'big')
        self.sink.write(data)
        self.stack.pop()

    def print_stack(self, instruction):
        for cell in self.stack:
            self._write_line(cell)

    # Arithmetic

    def add(self, instruction):
        self.stack.binary_apply_and_consume_tos(number.add)

    def sub(self, instruction):
        self.stack.binary_apply_and_consume_tos(number.sub)

    def mul(self, instruction):
        self.stack.binary_apply_and_consume_tos(
            partial(number.mul, precision=self.precision))

    @wrap_user_errors(DivideByZero, ZeroDivisionError)
    def div(self, instruction):
        self.stack.binary_apply_and_consume_tos(
            partial(number.div, precision=self.precision))

    @wrap_user_errors(DivideByZero, ZeroDivisionError)
    def mod(self, instruction):
        self.stack.binary_apply_and_consume_tos(
            partial(number.mod, precision=self.precision))

    @wrap_user_errors(DivideByZero, ZeroDivisionError)
    def div_mod(self, instruction):
        dividend, divisor = self.stack.peek_nums(2)
        quotient, remainder = number.div_mod(dividend, divisor, self.precision)
        self.stack.replace(2,
                           MemoryCell.from_number(quotient),
                           MemoryCell.from_number(remainder))

    def _power(self, base, exponent):
        if not number.is_integer(exponent):
            log.warning('Runtime warning: non-zero scale in exponent')
        return number.power(base, exponent, self.precision)

    @wrap_user_errors(DivideByZero, ZeroDivisionError)
    def exp(self, instruction):
        self.stack.binary_apply_and_consume_tos(self._power)

    @wrap_user_errors(DivideByZero, ZeroDivisionError)
    def modexp(self, instruction):
        base, exponent, modulus = self.stack.peek_nums(3)
        if number.to_int(exponent) < 0:
            raise NegativeExponent
        result = number.modexp(base, exponent, modulus)
        self.stack.replace(3, MemoryCell.from_number(result))

    def sqrt(self, instruction):
        cell = self.stack.peek()
        if cell.is_num() and cell.value < 0:
            raise NegativeSquareRoot
        self.stack.apply_tos_num_opt(
            partial(number.sqrt, precision=self.precision))

    # Stack

    def clear(self, instruction):
        self.stack.clear()

    def dup(self, instruction):
        self.stack.dup()

    def swap(self, instruction):
        self.stack.swap()

    # Parameters

    def _pop_parameter(self, valid, error):
        '''
        Pop an integer accepted by valid; anything else stays put.
        '''
        value, = self.stack.peek_nums(1)
        if not number.is_integer(value) or not valid(number.to_int(value)):
            raise error
        self.stack.pop()
        return number.to_int(value)

    def set_input_radix(self, instruction):
        self.input_radix = self._pop_parameter(lambda radix: 2 <= radix <= 16,
                                               InvalidInputRadix)

    def set_output_radix(self, instruction):
        self.output_radix = self._pop_parameter(lambda radix: radix >= 2,
                                                InvalidOutputRadix)

    def set_precision(self, instruction):
        self.precision = self._pop_parameter(lambda precision: precision >= 0,
                                             InvalidPrecision)

    def get_input_radix(self, instruction):
        self.stack.push_num(self.input_radix)

    def get_output_radix(self, instruction):
        self.stack.push_num(self.output_radix)

    def get_precision(self, instruction):
        self.stack.push_num(self.precision)

    # Strings and macros

    def op_to_string(self, instruction):
        cell = self.stack.peek()
        if cell.is_num():
            data = bytes([number.to_int(cell.value) % 256])
        else:
            data = cell.value[:1]
        self.stack.replace(1, MemoryCell.from_bytes(data))

    def execute_tos(self, instruction):
        '''
        Run a string as a macro. A number is left where it is.
        '''
        program = self._macro(self.stack.peek())
        if program is not None:
            self.stack.pop()
            self._enter(program)

    def execute_input(self, instruction):
        source = sys.stdin.buffer if self.source is None else self.source
        line = source.readline()
        if line:
            self._enter(parse(line))

    def return_caller(self, instruction):
        '''
        Leave this macro and its caller; from the top level or a macro called
        from it, stop altogether.
        '''
        if self.depth() <= 1:
            self.quitting = True
            self.frames.clear()
        else:
            self._leave(2)

    def return_n(self, instruction):
        levels = self._pop_parameter(lambda levels: levels >= 1,
                                     InvalidQuitLevel)
        self._leave(min(levels, self.depth()))

    # Status enquiry

    def digits(self, instruction):
        cell = self.stack.peek()
        if cell.is_num():
            count = number.digits(cell.value)
        else:
            count = len(cell.value)
        self.stack.replace(1, MemoryCell.from_number(count))

    def fraction_digits(self, instruction):
        cell = self.stack.peek()
        count = number.scale(cell.value) if cell.is_num() else 0
        self.stack.replace(1, MemoryCell.from_number(count))

    def stack_depth(self, instruction):
        self.stack.push_num(len(self.stack))

    # Miscellaneous

    def system(self, instruction):
        command = bytes(instruction.span)
        log.debug('running %r', command)
        self.sink.flush()
        with subprocess.Popen(command, shell=True) as child:
            child.wait()

    # Registers

    def register_operation(self, instruction):
        kind, register = instruction.args
        type(self).REGISTER_OPERATIONS[kind](self, register)

    def store(self, register):
        self.registers.store(register, self.stack.pop())

    def load(self, register):
        self.stack.push(self.registers.load(register))

    def store_stack(self, register):
        self.registers.push(register, self.stack.pop())

    def load_stack(self, register):
        self.stack.push(self.registers.pop(register))

    def _array_index(self):
        index, = self.stack.peek_nums(1)
        if not number.is_integer(index) or index < 0:
            raise InvalidArrayIndex
        return number.to_int(index)

    def set_array(self, register):
        '''
        Pop an index, then a value, and store the value at that index.
        '''
        self.stack.require(2)
        index = self._array_index()
        self.stack.pop()
        self.registers.set_array(register, index, self.stack.pop())

    def get_array(self, register):
        index = self._array_index()
        self.stack.replace(1, self.registers.get_array(register, index))

    def _conditional(self, register, predicate):
        '''
        Pop two numbers and run the register if predicate(top, second).
        '''
        second, top = self.stack.peek_nums(2)
        taken = predicate(top, second)
        if taken:
            cell = self.registers.load(register)
            program = self._macro(cell)
            log.debug('register %s taken', describe(register))
        self.stack.replace(2)
        if not taken:
            return
        if program is None:
            self.stack.push(cell)
        else:
            self._enter(program)

    # '!>' runs when the top is not greater, i.e. second >= top; likewise '!<'.
    COMPARISONS = {
        RegisterOperation.TOS_GT_EXECUTE: operator.gt,
        RegisterOperation.TOS_LT_EXECUTE: operator.lt,
        RegisterOperation.TOS_EQ_EXECUTE: operator.eq,
        RegisterOperation.TOS_GE_EXECUTE: operator.le,
        RegisterOperation.TOS_LE_EXECUTE: operator.ge,
        RegisterOperation.TOS_NE_EXECUTE: operator.ne,
    }

    REGISTER_OPERATIONS = {
        RegisterOperation.STORE: store,
        RegisterOperation.LOAD: load,
        RegisterOperation.STORE_STACK: store_stack,
        RegisterOperation.LOAD_STACK: load_stack,
        RegisterOperation.SET_ARRAY: set_array,
        RegisterOperation.GET_ARRAY: get_array,
    }
    for kind, predicate in COMPARISONS.items():
        REGISTER_OPERATIONS[kind] = partial(_conditional, predicate=predicate)
    del kind, predicate

    DISPATCH = {
        Opcode.NOP: nop,
        Opcode.NUM: push_num,
        Opcode.STR: push_str,
        Opcode.PRINT_LN: print_ln,
        Opcode.PRINT_POP: print_pop,
        Opcode.PRETTY_PRINT: pretty_print,
        Opcode.PRINT_STACK: print_stack,
        Opcode.ADD: add,
        Opcode.SUB: sub,
        Opcode.MUL: mul,
        Opcode.DIV: div,
        Opcode.MOD: mod,
        Opcode.DIVMOD: div_mod,
        Opcode.EXP: exp,
        Opcode.MODEXP: modexp,
        Opcode.SQRT: sqrt,
        Opcode.CLEAR: clear,
        Opcode.DUP: dup,
        Opcode.SWAP: swap,
        Opcode.REGISTER: register_operation,
        Opcode.SET_INPUT_RADIX: set_input_radix,
        Opcode.SET_OUTPUT_RADIX: set_output_radix,
        Opcode.SET_PRECISION: set_precision,
        Opcode.GET_INPUT_RADIX: get_input_radix,
        Opcode.GET_OUTPUT_RADIX: get_output_radix,
        Opcode.GET_PRECISION: get_precision,
        Opcode.OP_TO_STRING: op_to_string,
        Opcode.EXECUTE_TOS: execute_tos,
        Opcode.EXECUTE_INPUT: execute_input,
        Opcode.RETURN_CALLER: return_caller,
        Opcode.RETURN_N: return_n,
        Opcode.DIGITS: digits,
        Opcode.FRACTION_DIGITS: fraction_digits,
        Opcode.STACK_DEPTH: stack_depth,
        Opcode.SYSTEM: system,
        Opcode.COMMENT: nop,
    }

    # Dispatch must be total.
    assert set(DISPATCH) == set(Opcode)
    assert set(REGISTER_OPERATIONS) == set(RegisterOperation)
