'''
dc value stack.

Cells are either strings or numbers, and nothing here ever converts one to the
other. Every operation checks its operands before touching the stack, so it
either completes or leaves the stack exactly as it found it.
'''

from collections import namedtuple
from decimal import Decimal
from enum import Enum

from . import number
from .errors import (StackEmpty, NonNumericValue, NonStringValue,
                     NumParseError, InternalConversionError, UnsupportedRadix,
                     wrap_user_errors)


class Tag(Enum):
    STR = 'str'
    NUM = 'num'


class MemoryCell(namedtuple('MemoryCell', 'tag value')):
    '''
    One stack slot: ``(Tag.STR, bytes)`` or ``(Tag.NUM, Decimal)``.
    '''
    __slots__ = ()

    @classmethod
    def from_number(cls, value):
        return cls(Tag.NUM, Decimal(value))

    @classmethod
    def from_bytes(cls, data):
        if isinstance(data, str):
            data = data.encode()
        return cls(Tag.STR, bytes(data))

    def is_num(self):
        return self.tag is Tag.NUM

    def is_str(self):
        return self.tag is Tag.STR

    @wrap_user_errors(InternalConversionError, ValueError)
    def to_str_radix(self, radix=10):
        '''
        Render a number in radix 2-36. Strings are returned as they are.
        '''
        if self.is_str():
            return self.value
        return number.to_str_radix(self.value, radix).encode('ascii')

    def __repr__(self):
        if self.is_str():
            return 'Str({!r})'.format(self.value)
        return 'Num({})'.format(self.value)


class DCStack:
    '''
    LIFO of :class:`MemoryCell`.
    '''

    def __init__(self, cells=()):
        self.cells = list(cells)

    @classmethod
    def of(cls, *values):
        '''
        Stack holding values, leftmost at the bottom. Bytes and str become
        string cells, anything else a number.
        '''
        return cls(value
                   if isinstance(value, MemoryCell)
                   else MemoryCell.from_bytes(value)
                   if isinstance(value, (bytes, str))
                   else MemoryCell.from_number(value)
                   for value
                   in values)

    def __len__(self):
        return len(self.cells)

    def __iter__(self):
        '''
        Iterate top of the stack first.
        '''
        return reversed(self.cells)

    def __eq__(self, other):
        if isinstance(other, DCStack):
            return self.cells == other.cells
        return NotImplemented

    def __repr__(self):
        return 'DCStack({!r})'.format(self.cells)

    def require(self, n):
        '''
        Raise StackEmpty unless at least n cells are on the stack.
        '''
        if len(self.cells) < n:
            raise StackEmpty

    def require_nums(self, n):
        '''
        Raise unless the top n cells exist and are all numbers.
        '''
        self.require(n)
        if not all(cell.is_num() for cell in self.cells[len(self.cells) - n:]):
            raise NonNumericValue

    def push(self, cell):
        self.cells.append(cell)

    def push_num(self, value):
        self.push(MemoryCell.from_number(value))

    def push_str(self, data):
        self.push(MemoryCell.from_bytes(data))

    @wrap_user_errors(NumParseError, ValueError)
    def push_bytes_as_num(self, integer, fraction, radix=10):
        '''
        Push the number spelt by the two halves of a literal, read in radix.
        '''
        if not 2 <= radix <= 16:
            raise UnsupportedRadix('unsupported radix {}'.format(radix))
        self.push_num(number.from_digits(integer, fraction, radix))

    def pop(self):
        if not self.cells:
            raise StackEmpty
        return self.cells.pop()

    def peek(self):
        if not self.cells:
            raise StackEmpty
        return self.cells[-1]

    def pop_num(self):
        '''
        Pop a number. Leaves a string on top where it is.
        '''
        if not self.peek().is_num():
            raise NonNumericValue
        return self.cells.pop().value

    def pop_str(self):
        '''
        Pop a string. Leaves a number on top where it is.
        '''
        if not self.peek().is_str():
            raise NonStringValue
        return self.cells.pop().value

    def peek_nums(self, n):
        '''
        Values of the top n numbers, deepest first, without popping them.
        '''
        self.require_nums(n)
        return [cell.value for cell in self.cells[len(self.cells) - n:]]

    def replace(self, n, *cells):
        '''
        Swap the top n cells for cells, in one step.
        '''
        self.require(n)
        self.cells[len(self.cells) - n:] = cells

    def binary_apply_and_consume_tos(self, f):
        '''
        Replace the top two numbers with f(second, top).

        Both operands are checked first: on any error, f's included, nothing
        is consumed.
        '''
        second, top = self.peek_nums(2)
        self.replace(2, MemoryCell.from_number(f(second, top)))

    def apply_tos_num(self, f):
        '''
        Replace the top number n with f(n).
        '''
        if not self.peek().is_num():
            raise NonNumericValue
        self.cells[-1] = MemoryCell.from_number(f(self.cells[-1].value))

    def apply_tos_num_opt(self, f):
        '''
        Like apply_tos_num, for an f that returns None when it has no answer.
        '''
        if not self.peek().is_num():
            raise NonNumericValue
        result = f(self.cells[-1].value)
        if result is None:
            raise InternalConversionError
        self.cells[-1] = MemoryCell.from_number(result)

    def clear(self):
        self.cells.clear()

    def dup(self):
        self.push(self.peek())

    def swap(self):
        self.require(2)
        self.cells[-1], self.cells[-2] = self.cells[-2], self.cells[-1]
