'''
dc registers.

There is one register per byte value. Each is itself a stack (``S``/``L``)
whose entries pair a value with an array; plain ``s``/``l`` and the array
commands only see the top entry.
'''

from collections import defaultdict

from .errors import RegisterEmpty
from .stack import MemoryCell


ZERO = MemoryCell.from_number(0)


class Entry:
    __slots__ = ('value', 'array')

    def __init__(self, value=ZERO):
        self.value = value
        self.array = dict()

    def __repr__(self):
        return 'Entry({!r}, {!r})'.format(self.value, self.array)


def describe(register):
    '''
    Name a register the way dc error messages do: 'a' (0141).
    '''
    return "'{}' (0{:o})".format(chr(register), register)


class Registers:
    '''
    All 256 registers, created on first use.
    '''

    def __init__(self):
        self.registers = defaultdict(list)

    def __contains__(self, register):
        return bool(self.registers.get(register))

    def depth(self, register):
        return len(self.registers.get(register, ()))

    def _top(self, register):
        '''
        Top entry, created empty if the register has none.
        '''
        entries = self.registers[register]
        if not entries:
            entries.append(Entry())
        return entries[-1]

    def store(self, register, cell):
        '''
        Replace the value on top of the register, keeping its array.
        '''
        self._top(register).value = cell

    def load(self, register):
        '''
        Value on top of the register; an empty register reads as zero.
        '''
        entries = self.registers.get(register)
        if not entries:
            return ZERO
        return entries[-1].value

    def push(self, register, cell):
        self.registers[register].append(Entry(cell))

    def pop(self, register):
        entries = self.registers.get(register)
        if not entries:
            raise RegisterEmpty('stack register {} is empty'.format(
                describe(register)))
        return entries.pop().value

    def set_array(self, register, index, cell):
        self._top(register).array[index] = cell

    def get_array(self, register, index):
        entries = self.registers.get(register)
        if not entries:
            return ZERO
        return entries[-1].array.get(index, ZERO)
