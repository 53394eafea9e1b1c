from pytest import raises

from rdc.errors import RegisterEmpty
from rdc.registers import Registers, ZERO, describe
from rdc.stack import MemoryCell


A = ord('a')


def num(n):
    return MemoryCell.from_number(n)


def test_empty_register_loads_zero():
    registers = Registers()
    assert registers.load(A) == ZERO
    assert A not in registers
    assert registers.depth(A) == 0


def test_store_replaces_top():
    registers = Registers()
    registers.store(A, num(1))
    registers.store(A, num(2))
    assert registers.load(A) == num(2)
    assert registers.depth(A) == 1


def test_push_pop():
    registers = Registers()
    registers.push(A, num(1))
    registers.push(A, num(2))
    assert registers.depth(A) == 2
    assert registers.pop(A) == num(2)
    assert registers.load(A) == num(1)
    assert registers.pop(A) == num(1)
    assert A not in registers


def test_pop_empty():
    with raises(RegisterEmpty) as info:
        Registers().pop(A)
    assert str(info.value) == "stack register 'a' (0141) is empty"


def test_arrays_belong_to_entries():
    registers = Registers()
    registers.set_array(A, 0, num(10))
    assert registers.get_array(A, 0) == num(10)
    assert registers.get_array(A, 1) == ZERO
    registers.push(A, num(5))
    assert registers.get_array(A, 0) == ZERO
    registers.pop(A)
    assert registers.get_array(A, 0) == num(10)


def test_store_keeps_array():
    registers = Registers()
    registers.set_array(A, 3, num(1))
    registers.store(A, num(2))
    assert registers.get_array(A, 3) == num(1)


def test_registers_are_independent():
    registers = Registers()
    registers.store(A, num(1))
    assert registers.load(ord('b')) == ZERO


def test_describe():
    assert describe(A) == "'a' (0141)"
    assert describe(0) == "'\0' (00)"
