'''
dc parser tests
'''

from pytest import mark, raises

from rdc.errors import ParserError, InvalidCharacter, EOP
from rdc.instructions import Instruction, Opcode, RegisterOperation
from rdc.parser import parse


def num(integer, fraction=None):
    return Instruction.num(integer, fraction)


def op(opcode):
    return Instruction(opcode)


def reg(kind, register):
    return Instruction.register(kind, register)


def cap(opcode, text):
    return Instruction.capture(opcode, text)


@mark.parametrize('source, expected', [
    (b'', []),
    (b'\0', [op(Opcode.NOP)]),
    (b'p', [op(Opcode.PRINT_LN)]),
    (b'n', [op(Opcode.PRINT_POP)]),
    (b'P', [op(Opcode.PRETTY_PRINT)]),
    (b'f', [op(Opcode.PRINT_STACK)]),
    (b'+', [op(Opcode.ADD)]),
    (b'-', [op(Opcode.SUB)]),
    (b'*', [op(Opcode.MUL)]),
    (b'/', [op(Opcode.DIV)]),
    (b'%', [op(Opcode.MOD)]),
    (b'~', [op(Opcode.DIVMOD)]),
    (b'^', [op(Opcode.EXP)]),
    (b'|', [op(Opcode.MODEXP)]),
    (b'v', [op(Opcode.SQRT)]),
    (b'c', [op(Opcode.CLEAR)]),
    (b'd', [op(Opcode.DUP)]),
    (b'r', [op(Opcode.SWAP)]),
    (b'i', [op(Opcode.SET_INPUT_RADIX)]),
    (b'o', [op(Opcode.SET_OUTPUT_RADIX)]),
    (b'k', [op(Opcode.SET_PRECISION)]),
    (b'I', [op(Opcode.GET_INPUT_RADIX)]),
    (b'O', [op(Opcode.GET_OUTPUT_RADIX)]),
    (b'K', [op(Opcode.GET_PRECISION)]),
    (b'a', [op(Opcode.OP_TO_STRING)]),
    (b'x', [op(Opcode.EXECUTE_TOS)]),
    (b'?', [op(Opcode.EXECUTE_INPUT)]),
    (b'q', [op(Opcode.RETURN_CALLER)]),
    (b'Q', [op(Opcode.RETURN_N)]),
    (b'Z', [op(Opcode.DIGITS)]),
    (b'X', [op(Opcode.FRACTION_DIGITS)]),
    (b'z', [op(Opcode.STACK_DEPTH)]),
])
def test_single_byte(source, expected):
    assert parse(source) == expected


@mark.parametrize('source, expected', [
    (b'0', [num(b'0')]),
    (b'0.', [num(b'0', b'')]),
    (b'.0', [num(b'', b'0')]),
    (b'132763', [num(b'132763')]),
    (b'.', [num(b'', b'')]),
    (b'..', [num(b'', b''), num(b'', b'')]),
    (b'. .', [num(b'', b''), num(b'', b'')]),
    (b'1.2.3', [num(b'1', b'2'), num(b'', b'3')]),
    (b'0 0', [num(b'0'), num(b'0')]),
    (b'FF', [num(b'FF')]),
    (b'1A.B', [num(b'1A', b'B')]),
])
def test_numbers(source, expected):
    assert parse(source) == expected


def test_number_ends_on_command():
    assert parse(b'2 3+p') == [num(b'2'), num(b'3'),
                               op(Opcode.ADD), op(Opcode.PRINT_LN)]


def test_number_split_reconstructs_literal():
    for literal in b'12.5', b'.5', b'7.', b'.', b'FACE.0':
        integer, fraction = parse(literal)[0].args
        assert bytes(integer) + b'.' + bytes(fraction) == literal


def test_number_without_dot_has_empty_fraction():
    integer, fraction = parse(b'42')[0].args
    assert integer == b'42'
    assert fraction == b''
    assert not parse(b'42')[0].has_dot()


def test_number_spans_share_the_source():
    source = b'12.5p'
    integer, fraction = parse(source)[0].args
    assert integer.buffer is fraction.buffer
    assert (integer.start, integer.end) == (0, 2)
    assert (fraction.start, fraction.end) == (3, 4)


@mark.parametrize('source, kind', [
    (b'sa', RegisterOperation.STORE),
    (b'la', RegisterOperation.LOAD),
    (b'Sa', RegisterOperation.STORE_STACK),
    (b'La', RegisterOperation.LOAD_STACK),
    (b':a', RegisterOperation.SET_ARRAY),
    (b';a', RegisterOperation.GET_ARRAY),
    (b'>a', RegisterOperation.TOS_GT_EXECUTE),
    (b'<a', RegisterOperation.TOS_LT_EXECUTE),
    (b'=a', RegisterOperation.TOS_EQ_EXECUTE),
    (b'!>a', RegisterOperation.TOS_GE_EXECUTE),
    (b'!<a', RegisterOperation.TOS_LE_EXECUTE),
    (b'!=a', RegisterOperation.TOS_NE_EXECUTE),
])
def test_registers(source, kind):
    assert parse(source) == [reg(kind, b'a')]


def test_register_name_is_any_byte():
    assert parse(b'<>') == [reg(RegisterOperation.TOS_LT_EXECUTE, b'>')]
    assert parse(b's\x01') == [reg(RegisterOperation.STORE, 1)]
    assert parse(b's ') == [reg(RegisterOperation.STORE, b' ')]
    assert parse(b'l\n') == [reg(RegisterOperation.LOAD, b'\n')]


@mark.parametrize('source, expected', [
    (b'[aa]', [cap(Opcode.STR, b'aa')]),
    (b'[aa]3', [cap(Opcode.STR, b'aa'), num(b'3')]),
    (b'[aa\n]', [cap(Opcode.STR, b'aa\n')]),
    (b'[!aa\n]', [cap(Opcode.STR, b'!aa\n')]),
    (b'[[x]', [cap(Opcode.STR, b'[x')]),
    (b'[]', [cap(Opcode.STR, b'')]),
    (b'!a', [cap(Opcode.SYSTEM, b'a')]),
    (b'!a\n10', [cap(Opcode.SYSTEM, b'a'), num(b'10')]),
    (b'!\n', [cap(Opcode.SYSTEM, b'')]),
    (b'10 # foo 20', [num(b'10'), cap(Opcode.COMMENT, b' foo 20')]),
    (b'10 # foo\n20', [num(b'10'), cap(Opcode.COMMENT, b' foo'),
                       num(b'20')]),
    (b'#\n', [cap(Opcode.COMMENT, b'')]),
    (b'#', [cap(Opcode.COMMENT, b'')]),
])
def test_captures(source, expected):
    assert parse(source) == expected


def test_lone_mark_at_end():
    assert parse(b'1!') == [num(b'1')]


def test_invalid_character():
    with raises(ParserError) as info:
        parse(b'\x01')
    error = info.value
    assert error.position == 0
    assert error.kind == InvalidCharacter(1)
    assert error.program == []
    assert error.unparsed == b'\x01'
    assert str(error) == "'\x01' (01) unimplemented"


def test_invalid_character_keeps_partial_program():
    with raises(ParserError) as info:
        parse(b'1 2+ g 3p')
    error = info.value
    assert error.position == 5
    assert error.program == [num(b'1'), num(b'2'), op(Opcode.ADD)]
    assert error.unparsed == b'g 3p'
    assert str(error) == "'g' (0147) unimplemented"


def test_invalid_character_after_number():
    with raises(ParserError) as info:
        parse(b'12e')
    assert info.value.position == 2
    assert info.value.program == [num(b'12')]
    assert info.value.unparsed == b'e'


def test_unterminated_string():
    with raises(ParserError) as info:
        parse(b'[aa')
    error = info.value
    assert error.position == 3
    assert error.kind == EOP('string not completed')
    assert error.unparsed == b'[aa'
    assert str(error) == 'end of program string not completed'


def test_unterminated_empty_string():
    with raises(ParserError, match='string not completed'):
        parse(b'1[')


def test_missing_register():
    with raises(ParserError) as info:
        parse(b'1s')
    assert info.value.kind == EOP('was expecting a register')
    assert info.value.program == [num(b'1')]
    assert info.value.unparsed == b's'


def test_missing_register_after_mark():
    with raises(ParserError, match='was expecting a register'):
        parse(b'!<')


def test_resume_after_invalid_character():
    with raises(ParserError) as info:
        parse(b'1 g 2')
    assert parse(info.value.unparsed[1:]) == [num(b'2')]


def test_accepts_bytearray_and_memoryview():
    assert parse(bytearray(b'1p')) == [num(b'1'), op(Opcode.PRINT_LN)]
    assert parse(memoryview(b'1p')) == [num(b'1'), op(Opcode.PRINT_LN)]


def test_trailing_dot_is_recorded():
    assert parse(b'0.') != [num(b'0')]
    assert parse(b'0') != [num(b'0', b'')]
    assert parse(b'0.').render() == b'0.'
