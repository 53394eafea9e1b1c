from collections import namedtuple
from functools import wraps


class DCError(Exception):
    '''
    Root of everything dc reports to the user.

    Subclasses carry their default message as a class attribute, so most of
    them can be raised bare.
    '''
    message = 'error'

    def __init__(self, message=None, *args):
        super().__init__(message or type(self).message, *args)

    def __str__(self):
        return self.args[0]


class InvalidCharacter(namedtuple('InvalidCharacter', 'byte')):
    __slots__ = ()

    def __str__(self):
        return "'{}' (0{:o}) unimplemented".format(chr(self.byte), self.byte)


class EOP(namedtuple('EOP', 'reason')):
    __slots__ = ()

    def __str__(self):
        return 'end of program {}'.format(self.reason)


class ParserError(DCError):
    '''
    First unrecoverable condition met while parsing.

    :param position: Offset of the offending byte, or the length of the source
                     when input ran out.
    :param kind: :class:`InvalidCharacter` or :class:`EOP`.
    :param program: Instructions emitted before the error.
    :param unparsed: Source bytes from the start of the token that failed.
    '''

    def __init__(self, position, kind, program, unparsed):
        super().__init__(str(kind))
        self.position = position
        self.kind = kind
        self.program = program
        self.unparsed = unparsed

    def __repr__(self):
        return '{}({!r}, {!r})'.format(type(self).__name__,
                                       self.position,
                                       self.kind)


class StackError(DCError):
    pass


class StackEmpty(StackError):
    message = 'stack empty'


class NonNumericValue(StackError):
    message = 'non-numeric value'


class NonStringValue(StackError):
    message = 'non-string value'


class NumParseError(StackError):
    message = 'bytes do not represent a number'


class InternalConversionError(StackError):
    message = 'internal conversion error'


class UnsupportedRadix(StackError):
    message = 'unsupported radix'


class VMError(DCError):
    pass


class InvalidInputRadix(VMError):
    message = 'input base must be a number between 2 and 16'


class InvalidOutputRadix(VMError):
    message = 'output base must be a number greater than 1'


class InvalidPrecision(VMError):
    message = 'scale must be a nonnegative number'


class DivideByZero(VMError):
    message = 'divide by zero'


class NegativeSquareRoot(VMError):
    message = 'square root of negative number'


class NegativeExponent(VMError):
    message = 'negative exponent'


class RegisterEmpty(VMError):
    message = 'stack register is empty'


class InvalidArrayIndex(VMError):
    message = 'array index must be a nonnegative integer'


class InvalidQuitLevel(VMError):
    message = 'Q command requires a number >= 1'


def wrap_user_errors(error, *exceptions):
    '''
    Decorator that converts the given foreign exceptions to a dc error.

    Passes through DCErrors.
    '''
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except DCError:
                raise
            except exceptions as e:
                raise error() from e
        return wrapper
    return decorator
