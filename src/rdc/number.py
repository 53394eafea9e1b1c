'''
Arbitrary-precision numbers for dc.

Values are plain :class:`decimal.Decimal` instances with no positive
exponent. All arithmetic goes through (unscaled integer, scale) pairs, so the
``decimal`` context never gets a chance to round anything; results are
truncated toward zero at the scale dc's rules call for.
'''

from decimal import Context, Decimal, MAX_EMAX, MAX_PREC, MIN_EMIN
import math

import regex


# Digits of a literal, on either side of the radix point.
LITERAL_DIGITS = regex.compile(rb'''
                               # Upper case only: lower case letters are
                               # commands.
                               [0-9A-F]*+
                               ''', flags=regex.VERSION1 | regex.VERBOSE)

DIGIT_CHARACTERS = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ'

ZERO = Decimal(0)

# Never rounds: results only ever need as many digits as their operands.
EXACT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)


def scale(n):
    '''
    Number of decimal digits after the radix point.
    '''
    return max(0, -n.as_tuple().exponent)


def unscaled(n, at=None):
    '''
    Return n * 10**at as an integer, truncated. ``at`` defaults to n's scale.
    '''
    if at is None:
        at = scale(n)
    sign, digits, exponent = n.as_tuple()
    # int(Decimal) is exact at any length, unlike int(str).
    value = int(Decimal((0, digits, 0)))
    shift = exponent + at
    if shift >= 0:
        value *= 10 ** shift
    else:
        value //= 10 ** -shift
    return -value if sign else value


def from_unscaled(value, scale):
    '''
    Build the Decimal value / 10**scale, exactly.
    '''
    return Decimal(value).scaleb(-scale, context=EXACT)


def _truncating_division(dividend, divisor):
    quotient = abs(dividend) // abs(divisor)
    return -quotient if (dividend < 0) != (divisor < 0) else quotient


def _rescale(value, from_scale, to_scale):
    if to_scale >= from_scale:
        return value * 10 ** (to_scale - from_scale)
    return _truncating_division(value, 10 ** (from_scale - to_scale))


def _digit(byte):
    return DIGIT_CHARACTERS.index(chr(byte))


def from_digits(integer, fraction, radix):
    '''
    Convert the two halves of a number literal.

    Digits A-F count 10-15 in any radix. A fraction in a radix other than ten
    keeps as many decimal places as it has digits.
    '''
    integer, fraction = bytes(integer), bytes(fraction)
    for part in integer, fraction:
        if LITERAL_DIGITS.fullmatch(part) is None:
            raise ValueError('not a number literal: {!r}'.format(part))
    whole = 0
    for byte in integer:
        whole = whole * radix + _digit(byte)
    if not fraction:
        return Decimal(whole)
    places = len(fraction)
    numerator = 0
    for byte in fraction:
        numerator = numerator * radix + _digit(byte)
    part = numerator * 10 ** places // radix ** places
    return from_unscaled(whole * 10 ** places + part, places)


def is_integer(n):
    return unscaled(n, 0) * 10 ** scale(n) == unscaled(n)


def to_int(n):
    '''
    Integer part of n.
    '''
    return unscaled(n, 0)


def digits(n):
    '''
    Number of significant decimal digits, as dc's Z counts them.
    '''
    value = abs(unscaled(n))
    if value == 0:
        return max(1, scale(n))
    return max(Decimal(value).adjusted() + 1, scale(n))


def add(a, b):
    s = max(scale(a), scale(b))
    return from_unscaled(unscaled(a, s) + unscaled(b, s), s)


def sub(a, b):
    s = max(scale(a), scale(b))
    return from_unscaled(unscaled(a, s) - unscaled(b, s), s)


def mul(a, b, precision=0):
    sa, sb = scale(a), scale(b)
    exact = unscaled(a) * unscaled(b)
    s = min(sa + sb, max(precision, sa, sb))
    return from_unscaled(_rescale(exact, sa + sb, s), s)


def div(a, b, precision=0):
    '''
    a / b with precision digits after the point. Raises ZeroDivisionError.
    '''
    sa, sb = scale(a), scale(b)
    divisor = unscaled(b)
    if divisor == 0:
        raise ZeroDivisionError('divide by zero')
    quotient = _truncating_division(unscaled(a) * 10 ** (sb + precision),
                                    divisor * 10 ** sa)
    return from_unscaled(quotient, precision)


def mod(a, b, precision=0):
    '''
    a - b * (a / b), the quotient being truncated at precision.
    '''
    quotient = div(a, b, precision)
    s = scale(quotient) + scale(b)
    return sub(a, from_unscaled(unscaled(quotient) * unscaled(b), s))


def div_mod(a, b, precision=0):
    '''
    Both results of ``~``: (quotient, remainder).
    '''
    quotient = div(a, b, precision)
    s = scale(quotient) + scale(b)
    return quotient, sub(a, from_unscaled(unscaled(quotient) * unscaled(b), s))


def power(base, exponent, precision=0):
    '''
    base ** exponent; the exponent's fractional part is ignored.
    '''
    exponent = to_int(exponent)
    sb = scale(base)
    if exponent < 0:
        exact = unscaled(base) ** -exponent
        return div(Decimal(1), from_unscaled(exact, sb * -exponent), precision)
    exact = unscaled(base) ** exponent
    s = min(sb * exponent, max(precision, sb))
    return from_unscaled(_rescale(exact, sb * exponent, s), s)


def modexp(base, exponent, modulus):
    '''
    Integer (base ** exponent) % modulus, with the sign of the dividend.
    '''
    base, exponent, modulus = to_int(base), to_int(exponent), to_int(modulus)
    if exponent < 0:
        raise ValueError('negative exponent')
    if modulus == 0:
        raise ZeroDivisionError('divide by zero')
    modulus = abs(modulus)
    result = pow(base, exponent, modulus)
    if base < 0 and exponent % 2 and result:
        result -= modulus
    return Decimal(result)


def sqrt(n, precision=0):
    '''
    Square root truncated at max(precision, scale of n), or None if n < 0.
    '''
    if n < 0:
        return None
    s = max(precision, scale(n))
    return from_unscaled(math.isqrt(unscaled(n, 2 * s)), s)


def radix_digits(n, radix):
    '''
    Split n into (negative, integer digits, fraction digits) in radix.

    The fraction gets as many digits as it takes for one unit in the last
    place to be no bigger than one in the last decimal place.
    '''
    s = scale(n)
    value = unscaled(n)
    negative = value < 0
    whole, fraction = divmod(abs(value), 10 ** s)
    integer_digits = []
    while whole:
        whole, digit = divmod(whole, radix)
        integer_digits.append(digit)
    integer_digits.reverse()
    fraction_digits = []
    unit = 10 ** s
    place = 1
    while place < unit:
        digit, fraction = divmod(fraction * radix, unit)
        fraction_digits.append(digit)
        place *= radix
    return negative, integer_digits, fraction_digits


def _join(negative, integer, fraction):
    text = '-' if negative else ''
    text += integer
    if fraction:
        text += '.' + fraction
    return text


def to_str_radix(n, radix=10):
    '''
    Render n in radix 2-36, dc style: no zero before the point (".5").
    '''
    if not 2 <= radix <= len(DIGIT_CHARACTERS):
        raise ValueError('radix out of range: {}'.format(radix))
    if n == 0:
        return '0'
    if radix == 10:
        # Decimal's own fixed-point formatting.
        text = format(n, 'f')
        integer, _, fraction = text.lstrip('-').partition('.')
        return _join(text.startswith('-'), integer.lstrip('0'), fraction)
    negative, integer, fraction = radix_digits(n, radix)
    return _join(negative,
                 ''.join(DIGIT_CHARACTERS[digit] for digit in integer),
                 ''.join(DIGIT_CHARACTERS[digit] for digit in fraction))


def to_groups(n, radix):
    '''
    Render n in a large radix as dc does: each digit a zero-padded decimal
    number preceded by a space.
    '''
    width = len(str(radix - 1))
    negative, integer, fraction = radix_digits(n, radix)

    def group(digits):
        return ''.join(' {:0{}d}'.format(digit, width) for digit in digits)

    if n == 0:
        return '0'
    return _join(negative, group(integer), group(fraction))
