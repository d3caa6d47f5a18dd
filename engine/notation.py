"""
Engineering notation formatting.

Formats a value to a fixed number of significant digits with an exponent
that is a multiple of 3, rendered either with an SI magnitude prefix
(``"1.041 m"``) or as a plain exponent (``"1.041e-3"``).

Rounding is done on an integer mantissa of exactly ``digits`` digits
(round half up), so the printed digits are the value correctly rounded
to that precision and a carry across a decade (999.96 → 1.000 k) is
normalized before the prefix is chosen.
"""

import math
import sys
from typing import Optional, Tuple

# Exponent group → SI prefix symbol
SI_PREFIXES = {
    -24: 'y',
    -21: 'z',
    -18: 'a',
    -15: 'f',
    -12: 'p',
    -9:  'n',
    -6:  'µ',
    -3:  'm',
    0:   '',
    3:   'k',
    6:   'M',
    9:   'G',
    12:  'T',
    15:  'P',
    18:  'E',
    21:  'Z',
    24:  'Y',
}

DEFAULT_DIGITS = 4

# Significant digits a double can carry
MAX_DIGITS = 17


class DomainError(ValueError):
    """Raised when a value cannot be expressed in engineering notation."""


def si_prefix(exponent: int) -> Optional[str]:
    """Return the SI prefix for an exponent group, or None if there is none."""
    return SI_PREFIXES.get(exponent)


def _scale(value: float, power: int) -> float:
    """Return value · 10^power without overflowing the intermediate power."""
    if abs(power) <= 300:
        return value * 10.0 ** power
    half = power // 2
    return value * 10.0 ** half * 10.0 ** (power - half)


def _round_to_digits(value: float, digits: int) -> Tuple[int, int]:
    """
    Round a positive value to ``digits`` significant figures.

    Returns (mantissa, expof10) where mantissa is an integer with exactly
    ``digits`` digits and value ≈ mantissa · 10^(expof10 - digits + 1).
    """
    expof10 = math.floor(math.log10(value))
    scaled = _scale(value, digits - 1 - expof10)

    # log10 can land one off right next to a power of ten
    if scaled >= 10 ** digits:
        expof10 += 1
        scaled = _scale(value, digits - 1 - expof10)
    elif scaled < 10 ** (digits - 1):
        expof10 -= 1
        scaled = _scale(value, digits - 1 - expof10)

    mantissa = math.floor(scaled)
    if scaled - mantissa >= 0.5:
        mantissa += 1

    if mantissa >= 10 ** digits:
        mantissa //= 10
        expof10 += 1

    return int(mantissa), expof10


def format_eng(value: float, digits: int = DEFAULT_DIGITS, numeric: bool = False) -> str:
    """
    Format a value in engineering notation.

    Args:
        value: Finite, nonzero number to format.
        digits: Significant figures to keep.
        numeric: If True, always use an exponent (``"1.234e3"``) instead
                 of an SI prefix (``"1.234 k"``).

    Returns:
        A new string. Prefix form separates mantissa and prefix with a
        space, so an unprefixed value ends in a space (``"327.8 "``) and
        a unit can be appended directly.

    Raises:
        DomainError: value is zero, subnormal, infinite or NaN, or digits
                     is outside 1..MAX_DIGITS.

    Examples:
        format_eng(327.8)              → '327.8 '
        format_eng(217e-6)             → '217.0 µ'
        format_eng(999.96)             → '1.000 k'
        format_eng(-0.0010412)         → '-1.041 m'
        format_eng(4700, numeric=True) → '4.700e3'
        format_eng(1.5e27)             → '1.500e27'
    """
    if not 1 <= digits <= MAX_DIGITS:
        raise DomainError(f"digits must be between 1 and {MAX_DIGITS}, got {digits}")
    if not math.isfinite(value):
        raise DomainError(f"Cannot format non-finite value {value!r}")
    if abs(value) < sys.float_info.min:
        raise DomainError(f"Cannot format zero or subnormal value {value!r}")

    sign = '-' if value < 0 else ''
    mantissa, expof10 = _round_to_digits(abs(value), digits)

    group = 3 * (expof10 // 3)
    int_digits = expof10 - group + 1   # 1, 2 or 3 digits before the point

    shift = digits - int_digits
    if shift >= 0:
        scaled = mantissa / 10 ** shift
    else:
        scaled = mantissa * 10 ** -shift
    text = f"{scaled:.{max(shift, 0)}f}"

    prefix = si_prefix(group)
    if numeric or prefix is None:
        return f"{sign}{text}e{group}"
    return f"{sign}{text} {prefix}"
