# Runtime values and the arithmetic defined on them.
#
# A Vars of length 1 means the same as its element and is collapsed by
# reduce(); the empty Vars is the "no value" result. Arithmetic is only
# defined for two Reals, every other shape yields NONE.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, Tuple, Union

from .mathlib import divide, power, remainder


@dataclass(frozen=True)
class Real:
    value: float


@dataclass(frozen=True)
class Complex:
    re: float
    im: float


@dataclass(frozen=True)
class Function:
    """Reference to a system function, resolved by name at call time."""
    name: str


@dataclass(frozen=True)
class Vars:
    items: Tuple['Val', ...] = ()

    def __len__(self) -> int:
        return len(self.items)


Val = Union[Real, Complex, Function, Vars]

NONE = Vars(())


def is_none(v: Val) -> bool:
    return isinstance(v, Vars) and not v.items


def reduce(v: Val) -> Val:
    """Collapse single-element tuples, recursively."""
    while isinstance(v, Vars) and len(v.items) == 1:
        v = v.items[0]
    return v


_BINARY: Dict[str, Callable[[float, float], float]] = {
    '+': lambda a, b: a + b,
    '-': lambda a, b: a - b,
    '*': lambda a, b: a * b,
    '/': divide,
    '%': remainder,
    '^': power,
}


def calc(a: Val, b: Val, op: str) -> Val:
    """Apply a binary operator symbol to two values."""
    fn = _BINARY.get(op)
    if fn is None or not isinstance(a, Real) or not isinstance(b, Real):
        return NONE
    return Real(fn(a.value, b.value))


def neg(v: Val) -> Val:
    if isinstance(v, Real):
        return Real(-v.value)
    return NONE

# --------------------------
# Formatting
# --------------------------

def format_number(x: float) -> str:
    """Shortest readable form: integral values print without a fraction."""
    x = float(x)
    if math.isnan(x):
        return 'NaN'
    if math.isinf(x):
        return 'inf' if x > 0 else '-inf'
    if x.is_integer() and abs(x) < 1e16:
        return str(int(x))
    return repr(x)


def format_value(v: Val) -> str:
    if isinstance(v, Real):
        return format_number(v.value)
    if isinstance(v, Complex):
        sign = '-' if v.im < 0 else '+'
        return f"{format_number(v.re)}{sign}{format_number(abs(v.im))}i"
    if isinstance(v, Function):
        return f"@fun: {v.name}"
    return '(' + ', '.join(format_value(item) for item in v.items) + ')'
