# Builtin numeric functions.
#
# Every function maps floats to a float and never raises: Python's math
# module reports domain errors and overflow as exceptions, these wrappers
# turn them into the IEEE-754 results (NaN, +/-inf) instead.

from __future__ import annotations

import math
from typing import Callable, Dict, List

DEFAULT_EPSILON = 1e-9

# --------------------------
# IEEE-754 helpers
# --------------------------

def _is_odd_integer(y: float) -> bool:
    return float(y).is_integer() and math.fmod(y, 2.0) != 0.0


def divide(a: float, b: float) -> float:
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def remainder(a: float, b: float) -> float:
    """Truncated remainder, sign follows the dividend (C fmod)."""
    try:
        return math.fmod(a, b)
    except ValueError:
        return math.nan


def power(x: float, y: float) -> float:
    try:
        return math.pow(x, y)
    except OverflowError:
        if x < 0 and _is_odd_integer(y):
            return -math.inf
        return math.inf
    except ValueError:
        # zero to a negative power, or a negative base with a fractional exponent
        if x == 0:
            if math.copysign(1.0, x) < 0 and _is_odd_integer(y):
                return -math.inf
            return math.inf
        return math.nan


def _domain(fn: Callable[[float], float]) -> Callable[[float], float]:
    def wrapped(x: float) -> float:
        try:
            return fn(x)
        except ValueError:
            return math.nan
    wrapped.__name__ = fn.__name__
    return wrapped


def _logarithm(fn: Callable[[float], float]) -> Callable[[float], float]:
    def wrapped(x: float) -> float:
        if x == 0:
            return -math.inf
        if x < 0:
            return math.nan
        return fn(x)
    wrapped.__name__ = fn.__name__
    return wrapped


ln = _logarithm(math.log)
log2 = _logarithm(math.log2)
log10 = _logarithm(math.log10)

# --------------------------
# One-argument functions
# --------------------------

def _round(x: float) -> float:
    """Round half away from zero."""
    if not math.isfinite(x):
        return x
    whole = math.floor(abs(x))
    if abs(x) - whole >= 0.5:
        whole += 1
    return math.copysign(float(whole), x)


def _ceil(x: float) -> float:
    return float(math.ceil(x)) if math.isfinite(x) else x


def _floor(x: float) -> float:
    return float(math.floor(x)) if math.isfinite(x) else x


def _exp(x: float) -> float:
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


def _sinh(x: float) -> float:
    try:
        return math.sinh(x)
    except OverflowError:
        return math.copysign(math.inf, x)


def _cosh(x: float) -> float:
    try:
        return math.cosh(x)
    except OverflowError:
        return math.inf


_sin = _domain(math.sin)
_cos = _domain(math.cos)
_asin = _domain(math.asin)
_acos = _domain(math.acos)
_acosh = _domain(math.acosh)
_atanh_open = _domain(math.atanh)


def _atanh(x: float) -> float:
    if abs(x) == 1.0:
        return math.copysign(math.inf, x)
    return _atanh_open(x)


def _arccot(x: float) -> float:
    if x == 0.0:
        return math.pi / 2
    return math.atan(1.0 / x)


def is_zero(x: float, epsilon: float = DEFAULT_EPSILON) -> bool:
    return -epsilon < x < epsilon


UNARY: Dict[str, Callable[[float], float]] = {}
BINARY: Dict[str, Callable[[float, float], float]] = {}

# Functions needing runtime state; dispatched by the System table itself.
STATEFUL: List[str] = ['zero']


def _register(table: Dict[str, Callable[..., float]], names: str, func: Callable[..., float]) -> None:
    """Register func under every '|' separated alias in names."""
    for name in names.split('|'):
        table[name] = func


_register(UNARY, 'absolute|abs', abs)
_register(UNARY, 'negative|neg', lambda x: -x)
_register(UNARY, 'round', _round)
_register(UNARY, 'ceil', _ceil)
_register(UNARY, 'floor|int', _floor)
_register(UNARY, 'sin', _sin)
_register(UNARY, 'cos', _cos)
_register(UNARY, 'tan', _domain(math.tan))
_register(UNARY, 'cot', lambda x: divide(_cos(x), _sin(x)))
_register(UNARY, 'sec', lambda x: divide(1.0, _cos(x)))
_register(UNARY, 'csc', lambda x: divide(1.0, _sin(x)))
_register(UNARY, 'asin|arcsin', _asin)
_register(UNARY, 'acos|arccos', _acos)
_register(UNARY, 'atan|arctan', math.atan)
_register(UNARY, 'acot|arccot', _arccot)
_register(UNARY, 'asec|arcsec', lambda x: _acos(divide(1.0, x)))
_register(UNARY, 'acsc|arccsc', lambda x: _asin(divide(1.0, x)))
_register(UNARY, 'sinh', _sinh)
_register(UNARY, 'cosh', _cosh)
_register(UNARY, 'tanh', math.tanh)
_register(UNARY, 'coth', lambda x: divide(1.0, math.tanh(x)))
_register(UNARY, 'sech', lambda x: divide(1.0, _cosh(x)))
_register(UNARY, 'csch', lambda x: divide(1.0, _sinh(x)))
_register(UNARY, 'asinh|arcsinh', math.asinh)
_register(UNARY, 'acosh|arccosh', _acosh)
_register(UNARY, 'atanh|arctanh', _atanh)
_register(UNARY, 'acoth|arccoth', lambda x: _atanh(divide(1.0, x)))
_register(UNARY, 'asech|arcsech', lambda x: _acosh(divide(1.0, x)))
_register(UNARY, 'acsch|arccsch', lambda x: math.asinh(divide(1.0, x)))
_register(UNARY, 'raddegree|todegree', math.degrees)
_register(UNARY, 'degreerad|torad', math.radians)
_register(UNARY, 'square', lambda x: x * x)
_register(UNARY, 'cube', lambda x: x * x * x)
_register(UNARY, 'sqrt|sqr', _domain(math.sqrt))
_register(UNARY, 'cbrt|cbr', math.cbrt)
_register(UNARY, 'exp', _exp)
_register(UNARY, 'log10', log10)
_register(UNARY, 'loge|ln|log', ln)
_register(UNARY, 'log2', log2)

_register(BINARY, 'add|plus', lambda x, y: x + y)
_register(BINARY, 'substract|subtract|minus', lambda x, y: x - y)
_register(BINARY, 'multiply|dot', lambda x, y: x * y)
_register(BINARY, 'devide|divide|frac', divide)
_register(BINARY, 'arctan2|atan2|arctan|atan', math.atan2)
_register(BINARY, 'pow|power', power)
# log(base, x)
_register(BINARY, 'log|logarithm', lambda base, x: divide(ln(x), ln(base)))


def builtin_names() -> List[str]:
    """Sorted names of every builtin function, aliases included."""
    return sorted(set(UNARY) | set(BINARY) | set(STATEFUL))
