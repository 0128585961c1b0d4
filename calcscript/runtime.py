# Scoped variable environment and the system table of builtins.
#
# Scopes live in an append-only arena indexed by integer ids. Id 0 is a
# sentinel meaning "invalid / no parent" and id 1 is the root scope. Scopes are
# only discarded all at once by restart(), which invalidates every id handed
# out before it.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .mathlib import BINARY, DEFAULT_EPSILON, UNARY, is_zero
from .values import NONE, Function, Real, Val, Vars, reduce

logger = logging.getLogger(__name__)

INVALID = 0
ROOT = 1


@dataclass
class Env:
    id: int
    parent: int
    bindings: Dict[str, Val] = field(default_factory=dict)

    def clear(self) -> None:
        self.bindings.clear()


class System:
    """Builtin constants and the function dispatch table.

    Functions are selected by name and argument shape: one Real argument uses
    the one-argument table, a pair of Reals the two-argument table. Any other
    shape, or an unknown name, gives the empty value.
    """

    def __init__(self, epsilon: float = DEFAULT_EPSILON):
        self.epsilon = epsilon
        self.constants: Dict[str, Val] = {
            'pi': Real(math.pi),
            'e': Real(math.e),
            'tau': Real(math.tau),
            'inf': Real(math.inf),
            'nan': Real(math.nan),
        }

    def get_constant(self, name: str) -> Optional[Val]:
        return self.constants.get(name)

    def function(self, name: str) -> Function:
        # Any name may be a function; unknown ones only miss at call time.
        return Function(name)

    def call(self, name: str, args: Val) -> Val:
        args = reduce(args)
        if isinstance(args, Real):
            return self._call_one(name, args.value)
        if isinstance(args, Vars) and len(args.items) == 2:
            x, y = args.items
            if isinstance(x, Real) and isinstance(y, Real):
                return self._call_two(name, x.value, y.value)
        logger.debug(f"No builtin '{name}' for argument shape {args!r}")
        return NONE

    def _call_one(self, name: str, x: float) -> Val:
        if name == 'zero':
            return Real(1.0 if is_zero(x, self.epsilon) else 0.0)
        fn = UNARY.get(name)
        if fn is None:
            logger.debug(f"Unknown one-argument builtin '{name}'")
            return NONE
        return Real(fn(x))

    def _call_two(self, name: str, x: float, y: float) -> Val:
        fn = BINARY.get(name)
        if fn is None:
            logger.debug(f"Unknown two-argument builtin '{name}'")
            return NONE
        return Real(fn(x, y))


class Runtime:
    """Chain of scopes plus the system table.

    One Runtime is one calculator session; it is not safe to share between
    threads without external locking.
    """

    def __init__(self, epsilon: float = DEFAULT_EPSILON):
        self.system = System(epsilon)
        self.envs: List[Env] = []
        self.current = INVALID
        self.restart()

    def is_valid(self) -> bool:
        return self.id_valid(self.current)

    def id_valid(self, id: int) -> bool:
        return id != INVALID and id < len(self.envs)

    def push(self) -> int:
        """Open a child scope of the current one; returns its id, or 0."""
        if not self.is_valid():
            return INVALID
        id = len(self.envs)
        self.envs.append(Env(id, self.current))
        self.current = id
        logger.debug(f"Entered scope {id}")
        return id

    def pop(self) -> int:
        """Return to the parent scope; returns its id, or 0 at the root."""
        if not self.is_valid():
            return INVALID
        parent = self.envs[self.current].parent
        if not self.id_valid(parent):
            return INVALID
        logger.debug(f"Left scope {self.current}")
        self.current = parent
        return parent

    def restart(self) -> None:
        """Drop every scope and start again with an empty root."""
        self.current = INVALID
        self.envs = [Env(INVALID, INVALID), Env(ROOT, INVALID)]
        self.current = ROOT

    def clear(self) -> None:
        """Remove the bindings of the current scope."""
        if self.is_valid():
            self.envs[self.current].clear()

    def clear_all(self) -> None:
        for env in self.envs:
            env.clear()

    def _scopes(self):
        id = self.current
        while self.id_valid(id):
            yield self.envs[id]
            id = self.envs[id].parent

    def get(self, name: str) -> Val:
        for env in self._scopes():
            if name in env.bindings:
                return env.bindings[name]
        constant = self.system.get_constant(name)
        if constant is not None:
            return constant
        return self.system.function(name)

    def set(self, name: str, val: Val) -> None:
        """Overwrite the nearest existing binding, or bind in the current scope."""
        for env in self._scopes():
            if name in env.bindings:
                env.bindings[name] = val
                return
        if not self.is_valid():
            return
        self.envs[self.current].bindings[name] = val

    def snapshot(self) -> Dict[str, Val]:
        """All visible bindings; inner scopes shadow outer ones."""
        res: Dict[str, Val] = {}
        for env in self._scopes():
            for k, v in env.bindings.items():
                res.setdefault(k, v)
        return res

    def call_value(self, callee: Val, args: Val) -> Val:
        if isinstance(callee, Function):
            return self.system.call(callee.name, args)
        logger.debug(f"Value {callee!r} is not callable")
        return NONE

    def calls(self, name: str, args: Val) -> Val:
        return self.call_value(self.get(name), args)
