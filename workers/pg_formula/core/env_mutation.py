"""
Environment mutations — ordered append/set/optimize edits to build variables.

A mutation set is recorded during assembly and applied to a copy of the
process environment right before configure runs.  Appends never overwrite
what is already there.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

_OPT_FLAG = re.compile(r"^-O(\d|s|z|fast)?$")


class MutationOp(str, Enum):
    APPEND = "APPEND"
    SET = "SET"
    OPTIMIZE = "OPTIMIZE"   # replace any -O<level> token with the payload


@dataclass(frozen=True)
class EnvMutation:
    variable: str
    op: MutationOp
    value: str

    def apply_to(self, current: Optional[str]) -> str:
        if self.op == MutationOp.SET:
            return self.value
        if self.op == MutationOp.APPEND:
            return f"{current} {self.value}" if current else self.value
        tokens = [t for t in (current or "").split() if not _OPT_FLAG.match(t)]
        tokens.append(self.value)
        return " ".join(tokens)


class EnvMutationSet:
    """Ordered mutations; freeze() turns the set read-only."""

    def __init__(self) -> None:
        self._mutations: List[EnvMutation] = []
        self._frozen = False

    def _add(self, variable: str, op: MutationOp, value: str) -> None:
        if self._frozen:
            raise RuntimeError("Mutation set is frozen")
        value = value.strip()
        if not value:
            return
        self._mutations.append(EnvMutation(variable, op, value))

    def append(self, variable: str, value: str) -> None:
        self._add(variable, MutationOp.APPEND, value)

    def set(self, variable: str, value: str) -> None:
        self._add(variable, MutationOp.SET, value)

    def optimize(self, variable: str, level: str) -> None:
        self._add(variable, MutationOp.OPTIMIZE, level)

    def freeze(self) -> "EnvMutationSet":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def for_variable(self, variable: str) -> List[EnvMutation]:
        return [m for m in self._mutations if m.variable == variable]

    def apply(self, env: Mapping[str, str]) -> Dict[str, str]:
        """Return a new environment with every mutation applied in order."""
        result = dict(env)
        for m in self._mutations:
            result[m.variable] = m.apply_to(result.get(m.variable))
        return result

    def as_tuples(self) -> List[Tuple[str, str, str]]:
        return [(m.variable, m.op.value, m.value) for m in self._mutations]

    def __iter__(self) -> Iterator[EnvMutation]:
        return iter(list(self._mutations))

    def __len__(self) -> int:
        return len(self._mutations)
