"""
Shared pytest fixtures for pg_formula tests.

All fixtures are pure-Python — no compiler, no network, no real configure.
External commands go through FakeRunner, which answers from a script keyed
by argv and records every call.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import pytest

from pg_formula.core.command import CommandResult
from pg_formula.core.facts import EnvironmentFacts
from pg_formula.core.templates import ServicePaths
from pg_formula.policy.profile import FormulaProfile

OK = CommandResult("", "", 0)

UUID_RESPONSES = {
    ("uuid-config", "--cflags"): CommandResult("-I/x\n", "", 0),
    ("uuid-config", "--ldflags"): CommandResult("-L/y\n", "", 0),
    ("uuid-config", "--libs"): CommandResult("-luuid\n", "", 0),
}

UNIVERSAL_PPC_I386 = (
    "Mach-O universal binary with 2 architectures: "
    "[ppc7400:Mach-O executable ppc] [i386:Mach-O executable i386]\n"
)

UNIVERSAL_WITH_X86_64 = (
    "Mach-O universal binary with 2 architectures: "
    "[i386:Mach-O executable i386] [x86_64:Mach-O 64-bit executable x86_64]\n"
)


@dataclass
class RecordedCall:
    argv: Tuple[str, ...]
    cwd: Optional[Path]
    env: Optional[Dict[str, str]]


class FakeRunner:
    """Scripted CommandRunner: exact-argv responses, OK for anything else."""

    def __init__(
        self,
        responses: Optional[Mapping[Tuple[str, ...], CommandResult]] = None,
        default: CommandResult = OK,
    ):
        self.responses = dict(responses or {})
        self.default = default
        self.calls: List[RecordedCall] = []

    def run(self, argv: Sequence[str], cwd=None, env=None) -> CommandResult:
        self.calls.append(RecordedCall(tuple(argv), cwd, dict(env) if env is not None else None))
        return self.responses.get(tuple(argv), self.default)

    def argvs(self) -> List[Tuple[str, ...]]:
        return [c.argv for c in self.calls]


def make_facts(
    platform_version: Tuple[int, ...] = (10, 6, 4),
    is_64_bit: bool = True,
    cpu_family: str = "penryn",
    flags: Sequence[str] = (),
) -> EnvironmentFacts:
    return EnvironmentFacts(
        platform_version=platform_version,
        is_64_bit=is_64_bit,
        cpu_family=cpu_family,
        flags=frozenset(flags),
    )


@pytest.fixture
def profile() -> FormulaProfile:
    return FormulaProfile.v0()


@pytest.fixture
def paths() -> ServicePaths:
    return ServicePaths(
        prefix="/usr/local/Cellar/postgresql/8.4.4",
        bin_dir="/usr/local/Cellar/postgresql/8.4.4/bin",
        var_dir="/usr/local/var",
        homebrew_prefix="/usr/local",
        user="builder",
    )


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner(UUID_RESPONSES)


@pytest.fixture
def facts_64() -> EnvironmentFacts:
    return make_facts()


@pytest.fixture
def facts_32() -> EnvironmentFacts:
    return make_facts(platform_version=(10, 5, 8), is_64_bit=False, cpu_family="core2")
