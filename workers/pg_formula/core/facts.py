"""
Environment facts — an immutable snapshot of the host taken once.

Responsibilities:
  - Hold platform version, 64-bit capability, CPU family and option flags.
  - Capture them from the host through a CommandRunner (capture_facts).
  - Filter option flags down to the recognised set.

Nothing downstream reads ambient globals; the assembler only sees the
EnvironmentFacts value it is handed.
"""
import logging
import platform
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Mapping, Tuple

from pg_formula.core.command import CommandRunner, run_quiet

logger = logging.getLogger(__name__)

# hw.cpufamily values reported by sysctl on Intel Macs
INTEL_FAMILIES: Mapping[int, str] = {
    0x73D67300: "core",      # Yonah: Core Solo/Duo
    0x426F69EF: "core2",     # Merom: Core 2 Duo
    0x78EA4FBC: "penryn",
    0x6B5A4CD2: "nehalem",
}
UNKNOWN_FAMILY = "dunno"

_64BIT_MACHINES = frozenset({"x86_64", "amd64", "arm64", "aarch64", "ppc64"})


def parse_version(text: str) -> Tuple[int, ...]:
    """'10.6.4' -> (10, 6, 4).  Non-numeric parts stop the parse."""
    parts = []
    for piece in text.strip().split("."):
        if not piece.isdigit():
            break
        parts.append(int(piece))
    return tuple(parts)


@dataclass(frozen=True)
class EnvironmentFacts:
    """Host facts relevant to the build plan."""

    platform_version: Tuple[int, ...]
    is_64_bit: bool                  # hardware capability
    cpu_family: str = UNKNOWN_FAMILY
    flags: FrozenSet[str] = field(default_factory=frozenset)

    def has_flag(self, flag: str) -> bool:
        return flag in self.flags

    def builds_64_bit(self, min_platform: Tuple[int, ...]) -> bool:
        """64-bit builds need both the hardware and a new enough platform."""
        return self.is_64_bit and self.platform_version >= min_platform

    @property
    def platform_version_str(self) -> str:
        return ".".join(str(p) for p in self.platform_version) or "unknown"


def recognized_flags(argv: Iterable[str], recognized: Iterable[str]) -> FrozenSet[str]:
    """Keep the recognised option flags from *argv*; anything else is ignored."""
    known = frozenset(recognized)
    kept = set()
    for arg in argv:
        if arg in known:
            kept.add(arg)
        else:
            logger.debug("Ignoring unrecognised option %s", arg)
    return frozenset(kept)


def _cpu_family(runner: CommandRunner) -> str:
    raw = run_quiet(runner, ["sysctl", "-n", "hw.cpufamily"])
    try:
        value = int(raw)
    except ValueError:
        return UNKNOWN_FAMILY
    # sysctl prints the family as a signed 32-bit integer
    return INTEL_FAMILIES.get(value & 0xFFFFFFFF, UNKNOWN_FAMILY)


def _is_64_bit(runner: CommandRunner) -> bool:
    raw = run_quiet(runner, ["sysctl", "-n", "hw.cpu64bit_capable"])
    if raw in ("0", "1"):
        return raw == "1"
    return platform.machine().lower() in _64BIT_MACHINES


def capture_facts(runner: CommandRunner, flags: Iterable[str] = ()) -> EnvironmentFacts:
    """Snapshot the host.  Probe failures degrade to unknown values."""
    mac_ver = platform.mac_ver()[0]
    facts = EnvironmentFacts(
        platform_version=parse_version(mac_ver) if mac_ver else (),
        is_64_bit=_is_64_bit(runner),
        cpu_family=_cpu_family(runner),
        flags=frozenset(flags),
    )
    logger.info(
        "Environment: platform=%s 64-bit=%s cpu=%s flags=%s",
        facts.platform_version_str,
        facts.is_64_bit,
        facts.cpu_family,
        sorted(facts.flags),
    )
    return facts
