"""
Arch probe — which instruction-set architectures does a binary carry?

ELF files are read directly with pyelftools.  Anything else (Mach-O
universal/thin binaries on the build host) is described with ``file -b -L``
and the architecture names are picked out of its output.
"""
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

from pg_formula.core.command import CommandRunner

logger = logging.getLogger(__name__)

ELF_MACHINE_ARCHS = {
    "EM_X86_64": "x86_64",
    "EM_386": "i386",
    "EM_AARCH64": "arm64",
    "EM_PPC": "ppc",
    "EM_PPC64": "ppc64",
}

_ARCH_TOKEN = re.compile(r"\b(x86_64|i386|ppc64|ppc7400|ppc|arm64)\b")


@dataclass(frozen=True)
class ArchProbe:
    """Result of probing one path."""
    path: str
    exists: bool
    archs: FrozenSet[str] = field(default_factory=frozenset)

    def supports(self, arch: str) -> bool:
        return arch in self.archs


def _elf_archs(path: Path) -> FrozenSet[str]:
    with open(path, "rb") as f:
        elf = ELFFile(f)
        machine = elf.header["e_machine"]
    arch = ELF_MACHINE_ARCHS.get(machine)
    return frozenset({arch}) if arch else frozenset()


def _is_elf(path: Path) -> bool:
    with open(path, "rb") as f:
        return f.read(4) == b"\x7fELF"


def _file_archs(path: Path, runner: CommandRunner) -> FrozenSet[str]:
    # -b keeps the probed path out of the output
    result = runner.run(["file", "-b", "-L", str(path)])
    if not result.ok:
        logger.warning("file(1) failed on %s: %s", path, result.stderr.strip())
        return frozenset()
    # "ppc7400" is the G4 slice of a universal binary; report it as ppc
    found = {m.group(1) for m in _ARCH_TOKEN.finditer(result.stdout)}
    return frozenset("ppc" if a == "ppc7400" else a for a in found)


def archs_for_binary(path: str, runner: CommandRunner) -> ArchProbe:
    """Probe *path*.  A missing path yields exists=False and no archs."""
    p = Path(path)
    if not p.exists():
        return ArchProbe(path=str(p), exists=False)

    try:
        if _is_elf(p):
            archs = _elf_archs(p)
        else:
            archs = _file_archs(p, runner)
    except (ELFError, OSError) as e:
        logger.warning("Arch probe failed for %s: %s", p, e)
        archs = frozenset()

    logger.debug("Arch probe %s: %s", p, sorted(archs))
    return ArchProbe(path=str(p), exists=True, archs=archs)
