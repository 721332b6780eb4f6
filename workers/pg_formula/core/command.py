"""
Command runner — the single seam through which external processes run.

Everything that shells out (uuid-config, sysctl, file, configure, make)
goes through a CommandRunner so the assembler's conditional logic can be
exercised with a scripted fake instead of real processes.
"""
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""
    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandRunner(Protocol):
    def run(
        self,
        argv: Sequence[str],
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        ...


class SubprocessRunner:
    """Runs argv lists with subprocess, capturing text output."""

    def __init__(self, timeout: Optional[int] = None):
        self.timeout = timeout

    def run(
        self,
        argv: Sequence[str],
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """Execute *argv* and return (stdout, stderr, exit_code)."""
        logger.debug("Running %s (cwd=%s)", " ".join(argv), cwd)
        try:
            result = subprocess.run(
                list(argv),
                cwd=str(cwd) if cwd is not None else None,
                env=dict(env) if env is not None else None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
            return CommandResult(result.stdout, result.stderr, result.returncode)
        except subprocess.TimeoutExpired:
            return CommandResult("", f"Command timed out after {self.timeout}s", -1)
        except OSError as e:
            # Missing executable: report like a shell would (127)
            return CommandResult("", str(e), 127)


def run_quiet(runner: CommandRunner, argv: Sequence[str]) -> str:
    """Run a probe command and return stripped stdout, or "unknown" on failure."""
    result = runner.run(argv)
    if not result.ok:
        return "unknown"
    return result.stdout.strip()
