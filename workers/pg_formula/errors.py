"""
Errors raised by the install sequence.

Plan assembly raises nothing of its own; the only failures are external
commands, which surface as BuildStepError carrying the tool's exit status.
"""
from typing import Optional


class FormulaError(Exception):
    """Base class for all pg_formula failures."""


class BuildStepError(FormulaError):
    """An external command exited non-zero."""

    def __init__(self, step: str, exit_code: int, stderr: Optional[str] = None):
        self.step = step
        self.exit_code = exit_code
        self.stderr = stderr or ""
        super().__init__(f"{step} failed with exit code {exit_code}")


class FetchError(FormulaError):
    """The source archive could not be downloaded."""


class ChecksumMismatchError(FormulaError):
    """The downloaded archive does not match the recipe checksum."""

    def __init__(self, path: str, expected: str, actual: str):
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Checksum mismatch for {path}: expected {expected}, got {actual}"
        )


class SourceError(FormulaError):
    """The source archive could not be read or unpacked."""


class OutputWriteError(FormulaError):
    """A plan output or the service descriptor could not be written."""
