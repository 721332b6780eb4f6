"""
Advisory — non-fatal findings raised while assembling a plan.

Advisories are reported and carried in the plan output; they never change
the configure arguments and never abort the build.
"""
import textwrap
from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional

from pg_formula.core.arch_probe import ArchProbe
from pg_formula.policy.profile import FormulaProfile


@unique
class AdvisoryReason(str, Enum):
    FRAMEWORK_PYTHON_NO_X86_64 = "FRAMEWORK_PYTHON_NO_X86_64"


@dataclass(frozen=True)
class Advisory:
    reason: AdvisoryReason
    path: str
    message: str


_FRAMEWORK_PYTHON_TEXT = textwrap.dedent("""\
    Detected a framework Python that does not have 64-bit support in:
        {path}

    The configure script seems to prefer this version of Python over any others,
    so you may experience linker problems as described in:
      http://osdir.com/ml/pgsql-general/2009-09/msg00160.html

    To fix this issue, you may need to either delete the version of Python
    shown above, or move it out of the way before brewing PostgreSQL.

    Note that a framework Python in /Library/Frameworks/Python.framework is
    the "MacPython" version, and not the system-provided version which is in:
      /System/Library/Frameworks/Python.framework
""")


def judge_framework_python(probe: ArchProbe, profile: FormulaProfile) -> Optional[Advisory]:
    """A present framework Python without the required arch earns an advisory."""
    if not probe.exists or probe.supports(profile.required_arch):
        return None
    return Advisory(
        reason=AdvisoryReason.FRAMEWORK_PYTHON_NO_X86_64,
        path=probe.path,
        message=_FRAMEWORK_PYTHON_TEXT.format(path=probe.path),
    )
