"""
Assembler — turns EnvironmentFacts into a BuildPlan.

Steps, each executed at most once:
  1. base configure arguments (prefix substituted)
  2. optional language bindings unless skipped
  3. ossp-uuid argument + uuid-config compiler/linker flags
  4. 64-bit ARCHFLAGS override + framework Python advisory
  5. optimisation override on the problematic CPU family
  6. freeze arguments and mutations
  7. render the service descriptor and guidance text

The only external calls are uuid-config (through the CommandRunner) and the
framework Python arch probe.  Running configure/make is the executor's job.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from pg_formula.core.arch_probe import archs_for_binary
from pg_formula.core.command import CommandRunner
from pg_formula.core.env_mutation import EnvMutationSet
from pg_formula.core.facts import EnvironmentFacts
from pg_formula.core.templates import (
    ServicePaths,
    render_guidance,
    render_service_descriptor,
)
from pg_formula.errors import BuildStepError
from pg_formula.policy.advisory import Advisory, judge_framework_python
from pg_formula.policy.profile import (
    OPT_NO_PERL,
    OPT_NO_PYTHON,
    OPT_OSSP_UUID,
    FormulaProfile,
)

logger = logging.getLogger(__name__)


@dataclass
class BuildPlan:
    """Everything the install sequence needs, decided up front."""
    profile: FormulaProfile
    facts: EnvironmentFacts
    paths: ServicePaths
    configure_args: Tuple[str, ...]
    env: EnvMutationSet
    dependencies: Tuple[str, ...]
    service_descriptor: str
    guidance: str
    advisories: List[Advisory] = field(default_factory=list)

    @property
    def with_uuid(self) -> bool:
        return self.facts.has_flag(OPT_OSSP_UUID)

    @property
    def builds_64_bit(self) -> bool:
        return self.facts.builds_64_bit(self.profile.min_64bit_platform)


def dependencies_for(facts: EnvironmentFacts, profile: FormulaProfile) -> Tuple[str, ...]:
    deps = ["readline"]
    if facts.platform_version < profile.libxml2_required_below:
        deps.append("libxml2")
    if facts.has_flag(OPT_OSSP_UUID):
        deps.append("ossp-uuid")
    return tuple(deps)


def query_uuid_config(runner: CommandRunner, profile: FormulaProfile) -> List[Tuple[str, str]]:
    """Ask uuid-config for (variable, value) pairs.  A failing helper is fatal."""
    results = []
    for switch, variable in profile.uuid_queries:
        argv = [profile.uuid_config, switch]
        res = runner.run(argv)
        if not res.ok:
            raise BuildStepError(" ".join(argv), res.exit_code, res.stderr)
        results.append((variable, res.stdout.strip()))
    return results


def assemble(
    facts: EnvironmentFacts,
    runner: CommandRunner,
    paths: ServicePaths,
    profile: Optional[FormulaProfile] = None,
) -> BuildPlan:
    """Build the plan for *facts*.  Unrecognised flags in facts are ignored."""
    if profile is None:
        profile = FormulaProfile.v0()

    args: List[str] = [a.format(prefix=paths.prefix) for a in profile.base_configure_args]
    env = EnvMutationSet()
    env.append("CFLAGS", profile.libxml2_cflags)
    advisories: List[Advisory] = []

    with_python = not facts.has_flag(OPT_NO_PYTHON)
    if with_python:
        args.append(profile.python_arg)
    if not facts.has_flag(OPT_NO_PERL):
        args.append(profile.perl_arg)

    if facts.has_flag(OPT_OSSP_UUID):
        args.append(profile.uuid_arg)
        for variable, value in query_uuid_config(runner, profile):
            env.append(variable, value)

    builds_64_bit = facts.builds_64_bit(profile.min_64bit_platform)
    if builds_64_bit and with_python:
        args.append(profile.archflags_arg)
        # configure prefers a framework Python; without x86_64 linking fails
        probe = archs_for_binary(profile.framework_python, runner)
        advisory = judge_framework_python(probe, profile)
        if advisory is not None:
            logger.warning(advisory.message)
            advisories.append(advisory)

    if facts.cpu_family == profile.problematic_cpu_family:
        for variable in profile.opt_override_vars:
            env.optimize(variable, profile.opt_override)

    env.freeze()
    configure_args = tuple(args)
    logger.info("Configure arguments: %s", " ".join(configure_args))
    logger.debug("Environment mutations: %s", env.as_tuples())

    return BuildPlan(
        profile=profile,
        facts=facts,
        paths=paths,
        configure_args=configure_args,
        env=env,
        dependencies=dependencies_for(facts, profile),
        service_descriptor=render_service_descriptor(paths),
        guidance=render_guidance(paths, builds_64_bit),
        advisories=advisories,
    )
