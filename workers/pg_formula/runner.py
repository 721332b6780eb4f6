"""
Formula runner — top-level orchestration: facts → plan → install.

``plan_formula`` assembles a BuildPlan (optionally writing build_plan.json);
``main`` is the command-line entry point that also drives the install.
Exit status is 0 on full success, otherwise the exit status of the first
failing external step.
"""
import argparse
import getpass
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from pg_formula.config import Settings
from pg_formula.core.assembler import BuildPlan, assemble
from pg_formula.core.command import CommandRunner, SubprocessRunner
from pg_formula.core.facts import EnvironmentFacts, capture_facts, recognized_flags
from pg_formula.core.templates import ServicePaths
from pg_formula.errors import BuildStepError, FormulaError
from pg_formula.executor import InstallExecutor
from pg_formula.io.schema import BuildPlanOutput
from pg_formula.io.writer import write_plan
from pg_formula.policy.profile import FormulaProfile

logger = logging.getLogger(__name__)


def service_paths(settings: Settings, profile: FormulaProfile) -> ServicePaths:
    return ServicePaths(
        prefix=settings.PREFIX,
        bin_dir=settings.bin_dir,
        var_dir=settings.VAR_DIR,
        homebrew_prefix=settings.HOMEBREW_PREFIX,
        user=settings.SERVICE_USER or getpass.getuser(),
        label=profile.service_label,
    )


def plan_formula(
    flags: Iterable[str],
    runner: CommandRunner,
    settings: Settings,
    profile: Optional[FormulaProfile] = None,
    facts: Optional[EnvironmentFacts] = None,
    output_dir: Optional[Path] = None,
) -> BuildPlan:
    """
    Assemble the build plan for *flags*.

    Parameters
    ----------
    flags : iterable of str
        Raw option flags; unrecognised ones are dropped.
    facts : EnvironmentFacts, optional
        Pre-captured facts.  Captured from the host when None.
    output_dir : Path, optional
        Where to write build_plan.json.  Nothing is written when None.
    """
    if profile is None:
        profile = FormulaProfile.v0()

    kept = recognized_flags(flags, profile.recognized_options)
    if facts is None:
        facts = capture_facts(runner, kept)

    plan = assemble(facts, runner, service_paths(settings, profile), profile)

    if output_dir is not None:
        path = write_plan(BuildPlanOutput.from_plan(plan), output_dir)
        logger.info("Plan written: %s", path)
    return plan


# ── CLI ──────────────────────────────────────────────────────────────────────

def build_parser(profile: FormulaProfile) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=f"pg_formula — build and install {profile.name} {profile.version} from source",
        allow_abbrev=False,
    )
    for flag, help_text in profile.options:
        parser.add_argument(flag, action="append_const", const=flag, dest="flags", help=help_text)
    parser.add_argument("--prefix", default=None, help="Install prefix")
    parser.add_argument("--var-dir", default=None, help="State directory (data dir lives below it)")
    parser.add_argument("--homebrew-prefix", default=None, help="Service working directory")
    parser.add_argument(
        "--archive",
        type=Path,
        default=None,
        help="Use a local source tarball instead of downloading",
    )
    parser.add_argument(
        "--plan-only",
        action="store_true",
        help="Assemble and write the plan without running configure/make",
    )
    parser.add_argument(
        "--print-guidance",
        action="store_true",
        help="Print the post-install guidance text",
    )
    parser.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=None,
        help="Directory to write JSON outputs",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def main(argv: Optional[List[str]] = None, runner: Optional[CommandRunner] = None) -> int:
    profile = FormulaProfile.v0()
    parser = build_parser(profile)
    args, unknown = parser.parse_known_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    for arg in unknown:
        logger.debug("Ignoring unrecognised argument %s", arg)

    overrides = {}
    if args.prefix:
        overrides["PREFIX"] = args.prefix
    if args.var_dir:
        overrides["VAR_DIR"] = args.var_dir
    if args.homebrew_prefix:
        overrides["HOMEBREW_PREFIX"] = args.homebrew_prefix
    if args.output_dir:
        overrides["OUTPUT_DIR"] = str(args.output_dir)
    settings = Settings(**overrides)

    output_dir = Path(settings.OUTPUT_DIR) if settings.OUTPUT_DIR else None
    if runner is None:
        runner = SubprocessRunner(timeout=settings.COMMAND_TIMEOUT)

    try:
        plan = plan_formula(
            args.flags or [],
            runner,
            settings,
            profile=profile,
            output_dir=output_dir,
        )
        if not args.plan_only:
            executor = InstallExecutor(
                plan,
                runner,
                workspace=Path(settings.WORKSPACE),
                output_dir=output_dir,
                download_timeout=settings.DOWNLOAD_TIMEOUT,
            )
            executor.execute(archive=args.archive)
    except BuildStepError as e:
        logger.error("%s", e)
        return e.exit_code if e.exit_code > 0 else 1
    except FormulaError as e:
        logger.error("%s", e)
        return 1

    if args.print_guidance or not args.plan_only:
        print(plan.guidance)
    return 0


if __name__ == "__main__":
    sys.exit(main())
