"""
Install executor — runs a BuildPlan through configure and make install.

Phases, strictly sequential, stopping at the first failure:
  fetch+verify+extract → configure → make install → [contrib/uuid-ossp make install]
  → write service descriptor

Every external step is recorded in an InstallReceipt.  A failing step raises
BuildStepError carrying the tool's exit status; nothing is retried.
"""
from __future__ import annotations

import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional, Sequence

from pg_formula.core.assembler import BuildPlan
from pg_formula.core.command import CommandRunner
from pg_formula.core.source import prepare_source
from pg_formula.errors import BuildStepError, FormulaError
from pg_formula.io.schema import InstallReceipt, InstallStep, StepStatus
from pg_formula.io.writer import write_descriptor, write_receipt

logger = logging.getLogger(__name__)

_STDERR_TAIL_CHARS = 2000


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


class InstallExecutor:
    """Drives the external build collaborators for one plan."""

    def __init__(
        self,
        plan: BuildPlan,
        runner: CommandRunner,
        workspace: Path,
        output_dir: Optional[Path] = None,
        base_env: Optional[Mapping[str, str]] = None,
        download_timeout: int = 300,
    ):
        self.plan = plan
        self.runner = runner
        self.workspace = workspace
        self.output_dir = output_dir
        self.base_env = dict(os.environ if base_env is None else base_env)
        self.download_timeout = download_timeout
        self.receipt = InstallReceipt(
            profile_id=plan.profile.profile_id,
            started_at=now_iso(),
        )

    # -----------------------------------------------------------------
    # Steps
    # -----------------------------------------------------------------

    def _run_step(
        self,
        name: str,
        argv: Sequence[str],
        cwd: Path,
        env: Mapping[str, str],
    ) -> None:
        logger.info("[%s] %s", name, " ".join(argv))
        t0 = time.monotonic()
        result = self.runner.run(argv, cwd=cwd, env=env)
        duration = int((time.monotonic() - t0) * 1000)

        step = InstallStep(
            name=name,
            command=" ".join(argv),
            cwd=str(cwd),
            exit_code=result.exit_code,
            duration_ms=duration,
            status=StepStatus.SUCCESS if result.ok else StepStatus.FAILED,
            stderr_tail=result.stderr[-_STDERR_TAIL_CHARS:] or None,
        )
        self.receipt.steps.append(step)

        if not result.ok:
            logger.error("[%s] exited with %d", name, result.exit_code)
            raise BuildStepError(name, result.exit_code, result.stderr)

    def _prepare(self, archive: Optional[Path]) -> Path:
        profile = self.plan.profile
        t0 = time.monotonic()
        try:
            archive_path, digest, source_dir = prepare_source(
                profile.url,
                profile.md5,
                self.workspace,
                archive=archive,
                timeout=self.download_timeout,
            )
        except FormulaError as e:
            self.receipt.steps.append(InstallStep(
                name="fetch",
                command=profile.url,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status=StepStatus.FAILED,
                stderr_tail=str(e),
            ))
            raise
        self.receipt.steps.append(InstallStep(
            name="fetch",
            command=profile.url,
            exit_code=0,
            duration_ms=int((time.monotonic() - t0) * 1000),
            status=StepStatus.SUCCESS,
        ))
        self.receipt.archive_path = str(archive_path)
        self.receipt.archive_md5 = digest
        self.receipt.source_dir = str(source_dir)
        return source_dir

    # -----------------------------------------------------------------
    # Execute
    # -----------------------------------------------------------------

    def execute(
        self,
        archive: Optional[Path] = None,
        source_dir: Optional[Path] = None,
    ) -> InstallReceipt:
        """
        Run the full install sequence.

        Args:
            archive: Local tarball to use instead of downloading.
            source_dir: Already-unpacked source tree; skips fetch entirely.
        """
        plan = self.plan
        failed = False
        try:
            if source_dir is None:
                source_dir = self._prepare(archive)
            else:
                self.receipt.source_dir = str(source_dir)

            env = plan.env.apply(self.base_env)

            self._run_step("configure", ["./configure", *plan.configure_args], source_dir, env)
            self._run_step("make install", ["make", "install"], source_dir, env)

            if plan.with_uuid:
                contrib = source_dir / plan.profile.uuid_contrib_dir
                self._run_step("contrib make install", ["make", "install"], contrib, env)

            descriptor = write_descriptor(
                plan.service_descriptor, Path(plan.paths.descriptor_path)
            )
            self.receipt.descriptor_path = str(descriptor)
            logger.info("Service descriptor written: %s", descriptor)
        except Exception:
            failed = True
            raise
        finally:
            self.receipt.finished_at = now_iso()
            self.receipt.status = "FAILED" if failed else self.receipt.compute_status()
            if self.output_dir is not None:
                write_receipt(self.receipt, self.output_dir)

        return self.receipt
