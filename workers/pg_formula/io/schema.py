"""
Schema — Pydantic models for pg_formula JSON outputs.

Two outputs per invocation:
  1. build_plan.json       — the assembled plan (args, env, documents).
  2. install_receipt.json  — what the install sequence actually ran.

Runtime contract fields (present in every output):
  package_name, planner_version, profile_id, schema_version.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from pg_formula import PACKAGE_NAME, PLANNER_VERSION, SCHEMA_VERSION
from pg_formula.core.assembler import BuildPlan


# ── Plan ─────────────────────────────────────────────────────────────────────

class FactsModel(BaseModel):
    platform_version: str
    is_64_bit: bool
    builds_64_bit: bool
    cpu_family: str
    flags: List[str] = Field(default_factory=list)


class EnvMutationModel(BaseModel):
    variable: str
    op: str                  # APPEND | SET | OPTIMIZE
    value: str


class AdvisoryModel(BaseModel):
    reason: str
    path: str
    message: str


class BuildPlanOutput(BaseModel):
    """Wrapper for build_plan.json."""

    package_name: str = PACKAGE_NAME
    planner_version: str = PLANNER_VERSION
    schema_version: str = SCHEMA_VERSION
    profile_id: str

    source_url: str
    source_md5: str
    facts: FactsModel
    configure_args: List[str]
    env_mutations: List[EnvMutationModel] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    advisories: List[AdvisoryModel] = Field(default_factory=list)

    descriptor_path: str
    service_descriptor: str
    guidance: str

    @classmethod
    def from_plan(cls, plan: BuildPlan) -> BuildPlanOutput:
        return cls(
            profile_id=plan.profile.profile_id,
            source_url=plan.profile.url,
            source_md5=plan.profile.md5,
            facts=FactsModel(
                platform_version=plan.facts.platform_version_str,
                is_64_bit=plan.facts.is_64_bit,
                builds_64_bit=plan.builds_64_bit,
                cpu_family=plan.facts.cpu_family,
                flags=sorted(plan.facts.flags),
            ),
            configure_args=list(plan.configure_args),
            env_mutations=[
                EnvMutationModel(variable=m.variable, op=m.op.value, value=m.value)
                for m in plan.env
            ],
            dependencies=list(plan.dependencies),
            advisories=[
                AdvisoryModel(reason=a.reason.value, path=a.path, message=a.message)
                for a in plan.advisories
            ],
            descriptor_path=plan.paths.descriptor_path,
            service_descriptor=plan.service_descriptor,
            guidance=plan.guidance,
        )


# ── Install receipt ──────────────────────────────────────────────────────────

class StepStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class InstallStep(BaseModel):
    """One external step of the install sequence."""
    name: str
    command: str = ""
    cwd: Optional[str] = None
    exit_code: int = -1
    duration_ms: int = 0
    status: StepStatus = StepStatus.SKIPPED
    stderr_tail: Optional[str] = None


class InstallReceipt(BaseModel):
    """Wrapper for install_receipt.json."""

    package_name: str = PACKAGE_NAME
    planner_version: str = PLANNER_VERSION
    schema_version: str = SCHEMA_VERSION
    profile_id: str

    started_at: str
    finished_at: Optional[str] = None
    archive_path: Optional[str] = None
    archive_md5: Optional[str] = None
    source_dir: Optional[str] = None
    descriptor_path: Optional[str] = None
    steps: List[InstallStep] = Field(default_factory=list)
    status: str = "RUNNING"  # RUNNING, SUCCESS, FAILED

    def compute_status(self) -> str:
        if any(s.status == StepStatus.FAILED for s in self.steps):
            return "FAILED"
        return "SUCCESS"
