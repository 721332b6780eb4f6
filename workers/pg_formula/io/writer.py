"""
Writer — serialize plan outputs and the service descriptor.

Filesystem layout:
    <output_dir>/build_plan.json
    <output_dir>/install_receipt.json
    <prefix>/org.postgresql.postgres.plist
"""
import json
from pathlib import Path

from pydantic import BaseModel

from pg_formula.errors import OutputWriteError
from pg_formula.io.schema import BuildPlanOutput, InstallReceipt


def _write_text(path: Path, text: str) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise OutputWriteError(f"Cannot write {path}: {e}") from e
    return path


def _write_model(model: BaseModel, path: Path) -> Path:
    return _write_text(
        path,
        json.dumps(
            model.model_dump(mode="json"),
            indent=2,
            sort_keys=True,
        )
        + "\n",
    )


def write_plan(plan: BuildPlanOutput, output_dir: Path) -> Path:
    """Write build_plan.json into *output_dir* and return its path."""
    return _write_model(plan, output_dir / "build_plan.json")


def write_receipt(receipt: InstallReceipt, output_dir: Path) -> Path:
    """Write install_receipt.json into *output_dir* and return its path."""
    return _write_model(receipt, output_dir / "install_receipt.json")


def write_descriptor(document: str, path: Path) -> Path:
    """
    Write the rendered service descriptor once.

    Creates the parent directory if needed.  Returns the written path;
    filesystem failures surface as OutputWriteError.
    """
    return _write_text(path, document)
