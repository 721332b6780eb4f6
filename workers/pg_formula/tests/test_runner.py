"""
test_runner — command-line entry point and plan output.

Tests verify:
  - --plan-only writes build_plan.json and runs no build steps.
  - Unknown arguments are ignored.
  - The exit status of the first failing external step is returned.
"""
import json

import pytest

from pg_formula import PACKAGE_NAME, SCHEMA_VERSION
from pg_formula.config import Settings
from pg_formula.core.command import CommandResult
from pg_formula.runner import main, plan_formula
from pg_formula.tests.conftest import UUID_RESPONSES, FakeRunner, make_facts


@pytest.fixture(autouse=True)
def _settings_env(monkeypatch, tmp_path):
    monkeypatch.setenv("PG_FORMULA_SERVICE_USER", "tester")
    monkeypatch.setenv("PG_FORMULA_WORKSPACE", str(tmp_path / "ws"))
    monkeypatch.chdir(tmp_path)


class TestPlanFormula:

    def test_plan_json_written(self, tmp_path):
        out = tmp_path / "out"
        plan_formula(
            ["--ossp-uuid", "--bogus"],
            FakeRunner(UUID_RESPONSES),
            Settings(PREFIX="/opt/pg"),
            facts=make_facts(flags=["--ossp-uuid"]),
            output_dir=out,
        )
        data = json.loads((out / "build_plan.json").read_text())

        assert data["package_name"] == PACKAGE_NAME
        assert data["schema_version"] == SCHEMA_VERSION
        assert data["profile_id"] == "postgresql-8.4.4"
        assert "--prefix=/opt/pg" in data["configure_args"]
        assert "--with-ossp-uuid" in data["configure_args"]
        assert {"variable": "LIBS", "op": "APPEND", "value": "-luuid"} in data["env_mutations"]
        assert data["dependencies"] == ["readline", "ossp-uuid"]
        assert data["descriptor_path"] == "/opt/pg/org.postgresql.postgres.plist"
        assert "<string>tester</string>" in data["service_descriptor"]

    def test_captures_facts_when_missing(self):
        runner = FakeRunner({
            ("sysctl", "-n", "hw.cpufamily"): CommandResult("1943433984", "", 0),
        })
        plan = plan_formula(["--no-perl", "--HEAD"], runner, Settings())

        assert plan.facts.flags == frozenset({"--no-perl"})
        assert plan.facts.cpu_family == "core"
        assert "--with-perl" not in plan.configure_args


class TestMain:

    def test_plan_only(self, tmp_path, capsys):
        runner = FakeRunner()
        code = main(["--plan-only", "--no-python", "--unknown-thing", "-o", str(tmp_path / "o")], runner)

        assert code == 0
        assert (tmp_path / "o" / "build_plan.json").exists()
        assert all(argv[0] not in ("./configure", "make") for argv in runner.argvs())
        assert capsys.readouterr().out == ""

    def test_print_guidance(self, capsys):
        code = main(["--plan-only", "--print-guidance"], FakeRunner())

        assert code == 0
        assert "initdb" in capsys.readouterr().out

    def test_helper_failure_exit_code(self):
        runner = FakeRunner({("uuid-config", "--cflags"): CommandResult("", "missing", 2)})

        assert main(["--plan-only", "--ossp-uuid"], runner) == 2

    def test_configure_failure_exit_code(self, tmp_path, monkeypatch):
        from pg_formula import executor as executor_mod

        source = tmp_path / "src"
        source.mkdir()
        monkeypatch.setattr(
            executor_mod, "prepare_source",
            lambda *a, **kw: (tmp_path / "a.tar.bz2", "0" * 32, source),
        )

        class FailingConfigure(FakeRunner):
            def run(self, argv, cwd=None, env=None):
                result = super().run(argv, cwd, env)
                if argv[0] == "./configure":
                    return CommandResult("", "configure: error", 3)
                return result

        runner = FailingConfigure()
        code = main(["--prefix", str(tmp_path / "prefix")], runner)

        assert code == 3
        assert not any(argv == ("make", "install") for argv in runner.argvs())

    def test_unwritable_prefix_exits_one(self, tmp_path, monkeypatch, caplog):
        from pg_formula import executor as executor_mod

        source = tmp_path / "src"
        source.mkdir()
        monkeypatch.setattr(
            executor_mod, "prepare_source",
            lambda *a, **kw: (tmp_path / "a.tar.bz2", "0" * 32, source),
        )
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        code = main(["--prefix", str(blocker / "prefix")], FakeRunner())

        assert code == 1
        assert "Cannot write" in caplog.text
