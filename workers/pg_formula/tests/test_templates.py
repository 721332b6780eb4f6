"""
test_templates — service descriptor and guidance rendering.

Tests verify:
  - The descriptor is a well-formed plist with the launchd fields.
  - Rendering is deterministic (byte-identical on repeat).
  - The 64-bit gem paragraph appears iff the build is 64-bit.
"""
import plistlib

from pg_formula.core.assembler import assemble
from pg_formula.core.templates import render_guidance, render_service_descriptor
from pg_formula.tests.conftest import make_facts


class TestServiceDescriptor:

    def test_fields(self, paths):
        doc = plistlib.loads(render_service_descriptor(paths).encode("utf-8"))

        assert doc["Label"] == "org.postgresql.postgres"
        assert doc["KeepAlive"] is True
        assert doc["RunAtLoad"] is True
        assert doc["UserName"] == "builder"
        assert doc["WorkingDirectory"] == "/usr/local"
        assert doc["ProgramArguments"] == [
            "/usr/local/Cellar/postgresql/8.4.4/bin/postgres",
            "-D", "/usr/local/var/postgres",
            "-r", "/usr/local/var/postgres/server.log",
        ]

    def test_idempotent(self, paths):
        assert render_service_descriptor(paths) == render_service_descriptor(paths)

    def test_xml_header(self, paths):
        text = render_service_descriptor(paths)

        assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert "<!DOCTYPE plist" in text

    def test_special_characters_escaped(self, paths):
        odd = paths.__class__(
            prefix="/opt/a&b",
            bin_dir="/opt/a&b/bin",
            var_dir="/opt/<var>",
            homebrew_prefix="/opt",
            user="o'brien",
        )
        doc = plistlib.loads(render_service_descriptor(odd).encode("utf-8"))

        assert doc["ProgramArguments"][0] == "/opt/a&b/bin/postgres"
        assert doc["ProgramArguments"][2] == "/opt/<var>/postgres"


class TestGuidance:

    def test_paths_substituted(self, paths):
        text = render_guidance(paths, builds_64_bit=False)

        assert "initdb /usr/local/var/postgres" in text
        assert "launchctl load -w /usr/local/Cellar/postgresql/8.4.4/org.postgresql.postgres.plist" in text
        assert "pg_ctl -D /usr/local/var/postgres -l /usr/local/var/postgres/server.log start" in text
        assert "pg_ctl -D /usr/local/var/postgres stop -s -m fast" in text

    def test_64bit_paragraph_iff_64bit(self, paths):
        assert "ARCHFLAGS" in render_guidance(paths, builds_64_bit=True)
        assert "ARCHFLAGS" not in render_guidance(paths, builds_64_bit=False)

    def test_plan_guidance_follows_facts(self, runner, paths):
        plan_64 = assemble(make_facts(), runner, paths)
        plan_32 = assemble(make_facts(is_64_bit=False), runner, paths)

        assert "gem install postgres" in plan_64.guidance
        assert "gem install postgres" not in plan_32.guidance
        assert plan_64.guidance.startswith(plan_32.guidance)
