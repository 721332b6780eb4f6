"""
Profile — every constant of the PostgreSQL recipe in one frozen value.

The assembler contains no literals of its own: source location, configure
flags, option names, the problematic CPU family and the service label all
live here.  Targeting another release is a profile change, not a code
change.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

# Option flags recognised on the command line
OPT_NO_PYTHON = "--no-python"
OPT_NO_PERL = "--no-perl"
OPT_OSSP_UUID = "--ossp-uuid"


@dataclass(frozen=True)
class FormulaProfile:
    """Immutable recipe description."""

    # ── Identity ─────────────────────────────────────────────────────
    name: str = "postgresql"
    aliases: Tuple[str, ...] = ("postgres",)
    version: str = "8.4.4"
    homepage: str = "http://www.postgresql.org/"

    # ── Source archive ───────────────────────────────────────────────
    url: str = (
        "http://ftp2.uk.postgresql.org/sites/ftp.postgresql.org/"
        "source/v8.4.4/postgresql-8.4.4.tar.bz2"
    )
    md5: str = "4bf2448ad965bca3940df648c02194df"

    # ── Options ──────────────────────────────────────────────────────
    options: Tuple[Tuple[str, str], ...] = (
        (OPT_NO_PYTHON, "Build without Python support."),
        (OPT_NO_PERL, "Build without Perl support."),
        (OPT_OSSP_UUID, "Build with UUID generation functions"),
    )

    # ── Configure arguments ──────────────────────────────────────────
    # "{prefix}" is substituted at assembly time
    base_configure_args: Tuple[str, ...] = (
        "--enable-thread-safety",
        "--with-bonjour",
        "--with-gssapi",
        "--with-krb5",
        "--with-openssl",
        "--with-libxml",
        "--with-libxslt",
        "--prefix={prefix}",
        "--disable-debug",
    )
    python_arg: str = "--with-python"
    perl_arg: str = "--with-perl"
    uuid_arg: str = "--with-ossp-uuid"
    archflags_arg: str = "ARCHFLAGS=-arch x86_64"

    # ── Extended-identifier helper ───────────────────────────────────
    uuid_config: str = "uuid-config"
    # (helper switch, variable receiving its output)
    uuid_queries: Tuple[Tuple[str, str], ...] = (
        ("--cflags", "CFLAGS"),
        ("--ldflags", "LDFLAGS"),
        ("--libs", "LIBS"),
    )
    uuid_contrib_dir: str = "contrib/uuid-ossp"

    # ── Build environment ────────────────────────────────────────────
    libxml2_cflags: str = "-I/usr/include/libxml2"
    # Fails on Core Duo with O4 and O3
    problematic_cpu_family: str = "core"
    opt_override: str = "-O2"
    opt_override_vars: Tuple[str, ...] = ("CFLAGS", "CXXFLAGS")

    # ── 64-bit handling ──────────────────────────────────────────────
    min_64bit_platform: Tuple[int, ...] = (10, 6)
    framework_python: str = "/Library/Frameworks/Python.framework/Versions/Current/Python"
    required_arch: str = "x86_64"

    # ── Dependencies ─────────────────────────────────────────────────
    # System libxml is too old before this platform version
    libxml2_required_below: Tuple[int, ...] = (10, 6)

    # ── Service descriptor ───────────────────────────────────────────
    service_label: str = "org.postgresql.postgres"

    @property
    def profile_id(self) -> str:
        return f"{self.name}-{self.version}"

    @property
    def descriptor_filename(self) -> str:
        return f"{self.service_label}.plist"

    @property
    def recognized_options(self) -> Dict[str, str]:
        return dict(self.options)

    @classmethod
    def v0(cls) -> FormulaProfile:
        """The canonical PostgreSQL 8.4.4 recipe."""
        return cls()
