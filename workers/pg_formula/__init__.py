"""
pg_formula — build plan assembler for the PostgreSQL 8.4 source recipe.

Given environment facts and option flags, produce the configure arguments,
build-environment mutations, launchd service descriptor and post-install
guidance, then optionally drive the configure/make install sequence.
"""

__version__ = "0.1.0"
PACKAGE_NAME = "pg_formula"
PLANNER_VERSION = "v0"
SCHEMA_VERSION = "0.1"
