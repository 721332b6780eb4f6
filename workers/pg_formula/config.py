"""
Worker configuration
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Install locations and timeouts, overridable via PG_FORMULA_* env vars."""

    model_config = SettingsConfigDict(
        env_prefix="PG_FORMULA_",
        env_file=".env",
        extra="ignore",
    )

    # Install layout
    PREFIX: str = "/usr/local/Cellar/postgresql/8.4.4"
    VAR_DIR: str = "/usr/local/var"
    HOMEBREW_PREFIX: str = "/usr/local"

    # Workspace
    WORKSPACE: str = "/tmp/pg_formula_builds"
    OUTPUT_DIR: Optional[str] = None

    # Service descriptor; None means the invoking user
    SERVICE_USER: Optional[str] = None

    # Timeouts (seconds). None means wait for the command to finish.
    DOWNLOAD_TIMEOUT: int = 300
    COMMAND_TIMEOUT: Optional[int] = None

    @property
    def bin_dir(self) -> str:
        """Directory holding the installed server binaries"""
        return f"{self.PREFIX}/bin"
