"""
Templates — pure renderers for the service descriptor and guidance text.

Both take a ServicePaths value object and return a document; neither reads
the environment, the clock or the filesystem.
"""
import plistlib
import textwrap
from dataclasses import dataclass


@dataclass(frozen=True)
class ServicePaths:
    """Resolved locations the rendered documents refer to."""
    prefix: str
    bin_dir: str
    var_dir: str
    homebrew_prefix: str
    user: str
    label: str = "org.postgresql.postgres"

    @property
    def data_dir(self) -> str:
        return f"{self.var_dir}/postgres"

    @property
    def log_path(self) -> str:
        return f"{self.data_dir}/server.log"

    @property
    def server_binary(self) -> str:
        return f"{self.bin_dir}/postgres"

    @property
    def descriptor_path(self) -> str:
        return f"{self.prefix}/{self.label}.plist"


def render_service_descriptor(paths: ServicePaths) -> str:
    """launchd property list keeping the server alive across crashes and logins."""
    document = {
        "KeepAlive": True,
        "Label": paths.label,
        "ProgramArguments": [
            paths.server_binary,
            "-D",
            paths.data_dir,
            "-r",
            paths.log_path,
        ],
        "RunAtLoad": True,
        "UserName": paths.user,
        "WorkingDirectory": paths.homebrew_prefix,
    }
    return plistlib.dumps(document, fmt=plistlib.FMT_XML, sort_keys=True).decode("utf-8")


_GUIDANCE = textwrap.dedent("""\
    To build plpython against a specific Python, set PYTHON prior to brewing:
      PYTHON=/usr/local/bin/python  brew install postgresql
    See:
      http://www.postgresql.org/docs/8.4/static/install-procedure.html


    If this is your first install, create a database with:
        initdb {data_dir}

    Automatically load on login with:
        launchctl load -w {descriptor_path}

    Or start manually with:
        pg_ctl -D {data_dir} -l {log_path} start

    And stop with:
        pg_ctl -D {data_dir} stop -s -m fast
""")

_GUIDANCE_64BIT = textwrap.dedent("""\

    If you want to install the postgres gem, including ARCHFLAGS is recommended:
        env ARCHFLAGS="-arch x86_64" gem install postgres

    To install gems without sudo, see the Homebrew wiki.
""")


def render_guidance(paths: ServicePaths, builds_64_bit: bool) -> str:
    text = _GUIDANCE.format(
        data_dir=paths.data_dir,
        descriptor_path=paths.descriptor_path,
        log_path=paths.log_path,
    )
    if builds_64_bit:
        text += _GUIDANCE_64BIT
    return text
