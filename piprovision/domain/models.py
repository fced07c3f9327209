"""
Provisioning domain models
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal, Optional, Tuple

from ..core.constants import (
    DEFAULT_HOSTNAME,
    DEFAULT_USERNAME,
    DEFAULT_SSH_PORT,
    DEFAULT_KEY_PATH,
    DEFAULT_KEY_TYPE,
    DEFAULT_TRANSPORT,
    DEFAULT_BOOTSTRAP_MODE,
    DEFAULT_SCRIPT_PATH,
    DEFAULT_DOTNET_CHANNEL,
    DEFAULT_DOTNET_RUNTIME,
    DEFAULT_VSDBG_ARCH,
    DEFAULT_VSDBG_VERSION,
    DEFAULT_VSDBG_PATH,
)


@dataclass(frozen=True)
class Target:
    """The remote device being provisioned"""
    hostname: str = DEFAULT_HOSTNAME
    username: str = DEFAULT_USERNAME
    port: int = DEFAULT_SSH_PORT

    @property
    def destination(self) -> str:
        """user@host form used by ssh and scp"""
        return f"{self.username}@{self.hostname}"

    def __str__(self) -> str:
        if self.port == DEFAULT_SSH_PORT:
            return self.destination
        return f"{self.destination}:{self.port}"


@dataclass(frozen=True)
class KeyPair:
    """Private key path plus its .pub companion"""
    private_path: Path

    @property
    def public_path(self) -> Path:
        return Path(str(self.private_path) + ".pub")

    def exists(self) -> bool:
        return self.private_path.exists() and self.public_path.exists()

    def read_public_key(self) -> str:
        if not self.public_path.exists():
            raise FileNotFoundError(f"Public key not found: {self.public_path}")
        return self.public_path.read_text(encoding="utf-8").strip()


@dataclass
class CommandResult:
    """Outcome of a local process"""
    argv: Tuple[str, ...]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass
class PreflightResult:
    """
    Outcome of the preflight checks.

    ``restart_required`` is only ever set after a capability install that
    asked for a reboot; the caller must stop and let the operator restart.
    """
    passed: bool
    restart_required: bool = False
    messages: List[str] = field(default_factory=list)


@dataclass
class KeyProvisionResult:
    target: Target
    key_pair: KeyPair
    generated: bool
    push_exit_code: int


@dataclass
class InstallerSpec:
    """A vendor installer script fetched with curl and piped into bash"""
    name: str
    url: str
    flags: List[str]


@dataclass
class BootstrapResult:
    target: Target
    mode: Literal["script", "direct"]
    exit_code: int
    commands: List[str] = field(default_factory=list)


@dataclass
class ProvisionConfig:
    """
    Typed configuration for a provisioning run.

    ``hostname`` / ``username`` left as None mean "ask the operator";
    empty strings mean "use the default".
    """
    skip_checks: bool = False
    hostname: Optional[str] = None
    username: Optional[str] = None
    port: int = DEFAULT_SSH_PORT
    password: Optional[str] = None
    key_path: Path = field(default_factory=lambda: Path(DEFAULT_KEY_PATH).expanduser())
    key_type: str = DEFAULT_KEY_TYPE
    regenerate_key: bool = False
    transport: Literal["openssh", "paramiko"] = DEFAULT_TRANSPORT
    bootstrap_mode: Literal["script", "direct"] = DEFAULT_BOOTSTRAP_MODE
    script_path: Path = field(default_factory=lambda: Path(DEFAULT_SCRIPT_PATH))
    assume_yes: bool = False
    dotnet_channel: str = DEFAULT_DOTNET_CHANNEL
    dotnet_runtime: str = DEFAULT_DOTNET_RUNTIME
    vsdbg_arch: str = DEFAULT_VSDBG_ARCH
    vsdbg_version: str = DEFAULT_VSDBG_VERSION
    vsdbg_path: str = DEFAULT_VSDBG_PATH


@dataclass
class WorkflowResult:
    preflight: PreflightResult
    keys: KeyProvisionResult
    bootstrap: BootstrapResult

    @property
    def exit_code(self) -> int:
        return self.bootstrap.exit_code
