"""
Remote bootstrap: install the .NET runtime and vsdbg on the target
"""
import shlex
from pathlib import Path
from typing import List, Optional

from ..core.constants import (
    DOTNET_INSTALL_URL,
    VSDBG_INSTALL_URL,
    REMOTE_SCRIPT_PATH,
    DEFAULT_INTERPRETER,
)
from ..core.interfaces import RemoteTransport
from ..core.logging import get_logger
from ..core.utils import remote_shell_path
from .models import BootstrapResult, InstallerSpec, ProvisionConfig, Target

logger = get_logger(__name__)


# ============================================================
# Installer Commands
# ============================================================

def default_installers(config: Optional[ProvisionConfig] = None) -> List[InstallerSpec]:
    """The .NET runtime installer followed by the vsdbg installer"""
    config = config or ProvisionConfig()
    return [
        InstallerSpec(
            name="dotnet core runtime",
            url=DOTNET_INSTALL_URL,
            flags=["--channel", config.dotnet_channel, "--runtime", config.dotnet_runtime],
        ),
        InstallerSpec(
            name="vsdbg (.NET Core Debugger for Linux)",
            url=VSDBG_INSTALL_URL,
            flags=[
                "-u",
                "-r", config.vsdbg_arch,
                "-v", config.vsdbg_version,
                "-l", config.vsdbg_path,
            ],
        ),
    ]


def _quote_flag(flag: str) -> str:
    # leave ~ unquoted so the remote shell expands it
    if flag.startswith("~"):
        return remote_shell_path(flag)
    return shlex.quote(flag)


def build_installer_command(installer: InstallerSpec) -> str:
    """curl the installer and pipe it into bash with its flags"""
    flags = " ".join(_quote_flag(flag) for flag in installer.flags)
    return f"curl -sSL {shlex.quote(installer.url)} | bash /dev/stdin {flags}".rstrip()


def render_bootstrap_script(installers: List[InstallerSpec]) -> str:
    """Shell script running every installer in order"""
    lines = [
        "#!/bin/bash",
        "",
        "# Install script to be run on remote device",
        'echo "> Setup script starting."',
    ]
    for installer in installers:
        lines += [
            "",
            f'echo "> Installing {installer.name}"',
            build_installer_command(installer),
        ]
    lines += ["", 'echo "> Setup script finished."', ""]
    return "\n".join(lines)


# ============================================================
# Bootstrapper
# ============================================================

class RemoteBootstrapper:
    """
    Runs the installers on the target.

    script mode uploads the bootstrap script to the home directory and
    runs it; direct mode sends each installer command over SSH. Either
    way the exit code of the last remote command is returned and nothing
    is rolled back.
    """

    def __init__(self, transport: RemoteTransport):
        self.transport = transport

    def run_script(
        self,
        target: Target,
        script_path: Optional[Path],
        installers: List[InstallerSpec],
        remote_path: str = REMOTE_SCRIPT_PATH,
    ) -> BootstrapResult:
        if script_path is not None and script_path.exists():
            logger.info("Uploading %s to %s:%s", script_path, target, remote_path)
            content = script_path.read_text(encoding="utf-8")
        else:
            if script_path is not None:
                logger.warning("%s not found, uploading the built-in bootstrap script", script_path)
            content = render_bootstrap_script(installers)

        # scripts edited on Windows break bash on CRLF
        content = content.replace("\r\n", "\n")

        code = self.transport.copy_file(target, content, remote_path)
        if code != 0:
            logger.warning("Copying the bootstrap script exited with code %s", code)
            return BootstrapResult(target=target, mode="script", exit_code=code)

        command = f"{DEFAULT_INTERPRETER} {remote_shell_path(remote_path)}"
        logger.info("[run] %s", command)
        code = self.transport.run(target, command)
        if code != 0:
            logger.warning("Bootstrap script exited with code %s", code)
        return BootstrapResult(target=target, mode="script", exit_code=code, commands=[command])

    def run_direct(self, target: Target, installers: List[InstallerSpec]) -> BootstrapResult:
        commands = []
        code = 0
        for installer in installers:
            command = build_installer_command(installer)
            commands.append(command)
            logger.info("Installing %s", installer.name)
            logger.debug("[run] %s", command)
            code = self.transport.run(target, command)
            if code != 0:
                logger.warning("%s installer exited with code %s", installer.name, code)
        return BootstrapResult(target=target, mode="direct", exit_code=code, commands=commands)

    def bootstrap(self, target: Target, config: ProvisionConfig) -> BootstrapResult:
        installers = default_installers(config)
        if config.bootstrap_mode == "direct":
            return self.run_direct(target, installers)
        return self.run_script(target, config.script_path, installers)
