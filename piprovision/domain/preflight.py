"""
Preflight checks for the local workstation
"""
import platform
import shutil
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ..core.constants import (
    MIN_WINDOWS_BUILD,
    MIN_POWERSHELL_VERSION,
    OPENSSH_CAPABILITY_PATTERN,
    OPENSSH_CAPABILITY_NAME,
    REQUIRED_SSH_TOOLS,
)
from ..core.interfaces import CommandRunner, PromptProvider
from ..core.logging import get_logger
from ..core.utils import parse_version
from .models import PreflightResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class HostInfo:
    """Operating system of the workstation running the tool"""
    system: str
    version: Tuple[int, ...] = ()

    @property
    def is_windows(self) -> bool:
        return self.system == "Windows"

    @property
    def build(self) -> int:
        """Windows build number (third version component)"""
        return self.version[2] if len(self.version) >= 3 else 0


def probe_host() -> HostInfo:
    """Describe the current workstation"""
    return HostInfo(system=platform.system(), version=parse_version(platform.version()))


def powershell(command: str) -> list[str]:
    """argv running a single PowerShell command"""
    return ["powershell", "-NoProfile", "-NonInteractive", "-Command", command]


def _fail(message: str) -> PreflightResult:
    logger.error(message)
    return PreflightResult(passed=False, messages=[message])


class PreflightChecker:
    """
    Verifies the workstation can reach the target over SSH.

    Checks run in order and stop at the first unmet requirement:
    1. OS version (Windows only: build >= 17763)
    2. PowerShell version (Windows only: >= 5.1)
    3. SSH client present (Windows capability, or ssh tools on PATH; on
       Windows PATH is also the fallback when the capability query fails)

    A missing Windows capability can be installed after the operator
    agrees; the result then tells the caller whether a restart is due.
    """

    def __init__(
        self,
        runner: CommandRunner,
        prompts: PromptProvider,
        host_probe: Callable[[], HostInfo] = probe_host,
        which: Callable[[str], Optional[str]] = shutil.which,
        assume_yes: bool = False,
    ):
        self.runner = runner
        self.prompts = prompts
        self.host_probe = host_probe
        self.which = which
        self.assume_yes = assume_yes

    def check(self, skip: bool = False) -> PreflightResult:
        if skip:
            logger.info("Preflight checks skipped")
            return PreflightResult(passed=True, messages=["Preflight checks skipped"])

        host = self.host_probe()
        logger.debug("Host: %s %s", host.system, ".".join(map(str, host.version)))

        if host.is_windows:
            return self._check_windows(host)
        return self._check_posix()

    # ------------------------------------------------------------
    # Windows
    # ------------------------------------------------------------

    def _check_windows(self, host: HostInfo) -> PreflightResult:
        if host.build < MIN_WINDOWS_BUILD:
            return _fail(
                f"Windows build {host.build} is too old, "
                f"build {MIN_WINDOWS_BUILD} (version 1809) or newer is required"
            )

        ps_version = self._powershell_version()
        if ps_version < MIN_POWERSHELL_VERSION:
            found = ".".join(map(str, ps_version)) or "none"
            required = ".".join(map(str, MIN_POWERSHELL_VERSION))
            return _fail(f"PowerShell {required} or newer is required (found {found})")

        installed = self._capability_installed()
        if installed is None:
            return self._check_tools_on_path()
        if installed:
            logger.info("OpenSSH client capability is installed")
            return PreflightResult(passed=True)

        logger.warning("OpenSSH client capability is not installed")
        if not self.assume_yes and not self.prompts.confirm(
            "The OpenSSH client is not installed. Install it now?", default=True
        ):
            return _fail("OpenSSH client is required, installation declined")

        return self._install_capability()

    def _powershell_version(self) -> Tuple[int, ...]:
        result = self.runner.run(
            powershell("$PSVersionTable.PSVersion.ToString()"), capture=True
        )
        if not result.ok:
            return ()
        return parse_version(result.stdout)

    def _capability_installed(self) -> Optional[bool]:
        """Capability state, or None when the query itself failed"""
        result = self.runner.run(
            powershell(
                f"(Get-WindowsCapability -Online -Name '{OPENSSH_CAPABILITY_PATTERN}').State"
            ),
            capture=True,
        )
        if not result.ok:
            logger.warning(
                "Could not query the OpenSSH capability (%s), looking for ssh on PATH",
                result.stderr.strip() or f"exit code {result.exit_code}",
            )
            return None
        return "Installed" in result.stdout.split()

    def _install_capability(self) -> PreflightResult:
        logger.info("Installing %s", OPENSSH_CAPABILITY_NAME)
        result = self.runner.run(
            powershell(
                f"(Add-WindowsCapability -Online -Name '{OPENSSH_CAPABILITY_NAME}').RestartNeeded"
            ),
            capture=True,
        )
        if not result.ok:
            detail = result.stderr.strip() or f"exit code {result.exit_code}"
            return _fail(
                f"Installing the OpenSSH client failed ({detail}); "
                "run again from an elevated prompt"
            )

        restart_required = result.stdout.strip().lower() == "true"
        if restart_required:
            logger.warning("OpenSSH client installed, a restart is required")
            return PreflightResult(
                passed=True,
                restart_required=True,
                messages=["OpenSSH client installed, restart the computer and run again"],
            )
        logger.info("OpenSSH client installed")
        return PreflightResult(passed=True, messages=["OpenSSH client installed"])

    # ------------------------------------------------------------
    # Linux / macOS
    # ------------------------------------------------------------

    def _check_posix(self) -> PreflightResult:
        missing = self._missing_tools()
        if missing:
            return _fail(
                f"Missing SSH client tools: {', '.join(missing)}; "
                "install the OpenSSH client with your package manager"
            )
        logger.info("SSH client tools found")
        return PreflightResult(passed=True)

    # ------------------------------------------------------------
    # PATH lookup
    # ------------------------------------------------------------

    def _missing_tools(self) -> list[str]:
        return [tool for tool in REQUIRED_SSH_TOOLS if self.which(tool) is None]

    def _check_tools_on_path(self) -> PreflightResult:
        """Windows fallback when the capability state cannot be read without elevation"""
        missing = self._missing_tools()
        if missing:
            return _fail(
                f"Missing SSH client tools: {', '.join(missing)}; "
                "run again from an elevated prompt to install the OpenSSH client"
            )
        logger.info("SSH client tools found on PATH")
        return PreflightResult(passed=True, messages=["SSH client tools found on PATH"])
