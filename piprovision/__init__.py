"""
piprovision - Raspberry Pi provisioning for .NET remote debugging

Automates the setup of a single-board computer from a workstation:
- Preflight checks (OS version, PowerShell, OpenSSH client capability)
- SSH key pair generation and authorized_keys installation
- Remote bootstrap of the .NET runtime and the vsdbg debugger
"""

__version__ = "0.1.0"

from .domain import (
    Target,
    KeyPair,
    PreflightResult,
    ProvisionConfig,
    PreflightChecker,
    KeyProvisioner,
    RemoteBootstrapper,
    ProvisionWorkflow,
    render_bootstrap_script,
)

__all__ = [
    "__version__",
    "Target",
    "KeyPair",
    "PreflightResult",
    "ProvisionConfig",
    "PreflightChecker",
    "KeyProvisioner",
    "RemoteBootstrapper",
    "ProvisionWorkflow",
    "render_bootstrap_script",
]
