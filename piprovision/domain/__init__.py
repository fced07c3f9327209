"""
Provisioning domain: preflight checks, keys, bootstrap and the workflow
"""
from .models import (
    Target,
    KeyPair,
    CommandResult,
    PreflightResult,
    KeyProvisionResult,
    InstallerSpec,
    BootstrapResult,
    ProvisionConfig,
    WorkflowResult,
)
from .preflight import PreflightChecker, HostInfo, probe_host
from .keys import KeyProvisioner, KeyGenerator, OpenSSHKeyGenerator, ParamikoKeyGenerator
from .bootstrap import (
    RemoteBootstrapper,
    default_installers,
    build_installer_command,
    render_bootstrap_script,
)
from .workflow import ProvisionWorkflow

__all__ = [
    "Target",
    "KeyPair",
    "CommandResult",
    "PreflightResult",
    "KeyProvisionResult",
    "InstallerSpec",
    "BootstrapResult",
    "ProvisionConfig",
    "WorkflowResult",
    "PreflightChecker",
    "HostInfo",
    "probe_host",
    "KeyProvisioner",
    "KeyGenerator",
    "OpenSSHKeyGenerator",
    "ParamikoKeyGenerator",
    "RemoteBootstrapper",
    "default_installers",
    "build_installer_command",
    "render_bootstrap_script",
    "ProvisionWorkflow",
]
