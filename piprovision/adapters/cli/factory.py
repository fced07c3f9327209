"""
Wires concrete runners, transports and services from a ProvisionConfig
"""
from typing import Callable, Optional

from ...core.interfaces import CommandRunner, PromptProvider, RemoteTransport
from ...domain.bootstrap import RemoteBootstrapper
from ...domain.keys import KeyGenerator, KeyProvisioner, OpenSSHKeyGenerator, ParamikoKeyGenerator
from ...domain.models import ProvisionConfig
from ...domain.preflight import PreflightChecker
from ...domain.workflow import ProvisionWorkflow
from ..process import SubprocessRunner
from ..transport.openssh import OpenSSHTransport
from ..transport.paramiko_transport import ParamikoTransport


class ServiceFactory:
    """Builds the workflow pieces for one run"""

    def __init__(
        self,
        config: ProvisionConfig,
        prompts: PromptProvider,
        runner: Optional[CommandRunner] = None,
    ):
        self.config = config
        self.prompts = prompts
        self.runner = runner or SubprocessRunner()
        self._transport: Optional[RemoteTransport] = None

    def transport(self) -> RemoteTransport:
        if self._transport is None:
            if self.config.transport == "paramiko":
                self._transport = ParamikoTransport(
                    prompts=self.prompts,
                    password=self.config.password,
                    identity_file=self.config.key_path,
                )
            else:
                self._transport = OpenSSHTransport(
                    runner=self.runner, identity_file=self.config.key_path
                )
        return self._transport

    def key_generator(self) -> KeyGenerator:
        if self.config.transport == "paramiko":
            return ParamikoKeyGenerator()
        return OpenSSHKeyGenerator(self.runner)

    def checker(self) -> PreflightChecker:
        return PreflightChecker(
            runner=self.runner, prompts=self.prompts, assume_yes=self.config.assume_yes
        )

    def provisioner(self) -> KeyProvisioner:
        return KeyProvisioner(
            prompts=self.prompts, generator=self.key_generator(), transport=self.transport()
        )

    def bootstrapper(self) -> RemoteBootstrapper:
        return RemoteBootstrapper(self.transport())

    def workflow(self, on_phase: Optional[Callable[[str], None]] = None) -> ProvisionWorkflow:
        return ProvisionWorkflow(
            checker=self.checker(),
            provisioner=self.provisioner(),
            bootstrapper=self.bootstrapper(),
            on_phase=on_phase,
        )

    def close(self) -> None:
        if self._transport is not None:
            self._transport.close()
