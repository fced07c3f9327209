"""
Provisioning workflow - preflight, keys, bootstrap
"""
from typing import Callable, Optional

from ..core.exceptions import RequirementError, RestartRequiredError
from ..core.logging import get_logger
from .bootstrap import RemoteBootstrapper
from .keys import KeyProvisioner
from .models import ProvisionConfig, WorkflowResult
from .preflight import PreflightChecker

logger = get_logger(__name__)


class ProvisionWorkflow:
    """
    Runs the three phases in order.

    A failed preflight or a pending restart stops the run before anything
    touches the target. Once the key is pushed it stays, whatever the
    bootstrap does.
    """

    def __init__(
        self,
        checker: PreflightChecker,
        provisioner: KeyProvisioner,
        bootstrapper: RemoteBootstrapper,
        on_phase: Optional[Callable[[str], None]] = None,
    ):
        self.checker = checker
        self.provisioner = provisioner
        self.bootstrapper = bootstrapper
        self.on_phase = on_phase

    def _phase(self, name: str) -> None:
        logger.debug("Phase: %s", name)
        if self.on_phase:
            self.on_phase(name)

    def run(self, config: ProvisionConfig) -> WorkflowResult:
        self._phase("preflight")
        preflight = self.checker.check(skip=config.skip_checks)
        if not preflight.passed:
            raise RequirementError("; ".join(preflight.messages) or "Preflight checks failed")
        if preflight.restart_required:
            raise RestartRequiredError(
                "A restart is required to finish installing the OpenSSH client, "
                "restart the computer and run again"
            )

        self._phase("keys")
        keys = self.provisioner.provision(
            key_path=config.key_path,
            key_type=config.key_type,
            hostname=config.hostname,
            username=config.username,
            port=config.port,
            regenerate=config.regenerate_key,
        )

        self._phase("bootstrap")
        bootstrap = self.bootstrapper.bootstrap(keys.target, config)

        return WorkflowResult(preflight=preflight, keys=keys, bootstrap=bootstrap)
