"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.models import CommandResult, Target


class CommandRunner(ABC):
    """Local process runner interface"""

    @abstractmethod
    def run(
        self,
        argv: Sequence[str],
        stdin: Optional[str] = None,
        capture: bool = False,
    ) -> "CommandResult":
        """
        Run a local program and wait for it to exit.

        When ``capture`` is False the program shares the console, so its
        output and any interactive prompt reach the operator directly.
        """
        pass


class PromptProvider(ABC):
    """User prompt interface"""

    @abstractmethod
    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        pass

    @abstractmethod
    def confirm(self, message: str, default: bool = False) -> bool:
        """Prompt user for confirmation"""
        pass


class RemoteTransport(ABC):
    """Remote session interface used by the key provisioner and bootstrapper"""

    @abstractmethod
    def push_public_key(self, target: "Target", public_key: str) -> int:
        """Append a public key to the target's authorized_keys, return exit code"""
        pass

    @abstractmethod
    def copy_file(self, target: "Target", content: str, remote_path: str) -> int:
        """Write text content to a path on the target, return exit code"""
        pass

    @abstractmethod
    def run(self, target: "Target", command: str) -> int:
        """Run a shell command on the target, return its exit code"""
        pass

    def close(self) -> None:
        """Release any open sessions"""
        pass
