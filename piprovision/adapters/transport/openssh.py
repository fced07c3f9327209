"""
Transport shelling out to the OpenSSH client (ssh / scp)
"""
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from ...core.interfaces import CommandRunner, RemoteTransport
from ...core.logging import get_logger
from ...core.utils import authorized_keys_command
from ...domain.models import Target

logger = get_logger(__name__)


class OpenSSHTransport(RemoteTransport):
    """
    Runs ssh and scp as child processes sharing the console.

    Password prompts are handled by ssh itself. Once the key is installed,
    copies and commands authenticate with ``identity_file``.
    """

    def __init__(self, runner: CommandRunner, identity_file: Optional[Path] = None):
        self.runner = runner
        self.identity_file = identity_file

    def _identity_options(self) -> List[str]:
        if self.identity_file is None:
            return []
        return ["-i", str(self.identity_file)]

    def push_public_key(self, target: Target, public_key: str) -> int:
        argv = [
            "ssh",
            "-p", str(target.port),
            "-o", "PreferredAuthentications=password,keyboard-interactive",
            "-o", "PubkeyAuthentication=no",
            target.destination,
            authorized_keys_command(),
        ]
        return self.runner.run(argv, stdin=public_key.strip() + "\n").exit_code

    def copy_file(self, target: Target, content: str, remote_path: str) -> int:
        # scp resolves relative paths against the remote home directory
        if remote_path.startswith("~/"):
            remote_path = remote_path[2:]

        fd, tmp_name = tempfile.mkstemp(prefix="piprovision-", suffix=".sh")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
            argv = [
                "scp",
                "-P", str(target.port),
                *self._identity_options(),
                tmp_name,
                f"{target.destination}:{remote_path}",
            ]
            return self.runner.run(argv).exit_code
        finally:
            Path(tmp_name).unlink(missing_ok=True)

    def run(self, target: Target, command: str) -> int:
        argv = [
            "ssh",
            "-p", str(target.port),
            *self._identity_options(),
            target.destination,
            command,
        ]
        return self.runner.run(argv).exit_code
