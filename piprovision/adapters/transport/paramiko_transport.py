"""
Transport using an in-process paramiko session
"""
from pathlib import Path
from typing import Optional

from ...core.client import RemoteClient
from ...core.constants import DEFAULT_SSH_TIMEOUT
from ...core.exceptions import TransportError
from ...core.interfaces import PromptProvider, RemoteTransport
from ...core.logging import get_logger
from ...core.utils import authorized_keys_command, expand_remote_home
from ...domain.models import Target

logger = get_logger(__name__)


class ParamikoTransport(RemoteTransport):
    """
    RemoteTransport over paramiko.

    The key push always logs in with a password (asked for when not
    configured). Later calls log in with ``identity_file`` when it exists,
    falling back to the password session.
    """

    def __init__(
        self,
        prompts: PromptProvider,
        password: Optional[str] = None,
        identity_file: Optional[Path] = None,
        timeout: float = DEFAULT_SSH_TIMEOUT,
    ):
        self.prompts = prompts
        self.password = password
        self.identity_file = identity_file
        self.timeout = timeout
        self._client: Optional[RemoteClient] = None
        self._client_target: Optional[Target] = None
        self._key_rejected = False

    def _password_for(self, target: Target) -> str:
        if self.password is None:
            self.password = self.prompts.prompt(f"Password for {target}", password=True)
        return self.password

    def _connect(self, target: Target, use_key: bool) -> RemoteClient:
        if use_key:
            client = RemoteClient(
                host=target.hostname,
                user=target.username,
                port=target.port,
                auth_method="key",
                key_path=str(self.identity_file),
                timeout=self.timeout,
            )
        else:
            client = RemoteClient(
                host=target.hostname,
                user=target.username,
                port=target.port,
                auth_method="password",
                password=self._password_for(target),
                timeout=self.timeout,
            )
        client.connect()
        logger.debug("Connected to %s (%s)", target, client.config.auth_method)
        return client

    def _session(self, target: Target) -> RemoteClient:
        """Open session for target, preferring the installed key"""
        if self._client is not None and self._client_target == target:
            if self._client.config.auth_method == "key" or not self._key_available():
                return self._client

        if self._key_available():
            try:
                client = self._connect(target, use_key=True)
            except TransportError as e:
                logger.warning("Key login failed (%s), trying password...", e)
                self._key_rejected = True
                client = self._connect(target, use_key=False)
        else:
            client = self._connect(target, use_key=False)

        self._replace(target, client)
        return client

    def _key_available(self) -> bool:
        return (
            not self._key_rejected
            and self.identity_file is not None
            and Path(self.identity_file).exists()
        )

    def _replace(self, target: Target, client: RemoteClient) -> None:
        if self._client is not None and self._client is not client:
            self._client.close()
        self._client = client
        self._client_target = target

    def push_public_key(self, target: Target, public_key: str) -> int:
        client = self._connect(target, use_key=False)
        self._replace(target, client)

        _, err, code = client.exec_with_code(
            authorized_keys_command(), stdin_data=public_key.strip() + "\n"
        )
        if err.strip():
            logger.warning(err.strip())
        return code

    def copy_file(self, target: Target, content: str, remote_path: str) -> int:
        client = self._session(target)
        path = expand_remote_home(remote_path, client.home())
        try:
            client.write_text(path, content)
        except (IOError, OSError) as e:
            logger.error("Failed to write %s on %s: %s", path, target, e)
            return 1
        return 0

    def run(self, target: Target, command: str) -> int:
        client = self._session(target)
        _, _, code = client.exec_with_code_streaming(command)
        return code

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            self._client_target = None
