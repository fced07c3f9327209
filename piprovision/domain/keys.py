"""
Key pair generation and public key provisioning
"""
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import paramiko

from ..core.constants import (
    DEFAULT_HOSTNAME,
    DEFAULT_USERNAME,
    DEFAULT_SSH_PORT,
    DEFAULT_RSA_BITS,
    KEY_COMMENT,
    PRIVATE_KEY_MODE,
    PUBLIC_KEY_MODE,
    SUPPORTED_KEY_TYPES,
)
from ..core.exceptions import ConfigError, KeyGenerationError
from ..core.interfaces import CommandRunner, PromptProvider, RemoteTransport
from ..core.logging import get_logger
from .models import KeyPair, KeyProvisionResult, Target

logger = get_logger(__name__)


# ============================================================
# Key Generators
# ============================================================

class KeyGenerator(ABC):
    """Creates key pair files on disk"""

    @abstractmethod
    def generate(self, key_pair: KeyPair, key_type: str) -> None:
        pass

    @abstractmethod
    def derive_public(self, key_pair: KeyPair) -> None:
        """Rebuild the .pub file from an existing private key"""
        pass


class OpenSSHKeyGenerator(KeyGenerator):
    """Generates keys with ssh-keygen"""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def generate(self, key_pair: KeyPair, key_type: str) -> None:
        # ssh-keygen asks before overwriting
        for path in (key_pair.private_path, key_pair.public_path):
            path.unlink(missing_ok=True)

        argv = [
            "ssh-keygen",
            "-t", key_type,
            "-f", str(key_pair.private_path),
            "-N", "",
            "-C", KEY_COMMENT,
            "-q",
        ]
        if key_type == "rsa":
            argv[3:3] = ["-b", str(DEFAULT_RSA_BITS)]

        result = self.runner.run(argv, capture=True)
        if not result.ok:
            raise KeyGenerationError(
                f"ssh-keygen failed with exit code {result.exit_code}: {result.stderr.strip()}"
            )

    def derive_public(self, key_pair: KeyPair) -> None:
        result = self.runner.run(
            ["ssh-keygen", "-y", "-f", str(key_pair.private_path)], capture=True
        )
        if not result.ok:
            raise KeyGenerationError(
                f"Could not read public key from {key_pair.private_path}: {result.stderr.strip()}"
            )
        key_pair.public_path.write_text(result.stdout.strip() + "\n", encoding="utf-8")
        key_pair.public_path.chmod(PUBLIC_KEY_MODE)


class ParamikoKeyGenerator(KeyGenerator):
    """
    Generates keys in-process with paramiko.

    paramiko can only create RSA and ECDSA keys.
    """

    def generate(self, key_pair: KeyPair, key_type: str) -> None:
        if key_type == "rsa":
            key = paramiko.RSAKey.generate(DEFAULT_RSA_BITS)
        elif key_type == "ecdsa":
            key = paramiko.ECDSAKey.generate()
        else:
            raise KeyGenerationError(
                f"Key type '{key_type}' cannot be generated with the paramiko transport, "
                "use rsa or ecdsa, or the openssh transport"
            )

        key.write_private_key_file(str(key_pair.private_path))
        key_pair.private_path.chmod(PRIVATE_KEY_MODE)
        self._write_public(key_pair, key)

    def derive_public(self, key_pair: KeyPair) -> None:
        for key_cls in (paramiko.RSAKey, paramiko.ECDSAKey, paramiko.Ed25519Key):
            try:
                key = key_cls.from_private_key_file(str(key_pair.private_path))
            except (paramiko.SSHException, ValueError):
                continue
            self._write_public(key_pair, key)
            return
        raise KeyGenerationError(f"Could not load private key {key_pair.private_path}")

    def _write_public(self, key_pair: KeyPair, key: paramiko.PKey) -> None:
        key_pair.public_path.write_text(
            f"{key.get_name()} {key.get_base64()} {KEY_COMMENT}\n", encoding="utf-8"
        )
        key_pair.public_path.chmod(PUBLIC_KEY_MODE)


# ============================================================
# Provisioner
# ============================================================

class KeyProvisioner:
    """
    Makes sure a key pair exists locally and installs its public half on
    the target.
    """

    def __init__(
        self,
        prompts: PromptProvider,
        generator: KeyGenerator,
        transport: RemoteTransport,
    ):
        self.prompts = prompts
        self.generator = generator
        self.transport = transport

    def resolve_target(
        self,
        hostname: Optional[str] = None,
        username: Optional[str] = None,
        port: int = DEFAULT_SSH_PORT,
    ) -> Target:
        """
        Build the target from explicit values, prompting for missing ones.

        None asks the operator; an empty string (or an empty answer) falls
        back to the default.
        """
        if hostname is None:
            hostname = self.prompts.prompt("Target hostname", default=DEFAULT_HOSTNAME)
        if username is None:
            username = self.prompts.prompt("Target username", default=DEFAULT_USERNAME)

        return Target(
            hostname=hostname if hostname.strip() else DEFAULT_HOSTNAME,
            username=username if username.strip() else DEFAULT_USERNAME,
            port=port,
        )

    def ensure_key_pair(
        self, key_path: Path, key_type: str, regenerate: bool = False
    ) -> tuple[KeyPair, bool]:
        """
        Return the key pair at key_path, creating it when needed.

        An existing pair is reused unless regenerate is set. Returns
        (key_pair, generated).
        """
        if key_type not in SUPPORTED_KEY_TYPES:
            raise ConfigError(
                f"Unsupported key type '{key_type}', expected one of {', '.join(SUPPORTED_KEY_TYPES)}"
            )

        key_pair = KeyPair(private_path=Path(key_path).expanduser())
        key_pair.private_path.parent.mkdir(parents=True, exist_ok=True)

        if not regenerate:
            if key_pair.exists():
                logger.info("Reusing existing key pair %s", key_pair.private_path)
                return key_pair, False
            if key_pair.private_path.exists():
                logger.info("Public key missing, deriving it from %s", key_pair.private_path)
                self.generator.derive_public(key_pair)
                return key_pair, False

        logger.info("Generating %s key pair %s", key_type, key_pair.private_path)
        self._generate(key_pair, key_type)
        return key_pair, True

    def _generate(self, key_pair: KeyPair, key_type: str) -> None:
        """Generate beside key_pair, replacing it only once generation succeeded"""
        private = key_pair.private_path
        staged = KeyPair(private_path=private.with_name(f".{private.name}.new"))
        try:
            self.generator.generate(staged, key_type)
            os.replace(staged.private_path, private)
            os.replace(staged.public_path, key_pair.public_path)
        finally:
            for path in (staged.private_path, staged.public_path):
                path.unlink(missing_ok=True)

    def push_public_key(self, target: Target, key_pair: KeyPair) -> int:
        """
        Append the public key to the target's authorized_keys.

        The exit code is reported, not acted on.
        """
        public_key = key_pair.read_public_key()
        logger.info("Adding %s to %s:~/.ssh/authorized_keys", key_pair.public_path.name, target)
        code = self.transport.push_public_key(target, public_key)
        if code != 0:
            logger.warning("Public key upload exited with code %s", code)
        return code

    def provision(
        self,
        key_path: Path,
        key_type: str,
        hostname: Optional[str] = None,
        username: Optional[str] = None,
        port: int = DEFAULT_SSH_PORT,
        regenerate: bool = False,
    ) -> KeyProvisionResult:
        target = self.resolve_target(hostname, username, port)
        key_pair, generated = self.ensure_key_pair(key_path, key_type, regenerate)
        code = self.push_public_key(target, key_pair)
        return KeyProvisionResult(
            target=target, key_pair=key_pair, generated=generated, push_exit_code=code
        )
