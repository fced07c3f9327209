from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional, Literal, Tuple
import sys
import time
import paramiko
from pathlib import Path

from .constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT
from .exceptions import TransportError


@dataclass
class ClientConfig:
    host: str
    user: str
    port: int = DEFAULT_SSH_PORT
    auth_method: Literal["password", "key"] = "password"
    password: Optional[str] = None
    key_path: Optional[str] = None
    timeout: float = DEFAULT_SSH_TIMEOUT


class RemoteClient:
    """
    Thin wrapper around paramiko.SSHClient:
    - keeps host / user / port explicitly
    - password or private key login
    - exec / sftp helpers
    - usable as a context manager
    """
    def __init__(
        self,
        host: str,
        user: str,
        port: int = DEFAULT_SSH_PORT,
        auth_method: Literal["password", "key"] = "password",
        password: Optional[str] = None,
        key_path: Optional[str] = None,
        timeout: float = DEFAULT_SSH_TIMEOUT,
    ) -> None:
        self.config = ClientConfig(
            host=host,
            user=user,
            port=port,
            auth_method=auth_method,
            password=password,
            key_path=key_path,
            timeout=timeout,
        )

        self.client = paramiko.SSHClient()
        self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        self._sftp: Optional[paramiko.SFTPClient] = None

    # --------------------
    # Connection management
    # --------------------
    def connect(self) -> None:
        cfg = self.config

        try:
            if cfg.auth_method == "password":
                # Only the password may be offered, the whole point of this
                # session is to install the key in the first place.
                self.client.connect(
                    hostname=cfg.host,
                    port=cfg.port,
                    username=cfg.user,
                    password=cfg.password,
                    timeout=cfg.timeout,
                    allow_agent=False,
                    look_for_keys=False,
                )
            elif cfg.auth_method == "key":
                self.client.connect(
                    hostname=cfg.host,
                    port=cfg.port,
                    username=cfg.user,
                    pkey=self._load_private_key(cfg.key_path),
                    timeout=cfg.timeout,
                )
            else:
                raise ValueError(f"Unsupported auth method: {cfg.auth_method}")
        except (paramiko.SSHException, OSError) as e:
            raise TransportError(
                f"Failed to connect to {cfg.user}@{cfg.host}:{cfg.port}: {e}"
            ) from e

    def _load_private_key(self, path: Optional[str]) -> paramiko.PKey:
        """Try the key types we can generate"""
        if not path:
            raise TransportError("Key authentication requested without a key path")
        p = Path(path).expanduser()

        for key_cls in (paramiko.RSAKey, paramiko.ECDSAKey, paramiko.Ed25519Key):
            try:
                return key_cls.from_private_key_file(str(p))
            except (paramiko.SSHException, ValueError):
                continue
        raise TransportError(f"Failed to load private key at {p}")

    # --------------------
    # Helpers
    # --------------------
    def exec(self, cmd: str) -> Tuple[str, str]:
        """Run a command and return (stdout, stderr)"""
        _, stdout, stderr = self.client.exec_command(cmd)
        return stdout.read().decode(), stderr.read().decode()

    def exec_with_code(self, cmd: str, stdin_data: Optional[str] = None) -> Tuple[str, str, int]:
        """Run a command and return (stdout, stderr, exit_code)"""
        stdin, stdout, stderr = self.client.exec_command(cmd)
        if stdin_data is not None:
            stdin.write(stdin_data)
            stdin.channel.shutdown_write()
        out = stdout.read().decode()
        err = stderr.read().decode()
        exit_code = stdout.channel.recv_exit_status()
        return out, err, exit_code

    def exec_with_code_streaming(
        self,
        cmd: str,
        stdout_callback: Optional[Callable[[str], None]] = None,
        stderr_callback: Optional[Callable[[str], None]] = None,
    ) -> Tuple[str, str, int]:
        """
        Run a command while echoing its output, return (stdout, stderr, exit_code)

        Args:
            cmd: Command to run
            stdout_callback: Receives stdout chunks, defaults to sys.stdout
            stderr_callback: Receives stderr chunks, defaults to sys.stderr
        """
        _, stdout, stderr = self.client.exec_command(cmd)
        channel = stdout.channel

        out_buf = []
        err_buf = []

        def _emit(data: str, buf: list, callback, stream) -> None:
            buf.append(data)
            if callback:
                callback(data)
            else:
                stream.write(data)
                stream.flush()

        def _drain() -> bool:
            has_output = False
            if channel.recv_ready():
                data = channel.recv(4096).decode('utf-8', errors='replace')
                if data:
                    has_output = True
                    _emit(data, out_buf, stdout_callback, sys.stdout)
            if channel.recv_stderr_ready():
                data = channel.recv_stderr(4096).decode('utf-8', errors='replace')
                if data:
                    has_output = True
                    _emit(data, err_buf, stderr_callback, sys.stderr)
            return has_output

        # Poll so output shows up while the installers run
        while not channel.exit_status_ready():
            if not _drain():
                time.sleep(0.01)

        while _drain():
            pass

        exit_code = channel.recv_exit_status()
        return ''.join(out_buf), ''.join(err_buf), exit_code

    def home(self) -> str:
        """Remote $HOME"""
        out, _ = self.exec("printf $HOME")
        return out.strip() or f"/home/{self.config.user}"

    def open_sftp(self) -> paramiko.SFTPClient:
        """Return an SFTP client, reusing the open one"""
        if self._sftp is None or self._sftp.get_channel() is None:
            self._sftp = self.client.open_sftp()
        return self._sftp

    def write_text(self, remote_path: str, content: str, mode: int = 0o755) -> None:
        """Write text to an absolute remote path over SFTP"""
        sftp = self.open_sftp()
        with sftp.open(remote_path, "w") as f:
            f.write(content)
        sftp.chmod(remote_path, mode)

    def close(self) -> None:
        if self._sftp:
            try:
                self._sftp.close()
            except (OSError, EOFError):
                pass
            self._sftp = None
        self.client.close()

    # --------------------
    # Context manager
    # --------------------
    def __enter__(self) -> RemoteClient:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
