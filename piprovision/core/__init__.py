"""
Core infrastructure layer
"""
from .client import RemoteClient, ClientConfig
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import CommandRunner, PromptProvider, RemoteTransport
from .utils import (
    parse_version,
    expand_remote_home,
    remote_shell_path,
    authorized_keys_command,
)

__all__ = [
    "RemoteClient",
    "ClientConfig",
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "CommandRunner",
    "PromptProvider",
    "RemoteTransport",
    "parse_version",
    "expand_remote_home",
    "remote_shell_path",
    "authorized_keys_command",
]
