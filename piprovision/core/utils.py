"""
Core utility functions
"""
import re
import shlex
from typing import Tuple


# ============================================================
# Version Parsing
# ============================================================

def parse_version(text: str) -> Tuple[int, ...]:
    """
    Parse the leading dotted number out of a version string.

    "10.0.19045" -> (10, 0, 19045), "5.1.22621.2506" -> (5, 1, 22621, 2506).
    Returns an empty tuple when nothing numeric is found.
    """
    match = re.search(r"\d+(?:\.\d+)*", text or "")
    if not match:
        return ()
    return tuple(int(part) for part in match.group(0).split("."))


# ============================================================
# Path Resolution Utilities
# ============================================================

def expand_remote_home(path: str, home: str) -> str:
    """Replace a leading ~ in a remote path with the remote $HOME"""
    if path == "~":
        return home
    if path.startswith("~/"):
        return home.rstrip("/") + path[1:]
    return path


def remote_shell_path(path: str) -> str:
    """
    Quote a remote path for a POSIX shell while keeping ~ expandable.

    "~/my dir/setup.sh" -> ~/'my dir/setup.sh'
    """
    if path == "~":
        return path
    if path.startswith("~/"):
        return "~/" + shlex.quote(path[2:])
    return shlex.quote(path)


# ============================================================
# SSH Key Management
# ============================================================

def authorized_keys_command() -> str:
    """
    Remote command adding the key read from stdin to ~/.ssh/authorized_keys.

    A key already present as a whole line is not appended again.
    """
    return (
        "umask 077 && mkdir -p ~/.ssh && chmod 700 ~/.ssh && "
        'key="$(cat)" && '
        "{ grep -qxF \"$key\" ~/.ssh/authorized_keys 2>/dev/null || "
        "printf '%s\\n' \"$key\" >> ~/.ssh/authorized_keys; } && "
        "chmod 600 ~/.ssh/authorized_keys"
    )
