"""
Remote transports
"""
from .openssh import OpenSSHTransport
from .paramiko_transport import ParamikoTransport

__all__ = ["OpenSSHTransport", "ParamikoTransport"]
