"""
Project constants definitions
"""

# ============================================================
# Target Defaults
# ============================================================

DEFAULT_HOSTNAME = "raspberry.local"
DEFAULT_USERNAME = "pi"
DEFAULT_SSH_PORT = 22
DEFAULT_SSH_TIMEOUT = 10

# ============================================================
# Key Pair Defaults
# ============================================================

DEFAULT_KEY_PATH = "~/.ssh/id_rsa"
DEFAULT_KEY_TYPE = "rsa"
SUPPORTED_KEY_TYPES = ("rsa", "ed25519", "ecdsa")
DEFAULT_RSA_BITS = 4096
PRIVATE_KEY_MODE = 0o600
PUBLIC_KEY_MODE = 0o644
KEY_COMMENT = "piprovision"

# ============================================================
# Preflight Requirements
# ============================================================

# Windows 10 1809 is the first build that ships OpenSSH as a capability
MIN_WINDOWS_BUILD = 17763
MIN_POWERSHELL_VERSION = (5, 1)
OPENSSH_CAPABILITY_PATTERN = "OpenSSH.Client*"
OPENSSH_CAPABILITY_NAME = "OpenSSH.Client~~~~0.0.1.0"
REQUIRED_SSH_TOOLS = ("ssh", "scp", "ssh-keygen")

# ============================================================
# Bootstrap
# ============================================================

DEFAULT_SCRIPT_PATH = "setup.sh"
REMOTE_SCRIPT_PATH = "~/setup.sh"
DEFAULT_INTERPRETER = "bash"

DOTNET_INSTALL_URL = (
    "https://dotnetwebsite.azurewebsites.net/download/dotnet-core/scripts/v1/dotnet-install.sh"
)
DEFAULT_DOTNET_CHANNEL = "Current"
DEFAULT_DOTNET_RUNTIME = "dotnet"

VSDBG_INSTALL_URL = "https://aka.ms/getvsdbgsh"
DEFAULT_VSDBG_ARCH = "linux-arm"
DEFAULT_VSDBG_VERSION = "latest"
DEFAULT_VSDBG_PATH = "~/vsdbg"

# ============================================================
# Transports and Modes
# ============================================================

TRANSPORTS = ("openssh", "paramiko")
DEFAULT_TRANSPORT = "openssh"
BOOTSTRAP_MODES = ("script", "direct")
DEFAULT_BOOTSTRAP_MODE = "script"

# ============================================================
# Configuration
# ============================================================

ENV_PREFIX = "PIPROVISION_"
