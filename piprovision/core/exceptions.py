"""
Unified exception definitions
"""


class ProvisionError(Exception):
    """Base exception class"""
    pass


class ConfigError(ProvisionError):
    """Configuration error"""
    pass


class RequirementError(ProvisionError):
    """A local requirement is not met, the run cannot continue"""
    pass


class RestartRequiredError(ProvisionError):
    """A capability was installed and the machine must be restarted first"""
    pass


class KeyGenerationError(ProvisionError):
    """Key pair generation failed"""
    pass


class TransportError(ProvisionError):
    """Remote session could not be established"""
    pass
