from .loader import ConfigLoader, build_config

__all__ = ["ConfigLoader", "build_config"]
