"""
Configuration loader with priority: env > CLI > TOML > defaults
"""
import os
import tomllib
from pathlib import Path
from typing import Dict, Any, Optional

from ...core.constants import (
    ENV_PREFIX,
    TRANSPORTS,
    BOOTSTRAP_MODES,
    SUPPORTED_KEY_TYPES,
)
from ...core.exceptions import ConfigError
from ...domain.models import ProvisionConfig


class ConfigLoader:
    """Configuration loader with priority support"""

    # Map environment variables to config keys
    ENV_MAPPINGS = {
        f"{ENV_PREFIX}HOSTNAME": "hostname",
        f"{ENV_PREFIX}USERNAME": "username",
        f"{ENV_PREFIX}PORT": "port",
        f"{ENV_PREFIX}PASSWORD": "password",
        f"{ENV_PREFIX}KEY_PATH": "key_path",
        f"{ENV_PREFIX}KEY_TYPE": "key_type",
        f"{ENV_PREFIX}TRANSPORT": "transport",
        f"{ENV_PREFIX}MODE": "bootstrap_mode",
        f"{ENV_PREFIX}SCRIPT": "script_path",
    }

    # Variables that stay strings even if they look like numbers or booleans
    STRING_KEYS = {"hostname", "username", "password", "key_path", "script_path"}

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            data = tomllib.loads(path.read_text(encoding='utf-8'))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e

        # [target], [dotnet] and [vsdbg] tables flatten onto ProvisionConfig fields
        target = data.pop("target", {})
        dotnet = data.pop("dotnet", {})
        vsdbg = data.pop("vsdbg", {})
        for key, value in target.items():
            data[key] = value
        for key, value in dotnet.items():
            data[f"dotnet_{key}"] = value
        for key, value in vsdbg.items():
            data[f"vsdbg_{key}"] = value
        return data

    def load_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        config = {}
        for env_key, config_key in self.ENV_MAPPINGS.items():
            value = os.getenv(env_key)
            if value:
                if config_key in self.STRING_KEYS:
                    config[config_key] = value
                else:
                    config[config_key] = self._convert_value(value)
        return config

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type"""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones; None values never override.
        """
        result: Dict[str, Any] = {}
        for config in configs:
            for key, value in config.items():
                if value is not None:
                    result[key] = value
        return result

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Dict[str, Any]:
        """
        Load configuration with priority: env > CLI > TOML > defaults

        Args:
            toml_path: Path to TOML configuration file
            cli_overrides: CLI parameter overrides
            use_env: Whether to load from environment variables

        Returns:
            Merged configuration dictionary
        """
        configs = []

        if toml_path:
            configs.append(self.load_toml(toml_path))

        if cli_overrides:
            configs.append(cli_overrides)

        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        return self.merge_configs(*configs)


# Fields that must come out of TOML/env as strings
STRING_FIELDS = (
    "hostname",
    "username",
    "password",
    "key_type",
    "transport",
    "bootstrap_mode",
    "dotnet_channel",
    "dotnet_runtime",
    "vsdbg_arch",
    "vsdbg_version",
    "vsdbg_path",
)


def build_config(values: Dict[str, Any]) -> ProvisionConfig:
    """
    Turn a merged configuration dictionary into a ProvisionConfig.

    Raises:
        ConfigError: Unknown keys or invalid values
    """
    known = set(ProvisionConfig.__dataclass_fields__)
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    for key in STRING_FIELDS:
        value = values.get(key)
        if value is not None and not isinstance(value, str):
            raise ConfigError(f"Invalid {key}: expected a string, got {value!r}")

    values = dict(values)
    if "key_path" in values:
        values["key_path"] = Path(str(values["key_path"])).expanduser()
    if "script_path" in values:
        values["script_path"] = Path(str(values["script_path"])).expanduser()
    if "port" in values:
        try:
            values["port"] = int(values["port"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid port: {values['port']!r}") from e
        if not 0 < values["port"] < 65536:
            raise ConfigError(f"Invalid port: {values['port']}")

    config = ProvisionConfig(**values)

    if config.transport not in TRANSPORTS:
        raise ConfigError(
            f"Unknown transport '{config.transport}', expected one of {', '.join(TRANSPORTS)}"
        )
    if config.bootstrap_mode not in BOOTSTRAP_MODES:
        raise ConfigError(
            f"Unknown bootstrap mode '{config.bootstrap_mode}', "
            f"expected one of {', '.join(BOOTSTRAP_MODES)}"
        )
    if config.key_type not in SUPPORTED_KEY_TYPES:
        raise ConfigError(
            f"Unsupported key type '{config.key_type}', "
            f"expected one of {', '.join(SUPPORTED_KEY_TYPES)}"
        )
    return config
