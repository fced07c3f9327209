from pathlib import Path

import pytest

from piprovision.adapters.config.loader import ConfigLoader, build_config
from piprovision.core.exceptions import ConfigError


def write_toml(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "provision.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults():
    config = build_config({})

    assert config.hostname is None
    assert config.username is None
    assert config.port == 22
    assert config.key_path == Path("~/.ssh/id_rsa").expanduser()
    assert config.transport == "openssh"
    assert config.bootstrap_mode == "script"
    assert not config.skip_checks


def test_toml_tables_are_flattened(tmp_path):
    path = write_toml(
        tmp_path,
        """
transport = "paramiko"
bootstrap_mode = "direct"

[target]
hostname = "mypi.local"
port = 2222

[dotnet]
channel = "LTS"

[vsdbg]
arch = "linux-arm64"
""",
    )
    config = build_config(ConfigLoader().load(toml_path=path, use_env=False))

    assert config.hostname == "mypi.local"
    assert config.port == 2222
    assert config.transport == "paramiko"
    assert config.bootstrap_mode == "direct"
    assert config.dotnet_channel == "LTS"
    assert config.vsdbg_arch == "linux-arm64"


def test_priority_env_over_cli_over_toml(tmp_path, monkeypatch):
    path = write_toml(tmp_path, 'hostname = "from-toml"\nusername = "toml-user"\nport = 2200\n')
    monkeypatch.setenv("PIPROVISION_HOSTNAME", "from-env")

    values = ConfigLoader().load(
        toml_path=path, cli_overrides={"hostname": "from-cli", "username": "cli-user"}
    )

    assert values["hostname"] == "from-env"
    assert values["username"] == "cli-user"
    assert values["port"] == 2200


def test_none_does_not_override(tmp_path):
    path = write_toml(tmp_path, 'username = "toml-user"\n')
    values = ConfigLoader().load(toml_path=path, cli_overrides={"username": None}, use_env=False)
    assert values["username"] == "toml-user"


def test_env_values_are_typed(monkeypatch):
    monkeypatch.setenv("PIPROVISION_PORT", "2022")
    monkeypatch.setenv("PIPROVISION_PASSWORD", "1234")

    values = ConfigLoader().load_env()

    assert values["port"] == 2022
    assert values["password"] == "1234"


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        ConfigLoader().load_toml(tmp_path / "nope.toml")


def test_invalid_toml(tmp_path):
    with pytest.raises(ConfigError, match="Failed to parse"):
        ConfigLoader().load_toml(write_toml(tmp_path, "hostname = \n"))


@pytest.mark.parametrize(
    "values, message",
    [
        ({"transport": "telnet"}, "Unknown transport"),
        ({"bootstrap_mode": "maybe"}, "Unknown bootstrap mode"),
        ({"key_type": "dsa"}, "Unsupported key type"),
        ({"port": "abc"}, "Invalid port"),
        ({"port": 70000}, "Invalid port"),
        ({"colour": "blue"}, "Unknown configuration keys"),
        ({"hostname": 5}, "Invalid hostname"),
        ({"username": ["pi"]}, "Invalid username"),
        ({"vsdbg_version": 17.0}, "Invalid vsdbg_version"),
    ],
)
def test_invalid_values(values, message):
    with pytest.raises(ConfigError, match=message):
        build_config(values)


def test_non_string_hostname_in_toml(tmp_path):
    config_file = tmp_path / "provision.toml"
    config_file.write_text("[target]\nhostname = 5\n")

    values = ConfigLoader().load(toml_path=config_file, use_env=False)
    with pytest.raises(ConfigError, match="Invalid hostname"):
        build_config(values)
