"""
Provisioning CLI commands
"""
import typer
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Dict, Any, Iterator

from ...core.logging import get_logger, get_stdout_console, get_stderr_console
from ...core.exceptions import (
    ProvisionError,
    ConfigError,
    RequirementError,
    RestartRequiredError,
)
from ...domain.bootstrap import default_installers, render_bootstrap_script
from ...domain.models import ProvisionConfig
from ..config.loader import ConfigLoader, build_config
from .factory import ServiceFactory
from .prompts import RichPromptProvider

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()
prompt_provider = RichPromptProvider()


# ============================================================
# Shared options
# ============================================================

SKIP_CHECKS_OPTION = typer.Option(
    False, "--skip-checks", help="Skip OS version and SSH client checks"
)
HOSTNAME_OPTION = typer.Option(
    None, "--hostname", "-H", help="Target hostname (prompted when omitted, default: raspberry.local)"
)
USERNAME_OPTION = typer.Option(
    None, "--username", "-u", help="Target username (prompted when omitted, default: pi)"
)
PORT_OPTION = typer.Option(None, "--port", "-p", help="Target SSH port (default: 22)")
KEY_PATH_OPTION = typer.Option(
    None, "--key-path", "-k", help="Private key path (default: ~/.ssh/id_rsa)"
)
KEY_TYPE_OPTION = typer.Option(
    None, "--key-type", "-t", help="Key type for new keys: rsa, ed25519 or ecdsa"
)
REGENERATE_OPTION = typer.Option(
    False, "--regenerate-key", help="Generate a new key pair even if one exists"
)
TRANSPORT_OPTION = typer.Option(
    None, "--transport", help="SSH implementation: openssh (ssh/scp) or paramiko"
)
MODE_OPTION = typer.Option(
    None, "--mode", "-m", help="Bootstrap mode: script (upload setup.sh) or direct"
)
SCRIPT_OPTION = typer.Option(
    None, "--script", "-s", help="Bootstrap script to upload (default: ./setup.sh)"
)
YES_OPTION = typer.Option(
    False, "--yes", "-y", help="Install the OpenSSH client without asking"
)
CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Configuration file path (TOML)")


def register_provision_commands(app: typer.Typer) -> None:
    """Register provisioning commands on the main app"""
    app.command(name="provision")(provision_run)
    app.command(name="check")(check_run)
    app.command(name="push-key")(push_key_run)
    app.command(name="bootstrap")(bootstrap_run)
    app.command(name="render-script")(render_script_run)


# ============================================================
# Helpers
# ============================================================

def load_config(config_file: Optional[Path], **cli_values: Any) -> ProvisionConfig:
    """Merge TOML, CLI values and environment into a ProvisionConfig"""
    # unset options and flags that are off must not hide TOML values
    cli_overrides: Dict[str, Any] = {
        key: value for key, value in cli_values.items()
        if value is not None and value is not False
    }
    values = ConfigLoader().load(
        toml_path=config_file.expanduser() if config_file else None,
        cli_overrides=cli_overrides,
    )
    return build_config(values)


def make_factory(config: ProvisionConfig) -> ServiceFactory:
    return ServiceFactory(config, prompt_provider)


@contextmanager
def handle_errors(action: str) -> Iterator[None]:
    """Map domain errors to console messages and exit codes"""
    try:
        yield
    except typer.Exit:
        raise
    except RestartRequiredError as e:
        stderr_console.print(f"[yellow]Restart required:[/yellow] {e}")
        raise typer.Exit(1)
    except RequirementError as e:
        stderr_console.print(f"[red]Requirement not met:[/red] {e}")
        raise typer.Exit(1)
    except ConfigError as e:
        stderr_console.print(f"[red]Config Error:[/red] {e}")
        raise typer.Exit(1)
    except ProvisionError as e:
        stderr_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        stderr_console.print("[yellow]Interrupted[/yellow]")
        raise typer.Exit(130)
    except Exception as e:
        logger.exception("Failed to %s", action)
        stderr_console.print(f"[red]Error:[/red] Failed to {action}: {e}")
        raise typer.Exit(1)


# ============================================================
# Commands
# ============================================================

def provision_run(
    skip_checks: bool = SKIP_CHECKS_OPTION,
    hostname: Optional[str] = HOSTNAME_OPTION,
    username: Optional[str] = USERNAME_OPTION,
    port: Optional[int] = PORT_OPTION,
    key_path: Optional[Path] = KEY_PATH_OPTION,
    key_type: Optional[str] = KEY_TYPE_OPTION,
    regenerate_key: bool = REGENERATE_OPTION,
    transport: Optional[str] = TRANSPORT_OPTION,
    mode: Optional[str] = MODE_OPTION,
    script: Optional[Path] = SCRIPT_OPTION,
    yes: bool = YES_OPTION,
    config_file: Optional[Path] = CONFIG_OPTION,
):
    """
    Set up key-based SSH access and install .NET and vsdbg on the target

    Examples:
        piprovision provision
        piprovision provision -H mypi.local -u pi --mode direct
        piprovision provision --skip-checks --transport paramiko
    """
    with handle_errors("provision"):
        config = load_config(
            config_file,
            skip_checks=skip_checks,
            hostname=hostname,
            username=username,
            port=port,
            key_path=key_path,
            key_type=key_type,
            regenerate_key=regenerate_key,
            transport=transport,
            bootstrap_mode=mode,
            script_path=script,
            assume_yes=yes,
        )
        factory = make_factory(config)
        try:
            result = factory.workflow(
                on_phase=lambda phase: logger.debug("Starting %s", phase)
            ).run(config)
        finally:
            factory.close()

        keys = result.keys
        if keys.generated:
            prompt_provider.success(f"Generated key pair {keys.key_pair.private_path}")
        if keys.push_exit_code == 0:
            prompt_provider.success(f"Public key added to {keys.target}:~/.ssh/authorized_keys")
        else:
            prompt_provider.warning(f"Public key upload exited with code {keys.push_exit_code}")

        if result.exit_code == 0:
            prompt_provider.success(f"Bootstrap finished on {keys.target}")
        else:
            prompt_provider.warning(f"Bootstrap exited with code {result.exit_code}")
            raise typer.Exit(result.exit_code)


def check_run(
    yes: bool = YES_OPTION,
    config_file: Optional[Path] = CONFIG_OPTION,
):
    """
    Check that this computer can run the provisioning (OS version, SSH client)
    """
    with handle_errors("run preflight checks"):
        config = load_config(config_file, assume_yes=yes)
        result = make_factory(config).checker().check(skip=False)

        for message in result.messages:
            prompt_provider.info(message)
        if not result.passed:
            prompt_provider.error("Preflight checks failed")
            raise typer.Exit(1)
        if result.restart_required:
            prompt_provider.warning("Restart the computer before provisioning")
            raise typer.Exit(1)
        prompt_provider.success("Preflight checks passed")


def push_key_run(
    hostname: Optional[str] = HOSTNAME_OPTION,
    username: Optional[str] = USERNAME_OPTION,
    port: Optional[int] = PORT_OPTION,
    key_path: Optional[Path] = KEY_PATH_OPTION,
    key_type: Optional[str] = KEY_TYPE_OPTION,
    regenerate_key: bool = REGENERATE_OPTION,
    transport: Optional[str] = TRANSPORT_OPTION,
    config_file: Optional[Path] = CONFIG_OPTION,
):
    """
    Create a key pair if needed and add the public key to the target
    """
    with handle_errors("push the public key"):
        config = load_config(
            config_file,
            hostname=hostname,
            username=username,
            port=port,
            key_path=key_path,
            key_type=key_type,
            regenerate_key=regenerate_key,
            transport=transport,
        )
        factory = make_factory(config)
        try:
            result = factory.provisioner().provision(
                key_path=config.key_path,
                key_type=config.key_type,
                hostname=config.hostname,
                username=config.username,
                port=config.port,
                regenerate=config.regenerate_key,
            )
        finally:
            factory.close()

        if result.generated:
            prompt_provider.success(f"Generated key pair {result.key_pair.private_path}")
        if result.push_exit_code != 0:
            prompt_provider.warning(f"Public key upload exited with code {result.push_exit_code}")
            raise typer.Exit(result.push_exit_code)
        prompt_provider.success(f"Public key added to {result.target}:~/.ssh/authorized_keys")


def bootstrap_run(
    hostname: Optional[str] = HOSTNAME_OPTION,
    username: Optional[str] = USERNAME_OPTION,
    port: Optional[int] = PORT_OPTION,
    key_path: Optional[Path] = KEY_PATH_OPTION,
    transport: Optional[str] = TRANSPORT_OPTION,
    mode: Optional[str] = MODE_OPTION,
    script: Optional[Path] = SCRIPT_OPTION,
    config_file: Optional[Path] = CONFIG_OPTION,
):
    """
    Install the .NET runtime and vsdbg on the target
    """
    with handle_errors("bootstrap the target"):
        config = load_config(
            config_file,
            hostname=hostname,
            username=username,
            port=port,
            key_path=key_path,
            transport=transport,
            bootstrap_mode=mode,
            script_path=script,
        )
        factory = make_factory(config)
        try:
            target = factory.provisioner().resolve_target(
                config.hostname, config.username, config.port
            )
            result = factory.bootstrapper().bootstrap(target, config)
        finally:
            factory.close()

        if result.exit_code != 0:
            prompt_provider.warning(f"Bootstrap exited with code {result.exit_code}")
            raise typer.Exit(result.exit_code)
        prompt_provider.success(f"Bootstrap finished on {target}")


def render_script_run(
    config_file: Optional[Path] = CONFIG_OPTION,
):
    """
    Print the built-in bootstrap script
    """
    with handle_errors("render the bootstrap script"):
        config = load_config(config_file)
        typer.echo(render_bootstrap_script(default_installers(config)), nl=False)
