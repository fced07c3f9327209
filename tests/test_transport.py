from pathlib import Path
from unittest.mock import MagicMock, patch

from piprovision.adapters.transport.openssh import OpenSSHTransport
from piprovision.adapters.transport.paramiko_transport import ParamikoTransport
from piprovision.core.exceptions import TransportError
from piprovision.domain.models import Target

from fakes import FakePrompts, FakeRunner


TARGET = Target(hostname="raspberry.local", username="pi", port=2222)


# ------------------------------------------------------------
# OpenSSH
# ------------------------------------------------------------

def test_push_pipes_key_into_password_session():
    runner = FakeRunner()
    code = OpenSSHTransport(runner, identity_file=Path("/k/id_rsa")).push_public_key(
        TARGET, "ssh-rsa AAAA me"
    )

    argv, stdin, capture = runner.calls[0]
    assert code == 0
    assert argv[:3] == ("ssh", "-p", "2222")
    assert "PubkeyAuthentication=no" in argv
    # the key is not installed yet, never offer it
    assert "-i" not in argv
    assert argv[-2] == "pi@raspberry.local"
    assert "~/.ssh/authorized_keys" in argv[-1]
    assert "grep -qxF" in argv[-1]
    assert stdin == "ssh-rsa AAAA me\n"
    assert not capture


def test_copy_uses_scp_with_home_relative_path():
    seen = {}

    def handler(argv, stdin):
        seen["content"] = Path(argv[-2]).read_text()
        seen["tmp"] = argv[-2]
        return 0, "", ""

    runner = FakeRunner(handler)
    code = OpenSSHTransport(runner, identity_file=Path("/k/id_rsa")).copy_file(
        TARGET, "echo hi\n", "~/setup.sh"
    )

    argv = runner.argvs()[0]
    assert code == 0
    assert argv[:3] == ("scp", "-P", "2222")
    assert argv[3:5] == ("-i", str(Path("/k/id_rsa")))
    assert argv[-1] == "pi@raspberry.local:setup.sh"
    assert seen["content"] == "echo hi\n"
    assert not Path(seen["tmp"]).exists()


def test_run_returns_remote_exit_code():
    runner = FakeRunner(lambda argv, stdin: (7, "", ""))
    code = OpenSSHTransport(runner).run(TARGET, "bash ~/setup.sh")

    assert code == 7
    assert runner.argvs()[0] == ("ssh", "-p", "2222", "pi@raspberry.local", "bash ~/setup.sh")


# ------------------------------------------------------------
# paramiko
# ------------------------------------------------------------

@patch("piprovision.adapters.transport.paramiko_transport.RemoteClient")
def test_paramiko_push_prompts_for_password_once(mock_client_cls):
    client = MagicMock()
    client.config.auth_method = "password"
    client.exec_with_code.return_value = ("", "", 0)
    mock_client_cls.return_value = client
    prompts = FakePrompts(answers=["raspberry"])

    transport = ParamikoTransport(prompts)
    assert transport.push_public_key(TARGET, "ssh-rsa AAAA me") == 0
    assert transport.push_public_key(TARGET, "ssh-rsa AAAA me") == 0

    assert len(prompts.prompts) == 1
    kwargs = mock_client_cls.call_args.kwargs
    assert kwargs["auth_method"] == "password"
    assert kwargs["password"] == "raspberry"
    _, call_kwargs = client.exec_with_code.call_args
    assert call_kwargs["stdin_data"] == "ssh-rsa AAAA me\n"


@patch("piprovision.adapters.transport.paramiko_transport.RemoteClient")
def test_paramiko_prefers_installed_key(mock_client_cls, tmp_path):
    key = tmp_path / "id_rsa"
    key.write_text("PRIVATE KEY\n")
    client = MagicMock()
    client.config.auth_method = "key"
    client.home.return_value = "/home/pi"
    client.exec_with_code_streaming.return_value = ("", "", 0)
    mock_client_cls.return_value = client

    transport = ParamikoTransport(FakePrompts(), identity_file=key)
    assert transport.copy_file(TARGET, "echo hi\n", "~/setup.sh") == 0
    assert transport.run(TARGET, "bash ~/setup.sh") == 0

    assert mock_client_cls.call_count == 1
    assert mock_client_cls.call_args.kwargs["auth_method"] == "key"
    client.write_text.assert_called_once_with("/home/pi/setup.sh", "echo hi\n")


@patch("piprovision.adapters.transport.paramiko_transport.RemoteClient")
def test_paramiko_falls_back_to_password(mock_client_cls, tmp_path):
    key = tmp_path / "id_rsa"
    key.write_text("PRIVATE KEY\n")
    key_client = MagicMock()
    key_client.connect.side_effect = TransportError("denied")
    password_client = MagicMock()
    password_client.config.auth_method = "password"
    password_client.exec_with_code_streaming.return_value = ("", "", 0)
    mock_client_cls.side_effect = [key_client, password_client]

    transport = ParamikoTransport(FakePrompts(), password="raspberry", identity_file=key)
    assert transport.run(TARGET, "true") == 0
    assert transport.run(TARGET, "true") == 0

    assert mock_client_cls.call_count == 2
    assert mock_client_cls.call_args.kwargs["auth_method"] == "password"
