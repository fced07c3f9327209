from pathlib import Path

import pytest

from piprovision.core.exceptions import ConfigError, KeyGenerationError
from piprovision.domain.keys import KeyProvisioner, OpenSSHKeyGenerator, ParamikoKeyGenerator
from piprovision.domain.models import KeyPair, Target

from fakes import FakePrompts, FakeRunner, FakeTransport, keygen_handler


def make_provisioner(prompts, runner=None, transport=None):
    runner = runner or FakeRunner(keygen_handler)
    return KeyProvisioner(
        prompts=prompts,
        generator=OpenSSHKeyGenerator(runner),
        transport=transport or FakeTransport(),
    )


def keygen_calls(runner: FakeRunner) -> list:
    return [argv for argv in runner.argvs() if argv[0] == "ssh-keygen" and "-y" not in argv]


# ------------------------------------------------------------
# Target resolution
# ------------------------------------------------------------

def test_empty_values_fall_back_to_defaults(no_prompts):
    target = make_provisioner(no_prompts).resolve_target("", "")
    assert target == Target(hostname="raspberry.local", username="pi", port=22)


def test_blank_values_fall_back_to_defaults(no_prompts):
    target = make_provisioner(no_prompts).resolve_target("   ", "")
    assert target.hostname == "raspberry.local"


def test_explicit_values_used_verbatim(no_prompts):
    target = make_provisioner(no_prompts).resolve_target("octopi.lan", "admin", 2222)
    assert target == Target(hostname="octopi.lan", username="admin", port=2222)
    assert str(target) == "admin@octopi.lan:2222"


def test_missing_values_are_prompted():
    prompts = FakePrompts(answers=["mypi.local", ""])
    target = make_provisioner(prompts).resolve_target(None, None)

    assert target.hostname == "mypi.local"
    assert target.username == "pi"
    assert [default for _, default in prompts.prompts] == ["raspberry.local", "pi"]


# ------------------------------------------------------------
# Key pair handling
# ------------------------------------------------------------

def test_generates_missing_key_pair(tmp_path, no_prompts):
    runner = FakeRunner(keygen_handler)
    key_path = tmp_path / "nested" / "id_rsa"
    key_pair, generated = make_provisioner(no_prompts, runner).ensure_key_pair(key_path, "rsa")

    assert generated
    assert key_pair.exists()
    argv = keygen_calls(runner)[0]
    assert argv[:5] == ("ssh-keygen", "-t", "rsa", "-b", "4096")
    # generated beside the final path, then moved into place
    assert Path(argv[argv.index("-f") + 1]).parent == key_path.parent
    assert sorted(p.name for p in key_path.parent.iterdir()) == ["id_rsa", "id_rsa.pub"]
    assert argv[argv.index("-N") + 1] == ""


def test_ed25519_has_no_bits_flag(tmp_path, no_prompts):
    runner = FakeRunner(keygen_handler)
    make_provisioner(no_prompts, runner).ensure_key_pair(tmp_path / "id_ed25519", "ed25519")
    assert "-b" not in keygen_calls(runner)[0]


def test_existing_key_pair_is_reused(tmp_path, no_prompts):
    runner = FakeRunner(keygen_handler)
    provisioner = make_provisioner(no_prompts, runner)
    key_path = tmp_path / "id_rsa"

    provisioner.ensure_key_pair(key_path, "rsa")
    _, generated = provisioner.ensure_key_pair(key_path, "rsa")

    assert not generated
    assert len(keygen_calls(runner)) == 1


def test_regenerate_runs_keygen_every_time(tmp_path, no_prompts):
    runner = FakeRunner(keygen_handler)
    provisioner = make_provisioner(no_prompts, runner)
    key_path = tmp_path / "id_rsa"

    provisioner.ensure_key_pair(key_path, "rsa", regenerate=True)
    provisioner.ensure_key_pair(key_path, "rsa", regenerate=True)

    assert len(keygen_calls(runner)) == 2


def test_public_key_derived_when_missing(tmp_path, no_prompts):
    key_path = tmp_path / "id_rsa"
    key_path.write_text("PRIVATE KEY\n")
    runner = FakeRunner(keygen_handler)

    key_pair, generated = make_provisioner(no_prompts, runner).ensure_key_pair(key_path, "rsa")

    assert not generated
    assert runner.argvs() == [("ssh-keygen", "-y", "-f", str(key_path))]
    assert key_pair.read_public_key() == "ssh-rsa AAAAderived"


def test_keygen_failure_raises(tmp_path, no_prompts):
    runner = FakeRunner(lambda argv, stdin: (1, "", "bad things"))
    with pytest.raises(KeyGenerationError, match="bad things"):
        make_provisioner(no_prompts, runner).ensure_key_pair(tmp_path / "id_rsa", "rsa")


def test_failed_regenerate_keeps_existing_pair(tmp_path, no_prompts):
    key_path = tmp_path / "id_rsa"
    key_path.write_text("OLD PRIVATE\n")
    Path(str(key_path) + ".pub").write_text("ssh-rsa AAAAold\n")
    runner = FakeRunner(lambda argv, stdin: (127, "", "ssh-keygen: not found"))

    with pytest.raises(KeyGenerationError):
        make_provisioner(no_prompts, runner).ensure_key_pair(key_path, "rsa", regenerate=True)

    assert key_path.read_text() == "OLD PRIVATE\n"
    assert KeyPair(private_path=key_path).read_public_key() == "ssh-rsa AAAAold"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["id_rsa", "id_rsa.pub"]


def test_regenerate_replaces_existing_pair(tmp_path, no_prompts):
    key_path = tmp_path / "id_rsa"
    key_path.write_text("OLD PRIVATE\n")
    Path(str(key_path) + ".pub").write_text("ssh-rsa AAAAold\n")

    key_pair, generated = make_provisioner(no_prompts).ensure_key_pair(
        key_path, "rsa", regenerate=True
    )

    assert generated
    assert key_path.read_text() == "PRIVATE KEY\n"
    assert key_pair.read_public_key() == "ssh-rsa AAAAfake piprovision"


def test_unknown_key_type_rejected(tmp_path, no_prompts):
    with pytest.raises(ConfigError):
        make_provisioner(no_prompts).ensure_key_pair(tmp_path / "id_dsa", "dsa")


def test_paramiko_generator_writes_ecdsa_pair(tmp_path):
    key_pair = KeyPair(private_path=tmp_path / "id_ecdsa")
    ParamikoKeyGenerator().generate(key_pair, "ecdsa")

    assert key_pair.exists()
    assert key_pair.read_public_key().startswith("ecdsa-sha2-nistp256 ")
    assert key_pair.read_public_key().endswith(" piprovision")


def test_paramiko_generator_rejects_ed25519(tmp_path):
    with pytest.raises(KeyGenerationError):
        ParamikoKeyGenerator().generate(KeyPair(private_path=tmp_path / "k"), "ed25519")


# ------------------------------------------------------------
# Public key push
# ------------------------------------------------------------

def test_push_sends_public_key(tmp_path, no_prompts):
    transport = FakeTransport()
    provisioner = make_provisioner(no_prompts, transport=transport)
    key_pair, _ = provisioner.ensure_key_pair(tmp_path / "id_rsa", "rsa")
    target = Target()

    assert provisioner.push_public_key(target, key_pair) == 0
    assert transport.calls == [("push", target, "ssh-rsa AAAAfake piprovision")]


def test_push_failure_is_reported_not_raised(tmp_path, no_prompts):
    transport = FakeTransport(push_code=255)
    result = make_provisioner(no_prompts, transport=transport).provision(
        key_path=tmp_path / "id_rsa", key_type="rsa", hostname="pi4", username="pi"
    )

    assert result.push_exit_code == 255
    assert result.generated
    assert transport.kinds() == ["push"]
