import pytest

from piprovision.core.interfaces import PromptProvider

from fakes import FakePrompts, FakeRunner, FakeTransport, keygen_handler


@pytest.fixture
def runner():
    return FakeRunner(keygen_handler)


@pytest.fixture
def prompts():
    return FakePrompts()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def no_prompts():
    """Prompt provider that fails the test when asked anything"""

    class _NoPrompts(PromptProvider):
        def prompt(self, message, default=None, password=False):
            raise AssertionError(f"Unexpected prompt: {message}")

        def confirm(self, message, default=False):
            raise AssertionError(f"Unexpected confirm: {message}")

    return _NoPrompts()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep PIPROVISION_* variables from the developer shell out of tests"""
    import os

    for key in list(os.environ):
        if key.startswith("PIPROVISION_"):
            monkeypatch.delenv(key)
