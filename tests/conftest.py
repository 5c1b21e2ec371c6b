"""
Pytest configuration: default runs most tests; use --run-slow to include slow tests.

Shared fixtures build a Config over a temporary SQLite file and ProviderClients
wired to in-process fake providers, so no test touches the network.
"""

import time

import pytest

from vyra.core.clients import ProviderClients
from vyra.core.config import Config


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (live Gemini/OpenAI calls). Default: skip them.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-slow", False):
        return
    skip_slow = pytest.mark.skip(reason="Slow test; run with --run-slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


class FakeTextProvider:
    """Secondary provider stand-in; records instructions, returns or raises."""

    def __init__(self, response: str = "A luminous cat, oil painting") -> None:
        self.response = response
        self.error: BaseException | None = None
        self.calls: list[str] = []

    def generate_text(self, instruction: str, timeout: int) -> str:
        self.calls.append(instruction)
        if self.error is not None:
            raise self.error
        return self.response


class FakeImageProvider:
    """Primary provider stand-in; records prompts, returns or raises."""

    def __init__(self, urls: list[str] | None = None) -> None:
        self.urls = ["https://images.example/cat.png"] if urls is None else urls
        self.error: BaseException | None = None
        self.delay: float = 0.0
        self.calls: list[str] = []

    def generate_images(self, prompt: str, timeout: int) -> list[str]:
        self.calls.append(prompt)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.urls)


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(
        openai_api_key="sk-test",
        gemini_api_key="gemini-test",
        database_path=str(tmp_path / "vyra.db"),
        store_busy_timeout=2.0,
    )


@pytest.fixture
def text_provider() -> FakeTextProvider:
    return FakeTextProvider()


@pytest.fixture
def image_provider() -> FakeImageProvider:
    return FakeImageProvider()


@pytest.fixture
def clients(config, text_provider, image_provider) -> ProviderClients:
    return ProviderClients(config, text_provider=text_provider, image_provider=image_provider)


@pytest.fixture
def store(clients):
    return clients.store()
