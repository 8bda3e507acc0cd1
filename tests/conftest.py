"""Shared test fixtures for stitchwork."""

import os
import tempfile

import pytest
from loguru import logger

from stitchwork.continuation.models import ProviderResponse


class FakeProvider:
    """Replays scripted responses in order and records every call.

    Once the script runs out the last entry repeats.  An exception instance
    in the script is raised instead of returned.
    """

    def __init__(self, responses, model="gpt-4o-mini"):
        self.responses = list(responses)
        self.model = model
        self.calls = []

    def complete(self, prompt, model, continuation_token=None):
        self.calls.append({"prompt": prompt, "model": model, "continuation_token": continuation_token})
        item = self.responses[min(len(self.calls), len(self.responses)) - 1]
        if isinstance(item, Exception):
            raise item
        return item


def respond(content, stop_reason="stop", token="resp_1", output_tokens=0, input_tokens=0):
    """Build a ProviderResponse."""
    return ProviderResponse(
        content=content,
        stop_reason=stop_reason,
        continuation_token=token,
        output_tokens=output_tokens,
        input_tokens=input_tokens,
    )


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture(name="respond")
def respond_fixture():
    return respond


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "continuation": {
            "max_attempts": 4,
            "output_format": "csv",
        },
        "llm": {
            "provider": "anthropic",
            "model": "anthropic/claude-sonnet-4-20250514",
        },
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def log_messages():
    """Collect ``LEVEL message`` lines emitted through loguru during the test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.rstrip("\n")), format="{level} {message}", level="DEBUG")
    yield messages
    logger.remove(handler_id)
