"""Tests for core.llm.config — model defaults, token limits and pricing."""

import pytest

from stitchwork.core.llm.config import (
    estimate_cost,
    get_default_model,
    get_model_max_tokens,
    get_model_pricing,
    infer_provider,
)


class TestGetDefaultModel:
    def test_known_providers(self):
        assert get_default_model("openai") == "gpt-4o-mini"
        assert "claude" in get_default_model("anthropic")
        assert "gemini" in get_default_model("gemini")

    def test_unknown_falls_back_to_openai(self):
        assert get_default_model("unknown_provider") == get_default_model("openai")


class TestGetModelMaxTokens:
    def test_exact_match(self):
        assert get_model_max_tokens("o3") == 16_384

    def test_partial_match(self):
        assert get_model_max_tokens("anthropic/claude-sonnet-4-20250514") == 8_192

    def test_provider_fallback(self):
        assert get_model_max_tokens("some-unknown-model", provider="gemini") == 8_192

    def test_conservative_fallback(self):
        assert get_model_max_tokens("totally-unknown") == 4_096


class TestPricing:
    def test_longest_key_wins(self):
        assert get_model_pricing("gpt-4o-mini-2024-07-18") == (0.00015, 0.0006)
        assert get_model_pricing("gpt-4o-2024-08-06") == (0.0025, 0.01)

    def test_unknown_model_is_free(self):
        assert get_model_pricing("mystery-model") == (0.0, 0.0)
        assert get_model_pricing(None) == (0.0, 0.0)

    def test_estimate_cost(self):
        assert estimate_cost("gpt-4o-mini", output_tokens=2000) == pytest.approx(0.0012)
        assert estimate_cost("gpt-4o-mini", output_tokens=1000, input_tokens=1000) == pytest.approx(0.00075)


class TestInferProvider:
    @pytest.mark.parametrize(
        "model,provider",
        [
            ("anthropic/claude-sonnet-4-20250514", "anthropic"),
            ("gemini/gemini-2.5-flash", "gemini"),
            ("deepseek/deepseek-chat", "deepseek"),
            ("gpt-4o", "openai"),
            ("claude-3-5-haiku", "anthropic"),
            ("grok-3", "xai"),
            ("local-model", "openai"),
        ],
    )
    def test_infer(self, model, provider):
        assert infer_provider(model) == provider
