"""
LLM Configuration — default models, output limits and pricing.

Central configuration for the bundled provider and for cost estimation in
continuation metadata.  Keys in the lookup tables are matched with partial
string matching, longest key first, so "gpt-4o" matches "gpt-4o-2024-08-06"
while "gpt-4o-mini" keeps its own entry.
"""

from loguru import logger

# --- Default model names per provider ---

OPENAI_MODEL = "gpt-4o-mini"
ANTHROPIC_MODEL = "anthropic/claude-sonnet-4-20250514"
GOOGLE_MODEL = "gemini/gemini-2.5-flash"
DEEPSEEK_MODEL = "deepseek/deepseek-chat"
XAI_MODEL = "xai/grok-2"

# --- Output token limits ---
# OUTPUT token limits (how many tokens the model can generate per call).
# Hitting these is what produces a "length" stop reason.

MODEL_OUTPUT_TOKEN_LIMITS: dict[str, int] = {
    # OpenAI
    "o4-mini": 16_384,
    "o3": 16_384,
    "o1": 16_384,
    "gpt-4o": 16_384,
    "gpt-4": 4_096,
    "gpt-5": 16_384,
    # Anthropic
    "claude-opus-4": 8_192,
    "claude-sonnet-4": 8_192,
    "claude-haiku-4": 8_192,
    "claude-sonnet": 4_096,
    "claude-haiku": 4_096,
    # Google Gemini
    "gemini-2.5": 65_536,
    "gemini-2.0": 8_192,
    # DeepSeek
    "deepseek-chat": 8_192,
    "deepseek-reasoner": 8_192,
    # xAI (Grok)
    "grok-3": 16_384,
    "grok-2": 8_192,
}

PROVIDER_DEFAULT_LIMITS: dict[str, int] = {
    "openai": 4_096,
    "anthropic": 4_096,
    "gemini": 8_192,
    "deepseek": 8_192,
    "xai": 8_192,
}

# --- Pricing ---
# (input price, output price) in USD per 1,000 tokens.

MODEL_PRICING: dict[str, tuple[float, float]] = {
    # OpenAI
    "gpt-4o-mini": (0.00015, 0.0006),
    "gpt-4o": (0.0025, 0.01),
    "gpt-4.1-mini": (0.0004, 0.0016),
    "gpt-4.1": (0.002, 0.008),
    "gpt-4-turbo": (0.01, 0.03),
    "gpt-4": (0.03, 0.06),
    "gpt-3.5-turbo": (0.0005, 0.0015),
    "o4-mini": (0.0011, 0.0044),
    "o3": (0.002, 0.008),
    "o1": (0.015, 0.06),
    # Anthropic
    "claude-opus-4": (0.015, 0.075),
    "claude-sonnet-4": (0.003, 0.015),
    "claude-3-5-sonnet": (0.003, 0.015),
    "claude-3-5-haiku": (0.0008, 0.004),
    "claude-haiku-4": (0.001, 0.005),
    # Google Gemini
    "gemini-2.5-pro": (0.00125, 0.01),
    "gemini-2.5-flash": (0.0003, 0.0025),
    "gemini-2.0-flash": (0.0001, 0.0004),
    # DeepSeek
    "deepseek-chat": (0.00027, 0.0011),
    "deepseek-reasoner": (0.00055, 0.00219),
    # xAI
    "grok-3": (0.003, 0.015),
    "grok-2": (0.002, 0.01),
}

DEFAULT_PRICING: tuple[float, float] = (0.0, 0.0)


def _lookup(table: dict, model_name: str):
    if model_name in table:
        return table[model_name]
    for key in sorted(table, key=len, reverse=True):
        if key in model_name:
            return table[key]
    return None


def get_default_model(provider: str) -> str:
    """Get the default litellm model string for a provider."""
    model_map = {
        "anthropic": ANTHROPIC_MODEL,
        "openai": OPENAI_MODEL,
        "gemini": GOOGLE_MODEL,
        "deepseek": DEEPSEEK_MODEL,
        "xai": XAI_MODEL,
    }
    return model_map.get(provider, OPENAI_MODEL)


def get_model_max_tokens(model_name: str, provider: str | None = None) -> int:
    """Get the max output tokens for a model using partial string matching."""
    limit = _lookup(MODEL_OUTPUT_TOKEN_LIMITS, model_name)
    if limit is not None:
        return limit
    if provider and provider in PROVIDER_DEFAULT_LIMITS:
        return PROVIDER_DEFAULT_LIMITS[provider]
    return 4096


def get_model_pricing(model_name: str | None) -> tuple[float, float]:
    """Return ``(input_per_1k, output_per_1k)`` for *model_name*; zero when unknown."""
    if not model_name:
        return DEFAULT_PRICING
    pricing = _lookup(MODEL_PRICING, model_name)
    if pricing is None:
        logger.debug(f"No pricing entry for {model_name}; cost estimate will be 0")
        return DEFAULT_PRICING
    return pricing


def estimate_cost(model_name: str | None, output_tokens: int, input_tokens: int = 0) -> float:
    """Estimated USD cost of one call."""
    input_price, output_price = get_model_pricing(model_name)
    return (input_tokens / 1000) * input_price + (output_tokens / 1000) * output_price


def infer_provider(model_name: str) -> str:
    """Infer provider from a litellm model string."""
    # Prefix-based (most reliable)
    if model_name.startswith("anthropic/"):
        return "anthropic"
    if model_name.startswith("gemini/"):
        return "gemini"
    if model_name.startswith("deepseek/"):
        return "deepseek"
    if model_name.startswith("xai/"):
        return "xai"
    # Substring-based fallbacks
    if any(k in model_name for k in ("gpt-", "o1", "o3", "o4")):
        return "openai"
    if "claude" in model_name:
        return "anthropic"
    if "gemini" in model_name:
        return "gemini"
    if "grok" in model_name:
        return "xai"
    return "openai"
