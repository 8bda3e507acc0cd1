"""
LiteLLM provider — one Responses API call per ``complete``.

The Responses API keeps the conversation server side, so a continuation is
requested by passing the previous response id as ``previous_response_id``
instead of resending the messages.  That id is what this provider hands
back as the continuation token.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from stitchwork.continuation.models import ProviderResponse

from .config import get_default_model, get_model_max_tokens, infer_provider
from .utils import _get, extract_output_text, extract_usage, infer_stop_reason

if TYPE_CHECKING:
    from stitchwork.core.config_schema import LLMConfig


class LiteLLMProvider:
    """
    Provider backed by ``litellm.responses``.

    Model names follow litellm conventions:
      - OpenAI:    ``"gpt-4o"``, ``"o3"``
      - Anthropic: ``"anthropic/claude-sonnet-4-20250514"``
      - Gemini:    ``"gemini/gemini-2.5-flash"``
    """

    def __init__(
        self,
        model: str | None = None,
        provider: str | None = None,
        instructions: str | None = None,
        max_output_tokens: int | None = None,
        timeout: int = 180,
        num_retries: int = 2,
    ):
        # Resolve model ─ accept either (model=) or (provider=) style
        if model:
            self.model = model
            self.provider = provider or infer_provider(model)
        elif provider:
            self.provider = provider
            self.model = get_default_model(provider)
        else:
            self.provider = "openai"
            self.model = get_default_model("openai")

        self.instructions = instructions
        self.timeout = timeout
        self.num_retries = num_retries

        model_limit = get_model_max_tokens(self.model, self.provider)
        if max_output_tokens is not None and max_output_tokens > model_limit:
            logger.warning(f"max_output_tokens ({max_output_tokens}) exceeds model limit ({model_limit}). Capping.")
            self.max_output_tokens = model_limit
        else:
            self.max_output_tokens = max_output_tokens or model_limit

        logger.debug(f"LiteLLMProvider: model={self.model}  max_output_tokens={self.max_output_tokens}")

    @classmethod
    def from_config(cls, config: LLMConfig) -> LiteLLMProvider:
        return cls(
            model=config.model or None,
            provider=config.provider,
            instructions=config.instructions,
            max_output_tokens=config.max_output_tokens,
            timeout=config.timeout,
            num_retries=config.num_retries,
        )

    def complete(self, prompt: str, model: str | None = None, continuation_token: str | None = None) -> ProviderResponse:
        """
        Issue one completion.

        Args:
            prompt: User input for this call.
            model: Optional per-request model override.
            continuation_token: Id of the response being continued.

        Returns:
            ProviderResponse.  Provider-side failures come back as a response
            with ``stop_reason="error"`` rather than an exception.

        Raises:
            ImportError: If litellm is not installed.
        """
        try:
            import litellm
        except ImportError:
            raise ImportError("Install LLM support with: pip install stitchwork[llm]")

        kwargs = self._build_kwargs(prompt, model=model, continuation_token=continuation_token)
        retryable = tuple(
            exc
            for exc in (
                getattr(litellm, "RateLimitError", None),
                getattr(litellm, "APIError", None),
                getattr(litellm, "APIConnectionError", None),
                getattr(litellm, "Timeout", None),
            )
            if isinstance(exc, type)
        )

        try:
            response = litellm.responses(**kwargs)
        except retryable as e:
            logger.warning(f"LiteLLM call to {kwargs['model']} failed: {type(e).__name__}: {e}")
            return ProviderResponse(
                content="",
                stop_reason="error",
                continuation_token=continuation_token,
                error=f"{type(e).__name__}: {e}",
            )

        input_tokens, output_tokens = extract_usage(response)
        stop_reason = infer_stop_reason(response)
        response_id = _get(response, "id")
        logger.debug(f"LiteLLM response {response_id}: stop_reason={stop_reason} output_tokens={output_tokens}")
        return ProviderResponse(
            content=extract_output_text(response, log_failures=stop_reason == "stop"),
            stop_reason=stop_reason,
            continuation_token=response_id or None,
            output_tokens=output_tokens,
            input_tokens=input_tokens,
        )

    def _build_kwargs(self, prompt: str, *, model: str | None, continuation_token: str | None) -> dict[str, Any]:
        effective_model = model or self.model
        max_output_tokens = self.max_output_tokens
        if model and model != self.model:
            override_limit = get_model_max_tokens(model, infer_provider(model))
            max_output_tokens = min(self.max_output_tokens, override_limit)
        kwargs: dict[str, Any] = {
            "model": effective_model,
            "input": prompt,
            "max_output_tokens": max_output_tokens,
            "timeout": self.timeout,
            "num_retries": self.num_retries,
        }
        if self.instructions:
            kwargs["instructions"] = self.instructions
        if continuation_token:
            kwargs["previous_response_id"] = continuation_token
        return kwargs

    def get_config_info(self) -> dict:
        return {
            "provider": self.provider,
            "model": self.model,
            "max_output_tokens": self.max_output_tokens,
            "timeout": self.timeout,
        }
