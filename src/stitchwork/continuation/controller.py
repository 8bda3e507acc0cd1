"""The bounded request / classify / continue loop."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from stitchwork.core.config_schema import ContinuationConfig
from stitchwork.core.exceptions import APIError, TruncationExhausted
from stitchwork.core.utils.logging import get_logger

from .classifier import TruncationClassifier
from .detector import FormatDetector
from .models import (
    Chunk,
    ContinuationRequest,
    ContinuationSession,
    ControllerState,
    Provider,
    ProviderResponse,
)
from .prompts import build_continuation_prompt

if TYPE_CHECKING:
    from loguru import Logger


class ContinuationController:
    """
    Drive one logical request to completion.

    Every provider call counts as one attempt, the initial request included,
    so ``max_attempts=1`` never continues.  Only a length truncation is
    continued; every other classification ends the loop.  Follow-up requests
    carry the provider's continuation token instead of replaying the
    conversation.
    """

    def __init__(
        self,
        provider: Provider,
        config: ContinuationConfig | None = None,
        *,
        classifier: TruncationClassifier | None = None,
        detector: FormatDetector | None = None,
        progress_callback: Callable[[str], None] | None = None,
        log: Logger | None = None,
    ):
        self.provider = provider
        self.config = config or ContinuationConfig()
        self.log = log or get_logger("controller")
        self.classifier = classifier or TruncationClassifier(log=self.log)
        self.detector = detector or FormatDetector(log=self.log)
        self.progress_callback = progress_callback

    def _progress(self, message: str) -> None:
        if self.progress_callback:
            self.progress_callback(message)

    def _request(self, prompt: str, model: str, continuation_token: str | None) -> ProviderResponse:
        try:
            return self.provider.complete(prompt=prompt, model=model, continuation_token=continuation_token)
        except APIError as e:
            self.log.error(f"Provider call failed: {e}")
            return ProviderResponse(content="", stop_reason="error", continuation_token=continuation_token, error=str(e))

    def run(self, request: ContinuationRequest) -> ContinuationSession:
        max_attempts = self.config.max_attempts
        session = ContinuationSession(config=self.config, continuation_token=request.continuation_token)
        prompt = request.prompt
        token = request.continuation_token

        while True:
            session = session.transition(ControllerState.REQUESTING)
            response = self._request(prompt, request.model, token)

            session = session.transition(ControllerState.CLASSIFYING)
            classification = self.classifier.classify(response.stop_reason)
            chunk = Chunk(
                index=len(session.chunks),
                content=response.content or "",
                stop_reason=response.stop_reason,
                classification=classification,
                output_tokens=response.output_tokens,
                input_tokens=response.input_tokens,
            )
            session = session.append(chunk, response.continuation_token)
            self.log.debug(
                f"Chunk {chunk.index}: {chunk.byte_size} bytes, stop_reason={chunk.stop_reason}, "
                f"classified {classification.value} (attempt {session.attempt_count}/{max_attempts})"
            )
            self.classifier.report(
                classification, chunk_index=chunk.index, continuation_token=session.continuation_token
            )

            if not classification.is_terminal:
                if session.attempt_count >= max_attempts:
                    self.log.warning(f"{TruncationExhausted(session.attempt_count, max_attempts)}; merging what we have")
                    self._progress("Continuation limit reached")
                    return session.transition(ControllerState.EXHAUSTED)

                session = session.transition(ControllerState.CONTINUING)
                self._progress(f"Continuation {session.attempt_count}/{max_attempts - 1}...")
                token = session.continuation_token
                prompt = build_continuation_prompt(
                    session.content,
                    self.config.output_format,
                    # Without a token the provider has no memory of the request
                    original_query=None if token else request.prompt,
                    detector=self.detector,
                )
                continue

            if classification.is_failure:
                return session.transition(ControllerState.FAILED)

            if session.continuation_count:
                self._progress(f"Response completed with {session.continuation_count} continuations")
            else:
                self._progress("Response complete")
            return session.transition(ControllerState.DONE)
