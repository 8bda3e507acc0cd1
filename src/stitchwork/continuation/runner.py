"""Top-level entry points: continue a request, merge its chunks, report metadata.

This is the only place that applies ``on_failure``.  Everything below it
degrades rather than raising; the runner decides what reaches the caller.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from stitchwork.core.config_schema import ContinuationConfig
from stitchwork.core.exceptions import ConfigurationError, ContinuationError
from stitchwork.core.types import OnFailure
from stitchwork.core.utils.logging import get_logger

from .controller import ContinuationController
from .factory import MergerFactory
from .fallback import FallbackChain, PartialResultBuilder
from .metadata import ContinuationMetadata, MetadataRecorder
from .models import (
    Chunk,
    Classification,
    ContinuationRequest,
    ContinuationSession,
    ControllerState,
    MergeResult,
    Provider,
)

if TYPE_CHECKING:
    from loguru import Logger


@dataclass
class ContinuationResult:
    """Result of a complete continuation session."""

    content: str
    """The merged (possibly partial) document."""

    metadata: ContinuationMetadata
    merge_result: MergeResult
    session: ContinuationSession

    total_time: float = 0.0
    """Wall-clock seconds across all provider calls and the merge."""

    @property
    def was_truncated(self) -> bool:
        return any(c.classification is Classification.LENGTH_TRUNCATED for c in self.session.chunks)


class ContinuationRunner:
    """Wire the controller, merger selection, fallback chain and metadata together."""

    def __init__(
        self,
        provider: Provider | None = None,
        config: ContinuationConfig | None = None,
        *,
        factory: MergerFactory | None = None,
        progress_callback: Callable[[str], None] | None = None,
        log: Logger | None = None,
    ):
        self.provider = provider
        self.config = config or ContinuationConfig()
        self.log = log or get_logger("runner")
        self.factory = factory or MergerFactory(log=self.log)
        self.fallback = FallbackChain(log=self.log)
        self.partial_builder = PartialResultBuilder(log=self.log)
        self.progress_callback = progress_callback

    def run(self, prompt: str, model: str, continuation_token: str | None = None) -> ContinuationResult:
        if self.provider is None:
            raise ConfigurationError("A provider is required to run a continuation session")
        started = time.perf_counter()
        controller = ContinuationController(
            self.provider,
            self.config,
            detector=self.factory.detector,
            progress_callback=self.progress_callback,
            log=self.log,
        )
        session = controller.run(ContinuationRequest(prompt=prompt, model=model, continuation_token=continuation_token))
        return self.finish(session, model=model, started=started)

    def merge_chunks(self, contents: Sequence[str], model: str | None = None) -> ContinuationResult:
        """Merge chunks captured earlier; every chunk but the last is treated as length-truncated."""
        session = ContinuationSession(config=self.config)
        for index, content in enumerate(contents):
            last = index == len(contents) - 1
            chunk = Chunk(
                index=index,
                content=content,
                stop_reason="stop" if last else "length",
                classification=Classification.COMPLETE if last else Classification.LENGTH_TRUNCATED,
            )
            session = session.append(chunk, None)
        return self.finish(session.transition(ControllerState.DONE), model=model)

    def finish(
        self, session: ContinuationSession, model: str | None = None, started: float | None = None
    ) -> ContinuationResult:
        started = time.perf_counter() if started is None else started
        config = session.config

        if session.state is ControllerState.FAILED:
            last = session.last_chunk
            raise ContinuationError(
                f"Provider reported an error at chunk {last.index}",
                chunk_index=last.index,
                output_format=config.output_format.value,
                session=session,
            )

        selection = self.factory.choose(config, session.content)
        merge_result = self.fallback.merge(selection.merger, session.chunks)
        partial = self.partial_builder.build(merge_result, session.chunks)
        metadata = MetadataRecorder(model=model, log=self.log).record(
            session, merge_result, selection.output_format, partial
        )

        if not merge_result.success and config.on_failure is OnFailure.RAISE_ERROR:
            error = merge_result.error
            raise ContinuationError(
                f"Merge failed: {error.message if error else 'unknown error'}",
                chunk_index=error.chunk_index if error else None,
                output_format=selection.output_format.value,
                merge_strategy_used=merge_result.strategy,
                session=session,
            )

        return ContinuationResult(
            content=partial.content,
            metadata=metadata,
            merge_result=merge_result,
            session=session,
            total_time=time.perf_counter() - started,
        )


def generate_with_continuation(
    provider: Provider,
    prompt: str,
    model: str,
    config: ContinuationConfig | None = None,
    progress_callback: Callable[[str], None] | None = None,
    continuation_token: str | None = None,
) -> ContinuationResult:
    """Run one request to completion and return the merged document with its metadata."""
    runner = ContinuationRunner(provider, config, progress_callback=progress_callback)
    return runner.run(prompt, model, continuation_token=continuation_token)


async def agenerate_with_continuation(
    provider: Provider,
    prompt: str,
    model: str,
    config: ContinuationConfig | None = None,
    progress_callback: Callable[[str], None] | None = None,
    continuation_token: str | None = None,
) -> ContinuationResult:
    """Async wrapper; the session runs in a worker thread."""
    return await asyncio.to_thread(
        generate_with_continuation,
        provider,
        prompt,
        model,
        config,
        progress_callback,
        continuation_token,
    )


class ResponseContinuationMixin:
    """
    Mixin class for adding response continuation capability.

    Example usage:
        class ReportWriter(ResponseContinuationMixin):
            def __init__(self):
                self.continuation_provider = LiteLLMProvider(model="gpt-4o-mini")
                self.continuation_config = ContinuationConfig(output_format="tabular")

            def write(self, query: str) -> str:
                return self.generate_with_continuation(query).content
    """

    continuation_config: ContinuationConfig | None = None
    continuation_provider: Provider | None = None

    def get_continuation_config(self) -> ContinuationConfig:
        """Get continuation config, creating default if not set."""
        if self.continuation_config is None:
            self.continuation_config = ContinuationConfig()
        return self.continuation_config

    def _resolve(self, provider: Provider | None, model: str | None) -> tuple[Provider, str]:
        provider = provider or self.continuation_provider
        if provider is None:
            raise ConfigurationError("No continuation provider configured")
        model = model or getattr(provider, "model", None)
        if not model:
            raise ConfigurationError("No model configured for continuation")
        return provider, model

    def generate_with_continuation(
        self,
        prompt: str,
        model: str | None = None,
        provider: Provider | None = None,
        config: ContinuationConfig | None = None,
        progress_callback: Callable[[str], None] | None = None,
    ) -> ContinuationResult:
        provider, model = self._resolve(provider, model)
        return generate_with_continuation(
            provider, prompt, model, config or self.get_continuation_config(), progress_callback
        )

    async def agenerate_with_continuation(
        self,
        prompt: str,
        model: str | None = None,
        provider: Provider | None = None,
        config: ContinuationConfig | None = None,
        progress_callback: Callable[[str], None] | None = None,
    ) -> ContinuationResult:
        provider, model = self._resolve(provider, model)
        return await agenerate_with_continuation(
            provider, prompt, model, config or self.get_continuation_config(), progress_callback
        )
