"""Tests for continuation.controller — the bounded continuation loop."""

from stitchwork.continuation.controller import ContinuationController
from stitchwork.continuation.models import Classification, ContinuationRequest, ControllerState
from stitchwork.core.config_schema import ContinuationConfig
from stitchwork.core.exceptions import LLMError


def _request(prompt="List the users as CSV", model="gpt-4o-mini", token=None):
    return ContinuationRequest(prompt=prompt, model=model, continuation_token=token)


class TestContinuationController:
    def test_complete_on_first_call(self, make_provider, respond):
        provider = make_provider([respond("All done.")])
        progress = []
        session = ContinuationController(provider, progress_callback=progress.append).run(_request())

        assert session.state is ControllerState.DONE
        assert len(session.chunks) == 1
        assert session.attempt_count == 1
        assert len(provider.calls) == 1
        assert progress == ["Response complete"]

    def test_continues_with_token(self, make_provider, respond):
        provider = make_provider(
            [
                respond("id,name\n1,Al", "length", token="resp_a"),
                respond("ice\n", "stop", token="resp_b"),
            ]
        )
        config = ContinuationConfig(output_format="tabular")
        progress = []
        session = ContinuationController(provider, config, progress_callback=progress.append).run(_request())

        assert session.state is ControllerState.DONE
        assert session.content == "id,name\n1,Alice\n"
        assert session.continuation_token == "resp_b"
        assert [c.classification for c in session.chunks] == [
            Classification.LENGTH_TRUNCATED,
            Classification.COMPLETE,
        ]
        assert [c.index for c in session.chunks] == [0, 1]

        follow_up = provider.calls[1]
        assert follow_up["continuation_token"] == "resp_a"
        assert follow_up["model"] == "gpt-4o-mini"
        assert "1,Al" in follow_up["prompt"]
        assert "Original Query" not in follow_up["prompt"]
        assert progress == ["Continuation 1/9...", "Response completed with 1 continuations"]

    def test_without_token_repeats_query(self, make_provider, respond):
        provider = make_provider([respond("Once upon", "length", token=None), respond(" a time.", token=None)])
        ContinuationController(provider).run(_request(prompt="Tell a story"))
        assert provider.calls[1]["continuation_token"] is None
        assert provider.calls[1]["prompt"].startswith("Original Query: Tell a story")

    def test_initial_token_forwarded(self, make_provider, respond):
        provider = make_provider([respond("rest")])
        ContinuationController(provider).run(_request(token="resp_prev"))
        assert provider.calls[0]["continuation_token"] == "resp_prev"

    def test_attempts_bounded(self, make_provider, respond, log_messages):
        provider = make_provider([respond("more ", "length")])
        progress = []
        config = ContinuationConfig(max_attempts=2)
        session = ContinuationController(provider, config, progress_callback=progress.append).run(_request())

        assert session.state is ControllerState.EXHAUSTED
        assert len(provider.calls) == 2
        assert session.continuation_count == 1
        assert progress[-1] == "Continuation limit reached"
        assert any("Still truncated after 2/2 attempts" in m for m in log_messages)

    def test_single_attempt_never_continues(self, make_provider, respond):
        provider = make_provider([respond("cut", "length")])
        session = ContinuationController(provider, ContinuationConfig(max_attempts=1)).run(_request())
        assert session.state is ControllerState.EXHAUSTED
        assert len(provider.calls) == 1

    def test_provider_error_fails(self, make_provider, respond):
        provider = make_provider([respond("", "error")])
        session = ContinuationController(provider).run(_request())
        assert session.state is ControllerState.FAILED
        assert len(provider.calls) == 1

    def test_provider_exception_fails(self, make_provider):
        provider = make_provider([LLMError("upstream 503")])
        session = ContinuationController(provider).run(_request())
        assert session.state is ControllerState.FAILED
        assert session.last_chunk.stop_reason == "error"
        assert session.last_chunk.content == ""

    def test_content_filter_stops_with_warning(self, make_provider, respond, log_messages):
        provider = make_provider([respond("partial", "length"), respond(" text", "content_filter")])
        session = ContinuationController(provider).run(_request())
        assert session.state is ControllerState.DONE
        assert len(provider.calls) == 2
        assert any(m.startswith("WARNING") and "Content filtered" in m for m in log_messages)

    def test_other_stop_reasons_end_loop(self, make_provider, respond):
        for reason in ("tool_calls", "incomplete", None, "max_tokens_exceeded_somehow"):
            provider = make_provider([respond("x", reason)])
            session = ContinuationController(provider).run(_request())
            assert session.state is ControllerState.DONE
            assert len(provider.calls) == 1

    def test_anthropic_spelling_continues(self, make_provider, respond):
        provider = make_provider([respond("a", "max_tokens"), respond("b", "end_turn")])
        session = ContinuationController(provider).run(_request())
        assert session.content == "ab"
        assert len(provider.calls) == 2
