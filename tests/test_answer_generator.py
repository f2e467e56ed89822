"""
Tests for answer generation: grounding, healing, parsing, prefixing and
the two apology fallbacks.
"""
import asyncio

import pytest

from conftest import FakeChat, FakeCredential
from rrchat.core.errors import GenerationError, RateLimitedError
from rrchat.pipeline.answer_generator import (
    build_image_urls,
    generate_answer,
    parse_answer_payload,
)
from rrchat.prompts.constants import (
    ANSWER_SYSTEM_PROMPT,
    MALFORMED_ANSWER,
    RATE_LIMITED_ANSWER,
    STORAGE_TOKEN_SCOPE,
)
from rrchat.schemas.chat import ChatTurn
from rrchat.schemas.pipeline import OutcomeKind
from rrchat.schemas.response import GenerationConfig
from rrchat.schemas.retrieval import SupportingImageRecord
from rrchat.utils.text import NO_SOURCE_SENTINEL

HISTORY = [ChatTurn(user="What is covered?")]


def run_generate(chat, **kwargs):
    kwargs.setdefault("history", HISTORY)
    kwargs.setdefault("documents", [])
    kwargs.setdefault("config", GenerationConfig())
    return asyncio.run(generate_answer(chat, **kwargs))


# ============================================================================
# Happy path
# ============================================================================

class TestGenerateAnswer:

    def test_truncated_json_is_healed(self, plan_a):
        chat = FakeChat('{"answer": "Dental is covered [planA]", "thoughts": "used planA"')

        outcome = run_generate(chat, documents=[plan_a])

        assert outcome.kind == OutcomeKind.COMPLETED
        assert outcome.answer == "Dental is covered [planA]"
        assert outcome.thoughts == "used planA"
        assert not outcome.recovered

    def test_prompt_layout(self, plan_a):
        chat = FakeChat('{"answer": "a", "thoughts": "b"}')
        history = [ChatTurn(user="Hi", bot="Hello"), ChatTurn(user="What is covered?")]

        run_generate(chat, history=history, documents=[plan_a])

        messages, _ = chat.calls[0]
        assert messages[0] == {"role": "system", "content": ANSWER_SYSTEM_PROMPT}
        assert [m["role"] for m in messages] == ["system", "user", "assistant", "user", "user"]
        assert messages[3]["content"] == "What is covered?"
        assert "planA:dental covered" in messages[-1]["content"]

    def test_zero_documents_ground_on_sentinel(self):
        chat = FakeChat('{"answer": "I don\'t know", "thoughts": "no sources"}')

        run_generate(chat, documents=[])

        grounding = chat.calls[0][0][-1]["content"]
        assert NO_SOURCE_SENTINEL in grounding

    def test_config_passed_to_completion(self):
        chat = FakeChat('{"answer": "a", "thoughts": "b"}')
        config = GenerationConfig(model_id="gpt-4o", max_tokens=300, temperature=0.1)

        run_generate(chat, config=config)

        assert chat.calls[0][1] is config

    def test_prefix_applied(self):
        chat = FakeChat('{"answer": "Dental is covered", "thoughts": "t"}')

        outcome = run_generate(chat, config=GenerationConfig(answer_prefix="[beta] "))

        assert outcome.answer == "[beta] Dental is covered"


# ============================================================================
# Recovery paths
# ============================================================================

class TestAnswerFallbacks:

    def test_rate_limit_yields_apology(self):
        chat = FakeChat(RateLimitedError("Status: 429 Too Many Requests"))

        outcome = run_generate(chat)

        assert outcome.kind == OutcomeKind.RECOVERED
        assert outcome.diagnostic == "rate_limited"
        assert outcome.answer == RATE_LIMITED_ANSWER
        assert outcome.thoughts == "JSON malformed. Status: 429 Too Many Requests"

    def test_rate_limit_apology_is_prefixed(self):
        chat = FakeChat(RateLimitedError("Status: 429"))

        outcome = run_generate(chat, config=GenerationConfig(answer_prefix="P: "))

        assert outcome.answer == "P: " + RATE_LIMITED_ANSWER

    def test_unparsable_output_yields_apology(self):
        chat = FakeChat("Sorry, I cannot answer that")

        outcome = run_generate(chat)

        assert outcome.kind == OutcomeKind.RECOVERED
        assert outcome.diagnostic == "malformed_json"
        assert outcome.answer == MALFORMED_ANSWER
        assert outcome.thoughts.startswith("JSON malformed. ")
        assert "Sorry, I cannot answer that" in outcome.thoughts

    @pytest.mark.parametrize("content", [
        None,
        '{"answer": "", "thoughts": "t"}',
        '{"answer": "a"}',
        '["a", "b"]',
    ])
    def test_unusable_payload_yields_apology(self, content):
        outcome = run_generate(FakeChat(content))

        assert outcome.answer == MALFORMED_ANSWER
        assert outcome.thoughts

    def test_deeply_nested_output_yields_apology(self):
        outcome = run_generate(FakeChat("[" * 100000))

        assert outcome.kind == OutcomeKind.RECOVERED
        assert outcome.diagnostic == "malformed_json"
        assert outcome.answer == MALFORMED_ANSWER

    def test_other_failures_propagate(self):
        chat = FakeChat(GenerationError("Completion failed: boom"))

        with pytest.raises(GenerationError):
            run_generate(chat)


# ============================================================================
# Images
# ============================================================================

class TestImageGrounding:

    def test_image_urls_carry_token(self):
        chat = FakeChat('{"answer": "a", "thoughts": "b"}')
        credential = FakeCredential("sv=1&sig=x")
        images = [SupportingImageRecord(title="chart", url="https://blob/img1.png")]

        run_generate(chat, images=images, credential=credential)

        content = chat.calls[0][0][-1]["content"]
        assert content[0]["type"] == "text"
        assert content[1] == {
            "type": "image_url",
            "image_url": {"url": "https://blob/img1.png?sv=1&sig=x"},
        }
        assert credential.scopes == [STORAGE_TOKEN_SCOPE]

    def test_empty_image_list_uses_text_prompt(self):
        chat = FakeChat('{"answer": "a", "thoughts": "b"}')

        run_generate(chat, images=[], credential=FakeCredential())

        assert isinstance(chat.calls[0][0][-1]["content"], str)

    def test_build_image_urls_requires_credential(self):
        images = [SupportingImageRecord(url="https://blob/img1.png")]

        with pytest.raises(ValueError):
            asyncio.run(build_image_urls(images, None))


class TestParseAnswerPayload:

    def test_valid(self):
        assert parse_answer_payload('{"answer": "a", "thoughts": "b"}') == ("a", "b")

    @pytest.mark.parametrize("text", ["", "nope", "null", '{"answer": 1, "thoughts": "b"}'])
    def test_invalid(self, text):
        assert parse_answer_payload(text) is None
