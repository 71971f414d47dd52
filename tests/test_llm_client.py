"""
Tests for the completion endpoint and prompt assembly.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from cafe_bot import config
from cafe_bot.llm_client import (
    SYSTEM_PROMPT_GENERATION,
    CompletionRequest,
    OpenAICompletionEndpoint,
    build_catalog_context,
    build_messages,
)
from cafe_bot.tasks.models import Confidence
from cafe_bot.tasks.schemas import ClassifiedItem, ClassifierResponse


def history(turns):
    messages = []
    for i in range(turns):
        messages.append({"role": "user", "content": f"user {i}"})
        messages.append({"role": "assistant", "content": f"bot {i}"})
    return messages


class TestPromptAssembly:
    """Tests for catalog context and message building."""

    def test_catalog_context(self, catalog):
        context = build_catalog_context(catalog)
        assert context.splitlines()[0] == "CATALOG:"
        assert "- Milk Tea [Beverages]: Medium ₱120, Large ₱140" in context
        assert "Spaghetti" not in context

    def test_messages_order(self):
        request = CompletionRequest(
            system_prompt=SYSTEM_PROMPT_GENERATION,
            utterance="any recommendations?",
            context="CATALOG:\n- Iced Tea: Regular ₱60",
            history=history(1),
        )
        messages = build_messages(request)
        assert messages[0]["role"] == "system"
        assert messages[0]["content"].endswith("CATALOG:\n- Iced Tea: Regular ₱60")
        assert [m["content"] for m in messages[1:]] == ["user 0", "bot 0", "any recommendations?"]

    def test_history_is_windowed(self):
        request = CompletionRequest(system_prompt="sys", utterance="hi", history=history(5))
        messages = build_messages(request, turns=3)
        assert [m["content"] for m in messages[1:-1]] == ["bot 3", "user 4", "bot 4"]

    @pytest.mark.parametrize("turns", [0, -2])
    def test_history_disabled(self, turns):
        request = CompletionRequest(system_prompt="sys", utterance="hi", history=history(5))
        messages = build_messages(request, turns=turns)
        assert [m["role"] for m in messages] == ["system", "user"]


class TestModelConfiguration:
    """Test that model configuration works correctly."""

    def test_missing_key_fails_fast(self, monkeypatch):
        monkeypatch.setattr(config, "OPENAI_API_KEY", "")
        with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
            OpenAICompletionEndpoint()

    def test_default_models(self):
        endpoint = OpenAICompletionEndpoint(api_key="test-key")
        assert endpoint.model == config.OPENAI_MODEL
        assert endpoint.classifier_model == config.CLASSIFIER_MODEL

    def test_model_override(self):
        endpoint = OpenAICompletionEndpoint(api_key="test-key", model="gpt-4o", classifier_model="gpt-4o-mini")
        assert endpoint.model == "gpt-4o"
        assert endpoint.classifier_model == "gpt-4o-mini"


class TestEndpointCalls:
    """Tests for generate/classify with the OpenAI client mocked out."""

    @pytest.fixture
    def endpoint(self):
        endpoint = OpenAICompletionEndpoint(api_key="test-key", model="gpt-4o-mini")
        endpoint._client = MagicMock()
        endpoint._instructor = MagicMock()
        return endpoint

    def test_generate(self, endpoint):
        completion = MagicMock()
        completion.choices = [MagicMock(message=MagicMock(content="  Try our Milk Tea!  "))]
        endpoint._client.chat.completions.create = AsyncMock(return_value=completion)

        reply = asyncio.run(endpoint.generate(CompletionRequest(system_prompt="sys", utterance="hi")))

        assert reply == "Try our Milk Tea!"
        call_kwargs = endpoint._client.chat.completions.create.call_args[1]
        assert call_kwargs["model"] == "gpt-4o-mini"
        assert call_kwargs["temperature"] == config.GENERATION_TEMPERATURE
        assert call_kwargs["messages"][-1] == {"role": "user", "content": "hi"}

    def test_generate_empty_content(self, endpoint):
        completion = MagicMock()
        completion.choices = [MagicMock(message=MagicMock(content=None))]
        endpoint._client.chat.completions.create = AsyncMock(return_value=completion)

        assert asyncio.run(endpoint.generate(CompletionRequest(system_prompt="sys", utterance="hi"))) == ""

    def test_classify_returns_camel_case_json(self, endpoint):
        response = ClassifierResponse(
            has_order_intent=True,
            confidence=Confidence.HIGH,
            items=[ClassifiedItem(name="Milk Tea", quantity=2, size="Large", confidence=Confidence.HIGH)],
        )
        endpoint._instructor.chat.completions.create = AsyncMock(return_value=response)

        raw = asyncio.run(endpoint.classify(CompletionRequest(system_prompt="sys", utterance="2 large milk tea")))

        assert '"hasOrderIntent":true' in raw
        assert ClassifierResponse.model_validate_json(raw) == response
        call_kwargs = endpoint._instructor.chat.completions.create.call_args[1]
        assert call_kwargs["response_model"] is ClassifierResponse
        assert call_kwargs["temperature"] == config.CLASSIFIER_TEMPERATURE
