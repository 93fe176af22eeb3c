from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from openai import OpenAIError

from transcript_relay.errors import TranslationError
from transcript_relay.translation.language import LanguageClassifier, LatinScriptClassifier
from transcript_relay.translation.llm_client import LLMClient
from transcript_relay.translation.manager import TranslationManager


@pytest.fixture
def llm_client():
    client = Mock()
    client.translate = AsyncMock(return_value={"translated_text": "こんにちは。", "latency_ms": 12.0})
    return client


@pytest.fixture
def manager(bus, logger, llm_client):
    return TranslationManager(bus, {"enabled": True}, logger, llm_client=llm_client)


class TestLatinScriptClassifier:
    @pytest.mark.parametrize("text", ["Hello world.", "Is it (really) done?", "It's fine - thanks!"])
    def test_english_is_translatable(self, text):
        assert LatinScriptClassifier().is_translatable(text)

    @pytest.mark.parametrize("text", ["こんにちは。", "Hello 世界.", "Version 2.", "Café.", ""])
    def test_other_text_is_not(self, text):
        assert not LatinScriptClassifier().is_translatable(text)


@pytest.mark.asyncio
async def test_translates_english(manager, llm_client, bus):
    finished = []
    bus.subscribe("translation.finished", finished.append)

    assert await manager.translate("Hello.") == "こんにちは。"
    llm_client.translate.assert_awaited_once_with("Hello.")
    assert finished[0]["translation"] == "こんにちは。"
    assert manager.translated_count == 1


@pytest.mark.asyncio
async def test_non_source_language_is_not_sent(manager, llm_client):
    assert await manager.translate("今日は良い天気。") is None
    llm_client.translate.assert_not_awaited()


@pytest.mark.asyncio
async def test_failure_returns_none(manager, llm_client, bus, logger):
    failed = []
    bus.subscribe("translation.failed", failed.append)
    llm_client.translate.side_effect = TranslationError("rate limited")

    assert await manager.translate("Hello.") is None
    assert failed == [{"text": "Hello.", "error": "rate limited"}]
    assert manager.failed_count == 1
    logger.error.assert_called_once()


@pytest.mark.asyncio
async def test_disabled_translation(bus, logger, llm_client):
    manager = TranslationManager(bus, {"enabled": False}, logger, llm_client=llm_client)

    assert await manager.translate("Hello.") is None
    llm_client.translate.assert_not_awaited()


@pytest.mark.asyncio
async def test_pluggable_classifier(manager, llm_client):
    class Everything(LanguageClassifier):
        def is_translatable(self, text):
            return True

    manager.set_classifier(Everything())

    assert await manager.translate("今日は。") == "こんにちは。"


def test_missing_api_key_disables_client(bus, logger):
    manager = TranslationManager(bus, {"enabled": True}, logger)

    assert manager.llm_client is None
    logger.warning.assert_called_once()


def _completion(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=10, completion_tokens=5),
    )


@pytest.mark.asyncio
async def test_llm_client_returns_translation():
    openai_client = Mock()
    openai_client.chat.completions.create = AsyncMock(return_value=_completion(" やあ。 "))
    client = LLMClient({"llm_translation_model": "gpt-test"}, client=openai_client)

    result = await client.translate("Hi.")

    assert result["translated_text"] == "やあ。"
    assert result["tokens_in"] == 10
    kwargs = openai_client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "gpt-test"
    assert "Japanese" in kwargs["messages"][1]["content"]


@pytest.mark.asyncio
async def test_llm_client_wraps_api_errors():
    openai_client = Mock()
    openai_client.chat.completions.create = AsyncMock(side_effect=OpenAIError("boom"))
    client = LLMClient({}, client=openai_client)

    with pytest.raises(TranslationError):
        await client.translate("Hi.")


@pytest.mark.asyncio
async def test_llm_client_rejects_empty_output():
    openai_client = Mock()
    openai_client.chat.completions.create = AsyncMock(return_value=_completion("   "))
    client = LLMClient({}, client=openai_client)

    with pytest.raises(TranslationError):
        await client.translate("Hi.")
