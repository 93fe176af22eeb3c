import logging
import time
from typing import Dict

from openai import AsyncOpenAI, OpenAIError

from transcript_relay.errors import TranslationError
from .prompt_builder import PromptBuilder

class LLMClient:
    """
    Client for interacting with LLM APIs (OpenAI compatible).
    """
    def __init__(self, config: Dict, client: AsyncOpenAI = None):
        self.config = config
        self.api_key = config.get("api_key")
        self.base_url = config.get("base_url")
        self.translation_model = config.get("llm_translation_model", "gpt-4o-mini")
        self.target_language = config.get("target_language", "Japanese")

        self.client = client or AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url
        )

        self.prompt_builder = PromptBuilder()
        self.logger = logging.getLogger("Relay")

    async def translate(self, sentence: str) -> Dict:
        """
        Translates a sentence using the LLM.
        Returns a dictionary with the translation and token usage.
        """
        prompt = self.prompt_builder.build_translation_prompt(sentence, self.target_language)

        self.logger.info(f"LLMClient: Sending translation request for: {sentence[:20]}...")
        start_time = time.monotonic()
        try:
            response = await self.client.chat.completions.create(
                model=self.translation_model,
                messages=[
                    {"role": "system", "content": self.prompt_builder.build_system_prompt()},
                    {"role": "user", "content": prompt}
                ],
                temperature=0.3,
                max_tokens=1000
            )
        except OpenAIError as e:
            raise TranslationError(f"LLM Translation Error: {e}") from e
        duration = time.monotonic() - start_time

        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise TranslationError("LLM returned an empty translation")

        usage = response.usage
        self.logger.info(f"LLMClient: Translation received in {duration:.2f}s: {content[:20]}...")

        return {
            "translated_text": content,
            "tokens_in": usage.prompt_tokens if usage else 0,
            "tokens_out": usage.completion_tokens if usage else 0,
            "latency_ms": duration * 1000
        }
