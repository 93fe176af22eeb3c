from typing import Dict, Optional

from transcript_relay.utils.event_bus import EventBus
from .language import LanguageClassifier, LatinScriptClassifier
from .llm_client import LLMClient

class TranslationManager:
    """
    Best-effort translation of completed sentences.

    translate() never raises: a disabled translator, a sentence outside the
    source language, or a backend failure all yield None so the caller can
    go on with the untranslated original.
    """
    def __init__(self, event_bus: EventBus, config: Dict, logger, llm_client: LLMClient = None,
                 classifier: LanguageClassifier = None):
        self.bus = event_bus
        self.config = config
        self.logger = logger
        self.enabled = bool(config.get("enabled", True))
        self.classifier = classifier or LatinScriptClassifier()
        self.llm_client = llm_client

        if self.llm_client is None and self.enabled:
            if config.get("api_key"):
                self.llm_client = LLMClient(config)
            else:
                self.logger.warning("Translation disabled: no OpenAI API key configured")

        self.translated_count = 0
        self.failed_count = 0

    def set_classifier(self, classifier: LanguageClassifier):
        self.classifier = classifier

    async def translate(self, text: str) -> Optional[str]:
        if not self.enabled or not self.llm_client:
            return None

        if not self.classifier.is_translatable(text):
            self.logger.debug(f"Skipping translation (not source language): {text[:20]}...")
            return None

        self.bus.emit("translation.started", {"text": text})
        try:
            result = await self.llm_client.translate(text)
        except Exception as e:
            self.failed_count += 1
            self.logger.error(f"Translation failed for: {text[:20]}...", exc=e)
            self.bus.emit("translation.failed", {"text": text, "error": str(e)})
            return None

        translated_text = result.get("translated_text") or None
        if translated_text:
            self.translated_count += 1
            self.bus.emit("translation.finished", {
                "original": text,
                "translation": translated_text,
                "latency_ms": result.get("latency_ms", 0.0)
            })
        return translated_text
