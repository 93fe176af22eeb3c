import asyncio
import time
from typing import Dict, Set

from transcript_relay.models import CompletedSentence
from transcript_relay.transcription.sentence_assembler import SENTENCE_COMPLETED
from transcript_relay.translation.manager import TranslationManager
from transcript_relay.utils.event_bus import EventBus

class SentenceDispatcher:
    """
    Delivers completed sentences downstream:
    SentenceAssembler -> (TranslationManager) -> SlackClient

    Each sentence becomes its own background task so chunk ingestion never
    waits on translation or posting. Jobs may finish in any order; a failed
    job is logged, counted and published, never retried.
    """
    def __init__(self, event_bus: EventBus, translation_manager: TranslationManager, notifier, logger):
        self.bus = event_bus
        self.translation_manager = translation_manager
        self.notifier = notifier
        self.logger = logger

        self._tasks: Set[asyncio.Task] = set()
        self.stats: Dict[str, int] = {"dispatched": 0, "posted": 0, "post_failed": 0, "skipped": 0}

        self.bus.subscribe(SENTENCE_COMPLETED, self._on_sentence_completed)

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    def _on_sentence_completed(self, sentence: CompletedSentence):
        """
        Bus handler; runs synchronously inside the assembler's emit, so only
        schedules the work.
        """
        task = asyncio.get_running_loop().create_task(self.deliver(sentence))
        self.stats["dispatched"] += 1
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.error("Sentence delivery crashed", exc=task.exception())

    async def deliver(self, sentence: CompletedSentence):
        start = time.monotonic()
        self.logger.info(f"Sentence completed: {sentence.text[:30]}", timestamp=sentence.timestamp)

        translated_text = await self.translation_manager.translate(sentence.text)

        if not self.notifier:
            self.stats["skipped"] += 1
            self.logger.warning("Slack client not available, sentence not posted")
            return

        try:
            await self.notifier.post_transcript(sentence.text, translated_text)
        except Exception as e:
            self.stats["post_failed"] += 1
            self.logger.error("Failed to post to Slack", exc=e)
            self.bus.emit("notification.failed", {
                "sentence": sentence,
                "translation": translated_text,
                "error": str(e)
            })
            return

        self.stats["posted"] += 1
        latency_ms = (time.monotonic() - start) * 1000
        self.logger.info(f"Posted to Slack in {latency_ms:.0f}ms")
        self.bus.emit("notification.posted", {
            "sentence": sentence,
            "translation": translated_text,
            "latency_ms": latency_ms
        })

    async def wait_until_idle(self, timeout: float = None):
        """Waits for in-flight deliveries, including ones scheduled meanwhile."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while self._tasks:
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                self.logger.warning(f"{len(self._tasks)} deliveries still pending")
                return
            await asyncio.wait(set(self._tasks), timeout=remaining)
