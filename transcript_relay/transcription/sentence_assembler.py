from typing import Callable, Optional

from transcript_relay.models import CompletedSentence
from transcript_relay.transcription.segmentation import is_complete, merge_texts, split_into_sentences
from transcript_relay.utils.event_bus import EventBus

SENTENCE_COMPLETED = "transcript.sentence_completed"

class SentenceAssembler:
    """
    Rebuilds sentences from transcript fragments that may break mid-sentence.

    Holds at most one pending (incomplete) sentence together with the
    timestamp of the first fragment that contributed to it. Every completed
    sentence is published once on the bus as a CompletedSentence.
    Not safe for concurrent process_fragment calls.
    """
    def __init__(self, bus: EventBus, logger):
        self.bus = bus
        self.logger = logger
        self.buffer = ""
        self.buffer_timestamp: Optional[int] = None

    def set_on_sentence_complete(self, callback: Callable[[CompletedSentence], None]):
        self.bus.subscribe(SENTENCE_COMPLETED, callback)

    def process_fragment(self, text: str, timestamp: int):
        """
        Merges a new fragment onto the pending text and publishes every
        sentence it completes.
        """
        if not text or not text.strip():
            return

        merged_text = merge_texts(self.buffer, text)

        # Anchor timestamp only moves once the buffer has been emptied
        if not self.buffer:
            self.buffer_timestamp = timestamp

        sentences = split_into_sentences(merged_text)
        if not sentences:
            self.clear()
            return

        for sentence in sentences[:-1]:
            self._emit(sentence)

        last_sentence = sentences[-1]
        if is_complete(last_sentence):
            self._emit(last_sentence)
            self.clear()
        else:
            self.buffer = last_sentence

    def flush(self):
        """Publishes the pending text even if incomplete, then clears."""
        if self.buffer.strip():
            self._emit(self.buffer)
        self.clear()

    def clear(self):
        self.buffer = ""
        self.buffer_timestamp = None

    def get_buffer_content(self) -> str:
        return self.buffer

    def _emit(self, text: str):
        clean_text = text.strip()
        if not clean_text:
            return

        sentence = CompletedSentence(text=clean_text, timestamp=self.buffer_timestamp)
        self.logger.debug(f"[Assembler] Final: {clean_text}", timestamp=self.buffer_timestamp)
        self.bus.emit(SENTENCE_COMPLETED, sentence)
