from unittest.mock import AsyncMock, Mock

import numpy as np
import pytest

from transcript_relay.models import AudioChunk
from transcript_relay.transcription.sentence_assembler import SentenceAssembler
from transcript_relay.utils.event_bus import EventBus


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def logger():
    """Stands in for SystemLogger; calls can be asserted on."""
    return Mock()


@pytest.fixture
def assembler(bus, logger):
    return SentenceAssembler(bus, logger)


@pytest.fixture
def completed(assembler):
    """Collects every sentence the assembler publishes."""
    sentences = []
    assembler.set_on_sentence_complete(sentences.append)
    return sentences


@pytest.fixture
def audio_source():
    source = Mock()
    source.acquire = AsyncMock(return_value="handle")
    source.start = AsyncMock()
    source.stop = AsyncMock()
    source.release = AsyncMock()
    return source


def make_chunk(index: int, timestamp: int = None, sample_rate: int = 16000) -> AudioChunk:
    return AudioChunk(
        id=f"chunk-{index}",
        data=np.full(sample_rate, 0.1, dtype=np.float32),
        timestamp=timestamp if timestamp is not None else index * 1000,
        duration=1000,
        sample_rate=sample_rate,
    )
