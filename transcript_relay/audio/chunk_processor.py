import time
from typing import Optional

import numpy as np

from transcript_relay.models import AudioChunk
from transcript_relay.utils.event_bus import EventBus

CHUNK_READY = "audio.chunk_ready"

class ChunkProcessor:
    """
    Cuts a continuous mono stream into fixed-duration, non-overlapping chunks.
    Chunk timestamps are derived from the stream start and the number of
    samples consumed, so they never go backwards.
    """
    def __init__(self, bus: EventBus, sample_rate: int, chunk_ms: int = 10000, min_tail_ms: int = 500):
        if chunk_ms <= 0:
            raise ValueError("Chunk duration must be positive")

        self.bus = bus
        self.sample_rate = sample_rate
        self.chunk_samples = int(sample_rate * chunk_ms / 1000)
        self.min_tail_samples = int(sample_rate * min_tail_ms / 1000)
        self.buffer = np.zeros(0, dtype=np.float32)
        self.chunk_id = 0
        self.samples_emitted = 0
        self.start_time_ms: Optional[int] = None

    def reset(self, start_time_ms: Optional[int] = None):
        self.buffer = np.zeros(0, dtype=np.float32)
        self.chunk_id = 0
        self.samples_emitted = 0
        self.start_time_ms = start_time_ms

    def push(self, data: np.ndarray):
        if self.start_time_ms is None:
            self.start_time_ms = int(time.time() * 1000)

        self.buffer = np.concatenate([self.buffer, data.astype(np.float32, copy=False)])

        while len(self.buffer) >= self.chunk_samples:
            chunk = self.buffer[:self.chunk_samples]
            self.buffer = self.buffer[self.chunk_samples:]
            self._emit(chunk)

    def flush(self):
        """Emits the remaining samples if they are long enough to be worth transcribing."""
        if len(self.buffer) >= max(self.min_tail_samples, 1):
            self._emit(self.buffer)
        self.buffer = np.zeros(0, dtype=np.float32)

    def _emit(self, samples: np.ndarray):
        self.chunk_id += 1
        timestamp = self.start_time_ms + int(self.samples_emitted * 1000 / self.sample_rate)
        self.samples_emitted += len(samples)

        self.bus.emit(CHUNK_READY, AudioChunk(
            id=f"chunk-{self.chunk_id}",
            data=samples,
            timestamp=timestamp,
            duration=int(len(samples) * 1000 / self.sample_rate),
            sample_rate=self.sample_rate,
        ))
