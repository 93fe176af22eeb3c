from abc import ABC, abstractmethod
from typing import Any, Dict

import numpy as np

from transcript_relay.audio.format import AudioFormatConverter
from transcript_relay.errors import TranscriptionError
from transcript_relay.models import AudioChunk

class STTEngine(ABC):
    @abstractmethod
    async def transcribe(self, audio: np.ndarray, sample_rate: int) -> str:
        """
        Returns the recognized text, "" when nothing was recognized.
        Raises TranscriptionError when the backend fails.
        """
        pass

class STTManager:
    """
    Turns audio chunks into text through the configured engine.
    Silent chunks are answered with "" without calling the backend.
    """
    def __init__(self, bus, config: Dict[str, Any], logger, engine: STTEngine = None):
        self.bus = bus
        self.config = config
        self.logger = logger
        stt_config = config.get("stt", {})
        self.mode = stt_config.get("mode", "api")
        self.silence_threshold = float(stt_config.get("silence_rms_threshold", 0.005))
        self.engine: STTEngine = engine

        if self.engine is None:
            self._setup_engine()

    def _setup_engine(self):
        stt_config = self.config.get("stt", {})
        if self.mode == "api":
            from .api_stt_engine import APISTTEngine
            self.engine = APISTTEngine(stt_config.get("api", {}), self.logger, language=stt_config.get("language"))
        elif self.mode == "local":
            from .local_stt_engine import LocalSTTEngine
            self.engine = LocalSTTEngine(
                model_name=stt_config.get("model", "small"),
                device=stt_config.get("device", "cuda"),
                compute_type=stt_config.get("compute_type", "float16"),
                logger=self.logger,
                language=stt_config.get("language"),
            )
        else:
            self.logger.error(f"Unknown STT mode: {self.mode}")
            self.engine = None

    def is_silent(self, audio: np.ndarray) -> bool:
        if audio.size == 0:
            return True
        rms = float(np.sqrt(np.mean(audio ** 2)))
        return rms < self.silence_threshold

    async def transcribe(self, chunk: AudioChunk) -> str:
        if not self.engine:
            raise TranscriptionError(f"No STT engine available (mode={self.mode})")

        audio = AudioFormatConverter.to_mono(chunk.data)
        if self.is_silent(audio):
            self.logger.debug(f"Skipping silent chunk {chunk.id}")
            return ""

        self.bus.emit("stt.decode_started", {"chunk_id": chunk.id})
        text = await self.engine.transcribe(audio, chunk.sample_rate)
        text = text or ""

        self.bus.emit("stt.transcribed", {"chunk_id": chunk.id, "text": text, "timestamp": chunk.timestamp})
        return text
