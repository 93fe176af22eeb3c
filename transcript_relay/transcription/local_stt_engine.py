import asyncio
import logging

import numpy as np

from transcript_relay.audio.format import resample
from transcript_relay.errors import TranscriptionError
from .stt_manager import STTEngine

WHISPER_SAMPLE_RATE = 16000

class LocalSTTEngine(STTEngine):
    """faster-whisper inference, installed through the `local` extra."""

    def __init__(self, model_name="small", device="cuda", compute_type="float16", logger=None, language=None):
        self.logger = logger or logging.getLogger("LocalSTT")
        self.model_name = model_name
        self.device = device
        self.compute_type = compute_type
        self.model = None
        # None lets whisper detect the language
        self.target_language = language if language != "auto" else None

        self._load_model()

    def _load_model(self):
        from faster_whisper import WhisperModel

        try:
            self.logger.info(f"Loading FasterWhisper model: {self.model_name} on {self.device} ({self.compute_type})")
            self.model = WhisperModel(self.model_name, device=self.device, compute_type=self.compute_type)
            self.logger.info("Model loaded successfully.")
        except Exception as e:
            self.logger.error(f"Failed to load model: {e}")
            if self.device == "cuda":
                self.logger.warning("Falling back to CPU int8")
                self.device = "cpu"
                self.compute_type = "int8"
                try:
                    self.model = WhisperModel(self.model_name, device=self.device, compute_type=self.compute_type)
                except Exception as e2:
                    self.logger.error(f"Fallback failed: {e2}")

    def _run_model(self, audio: np.ndarray) -> str:
        segments, _info = self.model.transcribe(
            audio,
            beam_size=5,
            language=self.target_language,
            condition_on_previous_text=False,
            vad_filter=True,
            vad_parameters=dict(min_silence_duration_ms=500)
        )
        # segments is a lazy generator; decoding happens here
        return "".join(segment.text for segment in segments).strip()

    async def transcribe(self, audio: np.ndarray, sample_rate: int) -> str:
        if not self.model:
            raise TranscriptionError(f"Model {self.model_name} is not loaded")

        audio = resample(audio, sample_rate, WHISPER_SAMPLE_RATE)

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._run_model, audio)
        except Exception as e:
            raise TranscriptionError(f"Transcribe error: {e}") from e
