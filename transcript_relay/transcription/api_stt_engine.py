import io
import os
import wave

import aiohttp
import numpy as np

from transcript_relay.errors import TranscriptionError
from .stt_manager import STTEngine

OPENAI_TRANSCRIPTION_URL = "https://api.openai.com/v1/audio/transcriptions"

class APISTTEngine(STTEngine):
    def __init__(self, api_config, logger, language=None):
        self.config = api_config
        self.logger = logger
        self.provider = api_config.get("provider", "openai")
        self.model = api_config.get("model", "whisper-1")
        self.url = api_config.get("url", OPENAI_TRANSCRIPTION_URL)
        self.api_key_env = api_config.get("api_key_env", "OPENAI_API_KEY")
        self.api_key = api_config.get("api_key") or os.environ.get(self.api_key_env)
        self.language = language if language != "auto" else None

        if not self.api_key:
            self.logger.warning(f"API Key environment variable {self.api_key_env} not found.")

    async def transcribe(self, audio: np.ndarray, sample_rate: int) -> str:
        if self.provider == "openai":
            return await self._transcribe_openai(audio, sample_rate)
        raise TranscriptionError(f"Unknown provider: {self.provider}")

    @staticmethod
    def encode_wav(audio: np.ndarray, sample_rate: int) -> bytes:
        """Wraps float32 [-1, 1] mono PCM into a 16-bit WAV container."""
        audio_int16 = (np.clip(audio, -1.0, 1.0) * 32767).astype(np.int16)
        with io.BytesIO() as wav_buffer:
            with wave.open(wav_buffer, 'wb') as wf:
                wf.setnchannels(1)
                wf.setsampwidth(2)
                wf.setframerate(sample_rate)
                wf.writeframes(audio_int16.tobytes())
            return wav_buffer.getvalue()

    async def _transcribe_openai(self, audio, sample_rate):
        if not self.api_key:
            raise TranscriptionError(f"Missing API key ({self.api_key_env})")

        headers = {
            "Authorization": f"Bearer {self.api_key}"
        }

        data = aiohttp.FormData()
        data.add_field('file', self.encode_wav(audio, sample_rate), filename='audio.wav', content_type='audio/wav')
        data.add_field('model', self.model)
        if self.language:
            data.add_field('language', self.language)

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, headers=headers, data=data) as resp:
                    if resp.status != 200:
                        err_text = await resp.text()
                        raise TranscriptionError(f"OpenAI API Error {resp.status}: {err_text}")
                    result = await resp.json()
                    return result.get("text", "")
        except aiohttp.ClientError as e:
            raise TranscriptionError(f"OpenAI request failed: {e}") from e
