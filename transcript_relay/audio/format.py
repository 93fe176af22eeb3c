import numpy as np


def resample(audio: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    """Linear-interpolation resampling of a mono float32 signal."""
    if source_rate == target_rate or audio.size == 0:
        return audio.astype(np.float32, copy=False)

    duration_s = len(audio) / source_rate
    target_length = int(duration_s * target_rate)
    return np.interp(
        np.linspace(0, len(audio), target_length, endpoint=False),
        np.arange(len(audio)),
        audio
    ).astype(np.float32)


class AudioFormatConverter:
    """Converts interleaved int16 PCM to mono float32 at the target rate."""

    def __init__(self, target_rate: int = 16000):
        self.target_rate = target_rate

    def convert(self, raw_bytes: bytes, source_rate: int, source_channels: int) -> np.ndarray:
        audio_data = np.frombuffer(raw_bytes, dtype=np.int16)

        if source_channels > 1:
            # Drop a trailing partial frame before reshaping
            usable = len(audio_data) - len(audio_data) % source_channels
            audio_data = audio_data[:usable].reshape(-1, source_channels)

        # int16 is [-32768, 32767]
        audio_float32 = self.to_mono(audio_data) / 32768.0

        return resample(audio_float32, source_rate, self.target_rate)

    @staticmethod
    def to_mono(audio: np.ndarray) -> np.ndarray:
        """Averages a (frames, channels) array down to one float32 channel."""
        audio = np.asarray(audio)
        if audio.ndim == 2:
            audio = audio.mean(axis=1)
        elif audio.ndim > 2:
            audio = audio.reshape(-1)
        return audio.astype(np.float32, copy=False)

    @staticmethod
    def mix(primary: np.ndarray, secondary: np.ndarray) -> np.ndarray:
        """Averages two mono signals, padding the shorter one with silence."""
        length = max(len(primary), len(secondary))
        mixed = np.zeros(length, dtype=np.float32)
        mixed[:len(primary)] += primary
        mixed[:len(secondary)] += secondary
        return mixed / 2.0
