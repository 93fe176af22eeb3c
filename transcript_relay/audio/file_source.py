import asyncio
import wave
from dataclasses import dataclass
from typing import Optional

from transcript_relay.audio.source import AudioSource
from transcript_relay.errors import CaptureError

READ_FRAMES = 4096

@dataclass
class FileHandle:
    path: str
    wav: wave.Wave_read
    task: Optional[asyncio.Task] = None

class FileAudioSource(AudioSource):
    """
    Streams a 16-bit PCM WAV file as if it were live capture.
    With `audio.realtime` enabled, reads are paced to the file's duration.
    """

    async def acquire(self, tab_id: int) -> FileHandle:
        path = self.config.get("audio", {}).get("file_path")
        if not path:
            raise CaptureError("No audio file configured (AUDIO_FILE)")

        try:
            wav = wave.open(path, 'rb')
        except (OSError, wave.Error) as e:
            raise CaptureError(f"Failed to open {path}: {e}") from e

        if wav.getsampwidth() != 2:
            wav.close()
            raise CaptureError(f"{path} is not 16-bit PCM")

        self.logger.info(f"Streaming {path} ({wav.getnframes() / wav.getframerate():.1f}s)")
        return FileHandle(path=path, wav=wav)

    async def start(self, handle: FileHandle):
        self.chunk_processor.reset()
        handle.task = asyncio.create_task(self._stream(handle))
        self._report_status(True, has_mic=False)

    async def _stream(self, handle: FileHandle):
        realtime = self.config.get("audio", {}).get("realtime", True)
        rate = handle.wav.getframerate()
        channels = handle.wav.getnchannels()

        try:
            while True:
                data = handle.wav.readframes(READ_FRAMES)
                if not data:
                    break
                self.chunk_processor.push(self.format_converter.convert(data, rate, channels))
                # Always yield so chunk handlers get a turn
                await asyncio.sleep(READ_FRAMES / rate if realtime else 0)
            self.chunk_processor.flush()
            self.logger.info(f"Reached end of {handle.path}")
        except asyncio.CancelledError:
            self.chunk_processor.flush()
            raise
        except Exception as e:
            self.logger.error("File streaming error", exc=e)
            self._report_error(e)

    async def stop(self, handle: FileHandle):
        if handle.task and not handle.task.done():
            handle.task.cancel()
            try:
                await handle.task
            except asyncio.CancelledError:
                pass
        self._report_status(False)

    async def release(self, handle: FileHandle):
        handle.wav.close()
