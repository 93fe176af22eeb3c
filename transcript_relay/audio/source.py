from abc import ABC, abstractmethod
from typing import Any, Dict

from transcript_relay.audio.chunk_processor import ChunkProcessor
from transcript_relay.audio.format import AudioFormatConverter
from transcript_relay.utils.event_bus import EventBus

CAPTURE_STATUS = "audio.capture_status"
CAPTURE_ERROR = "audio.capture_error"

class AudioSource(ABC):
    """
    Produces timestamp-ordered AudioChunks on the bus (audio.chunk_ready)
    between start() and stop(). Reports microphone availability through
    audio.capture_status and asynchronous failures through audio.capture_error.
    """
    def __init__(self, bus: EventBus, config: Dict[str, Any], logger):
        self.bus = bus
        self.config = config
        self.logger = logger
        self.sample_rate = config.get("audio", {}).get("sample_rate", 16000)
        chunk_config = config.get("chunk", {})
        self.chunk_processor = ChunkProcessor(
            bus,
            self.sample_rate,
            chunk_ms=chunk_config.get("duration_ms", 10000),
            min_tail_ms=chunk_config.get("min_tail_ms", 500),
        )
        self.format_converter = AudioFormatConverter(self.sample_rate)

    @abstractmethod
    async def acquire(self, tab_id: int) -> Any:
        """Opens the capture target and returns a handle for it."""
        pass

    @abstractmethod
    async def start(self, handle: Any):
        pass

    @abstractmethod
    async def stop(self, handle: Any):
        pass

    async def release(self, handle: Any):
        pass

    def _report_status(self, is_capturing: bool, has_mic: bool = None):
        payload = {"is_capturing": is_capturing}
        if has_mic is not None:
            payload["has_mic"] = has_mic
        self.bus.emit(CAPTURE_STATUS, payload)

    def _report_error(self, error: Exception):
        self.bus.emit(CAPTURE_ERROR, {"error": str(error)})
