from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import numpy as np

@dataclass(frozen=True)
class CompletedSentence:
    text: str
    timestamp: int

@dataclass
class AudioChunk:
    id: str
    data: np.ndarray
    timestamp: int  # ms since epoch at the first sample
    duration: int  # ms
    sample_rate: int = 16000

class SessionState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RECORDING = "recording"
    STOPPING = "stopping"

@dataclass
class RecordingSession:
    """Context of one start-to-stop capture lifecycle."""
    tab_id: int
    started_at: int
    handle: Any = None
    has_mic: Optional[bool] = None
    chunk_queue: Any = None
    worker: Any = None
    chunks_received: int = 0
    chunks_dropped: int = 0
    accepting: bool = True
