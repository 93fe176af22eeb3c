import asyncio
import time
from typing import Any, Dict, Optional

from transcript_relay.audio.chunk_processor import CHUNK_READY
from transcript_relay.audio.source import CAPTURE_ERROR, CAPTURE_STATUS, AudioSource
from transcript_relay.errors import AlreadyRecordingError, CaptureError, NotRecordingError, RelayError
from transcript_relay.models import AudioChunk, RecordingSession, SessionState
from transcript_relay.transcription.sentence_assembler import SentenceAssembler
from transcript_relay.transcription.stt_manager import STTManager
from transcript_relay.utils.event_bus import EventBus

# States in which delivered chunks are still transcribed
ACCEPTING_STATES = (SessionState.STARTING, SessionState.RECORDING, SessionState.STOPPING)

class SessionManager:
    """
    Owns the capture lifecycle: IDLE -> STARTING -> RECORDING -> STOPPING -> IDLE.

    Audio chunks are transcribed one at a time, in delivery order, by a
    worker task bound to the current RecordingSession, and the text is fed
    to the single SentenceAssembler. Completed sentences leave through the
    bus, so nothing downstream can hold up ingestion.
    """
    def __init__(self, bus: EventBus, config: Dict[str, Any], logger, audio_source: AudioSource,
                 stt_manager: STTManager, assembler: SentenceAssembler):
        self.bus = bus
        self.logger = logger
        self.audio_source = audio_source
        self.stt_manager = stt_manager
        self.assembler = assembler

        session_config = config.get("session", {})
        self.drain_timeout = float(session_config.get("drain_timeout_sec", 5.0))
        self.max_pending_chunks = int(session_config.get("max_pending_chunks", 20))

        self.state = SessionState.IDLE
        self.session: Optional[RecordingSession] = None
        self.last_error: Optional[str] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        self.bus.subscribe(CHUNK_READY, self.handle_chunk)
        self.bus.subscribe(CAPTURE_STATUS, self.handle_capture_status)
        self.bus.subscribe(CAPTURE_ERROR, self.handle_capture_error)

    # ---- lifecycle -------------------------------------------------------

    async def start(self, tab_id: int):
        if self.state != SessionState.IDLE:
            raise AlreadyRecordingError()

        self.state = SessionState.STARTING
        self.last_error = None
        self._loop = asyncio.get_running_loop()

        # Partial text from an earlier session must not leak into this one
        self.assembler.clear()

        session = RecordingSession(tab_id=tab_id, started_at=int(time.time() * 1000))
        session.chunk_queue = asyncio.Queue(maxsize=self.max_pending_chunks)
        session.worker = self._loop.create_task(self._process_chunks(session))
        self.session = session

        try:
            session.handle = await self.audio_source.acquire(tab_id)
            await self.audio_source.start(session.handle)
        except Exception as e:
            await self._abort_start(session)
            self.last_error = str(e)
            self.logger.error("Failed to start recording", exc=e)
            if isinstance(e, CaptureError):
                raise
            raise CaptureError(f"Failed to start recording: {e}") from e

        self.state = SessionState.RECORDING
        self.logger.info(f"Recording started for tab {tab_id}")

    async def _abort_start(self, session: RecordingSession):
        session.accepting = False
        if session.handle is not None:
            try:
                await self.audio_source.release(session.handle)
            except Exception as e:
                self.logger.error("Failed to release capture handle", exc=e)
        # Nothing was transcribed yet; the worker has no collaborator calls to protect
        session.worker.cancel()
        self.session = None
        self.state = SessionState.IDLE

    async def stop(self):
        if self.state != SessionState.RECORDING:
            raise NotRecordingError()

        session = self.session
        self.state = SessionState.STOPPING
        try:
            try:
                await self.audio_source.stop(session.handle)
            except Exception as e:
                self.logger.error("Failed to stop audio source", exc=e)

            await self._drain(session)

            # Surface the trailing partial sentence
            self.assembler.flush()

            try:
                await self.audio_source.release(session.handle)
            except Exception as e:
                self.logger.error("Failed to release capture handle", exc=e)
        finally:
            self.session = None
            self.state = SessionState.IDLE

        self.logger.info(
            f"Recording stopped for tab {session.tab_id}",
            chunks=session.chunks_received,
            dropped=session.chunks_dropped
        )

    async def _drain(self, session: RecordingSession):
        """
        Lets already-queued chunks finish, bounded by drain_timeout. The
        worker is never cancelled; on timeout it finishes on its own.
        """
        worker = session.worker
        if worker is None or worker.done():
            return

        async def _finish():
            await session.chunk_queue.put(None)
            session.accepting = False
            await asyncio.shield(worker)

        try:
            await asyncio.wait_for(_finish(), timeout=self.drain_timeout)
        except asyncio.TimeoutError:
            session.accepting = False
            self.logger.warning(
                f"Chunk drain timed out after {self.drain_timeout}s",
                queued=session.chunk_queue.qsize()
            )

    # ---- chunk ingestion -------------------------------------------------

    def handle_chunk(self, chunk: AudioChunk):
        """
        Bus handler for audio.chunk_ready. May be called from the capture
        thread; queueing always happens on the event loop.
        """
        session = self.session
        if session is None or self._loop is None:
            self.logger.debug(f"Dropping chunk {getattr(chunk, 'id', '?')}: no active session")
            return

        if self._on_loop_thread():
            self._enqueue(session, chunk)
        else:
            self._loop.call_soon_threadsafe(self._enqueue, session, chunk)

    def _enqueue(self, session: RecordingSession, chunk: AudioChunk):
        if self.session is not session or not session.accepting or self.state not in ACCEPTING_STATES:
            self.logger.debug(f"Dropping late chunk {chunk.id}")
            return

        try:
            session.chunk_queue.put_nowait(chunk)
            session.chunks_received += 1
        except asyncio.QueueFull:
            session.chunks_dropped += 1
            self.logger.warning(f"Audio queue full, dropping chunk {chunk.id}")

    async def _process_chunks(self, session: RecordingSession):
        queue = session.chunk_queue
        while True:
            chunk = await queue.get()
            try:
                if chunk is None:
                    return
                await self.on_chunk_delivered(chunk, session)
            finally:
                queue.task_done()
            if not session.accepting and queue.empty():
                return

    async def on_chunk_delivered(self, chunk: AudioChunk, session: Optional[RecordingSession] = None):
        """
        Transcribes one chunk and feeds the text to the assembler. A failed
        or empty transcription drops the chunk and leaves the buffer as is.
        Text from a session that has already ended is dropped, so it can
        never reach the buffer of a later session.
        """
        try:
            text = await self.stt_manager.transcribe(chunk)
        except Exception as e:
            self.logger.error(f"Transcription failed for {chunk.id}", exc=e)
            self.bus.emit("stt.failed", {"chunk_id": chunk.id, "error": str(e)})
            return

        if not text or not text.strip():
            self.logger.debug(f"Nothing recognized in {chunk.id}")
            return

        if session is not None and self.session is not session:
            self.logger.warning(f"Discarding transcription of {chunk.id}: its session has ended")
            return

        self.logger.debug(f"Transcription result for {chunk.id}: {text}")
        self.assembler.process_fragment(text, chunk.timestamp)

    # ---- collaborator notifications ---------------------------------------

    def handle_capture_status(self, data: Dict[str, Any]):
        if self.session is not None and data.get("has_mic") is not None:
            self.session.has_mic = bool(data["has_mic"])
            self.logger.info(f"Capture status: has_mic={self.session.has_mic}")

    def handle_capture_error(self, data: Dict[str, Any]):
        error = data.get("error", "Unknown capture error")
        self.logger.error(f"Capture error: {error}")
        if self._loop is None:
            return

        if self._on_loop_thread():
            self._abandon_session(error)
        else:
            self._loop.call_soon_threadsafe(self._abandon_session, error)

    def _abandon_session(self, error: str):
        """Capture died under us: the session ends without a flush."""
        session = self.session
        if session is None or self.state != SessionState.RECORDING:
            return

        self.last_error = error
        session.accepting = False
        if not session.chunk_queue.full():
            session.chunk_queue.put_nowait(None)
        self.session = None
        self.state = SessionState.IDLE
        self._loop.create_task(self._release_quietly(session))

    async def _release_quietly(self, session: RecordingSession):
        try:
            await self.audio_source.stop(session.handle)
            await self.audio_source.release(session.handle)
        except Exception as e:
            self.logger.error("Failed to tear down capture after error", exc=e)

    # ---- queries and commands --------------------------------------------

    def get_status(self) -> Dict[str, Any]:
        status: Dict[str, Any] = {
            "state": self.state.value,
            "is_recording": self.state == SessionState.RECORDING,
        }
        if self.state == SessionState.RECORDING and self.session is not None:
            status["tab_id"] = self.session.tab_id
            status["started_at"] = self.session.started_at
            if self.session.has_mic is not None:
                status["has_mic"] = self.session.has_mic
        if self.last_error:
            status["error"] = self.last_error
        return status

    async def handle_command(self, message: Dict[str, Any]) -> Dict[str, Any]:
        message_type = message.get("type")
        try:
            if message_type == "START_RECORDING":
                await self.start(message.get("tab_id"))
                return {"success": True}
            if message_type == "STOP_RECORDING":
                await self.stop()
                return {"success": True}
            if message_type == "GET_RECORDING_STATUS":
                return self.get_status()
        except RelayError as e:
            return {"success": False, "error": str(e)}

        return {"success": False, "error": "Unknown message type"}

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False
