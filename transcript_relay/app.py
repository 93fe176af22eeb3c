from dataclasses import dataclass
from typing import Any, Dict, Optional

from transcript_relay.audio.source import AudioSource
from transcript_relay.notification.dispatcher import SentenceDispatcher
from transcript_relay.notification.slack_client import SlackClient
from transcript_relay.session.manager import SessionManager
from transcript_relay.transcription.sentence_assembler import SentenceAssembler
from transcript_relay.transcription.stt_manager import STTManager
from transcript_relay.translation.manager import TranslationManager
from transcript_relay.utils.event_bus import EventBus
from transcript_relay.utils.logger import SystemLogger

@dataclass
class RelayApp:
    bus: EventBus
    logger: SystemLogger
    session_manager: SessionManager
    dispatcher: SentenceDispatcher
    translation_manager: TranslationManager
    assembler: SentenceAssembler

    async def shutdown(self, timeout: float = 30.0):
        if self.session_manager.get_status()["is_recording"]:
            await self.session_manager.stop()
        await self.dispatcher.wait_until_idle(timeout=timeout)


def create_audio_source(bus: EventBus, config: Dict[str, Any], logger) -> AudioSource:
    source = config.get("audio", {}).get("source", "loopback")
    if source == "file":
        from transcript_relay.audio.file_source import FileAudioSource
        return FileAudioSource(bus, config, logger)
    if source == "loopback":
        # WASAPI only exists on Windows; imported on demand
        from transcript_relay.audio.capture import LoopbackAudioSource
        return LoopbackAudioSource(bus, config, logger)
    raise ValueError(f"Unknown audio source: {source}")


def build_app(config: Dict[str, Any], logger: Optional[SystemLogger] = None, bus: Optional[EventBus] = None,
              audio_source: Optional[AudioSource] = None, stt_manager: Optional[STTManager] = None,
              notifier=None) -> RelayApp:
    """Wires all components onto one event bus."""
    logger = logger or SystemLogger("Relay")
    logger.set_level(config.get("logging", {}).get("level", "INFO"))
    bus = bus or EventBus()

    assembler = SentenceAssembler(bus, logger)
    translation_manager = TranslationManager(bus, config.get("translation", {}), logger)

    if notifier is None:
        webhook_url = config.get("slack", {}).get("webhook_url")
        if webhook_url:
            notifier = SlackClient(webhook_url, logger)
        else:
            logger.warning("SLACK_WEBHOOK_URL not set; sentences will only be logged")
    dispatcher = SentenceDispatcher(bus, translation_manager, notifier, logger)

    session_manager = SessionManager(
        bus,
        config,
        logger,
        audio_source=audio_source or create_audio_source(bus, config, logger),
        stt_manager=stt_manager or STTManager(bus, config, logger),
        assembler=assembler,
    )

    return RelayApp(
        bus=bus,
        logger=logger,
        session_manager=session_manager,
        dispatcher=dispatcher,
        translation_manager=translation_manager,
        assembler=assembler,
    )
