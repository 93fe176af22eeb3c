import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import pyaudiowpatch as pyaudio

from transcript_relay.audio.source import AudioSource
from transcript_relay.errors import CaptureError
from transcript_relay.utils.logger import SystemLogger

FRAMES_PER_BUFFER = 4096

@dataclass
class LoopbackHandle:
    pyaudio_instance: Any
    device: Dict[str, Any]
    mic_device: Optional[Dict[str, Any]] = None
    stream: Any = None
    mic_stream: Any = None
    thread: Optional[threading.Thread] = None
    stop_event: Optional[threading.Event] = None

class LoopbackAudioSource(AudioSource):
    """
    WASAPI loopback capture of what the machine is playing, optionally mixed
    with the default microphone. The tab id selects the input device index;
    a negative id or the configured default picks the default loopback.
    """

    @staticmethod
    def list_audio_devices() -> list:
        """Lists available WASAPI input devices (including loopback)."""
        devices = []
        p = pyaudio.PyAudio()
        try:
            try:
                wasapi_info = p.get_host_api_info_by_type(pyaudio.paWASAPI)
            except OSError:
                return []

            for i in range(p.get_device_count()):
                dev = p.get_device_info_by_index(i)
                if dev["hostApi"] == wasapi_info["index"] and dev["maxInputChannels"] > 0:
                    devices.append({
                        "index": i,
                        "name": dev["name"],
                        "is_loopback": dev.get("isLoopbackDevice", False)
                    })
        except Exception as e:
            SystemLogger("AudioCapture").error(f"Error listing devices: {e}")
        finally:
            p.terminate()
        return devices

    async def acquire(self, tab_id: int) -> LoopbackHandle:
        instance = pyaudio.PyAudio()
        try:
            device = self._resolve_device(instance, tab_id)
            mic_device = self._find_microphone(instance)
        except Exception as e:
            instance.terminate()
            raise CaptureError(f"Failed to open WASAPI device: {e}") from e

        self.logger.info(f"Selected device: {device['name']} (Index: {device['index']})")
        return LoopbackHandle(pyaudio_instance=instance, device=device, mic_device=mic_device)

    def _resolve_device(self, instance, tab_id):
        wasapi_info = instance.get_host_api_info_by_type(pyaudio.paWASAPI)

        device_index = tab_id if tab_id is not None and tab_id >= 0 else self.config.get("audio", {}).get("device_index")
        if device_index is not None:
            try:
                return instance.get_device_info_by_index(device_index)
            except Exception as e:
                self.logger.error(f"Failed to find device index {device_index}, falling back to default.", exc=e)

        default_speakers = instance.get_device_info_by_index(wasapi_info["defaultOutputDevice"])
        if default_speakers.get("isLoopbackDevice"):
            return default_speakers

        for loopback in instance.get_loopback_device_info_generator():
            if default_speakers["name"] in loopback["name"]:
                return loopback

        raise CaptureError(f"No loopback device found for {default_speakers['name']}")

    def _find_microphone(self, instance) -> Optional[Dict[str, Any]]:
        try:
            return instance.get_default_input_device_info()
        except (OSError, IOError):
            self.logger.warning("Could not find a microphone, continuing with loopback audio only")
            return None

    @staticmethod
    def _open_input(instance, device):
        rate = int(device["defaultSampleRate"])
        channels = int(device["maxInputChannels"])
        stream = instance.open(
            format=pyaudio.paInt16,
            channels=channels,
            rate=rate,
            frames_per_buffer=FRAMES_PER_BUFFER,
            input=True,
            input_device_index=device["index"]
        )
        return stream, rate, channels

    async def start(self, handle: LoopbackHandle):
        try:
            handle.stream, rate, channels = self._open_input(handle.pyaudio_instance, handle.device)
        except Exception as e:
            raise CaptureError(f"Failed to open loopback stream: {e}") from e

        mic_format = None
        if handle.mic_device is not None:
            try:
                handle.mic_stream, mic_rate, mic_channels = self._open_input(handle.pyaudio_instance, handle.mic_device)
                mic_format = (mic_rate, mic_channels)
            except Exception as e:
                self.logger.warning(f"Could not open microphone stream: {e}")
                handle.mic_stream = None

        self.logger.info(f"Opening stream: Rate={rate}, Channels={channels}, DeviceIdx={handle.device['index']}")

        self.chunk_processor.reset(int(time.time() * 1000))
        handle.stop_event = threading.Event()
        handle.thread = threading.Thread(
            target=self._capture_loop,
            args=(handle, (rate, channels), mic_format),
            daemon=True
        )
        handle.thread.start()
        self._report_status(True, has_mic=handle.mic_stream is not None)

    def _capture_loop(self, handle: LoopbackHandle, loopback_format, mic_format):
        while not handle.stop_event.is_set():
            try:
                data = handle.stream.read(FRAMES_PER_BUFFER, exception_on_overflow=False)
                audio = self.format_converter.convert(data, *loopback_format)

                if handle.mic_stream is not None:
                    mic_data = handle.mic_stream.read(FRAMES_PER_BUFFER, exception_on_overflow=False)
                    mic_audio = self.format_converter.convert(mic_data, *mic_format)
                    audio = self.format_converter.mix(audio, mic_audio)

                self.chunk_processor.push(audio)
            except Exception as e:
                self.logger.error("Capture loop error", exc=e)
                self._report_error(e)
                break

    async def stop(self, handle: LoopbackHandle):
        if handle.stop_event:
            handle.stop_event.set()
        if handle.thread:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, handle.thread.join)

        # Trailing audio becomes one last, shorter chunk
        self.chunk_processor.flush()
        self._report_status(False)

    async def release(self, handle: LoopbackHandle):
        for stream in (handle.stream, handle.mic_stream):
            if stream:
                stream.stop_stream()
                stream.close()
        handle.stream = None
        handle.mic_stream = None
        handle.pyaudio_instance.terminate()
