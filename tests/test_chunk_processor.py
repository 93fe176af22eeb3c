import numpy as np
import pytest

from transcript_relay.audio.chunk_processor import CHUNK_READY, ChunkProcessor
from transcript_relay.audio.format import AudioFormatConverter, resample


@pytest.fixture
def chunks(bus):
    received = []
    bus.subscribe(CHUNK_READY, received.append)
    return received


def test_emits_fixed_duration_chunks(bus, chunks):
    processor = ChunkProcessor(bus, sample_rate=1000, chunk_ms=500)
    processor.reset(start_time_ms=10_000)

    processor.push(np.ones(1200, dtype=np.float32))

    assert [c.id for c in chunks] == ["chunk-1", "chunk-2"]
    assert [c.timestamp for c in chunks] == [10_000, 10_500]
    assert all(c.duration == 500 and len(c.data) == 500 for c in chunks)
    assert len(processor.buffer) == 200


def test_timestamps_continue_across_pushes(bus, chunks):
    processor = ChunkProcessor(bus, sample_rate=1000, chunk_ms=500)
    processor.reset(start_time_ms=0)

    for _ in range(5):
        processor.push(np.ones(300, dtype=np.float32))

    assert [c.timestamp for c in chunks] == [0, 500, 1000]


def test_flush_emits_long_enough_tail(bus, chunks):
    processor = ChunkProcessor(bus, sample_rate=1000, chunk_ms=500, min_tail_ms=100)
    processor.reset(start_time_ms=0)
    processor.push(np.ones(650, dtype=np.float32))

    processor.flush()

    assert [c.duration for c in chunks] == [500, 150]
    assert chunks[-1].timestamp == 500
    assert len(processor.buffer) == 0


def test_flush_drops_short_tail(bus, chunks):
    processor = ChunkProcessor(bus, sample_rate=1000, chunk_ms=500, min_tail_ms=100)
    processor.reset(start_time_ms=0)
    processor.push(np.ones(50, dtype=np.float32))

    processor.flush()

    assert chunks == []


def test_invalid_duration_rejected(bus):
    with pytest.raises(ValueError):
        ChunkProcessor(bus, sample_rate=1000, chunk_ms=0)


def test_converter_mixes_stereo_to_mono():
    converter = AudioFormatConverter(target_rate=1000)
    stereo = np.array([16384, 0, 16384, 0], dtype=np.int16).tobytes()

    mono = converter.convert(stereo, source_rate=1000, source_channels=2)

    assert mono.dtype == np.float32
    np.testing.assert_allclose(mono, [0.25, 0.25])


def test_resample_changes_length():
    audio = np.zeros(4410, dtype=np.float32)

    assert len(resample(audio, 44100, 16000)) == 1600


def test_to_mono_averages_channels():
    frames = np.array([[0.2, 0.4], [1.0, 0.0]], dtype=np.float64)

    mono = AudioFormatConverter.to_mono(frames)

    assert mono.dtype == np.float32
    np.testing.assert_allclose(mono, [0.3, 0.5], rtol=1e-6)
    assert AudioFormatConverter.to_mono(np.array([1, 2], dtype=np.int16)).dtype == np.float32
