import copy
import logging
import os
from typing import Any, Dict, Optional

from dotenv import dotenv_values

DEFAULT_CONFIG: Dict[str, Any] = {
    "audio": {
        "source": "loopback",  # "loopback" | "file"
        "device_index": None,
        "sample_rate": 16000,
        "file_path": None,
        "realtime": True,
    },
    "chunk": {
        "duration_ms": 10000,
        "min_tail_ms": 500,
    },
    "stt": {
        "mode": "api",  # "api" | "local"
        "model": "small",
        "device": "cuda",
        "compute_type": "float16",
        "language": None,
        "silence_rms_threshold": 0.005,
        "api": {
            "provider": "openai",
            "model": "whisper-1",
            "api_key_env": "OPENAI_API_KEY",
        },
    },
    "translation": {
        "enabled": True,
        "api_key": None,
        "base_url": None,
        "llm_translation_model": "gpt-4o-mini",
        "target_language": "Japanese",
    },
    "slack": {
        "webhook_url": None,
    },
    "session": {
        "drain_timeout_sec": 5.0,
        "max_pending_chunks": 20,
    },
    "logging": {
        "level": "INFO",
    },
}

# KEY -> (section, option, converter)
_KEY_MAP = {
    "OPENAI_API_KEY": ("translation", "api_key", str),
    "SLACK_WEBHOOK_URL": ("slack", "webhook_url", str),
    "AUDIO_SOURCE": ("audio", "source", str),
    "AUDIO_FILE": ("audio", "file_path", str),
    "AUDIO_DEVICE_INDEX": ("audio", "device_index", int),
    "CHUNK_DURATION_MS": ("chunk", "duration_ms", int),
    "STT_MODE": ("stt", "mode", str),
    "STT_MODEL": ("stt", "model", str),
    "STT_LANGUAGE": ("stt", "language", str),
    "LLM_TRANSLATION_MODEL": ("translation", "llm_translation_model", str),
    "TARGET_TRANSLATION_LANGUAGE": ("translation", "target_language", str),
    "TRANSLATION_ENABLED": ("translation", "enabled", "bool"),
    "DRAIN_TIMEOUT_SEC": ("session", "drain_timeout_sec", float),
    "MAX_PENDING_CHUNKS": ("session", "max_pending_chunks", int),
    "LOG_LEVEL": ("logging", "level", str),
}

logger = logging.getLogger("Relay")


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(value)


def apply_settings(config: Dict[str, Any], settings: Dict[str, Optional[str]]) -> Dict[str, Any]:
    """
    Applies KEY=VALUE settings onto a nested config dict in place.
    Unknown keys are ignored; invalid values keep the current value.
    """
    for key, value in settings.items():
        if key not in _KEY_MAP or value is None:
            continue
        value = value.strip()
        if not value:
            continue

        section, option, converter = _KEY_MAP[key]
        try:
            if converter == "bool":
                converted = _parse_bool(value)
            else:
                converted = converter(value)
        except ValueError:
            logger.warning(f"Invalid value for {key}: '{value}', keeping {config[section][option]!r}")
            continue

        config[section][option] = converted
    return config


def load_config(path: Optional[str] = "User_config.txt", environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Builds the runtime config: defaults, then the KEY=VALUE file at `path`
    (if it exists), then matching process environment variables.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if path and os.path.exists(path):
        logger.info(f"Loading config from {path}")
        apply_settings(config, dotenv_values(path))

    environ = os.environ if environ is None else environ
    apply_settings(config, {key: environ.get(key) for key in _KEY_MAP})

    # Transcription and translation share the OpenAI key
    if config["translation"]["api_key"]:
        config["stt"]["api"]["api_key"] = config["translation"]["api_key"]

    return config
