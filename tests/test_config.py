from transcript_relay.config import DEFAULT_CONFIG, apply_settings, load_config


def test_defaults_without_file(tmp_path):
    config = load_config(str(tmp_path / "missing.txt"), environ={})

    assert config["stt"]["mode"] == "api"
    assert config["slack"]["webhook_url"] is None
    assert config["session"]["max_pending_chunks"] == 20


def test_file_values_are_applied(tmp_path):
    path = tmp_path / "User_config.txt"
    path.write_text(
        "# comment\n"
        "OPENAI_API_KEY=sk-test\n"
        "SLACK_WEBHOOK_URL=https://hooks.slack.com/services/T/B/X\n"
        "CHUNK_DURATION_MS=5000\n"
        "TRANSLATION_ENABLED=false\n"
        "DRAIN_TIMEOUT_SEC=2.5\n",
        encoding="utf-8",
    )

    config = load_config(str(path), environ={})

    assert config["translation"]["api_key"] == "sk-test"
    assert config["stt"]["api"]["api_key"] == "sk-test"
    assert config["slack"]["webhook_url"] == "https://hooks.slack.com/services/T/B/X"
    assert config["chunk"]["duration_ms"] == 5000
    assert config["translation"]["enabled"] is False
    assert config["session"]["drain_timeout_sec"] == 2.5


def test_environment_overrides_file(tmp_path):
    path = tmp_path / "User_config.txt"
    path.write_text("STT_MODE=local\n", encoding="utf-8")

    config = load_config(str(path), environ={"STT_MODE": "api", "LOG_LEVEL": "DEBUG"})

    assert config["stt"]["mode"] == "api"
    assert config["logging"]["level"] == "DEBUG"


def test_invalid_values_keep_defaults():
    config = {"chunk": {"duration_ms": 10000}, "translation": {"enabled": True}}

    apply_settings(config, {"CHUNK_DURATION_MS": "ten", "TRANSLATION_ENABLED": "maybe", "UNKNOWN": "x"})

    assert config["chunk"]["duration_ms"] == 10000
    assert config["translation"]["enabled"] is True


def test_defaults_are_not_mutated():
    config = load_config(None, environ={"CHUNK_DURATION_MS": "1234"})

    assert config["chunk"]["duration_ms"] == 1234
    assert DEFAULT_CONFIG["chunk"]["duration_ms"] == 10000
