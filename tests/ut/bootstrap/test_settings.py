import logging

import pytest
import yaml

from shapebuf.bootstrap.config.loader import get_configfile
from shapebuf.bootstrap.config.settings import ShapeBufSettings
from shapebuf.bootstrap.deps import buffer, configure, get_serializer, get_settings
from shapebuf.core.buffer.handles import Owned
from shapebuf.core.errors import Error
from shapebuf.core.models.value import U8


class WideByte:
    def serialize(self, serializer):
        return serializer.serialize_u8(300)


@pytest.mark.ut
def test_defaults(clean_settings):
    settings = get_settings()

    assert settings.check_ranges is True
    assert settings.log_level == "WARNING"
    assert get_configfile() is None


@pytest.mark.ut
def test_settings_are_cached(clean_settings):
    assert get_settings() is get_settings()


@pytest.mark.ut
def test_environment_overrides(clean_settings, monkeypatch):
    monkeypatch.setenv("SHAPEBUF_CHECK_RANGES", "false")
    monkeypatch.setenv("SHAPEBUF_LOG_LEVEL", "DEBUG")

    settings = ShapeBufSettings()

    assert settings.check_ranges is False
    assert settings.log_level == "DEBUG"


@pytest.mark.ut
def test_yaml_file(clean_settings, monkeypatch, tmp_path):
    file = tmp_path / "shapebuf.yaml"
    file.write_text(yaml.safe_dump({"check_ranges": False, "log_level": "INFO"}))
    monkeypatch.setenv("SHAPEBUF_CONFIG", str(file))

    settings = ShapeBufSettings()

    assert get_configfile() == file
    assert settings.check_ranges is False
    assert settings.log_level == "INFO"


@pytest.mark.ut
def test_environment_wins_over_yaml(clean_settings, monkeypatch, tmp_path):
    file = tmp_path / "shapebuf.yaml"
    file.write_text(yaml.safe_dump({"log_level": "INFO"}))
    monkeypatch.setenv("SHAPEBUF_CONFIG", str(file))
    monkeypatch.setenv("SHAPEBUF_LOG_LEVEL", "ERROR")

    assert ShapeBufSettings().log_level == "ERROR"


@pytest.mark.ut
def test_missing_config_file(clean_settings, monkeypatch, tmp_path):
    monkeypatch.setenv("SHAPEBUF_CONFIG", str(tmp_path / "nope.yaml"))

    with pytest.raises(Error, match="Configuration file not found"):
        get_configfile()


@pytest.mark.ut
def test_validation_errors_are_reported_as_one_message(clean_settings, monkeypatch):
    monkeypatch.setenv("SHAPEBUF_LOG_LEVEL", "LOUD")

    with pytest.raises(Error) as exc:
        get_settings()

    lines = str(exc.value).splitlines()
    assert lines[0] == "Configuration validation failed:"
    assert lines[1].startswith("  log_level:")


@pytest.mark.ut
def test_serializer_follows_settings(clean_settings, monkeypatch):
    monkeypatch.setenv("SHAPEBUF_CHECK_RANGES", "0")

    assert get_serializer().serialize_u8(300).value.v == 300


@pytest.mark.ut
def test_configure_applies_log_level(clean_settings, monkeypatch):
    monkeypatch.setenv("SHAPEBUF_LOG_LEVEL", "ERROR")
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    settings = configure()

    assert settings.log_level == "ERROR"
    assert calls[0]["level"] == "ERROR"


@pytest.mark.ut
def test_buffer_follows_settings(clean_settings, monkeypatch):
    monkeypatch.setenv("SHAPEBUF_CHECK_RANGES", "false")

    assert buffer(WideByte()) == Owned(U8(300))
    assert Owned.buffer(WideByte(), get_serializer()) == Owned(U8(300))
    with pytest.raises(Error, match="300 is out of range for u8"):
        Owned.buffer(WideByte())


@pytest.mark.ut
def test_buffer_checks_ranges_by_default(clean_settings):
    with pytest.raises(Error, match="300 is out of range for u8"):
        buffer(WideByte())
