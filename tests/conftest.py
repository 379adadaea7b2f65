import pytest

from shapebuf.bootstrap.deps import get_settings
from shapebuf.core.buffer.capture import Serializer
from tests.fake.recording import RecordingSerializer


@pytest.fixture
def recorder():
    return RecordingSerializer()


@pytest.fixture
def capture():
    return Serializer()


@pytest.fixture
def lenient_capture():
    return Serializer(check_ranges=False)


@pytest.fixture
def clean_settings(monkeypatch):
    for name in ("SHAPEBUF_CONFIG", "SHAPEBUF_CHECK_RANGES", "SHAPEBUF_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
