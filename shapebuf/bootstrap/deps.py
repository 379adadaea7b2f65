import json
import logging
from functools import lru_cache

from pydantic import ValidationError

from shapebuf.bootstrap.config.settings import ShapeBufSettings
from shapebuf.core.buffer.capture import Serializer
from shapebuf.core.buffer.handles import Owned
from shapebuf.core.errors import Error
from shapebuf.core.helpers.utils import setup_logging
from shapebuf.core.ports.serializer import Serialize


@lru_cache
def get_settings() -> ShapeBufSettings:
    try:
        return ShapeBufSettings()
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            msg.append(f"  {'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}")
        raise Error.custom("\n".join(msg)) from ex


def get_serializer() -> Serializer:
    settings = get_settings()
    return Serializer(check_ranges=settings.check_ranges)


def buffer(value: Serialize) -> Owned:
    """Capture `value` with the adapter the settings describe."""
    return Owned.buffer(value, get_serializer())


def configure() -> ShapeBufSettings:
    settings = get_settings()
    setup_logging(settings.log_level)
    logging.getLogger("shapebuf.bootstrap").debug(
        f"Configured with check_ranges={settings.check_ranges}"
    )
    return settings
