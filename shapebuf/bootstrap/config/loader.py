import os
from pathlib import Path

from shapebuf.core.errors import Error


CONFIG_ENV = "SHAPEBUF_CONFIG"


def get_configfile() -> Path | None:
    """
    Path of the optional YAML settings file, taken from SHAPEBUF_CONFIG.

    No file is required: without the variable, settings come from the
    environment and the defaults alone.
    """
    raw = os.getenv(CONFIG_ENV)
    if not raw:
        return None

    file = Path(raw)
    if not file.is_file():
        raise Error.custom(
            f"[config] Configuration file not found: '{file}'.\n"
            f"  - Fix or unset the {CONFIG_ENV} environment variable."
        )

    return file
