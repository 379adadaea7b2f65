from typing import Annotated, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource, YamlConfigSettingsSource

from shapebuf.bootstrap.config.loader import get_configfile


class ShapeBufSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SHAPEBUF_",
        extra="ignore"
    )

    check_ranges: Annotated[
        bool,
        Field(
            description=(
                "Validate scalars in the capture adapters built by `get_serializer()` and `buffer()`.\n"
                "When enabled, an integer pushed through a fixed-width call must fit that\n"
                "width and a char must be a single code point; a violation raises an error\n"
                "instead of storing a value that a strict decoder would reject later."
            ),
            default=True
        )
    ]

    log_level: Annotated[
        Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        Field(
            description=(
                "Logging verbosity applied by `configure()`.\n"
                "DEBUG traces map staging violations, lifetime refusals and enum\n"
                "payload mismatches."
            ),
            default="WARNING"
        )
    ]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        configfile = get_configfile()
        if configfile is None:
            return init_settings, env_settings

        # Priority: explicit arguments > ENV > YAML file
        return init_settings, env_settings, YamlConfigSettingsSource(settings_cls, yaml_file=configfile)
