from __future__ import annotations

from collections.abc import MutableMapping
import os
from pathlib import Path
import tomllib
from typing import Any

from dotenv import dotenv_values
from pydantic import Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
import tomli_w

from runmerge.core.content import DEFAULT_CHUNK_SEPARATOR
from runmerge.core.paths.global_paths import GLOBAL_CONFIG_FILE, GLOBAL_ENV_FILE


def load_dotenv_values(
    env_path: Path | None = None,
    environ: MutableMapping[str, str] = os.environ,
) -> None:
    env_path = env_path or GLOBAL_ENV_FILE.path
    if not env_path.is_file() and not env_path.is_fifo():
        return

    env_vars = dotenv_values(env_path)
    for key, value in env_vars.items():
        if not value:
            continue
        environ.update({key: value})


class TomlFileSettingsSource(PydanticBaseSettingsSource):
    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self.toml_data = self._load_toml()

    def _load_toml(self) -> dict[str, Any]:
        file = GLOBAL_CONFIG_FILE.path
        try:
            with file.open("rb") as f:
                return tomllib.load(f)
        except FileNotFoundError:
            return {}
        except tomllib.TOMLDecodeError as e:
            raise RuntimeError(f"Invalid TOML in {file}: {e}") from e
        except OSError as e:
            raise RuntimeError(f"Cannot read {file}: {e}") from e

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        return self.toml_data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return self.toml_data


class MergeConfig(BaseSettings):
    chunk_separator: str = Field(
        default=DEFAULT_CHUNK_SEPARATOR,
        description="Inserted between non-empty string contents of a run.",
    )
    combine_auxiliary: bool = Field(
        default=True,
        description=(
            "Concatenate tool calls and sum usage across a run. "
            "When false, every field but content comes from the first message."
        ),
    )
    indent: int | None = Field(
        default=2, description="JSON indentation used by the command line."
    )

    model_config = SettingsConfigDict(
        env_prefix="RUNMERGE_", case_sensitive=False, extra="ignore"
    )

    @field_validator("indent", mode="after")
    @classmethod
    def _non_negative_indent(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("indent must be zero or positive")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Define the priority of settings sources.

        The .env file is loaded into os.environ by `load_dotenv_values`, so
        only RUNMERGE_* variables reach the settings through `env_settings`.
        """
        return (
            init_settings,
            env_settings,
            TomlFileSettingsSource(settings_cls),
            file_secret_settings,
        )

    @classmethod
    def load(cls, **overrides: Any) -> MergeConfig:
        return cls(**(overrides or {}))

    @classmethod
    def create_default(cls) -> dict[str, Any]:
        return cls.model_construct().model_dump(mode="json", exclude_none=True)

    @classmethod
    def save_updates(cls, updates: dict[str, Any]) -> Path:
        file = GLOBAL_CONFIG_FILE.path
        current: dict[str, Any] = {}
        if file.exists():
            with file.open("rb") as f:
                current = tomllib.load(f)
        current.update(updates)

        file.parent.mkdir(parents=True, exist_ok=True)
        with file.open("wb") as f:
            tomli_w.dump(current, f)
        return file
