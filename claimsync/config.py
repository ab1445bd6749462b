"""
Configuration management for claimsync.

Process settings are loaded from a YAML file with environment variable
overrides. Each configured mapper carries a flat string-to-string config map
(the shape identity brokers persist mapper settings in); MapperConfig is the
typed read-only view over one of those maps.
"""

import os
import re
from collections.abc import Iterable, Mapping
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from claimsync.mappers.filters import RegexEntryFilter, SubstringEntryFilter
    from claimsync.mappers.formatter import NameFormatter

DEFAULT_CONFIG_PATH = "/etc/claimsync/config.yaml"

# Multi-valued config entries are persisted as one string joined with this token.
MULTIVALUED_SEPARATOR = "##"


def yaml_config_settings_source() -> dict[str, Any]:
    """Load configuration from YAML file."""
    config_path = Path(os.environ.get("CLAIMSYNC_CONFIG_PATH", DEFAULT_CONFIG_PATH))
    if config_path.exists():
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    return {}


class MapperConfigError(ValueError):
    """Raised when a mapper configuration cannot be used."""


def split_multivalued(raw: str | None) -> list[str]:
    """Split a delimiter-joined config value, dropping empty items."""
    if not raw:
        return []
    return [item for item in raw.split(MULTIVALUED_SEPARATOR) if item]


def join_multivalued(values: Iterable[str]) -> str:
    """Join values into a single config string.

    Raises:
        MapperConfigError: if a value contains the separator token.
    """
    items = list(values)
    for item in items:
        if MULTIVALUED_SEPARATOR in item:
            raise MapperConfigError(
                f"Value {item!r} must not contain the separator {MULTIVALUED_SEPARATOR!r}"
            )
    return MULTIVALUED_SEPARATOR.join(items)


def parse_bool(raw: Any) -> bool:
    """Lenient boolean parsing: only a case-insensitive 'true' is true."""
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return False
    return str(raw).strip().lower() == "true"


# --- Mapper Configuration ---


class SyncMode(StrEnum):
    """When a mapper runs relative to the brokered login."""

    IMPORT = "import"  # only when the user is first imported
    FORCE = "force"  # on import and on every subsequent login


class MapperConfig(BaseModel):
    """Typed read-only view over a mapper's flat config map.

    Build with from_map(); keys absent from the raw map fall back to the
    mapper's declared defaults, then to the field defaults below.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    claim: str = Field(default="", description="Claim name, dot-addressed")
    target_attribute: str = Field(default="", description="User attribute to write")
    overwrite_attribute: bool = Field(default=False)
    ignore_entries: list[str] = Field(
        default_factory=list, description="Regexes; matching claim entries are dropped"
    )
    search_entries: list[str] = Field(
        default_factory=list, description="Regexes; only matching claim entries are kept"
    )
    ignore_groups: list[str] = Field(
        default_factory=list, description="Regexes; matching group names are dropped"
    )
    contains_text: str = Field(
        default="", description="Substring filter for claim entries and current groups"
    )
    create_groups: bool = Field(default=False)
    trim_prefix: str = Field(default="", description="Regex removed once from each entry")
    trim_whitespace: bool = Field(default=False)
    to_lowercase: bool = Field(default=False)

    @field_validator(
        "overwrite_attribute", "create_groups", "trim_whitespace", "to_lowercase", mode="before"
    )
    @classmethod
    def _parse_bool(cls, value: Any) -> bool:
        return parse_bool(value)

    @field_validator("ignore_entries", "search_entries", "ignore_groups", mode="before")
    @classmethod
    def _split_patterns(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = split_multivalued(value)
        patterns = [str(v) for v in value if v]
        for pattern in patterns:
            _compile(pattern)
        return patterns

    @field_validator("trim_prefix", mode="before")
    @classmethod
    def _check_prefix(cls, value: Any) -> str:
        prefix = "" if value is None else str(value)
        _compile(prefix)
        return prefix

    @classmethod
    def from_map(
        cls,
        raw: Mapping[str, str] | None,
        defaults: Mapping[str, Any] | None = None,
    ) -> "MapperConfig":
        """Parse a flat config map.

        Raises:
            MapperConfigError: on malformed patterns or conflicting filter settings.
        """
        merged: dict[str, Any] = dict(defaults or {})
        merged.update(raw or {})
        try:
            config = cls.model_validate(merged)
        except ValidationError as e:
            raise MapperConfigError(str(e)) from e

        if config.contains_text and (config.search_entries or config.ignore_entries):
            raise MapperConfigError(
                "contains_text cannot be combined with search_entries/ignore_entries"
            )
        return config

    def formatter(self) -> "NameFormatter":
        """Build the name formatter configured by this map."""
        from claimsync.mappers.formatter import NameFormatter

        return NameFormatter(
            trim_prefix=self.trim_prefix,
            trim_whitespace=self.trim_whitespace,
            to_lowercase=self.to_lowercase,
        )

    def entry_filter(self) -> "RegexEntryFilter | SubstringEntryFilter":
        """Build the claim entry filter configured by this map.

        The substring strategy is used when contains_text is set, the regex
        strategy otherwise.
        """
        from claimsync.mappers.filters import RegexEntryFilter, SubstringEntryFilter

        if self.contains_text:
            return SubstringEntryFilter(self.contains_text)
        return RegexEntryFilter(include=self.search_entries, exclude=self.ignore_entries)


def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValueError(f"Invalid regular expression {pattern!r}: {e}") from e


class MapperModel(BaseModel):
    """A configured mapper instance bound to one identity provider."""

    name: str = Field(description="Unique mapper name")
    identity_provider_alias: str = Field(description="Identity provider this mapper runs for")
    mapper_type: str = Field(description="Mapper type id, e.g. 'oidc-group-idp-mapper'")
    sync_mode: SyncMode = Field(default=SyncMode.FORCE)
    config: dict[str, str] = Field(default_factory=dict)

    @field_validator("config", mode="before")
    @classmethod
    def _stringify_config(cls, value: Any) -> dict[str, str]:
        # YAML yields native bools and lists; persist them the way brokers do.
        if not value:
            return {}
        result: dict[str, str] = {}
        for key, item in dict(value).items():
            if isinstance(item, bool):
                result[key] = "true" if item else "false"
            elif isinstance(item, list | tuple):
                result[key] = join_multivalued(str(v) for v in item)
            else:
                result[key] = "" if item is None else str(item)
        return result


# --- Main Settings ---


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CLAIMSYNC_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = Field(default="claimsync")
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=True, description="JSON logging in production")

    mappers: list[MapperModel] = Field(
        default_factory=list,
        description="Mappers run for brokered logins, in order",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Customize settings sources: env vars override YAML config."""
        return (
            init_settings,
            env_settings,
            yaml_config_settings_source,
            dotenv_settings,
            file_secret_settings,
        )


# Global settings instance
settings = Settings()
