"""Environment-backed configuration loader for the HuaweiCloud translator."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

from dotenv import dotenv_values

from .errors import TranslatorConfigurationError

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}

# Credential names used by older deployments of the forum plugin.
LEGACY_ALIASES = {
    "SENSITIVE_DOMAIN_NAME": "HUAWEICLOUD_DOMAIN_NAME",
    "SENSITIVE_NAME": "HUAWEICLOUD_USERNAME",
    "SENSITIVE_PASSWORD": "HUAWEICLOUD_PASSWORD",
}

REQUIRED_SETTINGS = (
    "HUAWEICLOUD_PROJECT_NAME",
    "HUAWEICLOUD_PROJECT_ID",
    "HUAWEICLOUD_DOMAIN_NAME",
    "HUAWEICLOUD_USERNAME",
    "HUAWEICLOUD_PASSWORD",
)


@dataclass(frozen=True)
class TranslatorConfig:
    """Schema describing all supported configuration options."""

    HUAWEICLOUD_PROJECT_NAME: str | None = None
    HUAWEICLOUD_PROJECT_ID: str | None = None
    HUAWEICLOUD_DOMAIN_NAME: str | None = None
    HUAWEICLOUD_USERNAME: str | None = None
    HUAWEICLOUD_PASSWORD: str | None = None
    TRANSLATOR_DEBUG_INFO: bool = False

    def __repr__(self) -> str:
        masked = "***" if self.HUAWEICLOUD_PASSWORD else None
        return (
            f"TranslatorConfig(HUAWEICLOUD_PROJECT_NAME={self.HUAWEICLOUD_PROJECT_NAME!r}, "
            f"HUAWEICLOUD_PROJECT_ID={self.HUAWEICLOUD_PROJECT_ID!r}, "
            f"HUAWEICLOUD_DOMAIN_NAME={self.HUAWEICLOUD_DOMAIN_NAME!r}, "
            f"HUAWEICLOUD_USERNAME={self.HUAWEICLOUD_USERNAME!r}, "
            f"HUAWEICLOUD_PASSWORD={masked!r}, "
            f"TRANSLATOR_DEBUG_INFO={self.TRANSLATOR_DEBUG_INFO!r})"
        )


def _allowed_keys() -> set[str]:
    return {field.name for field in fields(TranslatorConfig)}


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise TranslatorConfigurationError(
        f"Configuration validation errors detected:\n- {name}: expected a boolean, got {value!r}."
    )


def _merge_env_sources(target: dict[str, Any], *, app_dir: Path) -> None:
    """Merge .env and process environment variables into the target mapping."""

    allowed = _allowed_keys()

    def merge_values(values: Mapping[str, str]) -> None:
        for key, value in sorted(values.items()):
            if value is None:
                continue
            key = LEGACY_ALIASES.get(key, key)
            if key not in allowed:
                continue
            target[key] = value

    dotenv_path = app_dir / ".env"
    if dotenv_path.exists():
        dotenv_content = dotenv_values(dotenv_path)
        merge_values({k: v for k, v in dotenv_content.items() if v is not None})

    environment = {k: v for k, v in os.environ.items() if isinstance(v, str)}
    # Legacy names first so the current names win when both are set.
    merge_values({k: v for k, v in environment.items() if k in LEGACY_ALIASES})
    merge_values({k: v for k, v in environment.items() if k not in LEGACY_ALIASES})


def _validate_provider_settings(settings: TranslatorConfig) -> None:
    missing = [name for name in REQUIRED_SETTINGS if not getattr(settings, name)]
    if missing:
        bullet_list = "\n".join(f"- {name} must be provided." for name in missing)
        raise TranslatorConfigurationError(
            "Configuration validation errors detected:\n" + bullet_list
        )


def build_settings(values: Mapping[str, Any], *, validate: bool = True) -> TranslatorConfig:
    """Build a validated settings object from raw string values."""

    data: dict[str, Any] = {}
    for key in _allowed_keys():
        if key not in values:
            continue
        raw_value = values[key]
        if key == "TRANSLATOR_DEBUG_INFO":
            data[key] = _parse_bool(key, raw_value)
        else:
            text = str(raw_value).strip()
            data[key] = text or None

    settings = TranslatorConfig(**data)
    if validate:
        _validate_provider_settings(settings)
    return settings


@lru_cache(maxsize=1)
def _load_settings(app_dir: Path | None = None) -> TranslatorConfig:
    """Load configuration layers once and cache the immutable instance."""

    base_dir = app_dir or Path.cwd()
    combined: dict[str, Any] = {}
    _merge_env_sources(combined, app_dir=base_dir)

    if not combined:
        raise TranslatorConfigurationError(
            "No configuration sources were found. Provide settings via a .env "
            "file or environment variables."
        )
    return build_settings(combined)


def get_settings(app_dir: Path | None = None) -> TranslatorConfig:
    """Return the validated settings."""

    return _load_settings(app_dir=app_dir)


def reset_settings_cache() -> None:
    _load_settings.cache_clear()
