"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_ALLOWED_STORAGE_BACKENDS = {"local", "http"}
_ALLOWED_LLM_ADAPTERS = {"openai", "mock"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_choice_env(name: str, default: str, allowed: set[str]) -> str:
    value = _get_str_env(name, default).lower()
    if value not in allowed:
        raise RuntimeError(
            f"{name} '{value}' is not valid. Allowed values: {sorted(allowed)}."
        )
    return value


@dataclass(frozen=True)
class ShopBoostSettings:
    """
    Runtime settings for the shop boost pipeline.
    """

    storage_bucket: str = "shop-imports"
    import_row_batch_size: int = 500
    download_workers: int = 3


@dataclass(frozen=True)
class ObjectStorageSettings:
    """
    Object storage backend selection and connection settings.
    """

    backend: str = "local"
    local_root: str = "data/storage"
    base_url: str | None = None
    service_key: str | None = None
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class LLMSettings:
    """
    Completion service settings.
    """

    adapter: str = "openai"
    model: str = "gpt-4.1-mini"
    temperature: float = 0.2
    max_tokens: int = 4096
    api_key: str | None = None
    base_url: str | None = None


@lru_cache(maxsize=1)
def get_shop_boost_settings() -> ShopBoostSettings:
    """
    Return cached shop boost settings from environment variables.
    """

    return ShopBoostSettings(
        storage_bucket=_get_str_env("SHOP_BOOST_STORAGE_BUCKET", "shop-imports"),
        import_row_batch_size=max(1, _get_int_env("SHOP_BOOST_IMPORT_ROW_BATCH", 500)),
        download_workers=max(1, _get_int_env("SHOP_BOOST_DOWNLOAD_WORKERS", 3)),
    )


@lru_cache(maxsize=1)
def get_object_storage_settings() -> ObjectStorageSettings:
    """
    Return cached object storage settings from environment variables.
    """

    return ObjectStorageSettings(
        backend=_get_choice_env("OBJECT_STORAGE_BACKEND", "local", _ALLOWED_STORAGE_BACKENDS),
        local_root=_get_str_env("OBJECT_STORAGE_LOCAL_ROOT", "data/storage"),
        base_url=_get_optional_str_env("OBJECT_STORAGE_URL"),
        service_key=_get_optional_str_env("OBJECT_STORAGE_SERVICE_KEY"),
        timeout_seconds=max(1.0, _get_float_env("OBJECT_STORAGE_TIMEOUT_SECONDS", 30.0)),
    )


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """
    Return cached completion service settings from environment variables.
    """

    return LLMSettings(
        adapter=_get_choice_env("LLM_ADAPTER", "openai", _ALLOWED_LLM_ADAPTERS),
        model=_get_str_env("LLM_MODEL", "gpt-4.1-mini"),
        temperature=min(2.0, max(0.0, _get_float_env("LLM_TEMPERATURE", 0.2))),
        max_tokens=max(1, _get_int_env("LLM_MAX_TOKENS", 4096)),
        api_key=_get_optional_str_env("LLM_API_KEY") or _get_optional_str_env("OPENAI_API_KEY"),
        base_url=_get_optional_str_env("LLM_BASE_URL"),
    )
