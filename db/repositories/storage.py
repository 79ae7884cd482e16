"""
Object storage backends used to fetch uploaded shop history exports.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

import requests

from db.repositories.errors import ObjectStorageError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class ObjectStorageBackend(Protocol):
    """
    Read-only object storage used by the shop boost pipeline.
    """

    def download(self, bucket: str, path: str) -> bytes:
        ...


def _safe_relative_path(path: str) -> Path:
    relative = Path(path.strip().lstrip("/"))
    if not relative.parts or any(part == ".." for part in relative.parts):
        raise ObjectStorageError(f"Invalid object path: {path!r}")
    return relative


class LocalObjectStorage:
    """
    Filesystem-backed storage laid out as ``<root>/<bucket>/<path>``.
    """

    def __init__(self, root_dir: str | Path = "data/storage") -> None:
        self._root_dir = Path(root_dir)

    def download(self, bucket: str, path: str) -> bytes:
        target = self._root_dir / bucket / _safe_relative_path(path)
        try:
            return target.read_bytes()
        except OSError as exc:
            raise ObjectStorageError(f"Failed to read {bucket}/{path} from local storage.") from exc


class HttpObjectStorage:
    """
    Supabase-compatible storage API client.

    Objects are fetched from ``{base_url}/storage/v1/object/{bucket}/{path}``
    with the service key sent as bearer token. Timeouts, connection errors
    and retryable status codes are retried with exponential backoff.
    """

    def __init__(
        self,
        base_url: str,
        *,
        service_key: str | None = None,
        timeout_seconds: float = 30.0,
        max_retries: int = 2,
        backoff_initial_seconds: float = 0.5,
        backoff_multiplier: float = 2.0,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("base_url is required for HTTP object storage.")
        self._base_url = base_url.strip().rstrip("/")
        self._service_key = service_key
        self._timeout_seconds = timeout_seconds
        self._max_retries = max(0, max_retries)
        self._backoff_initial_seconds = backoff_initial_seconds
        self._backoff_multiplier = backoff_multiplier
        self._session = session or requests.Session()

    def object_url(self, bucket: str, path: str) -> str:
        relative = _safe_relative_path(path).as_posix()
        return f"{self._base_url}/storage/v1/object/{quote(bucket)}/{quote(relative)}"

    def _headers(self) -> dict[str, str]:
        if not self._service_key:
            return {}
        return {
            "Authorization": f"Bearer {self._service_key}",
            "apikey": self._service_key,
        }

    def download(self, bucket: str, path: str) -> bytes:
        url = self.object_url(bucket, path)

        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                response = self._session.get(
                    url,
                    headers=self._headers(),
                    timeout=self._timeout_seconds,
                )
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc
            except requests.RequestException as exc:
                raise ObjectStorageError(f"Request for {bucket}/{path} failed.") from exc
            else:
                if response.status_code < 400:
                    return response.content
                if response.status_code not in RETRYABLE_STATUS_CODES:
                    logger.error(
                        "Object storage download failed bucket=%s path=%s status=%s",
                        bucket,
                        path,
                        response.status_code,
                    )
                    raise ObjectStorageError(
                        f"Download of {bucket}/{path} failed with HTTP {response.status_code}."
                    )
                last_error = ObjectStorageError(f"Retryable HTTP status code: {response.status_code}")

            if attempt >= self._max_retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            logger.warning(
                "Object storage retry bucket=%s path=%s attempt=%s/%s wait_seconds=%.2f",
                bucket,
                path,
                attempt + 1,
                self._max_retries,
                backoff_seconds,
            )
            time.sleep(backoff_seconds)

        raise ObjectStorageError(f"Download of {bucket}/{path} failed after retries.") from last_error
