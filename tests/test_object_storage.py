"""
tests/test_object_storage.py

Local and HTTP object storage backends.
"""

from __future__ import annotations

import pytest
import requests

from db.repositories.errors import ObjectStorageError
from db.repositories.storage import HttpObjectStorage, LocalObjectStorage


class FakeResponse:
    def __init__(self, status_code: int, content: bytes = b"") -> None:
        self.status_code = status_code
        self.content = content


class FakeSession:
    def __init__(self, outcomes: list) -> None:
        self.outcomes = list(outcomes)
        self.requests: list[dict] = []

    def get(self, url, headers=None, timeout=None):
        self.requests.append({"url": url, "headers": headers, "timeout": timeout})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _http(session: FakeSession, **kwargs) -> HttpObjectStorage:
    return HttpObjectStorage(
        "https://storage.example.com/",
        service_key="service-key",
        backoff_initial_seconds=0,
        session=session,
        **kwargs,
    )


class TestLocalObjectStorage:
    def test_reads_bucket_relative_file(self, tmp_path) -> None:
        target = tmp_path / "shop-imports" / "shop-1" / "vehicles.csv"
        target.parent.mkdir(parents=True)
        target.write_bytes(b"RO,Total\n1,10\n")

        storage = LocalObjectStorage(tmp_path)

        assert storage.download("shop-imports", "shop-1/vehicles.csv") == b"RO,Total\n1,10\n"
        assert storage.download("shop-imports", "/shop-1/vehicles.csv") == b"RO,Total\n1,10\n"

    def test_missing_file_raises(self, tmp_path) -> None:
        with pytest.raises(ObjectStorageError):
            LocalObjectStorage(tmp_path).download("shop-imports", "missing.csv")

    @pytest.mark.parametrize("path", ["", "   ", "../secrets.csv", "shop/../../etc/passwd"])
    def test_unsafe_paths_are_rejected(self, tmp_path, path: str) -> None:
        with pytest.raises(ObjectStorageError):
            LocalObjectStorage(tmp_path).download("shop-imports", path)


class TestHttpObjectStorage:
    def test_downloads_with_service_key(self) -> None:
        session = FakeSession([FakeResponse(200, b"data")])

        content = _http(session, timeout_seconds=12).download("shop-imports", "shop 1/vehicles.csv")

        assert content == b"data"
        request = session.requests[0]
        assert request["url"] == (
            "https://storage.example.com/storage/v1/object/shop-imports/shop%201/vehicles.csv"
        )
        assert request["headers"] == {"Authorization": "Bearer service-key", "apikey": "service-key"}
        assert request["timeout"] == 12

    def test_retries_retryable_status_then_succeeds(self) -> None:
        session = FakeSession([FakeResponse(503), requests.Timeout("slow"), FakeResponse(200, b"ok")])

        assert _http(session, max_retries=2).download("b", "p.csv") == b"ok"
        assert len(session.requests) == 3

    def test_gives_up_after_retries(self) -> None:
        session = FakeSession([FakeResponse(500), FakeResponse(502)])

        with pytest.raises(ObjectStorageError, match="after retries"):
            _http(session, max_retries=1).download("b", "p.csv")
        assert len(session.requests) == 2

    def test_client_error_is_not_retried(self) -> None:
        session = FakeSession([FakeResponse(404)])

        with pytest.raises(ObjectStorageError, match="HTTP 404"):
            _http(session).download("b", "p.csv")
        assert len(session.requests) == 1

    def test_non_transient_request_error_is_not_retried(self) -> None:
        session = FakeSession([requests.exceptions.InvalidURL("bad")])

        with pytest.raises(ObjectStorageError):
            _http(session).download("b", "p.csv")
        assert len(session.requests) == 1

    def test_no_key_sends_no_auth_headers(self) -> None:
        session = FakeSession([FakeResponse(200, b"")])

        HttpObjectStorage("https://storage.example.com", session=session).download("b", "p.csv")

        assert session.requests[0]["headers"] == {}

    def test_base_url_is_required(self) -> None:
        with pytest.raises(ValueError):
            HttpObjectStorage("  ")
