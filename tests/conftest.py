from __future__ import annotations

import json

import pytest
import requests

from lanry_editor.utils.config import Settings


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str | None = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload if payload is not None else {})

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise json.JSONDecodeError("Expecting value", self.text, 0)
        return self._payload


class FakeSession:
    """Records POSTs and answers from a queue of responses (or raises)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[dict] = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_key="anon-key",
        chapters_dir=tmp_path / "Chapters",
        request_timeout=5.0,
    )


@pytest.fixture
def login_response() -> FakeResponse:
    return FakeResponse(200, {
        "access_token": "tok-123",
        "token_type": "bearer",
        "expires_in": 3600,
        "refresh_token": "ref-456",
    })


@pytest.fixture
def connection_error() -> Exception:
    return requests.ConnectionError("connection refused")
