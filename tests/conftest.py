"""Shared fixtures for the dispatcher and API tests."""

from __future__ import annotations

from typing import Callable, Optional

import httpx
import orjson
import pytest

from inbox_cron.utils.config import Settings
from inbox_cron.utils.schemas import DispatchResult, TaskRecord


def make_settings(**overrides) -> Settings:
    """Settings isolated from any local .env file."""
    values = {
        "NOTION_API_TOKEN": "secret_test",
        "IDE_INBOX_DB_ID": "db-123",
        "DISPATCH_DELAY_MS": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeSubmitter:
    """Records submitted titles; fails any title listed in `fail`."""

    def __init__(self, fail: tuple[str, ...] = ()) -> None:
        self.fail = set(fail)
        self.submitted: list[str] = []

    async def submit(self, record: TaskRecord) -> DispatchResult:
        self.submitted.append(record.title)
        if record.title in self.fail:
            return DispatchResult.failed(record.title, "Notion API error: 400 bad request")
        return DispatchResult.ok(record.title, f"page-{len(self.submitted)}")


class FakeQueue:
    """In-memory stand-in for RedisTaskQueue."""

    def __init__(self, raw: Optional[bytes] = None, error: Optional[Exception] = None) -> None:
        self.raw = raw
        self.error = error
        self.reads = 0

    async def read_pending(self) -> Optional[bytes]:
        self.reads += 1
        if self.error is not None:
            raise self.error
        return self.raw


class NotionStub:
    """httpx.MockTransport handler that records requests and replays responses."""

    def __init__(self, responder: Optional[Callable[[httpx.Request, int], httpx.Response]] = None) -> None:
        self.requests: list[httpx.Request] = []
        self.responder = responder or (
            lambda request, n: httpx.Response(200, json={"object": "page", "id": f"page-{n}"})
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request, len(self.requests))

    def bodies(self) -> list[dict]:
        return [orjson.loads(r.content) for r in self.requests]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def notion() -> NotionStub:
    return NotionStub()
