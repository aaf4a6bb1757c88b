from __future__ import annotations

import asyncio
from typing import Any

import pytest

from status_webhook.notifications.discord_webhook import PostOutcome
from status_webhook.prober import ProbeFailure, ProbeResult
from status_webhook.resolver import ResolvedEndpoint


class FakeChannel:
    """Records delete/post calls; hands out sequential message ids."""

    def __init__(self, *, post_ok: bool = True, delete_ok: bool = True, delay: float = 0.0) -> None:
        self.post_ok = post_ok
        self.delete_ok = delete_ok
        self.delay = delay
        self.calls: list[tuple[str, Any]] = []
        self.deleted: list[str] = []
        self.posted: list[dict[str, Any]] = []
        self._next_id = 100

    async def delete_message(self, message_id: str | None) -> bool:
        self.calls.append(("delete", message_id))
        if message_id:
            self.deleted.append(message_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.delete_ok

    async def post_message(self, payload: dict[str, Any]) -> PostOutcome:
        self.calls.append(("post", payload))
        self.posted.append(payload)
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.post_ok:
            return PostOutcome(success=False, status_code=500)
        self._next_id += 1
        return PostOutcome(success=True, status_code=200, message_id=str(self._next_id))


class FakeNetwork:
    """Scripted resolver/prober pair keyed by domain."""

    def __init__(self) -> None:
        self.endpoints: dict[str, ResolvedEndpoint | None] = {}
        self.results: dict[str, ProbeResult] = {}
        self.probe_calls: list[tuple[str, int]] = []

    def set(self, domain: str, endpoint: ResolvedEndpoint | None, result: ProbeResult | None = None) -> None:
        self.endpoints[domain] = endpoint
        if endpoint is not None and result is not None:
            self.results[endpoint.host] = result

    async def resolve(self, domain: str) -> ResolvedEndpoint | None:
        return self.endpoints.get(domain)

    async def probe(self, host: str, port: int) -> ProbeResult:
        self.probe_calls.append((host, port))
        return self.results.get(host, ProbeResult.unreachable(ProbeFailure.TIMEOUT, "timeout"))


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


def embed_description(payload: dict[str, Any]) -> str:
    return payload["embeds"][0]["description"]
