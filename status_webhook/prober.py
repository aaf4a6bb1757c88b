from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog


logger = structlog.get_logger(__name__)

PROBE_TIMEOUT_SECONDS = 5.0
UNKNOWN_VERSION = "Unknown"


class ProbeFailure(str, Enum):
    CONNECTION_ERROR = "connection_error"
    TIMEOUT = "timeout"
    RESOLUTION_FAILED = "resolution_failed"


@dataclass(frozen=True)
class ProbeResult:
    online: bool
    latency_ms: int | None = None
    reason: ProbeFailure | None = None
    detail: str | None = None

    @classmethod
    def reachable(cls, latency_ms: int) -> ProbeResult:
        return cls(online=True, latency_ms=max(0, int(latency_ms)))

    @classmethod
    def unreachable(cls, reason: ProbeFailure, detail: str | None = None) -> ProbeResult:
        return cls(online=False, reason=reason, detail=detail)

    def describe(self) -> str:
        if self.online:
            return f"reachable ({self.latency_ms}ms)"
        return self.detail or (self.reason.value if self.reason else "unreachable")

    def to_dict(self) -> dict[str, Any]:
        if self.online:
            return {
                "online": True,
                "latency": self.latency_ms,
                # No handshake is sent, so player counts and version are placeholders.
                "players": {"online": 0, "max": 0},
                "version": UNKNOWN_VERSION,
                "motd": "Server active (connection succeeded)",
            }
        return {
            "online": False,
            "reason": self.reason.value if self.reason else None,
            "error": self.describe(),
        }


async def probe(host: str, port: int, *, timeout_seconds: float = PROBE_TIMEOUT_SECONDS) -> ProbeResult:
    """
    Open a raw TCP connection to host:port and close it right away.

    Reachability is inferred from connection establishment only; no Minecraft
    handshake is sent. Every outcome is returned, nothing is raised.
    """
    logger.info("Probing server", host=host, port=port)
    t0 = time.perf_counter()
    try:
        _reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, int(port)),
            timeout=float(timeout_seconds),
        )
    except asyncio.TimeoutError:
        logger.info("Probe timed out", host=host, port=port, timeout_seconds=timeout_seconds)
        return ProbeResult.unreachable(
            ProbeFailure.TIMEOUT,
            f"Connection timed out ({timeout_seconds:g} seconds)",
        )
    except (OSError, ValueError) as exc:
        logger.info("Probe connection error", host=host, port=port, error=str(exc))
        return ProbeResult.unreachable(ProbeFailure.CONNECTION_ERROR, f"Connection error: {exc}")

    latency_ms = int((time.perf_counter() - t0) * 1000)
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    logger.info("Probe succeeded", host=host, port=port, latency_ms=latency_ms)
    return ProbeResult.reachable(latency_ms)
