from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog


logger = structlog.get_logger(__name__)

SRV_SERVICE_PREFIX = "_minecraft._tcp."


@dataclass(frozen=True)
class ResolvedEndpoint:
    host: str
    port: int

    def to_dict(self) -> dict[str, object]:
        return {"host": self.host, "port": self.port}


def srv_name(domain: str) -> str:
    return f"{SRV_SERVICE_PREFIX}{domain}"


def _srv_query_sync(*, name: str, timeout_seconds: float) -> list[tuple[str, int]]:
    # dnspython is imported lazily, the same way the DNS health checks do it.
    import dns.resolver  # type: ignore

    r = dns.resolver.Resolver(configure=True)
    r.timeout = max(0.5, float(timeout_seconds))
    r.lifetime = max(0.5, float(timeout_seconds))
    try:
        ans = r.resolve(name, "SRV")
    except (dns.resolver.NoAnswer, dns.resolver.NXDOMAIN):
        return []
    out: list[tuple[str, int]] = []
    for rr in ans:
        target = str(rr.target or "").strip().rstrip(".")
        out.append((target, int(rr.port)))
    return out


async def resolve_srv(domain: str, *, timeout_seconds: float = 5.0) -> ResolvedEndpoint | None:
    """
    Resolve the Minecraft SRV record of `domain`.

    Returns the first record in answer order, or None when there is no record or
    the lookup fails. Nothing is cached.
    """
    cleaned = str(domain or "").strip().lower().rstrip(".")
    if not cleaned:
        logger.warning("SRV resolution skipped for empty domain")
        return None

    name = srv_name(cleaned)
    logger.info("Resolving SRV record", name=name)
    try:
        records = await asyncio.to_thread(_srv_query_sync, name=name, timeout_seconds=float(timeout_seconds))
    except Exception as exc:
        logger.warning("SRV resolution failed", name=name, error=f"{type(exc).__name__}: {exc}")
        return None

    for host, port in records:
        if not host or not (1 <= int(port) <= 65535):
            logger.warning("Skipping unusable SRV record", name=name, host=host, port=port)
            continue
        logger.info("SRV record found", name=name, host=host, port=port)
        return ResolvedEndpoint(host=host, port=int(port))

    logger.info("No SRV records found", name=name)
    return None
