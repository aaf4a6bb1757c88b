"""Status-transition notifier.

Resolves the monitored domain, probes it, and when the observed ONLINE/OFFLINE
state differs from the persisted one, replaces the live Discord message:
delete the old message first, then post the new one, then persist the new id.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

import structlog

from status_webhook.config import BrandingConfig
from status_webhook.notifications.discord_webhook import PostOutcome
from status_webhook.notifications.embeds import build_status_payload
from status_webhook.prober import ProbeFailure, ProbeResult, probe as tcp_probe
from status_webhook.resolver import ResolvedEndpoint, resolve_srv
from status_webhook.state_store import NotificationRecord, StateStore, format_state


logger = structlog.get_logger(__name__)

RESOLUTION_FAILED_DETAIL = "Could not resolve the SRV record"
MAX_ADHOC_RECORDS = 64

Resolver = Callable[[str], Awaitable[ResolvedEndpoint | None]]
Prober = Callable[[str, int], Awaitable[ProbeResult]]


def _normalize_domain(domain: str) -> str:
    return str(domain or "").strip().lower().rstrip(".")


class NotificationChannel(Protocol):
    async def delete_message(self, message_id: str | None) -> bool: ...

    async def post_message(self, payload: dict[str, Any]) -> PostOutcome: ...


@dataclass(frozen=True)
class StatusCheck:
    domain: str
    endpoint: ResolvedEndpoint | None
    probe: ProbeResult

    @property
    def online(self) -> bool:
        return self.probe.online

    @property
    def resolved(self) -> bool:
        return self.endpoint is not None


@dataclass(frozen=True)
class CycleOutcome:
    domain: str
    endpoint: ResolvedEndpoint | None
    probe: ProbeResult
    observed: bool
    changed: bool
    notified: bool
    post: PostOutcome | None = None


class StatusNotifier:
    """Owns the notification record of the monitored domain.

    The record is loaded once at construction and only mutated here. Any other
    domain gets its own in-memory record so it never overwrites the monitored
    domain's message id or state. At most MAX_ADHOC_RECORDS of those are kept;
    the least recently used one is dropped first, and its message is then no
    longer replaced by later notices for that domain.
    """

    def __init__(
        self,
        domain: str,
        store: StateStore,
        channel: NotificationChannel,
        branding: BrandingConfig | None = None,
        *,
        resolve: Resolver | None = None,
        probe: Prober | None = None,
        max_adhoc_records: int = MAX_ADHOC_RECORDS,
    ) -> None:
        self.domain = _normalize_domain(domain)
        self.store = store
        self.channel = channel
        self.branding = branding or BrandingConfig()
        self._resolve = resolve or resolve_srv
        self._probe = probe or tcp_probe
        self.record: NotificationRecord = store.load()
        self._adhoc_records: OrderedDict[str, NotificationRecord] = OrderedDict()
        self._max_adhoc_records = max(1, int(max_adhoc_records))
        self._lock = asyncio.Lock()
        self._first_periodic_pending = True

    @property
    def current_state(self) -> bool | None:
        return self.record.last_server_state

    def _is_monitored(self, domain: str) -> bool:
        return _normalize_domain(domain) == self.domain

    def _record_for(self, domain: str) -> tuple[NotificationRecord, bool]:
        """Return (record, persisted) for `domain`."""
        if self._is_monitored(domain):
            return self.record, True

        key = _normalize_domain(domain)
        record = self._adhoc_records.get(key)
        if record is None:
            record = NotificationRecord()
            self._adhoc_records[key] = record
            while len(self._adhoc_records) > self._max_adhoc_records:
                evicted, _ = self._adhoc_records.popitem(last=False)
                logger.info("Dropped ad-hoc record", domain=evicted)
        else:
            self._adhoc_records.move_to_end(key)
        return record, False

    async def check(self, domain: str) -> StatusCheck:
        """Resolve and probe `domain` without touching any notification state."""
        endpoint = await self._resolve(domain)
        if endpoint is None:
            return StatusCheck(
                domain=domain,
                endpoint=None,
                probe=ProbeResult.unreachable(ProbeFailure.RESOLUTION_FAILED, RESOLUTION_FAILED_DETAIL),
            )
        result = await self._probe(endpoint.host, endpoint.port)
        return StatusCheck(domain=domain, endpoint=endpoint, probe=result)

    async def run_cycle(self, domain: str | None = None, force_notify: bool = False) -> CycleOutcome:
        """One resolve -> probe -> decide -> notify pass.

        Defaults to the monitored domain; other domains use their ad-hoc record.
        """
        domain = domain or self.domain
        status = await self.check(domain)
        observed = status.online

        async with self._lock:
            record, persist = self._record_for(domain)
            previous = record.last_server_state
            if observed == previous and not force_notify:
                logger.info("No change, not sending a message", domain=domain, state=format_state(observed))
                return CycleOutcome(
                    domain=domain,
                    endpoint=status.endpoint,
                    probe=status.probe,
                    observed=observed,
                    changed=False,
                    notified=False,
                )

            logger.info(
                "State changed",
                domain=domain,
                previous=format_state(previous),
                current=format_state(observed),
                forced=force_notify,
                reason=None if status.resolved else RESOLUTION_FAILED_DETAIL,
            )
            record.last_server_state = observed
            if persist:
                self.store.save(record)
            post = await self._replace_message(record, status, persist=persist)

        return CycleOutcome(
            domain=domain,
            endpoint=status.endpoint,
            probe=status.probe,
            observed=observed,
            changed=observed != previous,
            notified=True,
            post=post,
        )

    async def run_periodic(self) -> CycleOutcome | None:
        """Scheduler entry point. The first call after start always notifies."""
        force = self._first_periodic_pending
        self._first_periodic_pending = False
        try:
            return await self.run_cycle(self.domain, force_notify=force)
        except Exception:
            logger.exception("Periodic status check failed", domain=self.domain)
            return None

    async def notify_now(self, domain: str) -> CycleOutcome:
        """On-demand check that always deletes and re-posts, regardless of change."""
        status = await self.check(domain)
        observed = status.online

        async with self._lock:
            record, persist = self._record_for(domain)
            previous = record.last_server_state
            record.last_server_state = observed
            if persist:
                self.store.save(record)
            post = await self._replace_message(record, status, persist=persist)

        return CycleOutcome(
            domain=domain,
            endpoint=status.endpoint,
            probe=status.probe,
            observed=observed,
            changed=observed != previous,
            notified=True,
            post=post,
        )

    async def _replace_message(self, record: NotificationRecord, status: StatusCheck, *, persist: bool) -> PostOutcome:
        # Delete-before-post keeps at most one live message even when the post fails.
        if record.message_id:
            await self.channel.delete_message(record.message_id)
            record.message_id = None
            if persist:
                self.store.save(record)

        payload = build_status_payload(
            online=status.online,
            endpoint=status.endpoint,
            branding=self.branding,
            error=None if status.online else status.probe.describe(),
        )
        post = await self.channel.post_message(payload)
        if post.success and post.message_id:
            record.message_id = post.message_id
        if persist:
            self.store.save(record)

        if post.success:
            logger.info("Discord message sent", domain=status.domain, state=format_state(status.online))
        else:
            logger.warning("Discord message failed", domain=status.domain, status_code=post.status_code)
        return post
