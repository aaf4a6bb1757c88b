from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from status_webhook import __version__
from status_webhook.config import AppConfig
from status_webhook.notifications.discord_webhook import DiscordWebhook, redact_webhook_url
from status_webhook.notifier import StatusNotifier
from status_webhook.prober import probe
from status_webhook.resolver import resolve_srv
from status_webhook.scheduler import MonitorScheduler
from status_webhook.state_store import StateStore, format_state


logger = structlog.get_logger(__name__)

PERIODIC_JOB_ID = "status-check"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_notifier(config: AppConfig, client: httpx.AsyncClient) -> StatusNotifier:
    channel = DiscordWebhook(
        config.discord_webhook_url,
        client,
        debug=config.debug,
        timeout_seconds=config.webhook_timeout_seconds,
    )

    async def _resolve(domain: str):
        return await resolve_srv(domain, timeout_seconds=config.dns_timeout_seconds)

    async def _probe(host: str, port: int):
        return await probe(host, port, timeout_seconds=config.probe_timeout_seconds)

    return StatusNotifier(
        config.minecraft_domain,
        StateStore(config.state_path),
        channel,
        config.branding,
        resolve=_resolve,
        probe=_probe,
    )


def _notifier(request: Request) -> StatusNotifier:
    return request.app.state.notifier


def create_app(
    config: AppConfig,
    *,
    notifier: StatusNotifier | None = None,
    start_monitor: bool = True,
) -> FastAPI:
    """Build the HTTP app. The lifespan owns the httpx client and the scheduler."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        client: httpx.AsyncClient | None = None
        scheduler: MonitorScheduler | None = None
        if notifier is None:
            client = httpx.AsyncClient()
            app.state.notifier = build_notifier(config, client)
        else:
            app.state.notifier = notifier

        logger.info(
            "Status webhook starting",
            port=config.port,
            domain=config.minecraft_domain,
            interval_seconds=config.update_interval_seconds,
            webhook=redact_webhook_url(config.discord_webhook_url),
            server_state=format_state(app.state.notifier.current_state),
        )

        if start_monitor:
            scheduler = MonitorScheduler()
            scheduler.start()
            scheduler.add_interval_job(
                PERIODIC_JOB_ID,
                app.state.notifier.run_periodic,
                seconds=config.update_interval_seconds,
                run_immediately=True,
                description=f"Status check for {config.minecraft_domain}",
            )
        app.state.scheduler = scheduler

        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.stop()
            if client is not None:
                await client.aclose()
            logger.info("Status webhook stopped")

    app = FastAPI(title="Minecraft Status Webhook", version=__version__, lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        logger.info("Health check requested")
        body: dict[str, Any] = {
            "success": True,
            "message": "Webhook running",
            "domain_configurado": config.minecraft_domain,
            "intervalo_actualizacion": f"{config.update_interval_seconds:g} segundos",
            "timestamp": _now_iso(),
        }
        scheduler = getattr(request.app.state, "scheduler", None)
        if scheduler is not None:
            job = scheduler.get_job_status(PERIODIC_JOB_ID)
            body["next_check"] = job["next_run"] if job else None
        return body

    @app.get("/state")
    async def state(request: Request) -> dict[str, Any]:
        record = _notifier(request).record
        return {"domain": config.minecraft_domain, **record.to_payload()}

    @app.get("/status/{domain}")
    async def status(domain: str, request: Request) -> JSONResponse:
        logger.info("Status check requested", domain=domain)
        try:
            result = await _notifier(request).check(domain)
            if result.endpoint is None:
                return JSONResponse(
                    status_code=500,
                    content={
                        "success": False,
                        "message": "Could not resolve the SRV record",
                        "domain": domain,
                        "online": False,
                        "timestamp": _now_iso(),
                    },
                )
            return JSONResponse(
                content={
                    "success": True,
                    "domain": domain,
                    "server": result.endpoint.to_dict(),
                    **result.probe.to_dict(),
                    "timestamp": _now_iso(),
                }
            )
        except Exception as e:
            logger.exception("Status check failed", domain=domain)
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "message": "Internal server error",
                    "error": str(e),
                    "online": False,
                    "timestamp": _now_iso(),
                },
            )

    @app.get("/discord/{domain}")
    async def discord(domain: str, request: Request) -> JSONResponse:
        logger.info("Discord notification requested", domain=domain)
        try:
            outcome = await _notifier(request).notify_now(domain)
            discord_result = outcome.post.to_dict() if outcome.post else {"success": False}
            if outcome.endpoint is None:
                return JSONResponse(
                    content={
                        "success": False,
                        "message": "Could not resolve the SRV record",
                        "domain": domain,
                        "discord": discord_result,
                        "timestamp": _now_iso(),
                    }
                )
            return JSONResponse(
                content={
                    "success": True,
                    "message": "Status checked and sent to Discord",
                    "domain": domain,
                    "server": outcome.endpoint.to_dict(),
                    "status": outcome.probe.to_dict(),
                    "discord": discord_result,
                    "timestamp": _now_iso(),
                }
            )
        except Exception as e:
            logger.exception("Discord notification failed", domain=domain)
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "message": "Internal server error",
                    "error": str(e),
                    "timestamp": _now_iso(),
                },
            )

    return app
