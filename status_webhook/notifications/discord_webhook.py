from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx
import structlog


logger = structlog.get_logger(__name__)

DISCORD_WEBHOOK_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class PostOutcome:
    success: bool
    status_code: int | None = None
    message_id: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.status_code is not None:
            out["statusCode"] = self.status_code
        if self.message_id is not None:
            out["messageId"] = self.message_id
        if self.error:
            out["error"] = self.error
        return out


def redact_webhook_url(url: str) -> str:
    # .../webhooks/<id>/<token> -> .../webhooks/<id>/<redacted>
    base, sep, _token = str(url or "").rstrip("/").rpartition("/")
    if not sep or "/webhooks/" not in base:
        return "<redacted>"
    return f"{base}/<redacted>"


class DiscordWebhook:
    """Posts and deletes status messages through a Discord webhook.

    Both operations are best-effort: failures are logged and reported as
    values, never raised. Nothing is retried.
    """

    def __init__(
        self,
        webhook_url: str,
        client: httpx.AsyncClient,
        *,
        debug: bool = False,
        timeout_seconds: float = DISCORD_WEBHOOK_TIMEOUT_SECONDS,
    ) -> None:
        # Query parameters (e.g. thread_id) are dropped; message URLs need the bare path.
        self.webhook_url = str(webhook_url).split("?", 1)[0].rstrip("/")
        self.client = client
        self.debug = debug
        self.timeout_seconds = float(timeout_seconds)

    def _redact(self, text: str) -> str:
        token = self.webhook_url.rpartition("/")[2]
        if token:
            text = text.replace(token, "<redacted>")
        return text

    def message_url(self, message_id: str) -> str:
        return f"{self.webhook_url}/messages/{message_id}"

    async def delete_message(self, message_id: str | None) -> bool:
        """Delete a previously posted message. An absent id is a no-op success."""
        if not message_id:
            return True

        logger.info("Deleting previous message", message_id=message_id)
        try:
            resp = await self.client.delete(self.message_url(message_id), timeout=self.timeout_seconds)
        except Exception as e:
            logger.warning(
                "Failed to delete message",
                message_id=message_id,
                error=self._redact(f"{type(e).__name__}: {e}"),
            )
            return False

        if resp.status_code in (200, 204):
            logger.info("Previous message deleted", message_id=message_id)
            return True
        if resp.status_code == 404:
            logger.info("Previous message already gone", message_id=message_id)
            return True

        logger.warning("Could not delete message", message_id=message_id, status_code=resp.status_code)
        if self.debug:
            logger.debug("Discord delete response", body=resp.text[:500])
        return False

    async def post_message(self, payload: dict[str, Any]) -> PostOutcome:
        """Post a new message and return its id (requires ?wait=true)."""
        logger.info("Creating new Discord message")
        if self.debug:
            logger.debug("Discord payload", payload=json.dumps(payload, ensure_ascii=False))

        try:
            resp = await self.client.post(
                self.webhook_url,
                params={"wait": "true"},
                json=payload,
                timeout=self.timeout_seconds,
            )
        except Exception as e:
            msg = self._redact(f"{type(e).__name__}: {e}")
            logger.warning("Failed to send Discord message", error=msg)
            return PostOutcome(success=False, error=msg)

        if self.debug:
            logger.debug("Discord response", status_code=resp.status_code)

        if not (200 <= resp.status_code < 300):
            logger.warning("Discord rejected message", status_code=resp.status_code)
            if self.debug:
                logger.debug("Discord error body", body=resp.text[:500])
            return PostOutcome(success=False, status_code=resp.status_code)

        message_id = None
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("id"):
            message_id = str(data["id"])
            logger.info("Message created", message_id=message_id)
        else:
            logger.info("Message sent without an id in the response", status_code=resp.status_code)
        return PostOutcome(success=True, status_code=resp.status_code, message_id=message_id)
