"""Discord notification channel."""

from .discord_webhook import DiscordWebhook, PostOutcome, redact_webhook_url
from .embeds import build_status_payload

__all__ = ["DiscordWebhook", "PostOutcome", "build_status_payload", "redact_webhook_url"]
