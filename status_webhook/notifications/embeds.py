from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from status_webhook.config import BrandingConfig
from status_webhook.resolver import ResolvedEndpoint


COLOR_ONLINE = 65280
COLOR_OFFLINE = 16711680

UNRESOLVED_HOST = "Unresolved"


def _field(name: str, value: str, *, inline: bool) -> dict[str, Any]:
    return {"name": name, "value": value, "inline": inline}


def _spacer() -> dict[str, Any]:
    # Discord rejects empty names/values; a single space renders as a blank row.
    return _field(" ", " ", inline=False)


def status_description(online: bool) -> str:
    if online:
        return "🟢 **SERVER ONLINE** 🟢"
    return "🔴 **SERVER OFFLINE** 🔴"


def build_status_payload(
    *,
    online: bool,
    endpoint: ResolvedEndpoint | None,
    branding: BrandingConfig,
    error: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build the webhook document for one status notice (single embed)."""
    ts = (now or datetime.now(timezone.utc)).isoformat()
    host = endpoint.host if endpoint is not None else UNRESOLVED_HOST

    fields = [
        _spacer(),
        _field("IP ADDRESS", host, inline=True),
        _field("VERSION", branding.version_label, inline=True),
        _spacer(),
        _field("VOICE CHAT - Modrinth", f"[PLASMO VOICE]({branding.voice_chat_modrinth_url})", inline=True),
        _field("VOICE CHAT - CurseForge", f"[PLASMO VOICE]({branding.voice_chat_curseforge_url})", inline=True),
        _spacer(),
        _field("WHITELIST", branding.whitelist_note, inline=False),
        _spacer(),
    ]
    if not online and error:
        fields.insert(3, _field("REASON", error, inline=False))

    embed = {
        "title": branding.title,
        "color": COLOR_ONLINE if online else COLOR_OFFLINE,
        "description": status_description(online),
        "fields": fields,
        "timestamp": ts,
        "footer": {"text": branding.footer},
    }
    return {
        "username": branding.username,
        "avatar_url": branding.avatar_url,
        "embeds": [embed],
    }
