from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog


logger = structlog.get_logger(__name__)


@dataclass
class NotificationRecord:
    message_id: str | None = None
    last_server_state: bool | None = None
    last_update: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "lastMessageId": self.message_id,
            "lastServerState": self.last_server_state,
            "lastUpdate": self.last_update,
        }

    @classmethod
    def from_payload(cls, raw: Any) -> NotificationRecord:
        if not isinstance(raw, dict):
            raise ValueError("state file must contain a JSON object")
        message_id = raw.get("lastMessageId")
        state = raw.get("lastServerState")
        last_update = raw.get("lastUpdate")
        return cls(
            message_id=str(message_id) if message_id not in (None, "") else None,
            last_server_state=state if isinstance(state, bool) else None,
            last_update=str(last_update) if last_update else None,
        )


def format_state(state: bool | None) -> str:
    if state is None:
        return "UNKNOWN"
    return "ONLINE" if state else "OFFLINE"


def _write_state_atomic(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f"{path.name}.tmp")
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(path)


class StateStore:
    """Durable {message id, last observed state} record backed by a JSON file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> NotificationRecord:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.info("State file not found, creating a new one", path=str(self.path))
            record = NotificationRecord()
            self.save(record)
            return record
        except Exception as exc:
            logger.warning("Failed to read state file", path=str(self.path), error=str(exc))
            return NotificationRecord()

        try:
            record = NotificationRecord.from_payload(raw)
        except ValueError as exc:
            logger.warning("Ignoring malformed state file", path=str(self.path), error=str(exc))
            return NotificationRecord()

        logger.info(
            "State loaded",
            path=str(self.path),
            message_id=record.message_id,
            server_state=format_state(record.last_server_state),
        )
        return record

    def save(self, record: NotificationRecord) -> bool:
        """Overwrite the whole file. Returns False instead of raising on I/O errors."""
        record.last_update = datetime.now(timezone.utc).isoformat()
        try:
            _write_state_atomic(self.path, record.to_payload())
        except OSError as exc:
            logger.error("Failed to save state", path=str(self.path), error=str(exc))
            return False
        logger.info(
            "State saved",
            message_id=record.message_id,
            server_state=format_state(record.last_server_state),
        )
        return True

    def reset(self) -> NotificationRecord:
        record = NotificationRecord()
        self.save(record)
        logger.info("State reset", path=str(self.path))
        return record
