from __future__ import annotations
"""Adapter tuning settings and their persistence."""

from dataclasses import dataclass
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Per-request ceiling for both ListObjects and DeleteObjects.
MAX_BATCH_SIZE = 1000


@dataclass(frozen=True)
class AdapterSettings:
    """Tunables shared by every filesystem built from the same settings."""

    page_size: int = MAX_BATCH_SIZE
    delete_batch_size: int = MAX_BATCH_SIZE
    list_timeout: float = 0.0


def _batch_value(value: object, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number <= 0:
        return default
    return min(number, MAX_BATCH_SIZE)


def _timeout_value(value: object) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return AdapterSettings.list_timeout
    return max(number, 0.0)


class SettingsStorage:
    """JSON-backed persistence for :class:`AdapterSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".pys3fs_settings.json"
        self._path = Path(storage_path)

    def load(self) -> AdapterSettings:
        if not self._path.exists():
            return AdapterSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self._path, exc)
            return AdapterSettings()
        if not isinstance(data, dict):
            return AdapterSettings()
        return AdapterSettings(
            page_size=_batch_value(data.get("page_size"), AdapterSettings.page_size),
            delete_batch_size=_batch_value(
                data.get("delete_batch_size"), AdapterSettings.delete_batch_size
            ),
            list_timeout=_timeout_value(data.get("list_timeout", AdapterSettings.list_timeout)),
        )

    def save(self, settings: AdapterSettings) -> None:
        payload = {
            "page_size": min(max(int(settings.page_size), 1), MAX_BATCH_SIZE),
            "delete_batch_size": min(max(int(settings.delete_batch_size), 1), MAX_BATCH_SIZE),
            "list_timeout": max(float(settings.list_timeout), 0.0),
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            # Persist best-effort.
            logger.warning("Could not write settings to %s: %s", self._path, exc)
