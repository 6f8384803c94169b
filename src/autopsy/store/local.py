"""
Local file-backed store

Keeps the in-memory store's behaviour and mirrors its state to a single JSON
file after every mutation, so separate processes (e.g. successive CLI runs)
share alerts, incidents and services without an external database.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from ..models import Alert, Incident, Service, utcnow
from .base import StoreError
from .memory import MemoryStore

logger = logging.getLogger(__name__)

FILE_FORMAT_VERSION = 1


class LocalFileStore(MemoryStore):
    """MemoryStore persisted to a JSON document on disk"""

    def __init__(self, path: str, clock: Callable[[], datetime] = utcnow):
        super().__init__(clock=clock)
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        """Load persisted state, starting empty if the file does not exist"""
        if not self.path.exists():
            logger.debug(f"No store file at {self.path}, starting empty")
            return

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)

            alerts = [Alert.model_validate(item) for item in data.get("alerts", [])]
            incidents = [
                Incident.model_validate(item) for item in data.get("incidents", [])
            ]
            services = [
                Service.model_validate(item) for item in data.get("services", [])
            ]
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise StoreError(f"Failed to load store file {self.path}: {e}") from e

        self._alerts = {alert.id: alert for alert in alerts}
        self._incidents = {incident.id: incident for incident in incidents}
        self._services = {service.name: service for service in services}
        self._sequences = {
            "alert": max(self._alerts, default=0),
            "incident": max(self._incidents, default=0),
            "service": max((s.id for s in services), default=0),
        }
        self._sequences.update(data.get("sequences", {}))

        logger.info(
            f"Loaded {len(alerts)} alerts, {len(incidents)} incidents and "
            f"{len(services)} services from {self.path}"
        )

    def _snapshot(self) -> dict[str, Any]:
        return {
            "version": FILE_FORMAT_VERSION,
            "last_updated": utcnow().isoformat(),
            "sequences": dict(self._sequences),
            "alerts": [alert.to_dict() for alert in self._alerts.values()],
            "incidents": [incident.to_dict() for incident in self._incidents.values()],
            "services": [service.to_dict() for service in self._services.values()],
        }

    def _on_change(self) -> None:
        """Write the full state through a temp file and swap it in"""
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._snapshot(), f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except OSError as e:
            raise StoreError(f"Failed to write store file {self.path}: {e}") from e
