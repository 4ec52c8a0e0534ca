"""Local file exporter – writes each snapshot to its own JSON document."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from ..config import LocalExporterConfig
from ..models import HostSnapshot
from .base import BaseExporter

logger = logging.getLogger(__name__)


class LocalExporter(BaseExporter):
    """Writes snapshots as ``snapshot-<UTC timestamp>.json`` inside *output_dir*."""

    def __init__(self, config: LocalExporterConfig) -> None:
        self._config = config
        self._output_dir = Path(config.output_dir)
        self._output_dir.mkdir(parents=True, exist_ok=True)
        self.written: list[Path] = []
        logger.info("LocalExporter initialized → %s", self._output_dir)

    def export(self, snapshot: HostSnapshot) -> None:
        stamp = datetime.fromtimestamp(snapshot.timestamp, tz=timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        filepath = self._output_dir / f"snapshot-{stamp}.json"
        with open(filepath, "w", encoding="utf-8") as fh:
            json.dump(snapshot.to_dict(), fh, indent=2)
        self.written.append(filepath)
        logger.info("Snapshot written to %s", filepath)

    def shutdown(self) -> None:
        logger.info("LocalExporter shut down")
