"""OpenTelemetry exporter – pushes snapshot gauges via OTLP/HTTP."""

from __future__ import annotations

import logging
import platform
from typing import Any

from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource, SERVICE_NAME

from .. import __version__
from ..config import OtelExporterConfig
from ..models import HostSnapshot
from .base import BaseExporter

logger = logging.getLogger(__name__)

METER_NAME = "host_snapshot"


def otlp_reader(config: OtelExporterConfig) -> MetricReader:
    """Build the periodic OTLP/HTTP reader for *config*."""
    exporter_kwargs: dict[str, Any] = {
        "endpoint": f"{config.endpoint.rstrip('/')}/v1/metrics",
    }
    if config.headers:
        exporter_kwargs["headers"] = config.headers
    return PeriodicExportingMetricReader(
        OTLPMetricExporter(**exporter_kwargs),
        export_interval_millis=config.export_interval_ms,
    )


class OtelExporter(BaseExporter):
    """Records each snapshot sample as a gauge observation.

    Every :class:`~host_snapshot.models.MetricSample` becomes one ``set`` on
    the gauge of the same name, with the sample labels as attributes, so one
    gauge carries the total and every core (``cpu`` label) or every process
    (``pid`` label). :meth:`shutdown` flushes the observations through
    *reader*, which defaults to a periodic OTLP/HTTP reader for the configured
    endpoint.
    """

    def __init__(self, config: OtelExporterConfig, reader: MetricReader | None = None) -> None:
        self._config = config
        resource = Resource.create({
            SERVICE_NAME: config.service_name,
            "service.version": __version__,
            "host.name": platform.node(),
        })
        self._reader = reader or otlp_reader(config)
        self._provider = MeterProvider(resource=resource, metric_readers=[self._reader])
        self._meter = self._provider.get_meter(METER_NAME, __version__)
        self._gauges: dict[str, Any] = {}
        self._closed = False

        if reader is None:
            logger.info(
                "OtelExporter initialized → %s (service=%s)",
                config.endpoint,
                config.service_name,
            )

    def _gauge(self, name: str, unit: str, description: str) -> Any:
        if name not in self._gauges:
            self._gauges[name] = self._meter.create_gauge(name=name, unit=unit, description=description)
        return self._gauges[name]

    def export(self, snapshot: HostSnapshot) -> None:
        samples = snapshot.to_samples()
        for s in samples:
            self._gauge(s.name, s.unit, s.description).set(s.value, attributes=s.labels)
        logger.debug("Recorded %d samples from snapshot at %.3f", len(samples), snapshot.timestamp)

    def shutdown(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._provider.force_flush()
        self._provider.shutdown()
        logger.info("OtelExporter shut down")
