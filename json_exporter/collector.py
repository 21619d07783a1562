"""Prometheus gauges built from walked JSON values using prometheus_client."""
from typing import Any, Dict, List, Sequence, Set
from prometheus_client import Counter, Gauge, Histogram, CollectorRegistry
import logging
import re

from json_exporter.walker import Receiver, walk_json

logger = logging.getLogger(__name__)

HELP_TEXT = "Retrieved value"


_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_:]")


def exposition_name(name: str) -> str:
    """
    Name as rendered in the text format once non-legacy characters are escaped.

    prometheus_client accepts UTF-8 names but writes ``a.b`` as ``a_b``, so two
    distinct names can end up as one family on the wire.
    """
    escaped = _INVALID_NAME_CHARS.sub("_", name)
    if escaped[:1].isdigit():
        escaped = "_" + escaped[1:]
    return escaped


def index_label(depth: int) -> str:
    """Label name carrying the position within the array at ``depth``."""
    return f"array_{depth}_index"


class GaugeCollector(Receiver):
    """Registers one gauge per flattened name and sets its labeled values."""

    def __init__(self, registry: CollectorRegistry):
        self.registry = registry

        # Gauges created during this pass, keyed by flattened name
        self.gauges: Dict[str, Gauge] = {}

        # Label names per gauge, fixed when the gauge is created
        self.label_names: Dict[str, List[str]] = {}

        # Escaped exposition name -> flattened name that claimed it
        self.exposed: Dict[str, str] = {}

        # Names refused by prometheus_client or colliding once escaped
        self.rejected: Set[str] = set()

    def receive(self, name: str, value: float, indices: Sequence[int]):
        """Record ``value`` under the labels derived from ``indices``."""
        if name in self.rejected:
            return

        gauge = self.gauges.get(name)
        if gauge is None:
            gauge = self._register_gauge(name, len(indices))
            if gauge is None:
                return

        label_names = self.label_names[name]
        if len(label_names) != len(indices):
            logger.warning(
                f"Gauge '{name}' has labels {label_names} but got "
                f"{len(indices)} array indices, dropping value"
            )
            return

        if not label_names:
            gauge.set(value)
            return

        labels = {index_label(depth): str(index) for depth, index in enumerate(indices)}
        gauge.labels(**labels).set(value)

    def _register_gauge(self, name: str, depth: int):
        """Create and register the gauge for ``name``, or None if refused."""
        label_names: List[str] = [index_label(d) for d in range(depth)]

        escaped = exposition_name(name)
        owner = self.exposed.get(escaped)
        if owner is not None:
            logger.warning(
                f"Gauge '{name}' would be exposed as '{escaped}', already used by "
                f"'{owner}', dropping its values"
            )
            self.rejected.add(name)
            return None

        try:
            gauge = Gauge(
                name,
                HELP_TEXT,
                label_names,
                registry=self.registry
            )
        except ValueError as e:
            logger.warning(f"Cannot register gauge '{name}': {e}")
            self.rejected.add(name)
            return None

        self.gauges[name] = gauge
        self.label_names[name] = label_names
        self.exposed[escaped] = name
        logger.debug(f"Registered gauge {name!r} with labels {label_names}")
        return gauge


def probe_registry(prefix: str, data: Any) -> CollectorRegistry:
    """Walk ``data`` into a fresh registry holding only its gauges."""
    registry = CollectorRegistry()
    collector = GaugeCollector(registry)
    walk_json(prefix, data, [], collector)
    logger.debug(f"Probe produced {len(collector.gauges)} gauges")
    return registry


class ProbeMetrics:
    """Self-monitoring metrics for the exporter's probes."""

    def __init__(self, registry=None, prefix="json_exporter_"):
        if registry is None:
            registry = CollectorRegistry()

        self.probes_total = Counter(
            f"{prefix}probes_total",
            "Total number of probes handled",
            ["result"],
            registry=registry
        )

        self.probe_duration_seconds = Histogram(
            f"{prefix}probe_duration_seconds",
            "Duration of each probe in seconds",
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=registry
        )

        self.probe_samples = Gauge(
            f"{prefix}probe_samples",
            "Number of samples produced by the last successful probe",
            registry=registry
        )

    def record_probe(self, result: str, duration: float):
        """Record a finished probe."""
        self.probes_total.labels(result=result).inc()
        self.probe_duration_seconds.observe(duration)

    def set_probe_samples(self, count: int):
        """Set sample count of the last probe."""
        self.probe_samples.set(count)
