"""Data structures for metric series points."""
from dataclasses import asdict, dataclass
from typing import Dict, List

from prometheus_client import CollectorRegistry


@dataclass
class SeriesPoint:
    """A single metric data point with labels."""
    name: str
    labels: Dict[str, str]
    value: float

    def label_key(self) -> str:
        """Generate a stable key from sorted labels."""
        items = sorted(self.labels.items())
        return ",".join(f"{k}={v}" for k, v in items)

    def to_dict(self) -> Dict:
        return asdict(self)


def gather(registry: CollectorRegistry) -> List[SeriesPoint]:
    """List every sample held by ``registry``, ordered by name then labels."""
    points = [
        SeriesPoint(name=sample.name, labels=dict(sample.labels), value=sample.value)
        for family in registry.collect()
        for sample in family.samples
    ]
    return sorted(points, key=lambda p: (p.name, p.label_key()))
