from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class MetricSample(BaseModel):
    """A single exposition line: metric name, label set and numeric value."""
    name: str
    help: str
    labels: Dict[str, str] = Field(default_factory=dict)
    value: float


class MetricSet(BaseModel):
    """
    The metrics produced by one collection.

    Repeated names with different label sets are per-device values. Metrics that do
    not apply are left out rather than added with a null value.
    """
    samples: List[MetricSample] = Field(default_factory=list)

    def add(self, name: str, help: str, value: Optional[float], labels: Optional[Dict[str, str]] = None) -> None:
        if value is None:
            return
        self.samples.append(MetricSample(name=name, help=help, labels=labels or {}, value=value))

    def names(self) -> List[str]:
        """Distinct metric names in first-seen order."""
        seen: Dict[str, None] = {}
        for sample in self.samples:
            seen.setdefault(sample.name, None)
        return list(seen)

    def get(self, name: str) -> List[MetricSample]:
        return [sample for sample in self.samples if sample.name == name]

    def value(self, name: str, **labels: str) -> Optional[float]:
        """Value of the first sample with this name whose labels include the given ones."""
        for sample in self.get(name):
            if all(sample.labels.get(key) == val for key, val in labels.items()):
                return sample.value
        return None

    def __contains__(self, name: str) -> bool:
        return any(sample.name == name for sample in self.samples)
