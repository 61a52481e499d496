from typing import Iterator

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily

from src.entities.metric import MetricSet


class MetricSetCollector:
    """prometheus_client collector exposing one precomputed MetricSet."""

    def __init__(self, metric_set: MetricSet):
        self.metric_set = metric_set

    def collect(self) -> Iterator[GaugeMetricFamily]:
        for name in self.metric_set.names():
            samples = self.metric_set.get(name)
            label_names = list(samples[0].labels)
            family = GaugeMetricFamily(name, samples[0].help, labels=label_names)
            for sample in samples:
                family.add_metric([sample.labels.get(label, "") for label in label_names], sample.value)
            yield family


class PrometheusRenderer:
    content_type = CONTENT_TYPE_LATEST

    @staticmethod
    def render(metric_set: MetricSet) -> bytes:
        """Render a metric set in the Prometheus text exposition format."""
        # A registry per render: values are scrape-scoped, nothing is kept between scrapes
        registry = CollectorRegistry()
        registry.register(MetricSetCollector(metric_set))
        return generate_latest(registry)
