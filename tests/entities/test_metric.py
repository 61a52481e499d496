"""
Tests for MetricSet.
"""
from src.entities.metric import MetricSet


class TestMetricSet:
    def test_add_skips_missing_values(self):
        metrics = MetricSet()

        metrics.add("hw_gpu_power_draw_watts", "Power draw", None, {"gpu_index": "0"})

        assert metrics.samples == []
        assert "hw_gpu_power_draw_watts" not in metrics

    def test_zero_is_kept(self):
        metrics = MetricSet()

        metrics.add("hw_gpu_count", "GPUs", 0)

        assert metrics.value("hw_gpu_count") == 0

    def test_names_in_first_seen_order(self):
        metrics = MetricSet()
        metrics.add("b", "B", 1, {"i": "0"})
        metrics.add("a", "A", 1)
        metrics.add("b", "B", 2, {"i": "1"})

        assert metrics.names() == ["b", "a"]
        assert len(metrics.get("b")) == 2

    def test_value_matches_labels(self):
        metrics = MetricSet()
        metrics.add("hw_gpu_temperature_celsius", "Temperature", 60, {"gpu_index": "0"})
        metrics.add("hw_gpu_temperature_celsius", "Temperature", 35, {"gpu_index": "1"})

        assert metrics.value("hw_gpu_temperature_celsius", gpu_index="1") == 35
        assert metrics.value("hw_gpu_temperature_celsius", gpu_index="7") is None
        assert metrics.value("absent") is None
