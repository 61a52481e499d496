from typing import Dict, Optional

from src.entities.cache_state import CacheState
from src.entities.gpu import GPUDeviceRecord
from src.entities.metric import MetricSet
from src.entities.node_metrics import GPUSummary, NodeMetrics
from src.frameworks_drivers.config import MetricsEnabled
from src.shared.logger import Logger
from src.shared.protocols import PresenceProbeProtocol, SnapshotCacheProtocol, SystemFactsProtocol

logger = Logger.get(__name__)


class CollectNodeMetrics:
    """
    Combines OS facts with GPU telemetry into one metric set per scrape.

    GPU metrics are left out entirely on nodes without a GPU driver, which reads as
    "not applicable" downstream. On GPU nodes whose acquisition is failing the counts
    are reported as zero alongside hw_gpu_acquisition_failing=1.
    """

    def __init__(self, system_facts: SystemFactsProtocol, presence_probe: PresenceProbeProtocol,
                 snapshot_cache: SnapshotCacheProtocol, enabled: Optional[MetricsEnabled] = None):
        self.system_facts = system_facts
        self.presence_probe = presence_probe
        self.snapshot_cache = snapshot_cache
        self.enabled = enabled or MetricsEnabled()

    def execute(self) -> NodeMetrics:
        """Gather every fact for this scrape, running a live GPU acquisition when hardware is present."""
        node = self.system_facts.node_info()
        cpu = self.system_facts.cpu()
        memory = self.system_facts.memory()

        presence = self.presence_probe.check()
        gpu = None
        if presence.present:
            gpu = self._summarize_gpus(self.snapshot_cache.refresh())
        else:
            logger.debug(f"GPU metrics omitted: {presence.reason.value}")

        return NodeMetrics(node=node, cpu=cpu, memory=memory, gpu=gpu)

    def collect(self) -> MetricSet:
        return self.to_metric_set(self.execute())

    @staticmethod
    def _summarize_gpus(state: CacheState) -> GPUSummary:
        snapshot = state.usable_snapshot
        if snapshot is None:
            return GPUSummary(
                count=0,
                used_count=0,
                cache_status=state.status,
                snapshot_age_seconds=state.age_seconds,
                acquisition_failing=True,
            )
        return GPUSummary(
            count=snapshot.device_count,
            used_count=snapshot.active_count,
            type_counts=snapshot.type_counts,
            devices=list(snapshot.devices),
            cache_status=state.status,
            snapshot_age_seconds=state.age_seconds,
            acquisition_failing=state.acquisition_failing,
        )

    def to_metric_set(self, metrics: NodeMetrics) -> MetricSet:
        enabled = self.enabled
        result = MetricSet()
        node_labels = {"node": metrics.node.node}

        if enabled.node_info:
            result.add("hw_node_info", "Node hardware information", 1, {
                "node": metrics.node.node,
                "os": metrics.node.os_name,
                "os_version": metrics.node.os_version,
                "kernel": metrics.node.kernel_version,
                "cpu_model": metrics.cpu.model,
            })
        if enabled.node_uptime:
            result.add("hw_node_uptime_seconds", "Node uptime in seconds",
                       metrics.node.uptime_seconds, node_labels)

        if enabled.cpu_cores:
            result.add("hw_cpu_cores", "Number of physical CPU cores", metrics.cpu.cores, node_labels)
        if enabled.cpu_threads:
            result.add("hw_cpu_threads", "Number of CPU threads", metrics.cpu.threads, node_labels)
        if enabled.cpu_usage:
            result.add("hw_cpu_usage_percent", "CPU usage percentage",
                       round(metrics.cpu.usage_percent, 2), node_labels)
        if enabled.cpu_used_cores:
            result.add("hw_cpu_used_cores", "Number of CPU cores currently in use",
                       round(metrics.cpu.used_cores, 2), node_labels)

        if enabled.memory_total:
            result.add("hw_memory_total_bytes", "Total memory in bytes", metrics.memory.total_bytes, node_labels)
        if enabled.memory_used:
            result.add("hw_memory_used_bytes", "Used memory in bytes", metrics.memory.used_bytes, node_labels)
        if enabled.memory_available:
            result.add("hw_memory_available_bytes", "Available memory in bytes",
                       metrics.memory.available_bytes, node_labels)
        if enabled.memory_usage:
            result.add("hw_memory_usage_percent", "Memory usage percentage",
                       round(metrics.memory.usage_percent, 2), node_labels)

        if metrics.gpu is not None:
            self._add_gpu_metrics(result, metrics.gpu, metrics.node.node)

        return result

    def _add_gpu_metrics(self, result: MetricSet, gpu: GPUSummary, node: str) -> None:
        enabled = self.enabled
        node_labels = {"node": node}

        if enabled.gpu_count:
            result.add("hw_gpu_count", "Total number of GPUs per node", gpu.count, node_labels)
        if enabled.gpu_used_count:
            result.add("hw_gpu_used_count", "Number of GPUs currently in use per node", gpu.used_count, node_labels)
        if enabled.gpu_acquisition_status:
            result.add("hw_gpu_acquisition_failing", "1 if live GPU telemetry acquisition failed on this scrape",
                       1 if gpu.acquisition_failing else 0, node_labels)
            if gpu.snapshot_served:
                result.add("hw_gpu_snapshot_age_seconds", "Age of the GPU snapshot served on this scrape",
                           round(gpu.snapshot_age_seconds or 0.0, 3), node_labels)
                result.add("hw_gpu_snapshot_stale", "1 if the GPU snapshot was served from cache",
                           1 if gpu.acquisition_failing else 0, node_labels)

        if enabled.gpu_type_count:
            for gpu_type, count in gpu.type_counts.items():
                result.add("hw_gpu_type_count", "Number of GPUs by type per node", count,
                           {"node": node, "gpu_type": gpu_type})

        per_device = [
            (enabled.gpu_memory_total, "hw_gpu_memory_total_bytes", "GPU total memory in bytes",
             lambda d: d.memory_total_bytes),
            (enabled.gpu_memory_used, "hw_gpu_memory_used_bytes", "GPU used memory in bytes",
             lambda d: d.memory_used_bytes),
            (enabled.gpu_memory_free, "hw_gpu_memory_free_bytes", "GPU free memory in bytes",
             lambda d: d.memory_free_bytes),
            (enabled.gpu_utilization, "hw_gpu_utilization_percent", "GPU utilization percentage",
             lambda d: d.utilization_percent),
            (enabled.gpu_temperature, "hw_gpu_temperature_celsius", "GPU temperature in Celsius",
             lambda d: d.temperature_celsius),
            (enabled.gpu_power_draw, "hw_gpu_power_draw_watts", "GPU power draw in watts",
             lambda d: d.power_draw_watts),
            (enabled.gpu_power_limit, "hw_gpu_power_limit_watts", "GPU power limit in watts",
             lambda d: d.power_limit_watts),
        ]
        for is_enabled, name, help_text, getter in per_device:
            if not is_enabled:
                continue
            for device in gpu.devices:
                result.add(name, help_text, getter(device), self._device_labels(node, device))

    @staticmethod
    def _device_labels(node: str, device: GPUDeviceRecord) -> Dict[str, str]:
        return {
            "node": node,
            "gpu_index": str(device.index),
            "gpu_name": device.name,
            "gpu_uuid": device.uuid,
        }
