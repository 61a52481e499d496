import os

import uvicorn

from src.frameworks_drivers.config import Config
from src.frameworks_drivers.gpu_detector import GPUDetector
from src.frameworks_drivers.gpu_monitor import GPUMonitor
from src.frameworks_drivers.gpu_snapshot_cache import GPUSnapshotCache
from src.frameworks_drivers.system_facts import SystemFactsProvider
from src.interface_adapters.api import API
from src.interface_adapters.health_controller import HealthController
from src.interface_adapters.metrics_controller import MetricsController
from src.shared.logger import Logger
from src.shared.version import APP_NAME, APP_VERSION
from src.use_cases.collect_node_metrics import CollectNodeMetrics
from src.use_cases.get_health import GetHealth


def build_api(config: Config) -> API:
    """Instantiate the object graph. The snapshot cache is created once and shared by all requests."""
    system_facts = SystemFactsProvider(config.node)
    gpu_detector = GPUDetector(config.gpu)
    gpu_monitor = GPUMonitor(config.gpu)
    snapshot_cache = GPUSnapshotCache(gpu_monitor, max_age_seconds=config.gpu.cache_max_age_seconds)

    # Instantiate use cases
    collect_node_metrics = CollectNodeMetrics(system_facts, gpu_detector, snapshot_cache, config.metrics.enabled)
    get_health = GetHealth(gpu_detector, snapshot_cache)

    # Instantiate controllers
    metrics_controller = MetricsController(collect_node_metrics)
    health_controller = HealthController(get_health)

    return API(metrics_controller, health_controller)


if __name__ == "__main__":
    logger = Logger.get(__name__)

    try:
        config = Config.load(os.environ.get("HW_EXPORTER_CONFIG", "config.json"))
        api = build_api(config)

        logger.info(f"Starting {APP_NAME} v{APP_VERSION} on {config.server.host}:{config.server.port}")
        uvicorn.run(api.app, host=config.server.host, port=config.server.port)
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise
