from typing import Tuple

from src.interface_adapters.prometheus_renderer import PrometheusRenderer
from src.shared.error_utils import ErrorUtils
from src.shared.logger import Logger
from src.use_cases.collect_node_metrics import CollectNodeMetrics

logger = Logger.get(__name__)


class MetricsController:
    """
    Turns one collection into a response body.

    Each method returns ``(status_code, body)``. GPU failures never reach here: they
    are absorbed by the snapshot cache. Only a failing OS facts provider produces a 500.
    """

    def __init__(self, collect_node_metrics: CollectNodeMetrics):
        self.collect_node_metrics = collect_node_metrics

    def prometheus(self) -> Tuple[int, bytes]:
        try:
            metric_set = self.collect_node_metrics.collect()
        except Exception as e:
            logger.error(f"Metrics collection failed: {e}")
            body = ErrorUtils.format_error_text(f"Metrics collection failed: {str(e)}", "metrics_collection_error")
            return 500, body.encode("utf-8")
        return 200, PrometheusRenderer.render(metric_set)

    def metrics_json(self) -> Tuple[int, dict]:
        try:
            metric_set = self.collect_node_metrics.collect()
        except Exception as e:
            logger.error(f"Metrics collection failed: {e}")
            return 500, ErrorUtils.format_error_response(
                f"Metrics collection failed: {str(e)}", "metrics_collection_error"
            )
        return 200, metric_set.model_dump()

    def node(self) -> Tuple[int, dict]:
        try:
            node_metrics = self.collect_node_metrics.execute()
        except Exception as e:
            logger.error(f"Node metrics collection failed: {e}")
            return 500, ErrorUtils.format_error_response(
                f"Node metrics collection failed: {str(e)}", "metrics_collection_error"
            )
        return 200, node_metrics.model_dump(mode="json")
