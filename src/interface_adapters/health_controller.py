from typing import Tuple

from src.shared.error_utils import ErrorUtils
from src.shared.logger import Logger
from src.use_cases.get_health import GetHealth

logger = Logger.get(__name__)


class HealthController:
    """Liveness and readiness responses as ``(status_code, body)``. A failing check is a 500."""

    def __init__(self, get_health: GetHealth):
        self.get_health = get_health

    def health(self) -> Tuple[int, dict]:
        try:
            report = self.get_health.execute()
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return 500, ErrorUtils.format_error_response(f"Health check failed: {str(e)}", "health_check_error")
        return 200, report
