import asyncio

from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response

from src.interface_adapters.health_controller import HealthController
from src.interface_adapters.metrics_controller import MetricsController
from src.interface_adapters.prometheus_renderer import PrometheusRenderer
from src.shared.version import APP_VERSION


class API:
    def __init__(self, metrics_controller: MetricsController, health_controller: HealthController):
        self.metrics_controller = metrics_controller
        self.health_controller = health_controller
        self.app = FastAPI(title="Hardware Info Exporter", version=APP_VERSION)

        self._register_routes()

    def _register_routes(self):
        # Collection blocks on nvidia-smi for up to its timeout, so it runs in a worker
        # thread. If the client goes away the thread still finishes and fills the cache.
        async def prometheus_metrics_handler() -> Response:
            status_code, body = await asyncio.to_thread(self.metrics_controller.prometheus)
            media_type = PrometheusRenderer.content_type if status_code == 200 else "text/plain; charset=utf-8"
            return Response(content=body, status_code=status_code, media_type=media_type)

        async def json_metrics_handler() -> JSONResponse:
            status_code, body = await asyncio.to_thread(self.metrics_controller.metrics_json)
            return JSONResponse(content=body, status_code=status_code)

        async def node_metrics_handler() -> JSONResponse:
            status_code, body = await asyncio.to_thread(self.metrics_controller.node)
            return JSONResponse(content=body, status_code=status_code)

        def health_handler() -> JSONResponse:
            status_code, body = self.health_controller.health()
            return JSONResponse(content=body, status_code=status_code)

        self.app.get("/metrics")(prometheus_metrics_handler)
        self.app.get("/metrics/json")(json_metrics_handler)
        self.app.get("/node")(node_metrics_handler)
        self.app.get("/health")(health_handler)
        self.app.get("/healthz")(health_handler)
        self.app.get("/ready")(health_handler)
