import asyncio
import logging
from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from tablestore_exporter.utils.config import get_config
from tablestore_exporter.utils import metrics as node_metrics

logger = logging.getLogger(__name__)

class BaseNode:
    def __init__(self, registry=None):
        self.registry = registry if registry is not None else node_metrics.registry
        self.app = web.Application()
        self.app.router.add_get("/health", self.health)
        self.app.router.add_get("/metrics", self.metrics)

    def status(self):  # overridden in subclasses
        return {}

    async def health(self, _):
        return web.json_response({"ok": True, "id": get_config().NODE_ID, **self.status()})

    async def metrics(self, _):
        with node_metrics.scrape_latency.time():
            body = generate_latest(self.registry)
        return web.Response(body=body, headers={"Content-Type": CONTENT_TYPE_LATEST})

    async def start(self, host="0.0.0.0", port=None):
        port = port or get_config().HTTP_PORT
        runner = web.AppRunner(self.app); await runner.setup()
        site = web.TCPSite(runner, host, port); await site.start()
        logger.info("node %s listening on %s", get_config().NODE_ID, port)
        try:
            while True: await asyncio.sleep(3600)
        finally:
            await runner.cleanup()
