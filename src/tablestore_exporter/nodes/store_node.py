import logging
from aiohttp import web
from tablestore_exporter.collectors.base import register_collector
from tablestore_exporter.collectors.tablestore import TableStoreCollector
from tablestore_exporter.nodes.base_node import BaseNode
from tablestore_exporter.runtime.base import WHOLE_TABLE
from tablestore_exporter.runtime.store import (
    LockNotHeld, NoSuchTable, NoSuchTransaction, StoreError, TableNotLoaded, TableStore,
)
from tablestore_exporter.utils.metrics import locks_acquired, locks_blocked, tx_outcomes

logger = logging.getLogger(__name__)

_STATUS = {NoSuchTable: 404, NoSuchTransaction: 404, TableNotLoaded: 409, LockNotHeld: 409}

@web.middleware
async def store_errors(req, handler):
    try:
        return await handler(req)
    except StoreError as e:
        return web.json_response({"ok": False, "error": type(e).__name__, "detail": str(e)},
                                 status=_STATUS.get(type(e), 400))
    except (KeyError, ValueError) as e:
        return web.json_response({"ok": False, "error": "BadRequest", "detail": str(e)}, status=400)

class StoreNode(BaseNode):
    def __init__(self, store=None, registry=None):
        super().__init__(registry)
        self.store = store if store is not None else TableStore()
        self.collector = register_collector(TableStoreCollector(self.store), self.registry)
        self.app.middlewares.append(store_errors)
        self.app.router.add_post("/table/create", self.create_table)
        self.app.router.add_post("/table/load", self.load_table)
        self.app.router.add_post("/table/write", self.write)
        self.app.router.add_post("/lock/acquire", self.acquire)
        self.app.router.add_post("/lock/release", self.release)
        self.app.router.add_post("/tx/begin", self.begin)
        for outcome in ("commit", "abort", "restart"):
            self.app.router.add_post(f"/tx/{outcome}", self._finish(outcome))

    def status(self):
        return {"running": self.store.is_running(), "tables": len(self.store.tables())}

    async def create_table(self, req):
        data = await req.json()
        self.store.create_table(data["table"], load=data.get("load", True))
        return web.json_response({"ok": True})

    async def load_table(self, req):
        data = await req.json()
        self.store.load_table(data["table"])
        return web.json_response({"ok": True})

    async def write(self, req):
        data = await req.json()
        self.store.write(data["table"], data["key"], data.get("value"), tid=data.get("tid"))
        return web.json_response({"ok": True})

    async def acquire(self, req):
        data = await req.json()
        key = data.get("key", WHOLE_TABLE)
        granted = self.store.acquire(data["table"], key, data["type"], data["owner"])
        (locks_acquired if granted else locks_blocked).labels(data["type"]).inc()
        return web.json_response({"ok": True, "granted": granted})

    async def release(self, req):
        data = await req.json()
        self.store.release(data["table"], data.get("key", WHOLE_TABLE), data["owner"])
        return web.json_response({"ok": True})

    async def begin(self, req):
        data = await req.json() if req.can_read_body else {}
        tid = self.store.begin(data.get("tid"), coordinator=data.get("coordinator", True))
        return web.json_response({"ok": True, "tid": tid})

    def _finish(self, outcome):
        async def handler(req):
            data = await req.json()
            getattr(self.store, outcome)(data["tid"])
            tx_outcomes.labels(outcome).inc()
            return web.json_response({"ok": True})
        return handler
