import asyncio
import logging
from tablestore_exporter.nodes.store_node import StoreNode
from tablestore_exporter.utils.config import get_config

logger = logging.getLogger("tablestore_exporter")

async def serve():
    node = StoreNode()
    node.store.start()
    try:
        await node.start()
    finally:
        node.store.stop()

def main():
    conf = get_config()
    logging.basicConfig(level=conf.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.info("starting table store node %s", conf.NODE_ID)
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("shutting down")

if __name__ == "__main__":
    main()
