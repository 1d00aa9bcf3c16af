"""
Nodes package:
- base_node.py: base aiohttp node serving /health and /metrics.
- store_node.py: table store node with table, lock and transaction endpoints.
"""
