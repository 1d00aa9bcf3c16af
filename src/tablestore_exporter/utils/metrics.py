from prometheus_client import CollectorRegistry, Counter, Histogram

# registry served by the node; the store collector is registered into it too
registry = CollectorRegistry()

locks_acquired  = Counter("store_locks_acquired_total","total locks granted",["type"], registry=registry)
locks_blocked   = Counter("store_locks_blocked_total","total lock requests queued",["type"], registry=registry)
tx_outcomes     = Counter("store_transactions_total","transaction outcomes seen by the node api",["outcome"], registry=registry)
scrape_latency  = Histogram("store_scrape_duration_seconds","time spent rendering /metrics", registry=registry)
