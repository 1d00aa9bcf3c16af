"""
Collectors package:
- base.py: collector contract and registry registration helpers.
- model.py: metric family builder.
- distribution.py: idempotently declared per-scrape distribution counters.
- tablestore.py: table store collector (locks, transactions, tables).
"""
