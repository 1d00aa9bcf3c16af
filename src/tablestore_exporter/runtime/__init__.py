"""
Runtime package:
- base.py: introspection interface and lock record types.
- store.py: in-memory table store with lock table and transaction manager.
"""
