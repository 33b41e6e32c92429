"""
Invoice kernel services -- owned in-memory state and its coordinator.

``Catalog``, ``InvoiceStore`` and ``Ledger`` are not thread-safe on their
own; ``WorkflowEngine`` owns one of each and serializes access to them
behind a single lock.
"""
