"""
Read-only views over engine snapshots.

Selectors take the immutable tuples returned by ``WorkflowEngine.list_*``
(or ``snapshot()``) and derive report data.  They never touch the engine
or the stores.
"""
