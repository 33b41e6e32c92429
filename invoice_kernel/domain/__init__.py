"""
Invoice kernel domain layer -- pure value objects and pure functions.

ZERO I/O.  Nothing in this package imports from ``services/``,
``persistence/``, ``db/`` or ``models/``.
"""
