"""
Persistence adapters -- the kernel's only durability boundary.

    from invoice_kernel.persistence import InMemoryPersistenceAdapter
    from invoice_kernel.persistence.sql import SqlAlchemyPersistenceAdapter
"""

from invoice_kernel.persistence.base import PersistenceAdapter, StoreState
from invoice_kernel.persistence.memory import InMemoryPersistenceAdapter

__all__ = [
    "PersistenceAdapter",
    "StoreState",
    "InMemoryPersistenceAdapter",
]
