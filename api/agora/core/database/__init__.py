"""Database access for Agora.

Connection bootstrap lives in ``agora.core.database.async_cassandra`` and is
imported by the application entry points only.
"""

from agora.core.database.transaction import (
    Database,
    Transaction,
    TransactionError,
    gather_all,
)


__all__ = [
    "Database",
    "Transaction",
    "TransactionError",
    "gather_all",
]
