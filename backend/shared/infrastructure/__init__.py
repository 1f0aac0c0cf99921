"""
Infrastructure module: Database and request correlation.

Provides:
- ORM bootstrap, database sessions and transactions (db.py)
- Request correlation IDs (correlation.py)
"""

from shared.infrastructure.db import (
    SessionFactoryBuilder,
    get_engine,
    get_session_factory,
    get_db,
    get_db_context,
    safe_commit,
)
from shared.infrastructure.correlation import (
    CorrelationIdMiddleware,
    get_request_id,
)

__all__ = [
    # db
    "SessionFactoryBuilder",
    "get_engine",
    "get_session_factory",
    "get_db",
    "get_db_context",
    "safe_commit",
    # correlation
    "CorrelationIdMiddleware",
    "get_request_id",
]
