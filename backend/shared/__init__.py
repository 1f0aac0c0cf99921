"""
Shared module for common utilities of the CRUD service.

STRUCTURE:
- shared.infrastructure: Database and request context
  - db.py: SessionFactoryBuilder, sessions, safe_commit()
  - correlation.py: Request correlation IDs

- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging

- shared.utils: Utilities
  - exceptions.py: Service errors and HTTP exceptions with auto-logging

IMPORT EXAMPLES:
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.utils.exceptions import InvalidArgumentError, NotFoundError
"""
