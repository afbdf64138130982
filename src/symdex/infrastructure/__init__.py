"""Infrastructure domain — index database, cross-process lock, config, reindex orchestrator.

Note: ``symdex.infrastructure.reindex`` is intentionally NOT re-exported here because
it depends on the indexing domain, which itself imports the database layer; eagerly
importing it would create circular imports.  Import it directly::

    from symdex.infrastructure.reindex import Reindexer
"""

from symdex.infrastructure.db import (
    IN_MEMORY,
    SCHEMA_VERSION,
    IndexDatabase,
    create_schema,
    open_db,
)
from symdex.infrastructure.lock import exclusive_lock, lock_path, with_exclusive_lock

__all__ = [
    "IN_MEMORY",
    "SCHEMA_VERSION",
    "IndexDatabase",
    "create_schema",
    "exclusive_lock",
    "lock_path",
    "open_db",
    "with_exclusive_lock",
]
