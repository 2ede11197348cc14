"""INSERT ... ON CONFLICT for the dialects we run on."""
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def dialect_insert(db: Session, model):
    """
    Return an ``insert()`` construct that supports ``on_conflict_do_*``.

    PostgreSQL in production, SQLite in tests. Both accept the same
    ``index_elements`` / ``returning`` arguments.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"ON CONFLICT inserts are not supported on {dialect}")
