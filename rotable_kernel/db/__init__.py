"""Database layer - engine, base classes and column types."""

from rotable_kernel.db.base import UUID, Base, UUIDString
from rotable_kernel.db.engine import (
    create_engine_from_url,
    create_tables,
    drop_tables,
    make_session_factory,
    session_scope,
)
from rotable_kernel.db.types import UTCDateTime

__all__ = [
    "Base",
    "UUID",
    "UUIDString",
    "UTCDateTime",
    "create_engine_from_url",
    "create_tables",
    "drop_tables",
    "make_session_factory",
    "session_scope",
]
