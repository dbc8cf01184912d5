from .connection import Database, engine_options, get_db, is_statement_timeout
from .models import Base

__all__ = [
    "Base",
    "Database",
    "engine_options",
    "get_db",
    "is_statement_timeout",
]
