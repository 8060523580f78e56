"""
Database helper utilities for the session store.

Provides dialect detection used to pick the schema handling and the upsert
statement, plus connection diagnostics for the operator script.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Dialects without a separate schema namespace
_SCHEMALESS_DIALECTS = {"sqlite"}


def get_database_type(engine: Engine) -> str:
    """
    Get the database type for an engine.

    Returns:
        str: Database type ('sqlite', 'postgresql', 'mysql', etc.)
    """
    return engine.dialect.name


def resolve_schema(engine: Engine, schema_name: Optional[str]) -> Optional[str]:
    """Schema to qualify the session table with, or None if the dialect has none."""
    if not schema_name:
        return None
    if get_database_type(engine) in _SCHEMALESS_DIALECTS:
        logger.debug(f"Ignoring schema {schema_name!r} on {get_database_type(engine)}")
        return None
    return schema_name


def get_database_info(engine: Engine, schema: Optional[str] = None) -> Dict[str, Any]:
    """
    Get database connection information and metadata.

    Returns:
        Dict containing database type, connection status, and metadata
    """
    db_type = get_database_type(engine)
    info = {
        "type": db_type,
        "connected": False,
        "tables": [],
        "version": None,
        "error": None
    }

    try:
        with engine.connect() as conn:
            info["connected"] = True

            if db_type == "sqlite":
                result = conn.execute(text("SELECT sqlite_version()"))
                info["version"] = result.scalar()
            elif db_type == "postgresql":
                result = conn.execute(text("SELECT version()"))
                version_str = result.scalar()
                info["version"] = version_str.split()[1] if version_str else "unknown"

        info["tables"] = inspect(engine).get_table_names(schema=schema)

    except Exception as e:
        logger.error(f"Database connection error: {e}")
        info["error"] = str(e)

    return info
