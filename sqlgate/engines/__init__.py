"""
Engines: SQL execution against the backing store.
"""

from sqlgate.engines.sql import QueryExecutor

__all__ = ["QueryExecutor"]
