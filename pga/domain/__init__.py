"""
Domain package for the pga adapter.

Exports the statement/result models and the SQL template helper.
"""

from pga.domain.models import QueryResult, Statement, coerce_statements
from pga.domain.sql import sql

__all__ = [
    "QueryResult",
    "Statement",
    "coerce_statements",
    "sql",
]
