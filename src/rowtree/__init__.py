"""
rowtree

Named-parameter queries and nested, attachment-aware row sequences over
DB-API cursors.
"""

from rowtree.adapter import ResultSetAdapter, Row, Subquery
from rowtree.parameters import Parameters

__all__ = ["Parameters", "ResultSetAdapter", "Row", "Subquery"]
