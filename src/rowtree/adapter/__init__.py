"""
Adapter

Classes for materializing cursors as sequences of nested rows.
"""

from rowtree.adapter.result_set import ResultSetAdapter, State
from rowtree.adapter.row import Row
from rowtree.adapter.subquery import Subquery

__all__ = ["ResultSetAdapter", "Row", "State", "Subquery"]
