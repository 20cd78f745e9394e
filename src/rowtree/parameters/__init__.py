"""
Parameters

Named-parameter query text compiled for positional DB-API drivers.
"""

from rowtree.parameters.template import MARKERS, Parameters

__all__ = ["MARKERS", "Parameters"]
