"""
Badge collection aggregation.
"""

from .aggregator import BadgeSummary, aggregate

__all__ = ['BadgeSummary', 'aggregate']
