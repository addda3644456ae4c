"""
Badge list aggregation for display and statistics.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List

from pydantic import ValidationError

from ..api.models import Badge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BadgeSummary:
    """Normalized badges in backend order, with collection statistics."""
    badges: List[Badge] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.badges)

    @property
    def farm_count(self) -> int:
        """Distinct farm names; badges without one share a single unnamed entry."""
        return len({badge.farm_name for badge in self.badges})

    def contains_batch(self, batch_id: str) -> bool:
        return any(badge.batch_id == batch_id for badge in self.badges)


def aggregate(raw_badges: Iterable[Any]) -> BadgeSummary:
    """
    Normalize raw badge records.

    Order is preserved and the list itself is never deduplicated. A badge
    without a farm name is still a badge; only entries that are not records
    at all are skipped.
    """
    badges = []
    for index, raw in enumerate(raw_badges or []):
        if not isinstance(raw, dict):
            logger.warning(f"Skipping badge at position {index}: not a record")
            continue
        try:
            badges.append(Badge.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed badge at position {index}: {e.error_count()} errors")
    return BadgeSummary(badges=badges)
