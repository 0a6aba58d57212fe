"""
Rating Order Policy

Display order for a rating map, computed fresh on every read and never
persisted. The same policy applies to a butterfly's ratings (keyed by
user id) and to a user's ratings (keyed by butterfly id).

Ordering is by rating value, highest first. Equal ratings keep the
insertion order of the map; since insertion order is what the record
document stores, the result is identical across processes.
"""

from __future__ import annotations
from typing import Dict, List, Mapping, Tuple

from ..contracts.records import Rating


def order_ratings(
    ratings: Mapping[str, Rating],
    descending: bool = True
) -> List[Tuple[str, Rating]]:
    """Return (key, rating) pairs sorted by rating value."""
    # sorted() stays stable with reverse=True
    return sorted(ratings.items(), key=lambda item: item[1].rating, reverse=descending)


def ordered_rating_dict(
    ratings: Mapping[str, Rating],
    descending: bool = True
) -> Dict[str, Dict[str, object]]:
    """Ordered, JSON-ready form of a rating map."""
    return {key: rating.to_dict() for key, rating in order_ratings(ratings, descending)}
