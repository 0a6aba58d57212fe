"""
Lookup & Existence Queries

RESPONSIBILITY: Point lookups by id, full-collection reads, response shaping
ALLOWED INPUTS: Record ids
OUTPUTS: Records, or NotFound; JSON-ready views with ordered ratings

WHAT THIS LAYER MUST NOT DO:
============================
- Mutate any state
- Conflate "record absent" with "record has no ratings"
"""

from __future__ import annotations
from typing import Any, Dict, List

from ..contracts.base import NotFound, RecordKind
from ..contracts.records import Butterfly, User
from ..core.ordering import ordered_rating_dict
from ..storage import RecordStore


class LookupQueries:
    """Read-only access to the record store."""

    def __init__(self, store: RecordStore):
        self._store = store

    def find_butterfly(self, butterfly_id: str) -> Butterfly:
        butterfly = self._store.get_butterfly(butterfly_id)
        if butterfly is None:
            raise NotFound(RecordKind.BUTTERFLY, butterfly_id)
        return butterfly

    def find_user(self, user_id: str) -> User:
        user = self._store.get_user(user_id)
        if user is None:
            raise NotFound(RecordKind.USER, user_id)
        return user

    def butterfly_exists(self, butterfly_id: str) -> bool:
        return self._store.get_butterfly(butterfly_id) is not None

    def user_exists(self, user_id: str) -> bool:
        return self._store.get_user(user_id) is not None

    def list_butterflies(self) -> List[Butterfly]:
        return self._store.get_all_butterflies()

    def list_users(self) -> List[User]:
        return self._store.get_all_users()


# =============================================================================
# VIEWS (stored form with ratings passed through the order policy)
# =============================================================================

def butterfly_view(butterfly: Butterfly) -> Dict[str, Any]:
    view = butterfly.to_dict()
    if butterfly.rating_by_users:
        view['ratingByUsers'] = ordered_rating_dict(butterfly.rating_by_users)
    return view


def user_view(user: User) -> Dict[str, Any]:
    view = user.to_dict()
    if user.rated_butterflies:
        view['ratedButterflies'] = ordered_rating_dict(user.rated_butterflies)
    return view
