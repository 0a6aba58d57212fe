"""
Rating Merge Engine

Attaches one user's rating to one butterfly. The rating lands on both
sides: butterfly.rating_by_users[user_id] and
user.rated_butterflies[butterfly_id] hold the same Rating value.

Both lookups happen before anything is mutated, so a NotFound leaves
both records untouched. The lookups, both writes and the commit run
under the store's transaction lock as one step.
"""

from __future__ import annotations
from typing import Optional
import logging

from ..contracts.records import Butterfly, Rating
from ..query import LookupQueries
from ..storage import RecordStore

logger = logging.getLogger(__name__)


class RatingMergeEngine:

    def __init__(self, store: RecordStore, queries: LookupQueries):
        self._store = store
        self._queries = queries

    def submit_rating(
        self,
        butterfly_id: str,
        user_id: str,
        rating_value: int,
        review: Optional[str] = None
    ) -> Butterfly:
        """
        Insert or overwrite the (butterfly, user) rating on both records.

        Raises:
            NotFound: butterfly (checked first) or user does not exist.
            PersistenceFailure: the commit failed. In-memory state keeps the merge.
        """
        with self._store.transaction():
            butterfly = self._queries.find_butterfly(butterfly_id)
            user = self._queries.find_user(user_id)

            rating = Rating(rating=rating_value, review=review)
            butterfly.rating_by_users[user_id] = rating
            user.rated_butterflies[butterfly_id] = rating

            self._store.commit()

        logger.info(f"User {user_id} rated butterfly {butterfly_id}: {rating_value}")
        return butterfly
