"""
Rating Merge Engine Tests
=========================

AXIOM UNDER TEST:
=================
A rating lands on both the butterfly and the user, or on neither.
"""

import json
from concurrent.futures import ThreadPoolExecutor

import pytest
from unittest.mock import patch

from butterfly_backend.contracts.base import NotFound, PersistenceFailure, RecordKind
from butterfly_backend.contracts.records import Rating
from butterfly_backend.core.merge import RatingMergeEngine
from butterfly_backend.domain.serialization import dump_document
from butterfly_backend.engine import ButterflyBackend
from butterfly_backend.query import LookupQueries
from butterfly_backend.storage import InMemoryDocumentBackend, RecordStore

from tests.fixtures import (
    create_test_document,
    BUTTERFLY_NO_RATINGS, BUTTERFLY_MULTIPLE_RATINGS, BUTTERFLY_ONE_RATING,
    USER_1, USER_2, USER_NO_RATINGS,
)


@pytest.fixture
def store():
    store = RecordStore(backend=InMemoryDocumentBackend(create_test_document()))
    store.load()
    return store


@pytest.fixture
def engine(store):
    return RatingMergeEngine(store, LookupQueries(store))


class TestSubmitRating:

    def test_rating_mirrored_on_both_sides(self, engine, store):
        engine.submit_rating(BUTTERFLY_NO_RATINGS, USER_NO_RATINGS, 4, "Lovely wings")

        butterfly = store.get_butterfly(BUTTERFLY_NO_RATINGS)
        user = store.get_user(USER_NO_RATINGS)
        assert butterfly.rating_by_users[USER_NO_RATINGS] == Rating(4, "Lovely wings")
        assert user.rated_butterflies[BUTTERFLY_NO_RATINGS] == butterfly.rating_by_users[USER_NO_RATINGS]

    def test_returns_updated_butterfly(self, engine):
        butterfly = engine.submit_rating(BUTTERFLY_NO_RATINGS, USER_1, 2)
        assert butterfly.id == BUTTERFLY_NO_RATINGS
        assert butterfly.rating_by_users[USER_1] == Rating(2)

    def test_resubmission_overwrites(self, engine, store):
        engine.submit_rating(BUTTERFLY_ONE_RATING, USER_1, 0, "Changed my mind")

        butterfly = store.get_butterfly(BUTTERFLY_ONE_RATING)
        user = store.get_user(USER_1)
        assert list(butterfly.rating_by_users) == [USER_1]
        assert butterfly.rating_by_users[USER_1] == Rating(0, "Changed my mind")
        assert user.rated_butterflies[BUTTERFLY_ONE_RATING] == Rating(0, "Changed my mind")
        assert len(user.rated_butterflies) == 3

    def test_omitted_review_is_absent(self, engine, store):
        engine.submit_rating(BUTTERFLY_NO_RATINGS, USER_2, 3)
        stored = store.get_butterfly(BUTTERFLY_NO_RATINGS).rating_by_users[USER_2]
        assert stored.to_dict() == {'rating': 3}

    def test_empty_review_is_absent(self, engine, store):
        engine.submit_rating(BUTTERFLY_NO_RATINGS, USER_2, 3, "")
        stored = store.get_user(USER_2).rated_butterflies[BUTTERFLY_NO_RATINGS]
        assert stored.review is None
        assert 'review' not in stored.to_dict()

    def test_commits_once(self, engine, store):
        writes_before = store.backend.write_count
        engine.submit_rating(BUTTERFLY_NO_RATINGS, USER_1, 5)
        assert store.backend.write_count == writes_before + 1
        assert store.backend.read()['butterflies'][0]['ratingByUsers'] == {USER_1: {'rating': 5}}


class TestSubmitRatingFailures:

    def test_unknown_butterfly(self, engine, store):
        with pytest.raises(NotFound) as exc_info:
            engine.submit_rating("bad-id", USER_1, 4)

        assert exc_info.value.kind is RecordKind.BUTTERFLY
        assert str(exc_info.value) == "Butterfly with id bad-id does not exist"

    def test_unknown_user_leaves_butterfly_untouched(self, engine, store):
        before = store.get_butterfly(BUTTERFLY_MULTIPLE_RATINGS).to_dict()

        with pytest.raises(NotFound) as exc_info:
            engine.submit_rating(BUTTERFLY_MULTIPLE_RATINGS, "bad-id", 4)

        assert exc_info.value.kind is RecordKind.USER
        assert str(exc_info.value) == "User with id bad-id does not exist"
        assert store.get_butterfly(BUTTERFLY_MULTIPLE_RATINGS).to_dict() == before

    def test_butterfly_checked_before_user(self, engine):
        with pytest.raises(NotFound) as exc_info:
            engine.submit_rating("bad-butterfly", "bad-user", 4)
        assert exc_info.value.kind is RecordKind.BUTTERFLY

    def test_failed_lookup_does_not_commit(self, engine, store):
        writes_before = store.backend.write_count
        with pytest.raises(NotFound):
            engine.submit_rating(BUTTERFLY_ONE_RATING, "bad-id", 1)
        assert store.backend.write_count == writes_before

    def test_commit_failure_is_reported(self, engine, store):
        with patch.object(store.backend, "write", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceFailure) as exc_info:
                engine.submit_rating(BUTTERFLY_NO_RATINGS, USER_1, 4)

        assert "disk full" in str(exc_info.value)
        # No rollback: memory keeps the merge, consistent on both sides.
        assert store.get_butterfly(BUTTERFLY_NO_RATINGS).rating_by_users[USER_1] == Rating(4)
        assert store.get_user(USER_1).rated_butterflies[BUTTERFLY_NO_RATINGS] == Rating(4)


class TestDualConsistency:

    def assert_mirrored(self, store):
        for butterfly in store.get_all_butterflies():
            for user_id, rating in butterfly.rating_by_users.items():
                assert store.get_user(user_id).rated_butterflies[butterfly.id] == rating

        for user in store.get_all_users():
            for butterfly_id, rating in user.rated_butterflies.items():
                assert store.get_butterfly(butterfly_id).rating_by_users[user.id] == rating

    def test_every_rating_has_a_mirror(self, engine, store):
        engine.submit_rating(BUTTERFLY_NO_RATINGS, USER_1, 1)
        engine.submit_rating(BUTTERFLY_NO_RATINGS, USER_2, 2, "ok")
        engine.submit_rating(BUTTERFLY_MULTIPLE_RATINGS, USER_1, 5)

        self.assert_mirrored(store)

    def test_concurrent_submissions_stay_mirrored(self, engine, store):
        butterflies = [b.id for b in store.get_all_butterflies()]
        users = [u.id for u in store.get_all_users()]
        submissions = [
            (butterflies[i % len(butterflies)], users[(i // 3) % len(users)], i % 6)
            for i in range(200)
        ]
        writes_before = store.backend.write_count

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [
                pool.submit(engine.submit_rating, butterfly_id, user_id, value, f"review {value}")
                for butterfly_id, user_id, value in submissions
            ]
            for future in futures:
                future.result()

        self.assert_mirrored(store)
        assert store.backend.write_count - writes_before == len(submissions)
        assert store.backend.read() == json.loads(dump_document(store.to_document()))

    def test_concurrent_creations_get_distinct_ids(self, store):
        backend = ButterflyBackend(store=store)

        with ThreadPoolExecutor(max_workers=8) as pool:
            created = list(pool.map(lambda n: backend.create_user(f"user-{n}"), range(50)))

        ids = {user['id'] for user in created}
        assert len(ids) == 50
        assert ids <= store.user_ids()
        assert store.backend.read() == json.loads(dump_document(store.to_document()))
