"""
Test Fixtures

Explicit, deterministic record documents for the butterfly backend.
No random generation: every id below is fixed.
"""

from typing import Any, Dict, Iterable, List

from butterfly_backend.contracts.base import IdGenerator
from butterfly_backend.engine import ButterflyBackend
from butterfly_backend.storage import InMemoryDocumentBackend, RecordStore


# =============================================================================
# RECORD IDS
# =============================================================================

BUTTERFLY_NO_RATINGS = "wxyz9876"
BUTTERFLY_MULTIPLE_RATINGS = "wxyz98761"
BUTTERFLY_ONE_RATING = "wxyz98762"
BUTTERFLY_ONE_RATING_AND_REVIEW = "wxyz987623"

USER_1 = "abcd1234"
USER_2 = "abcd12345"
USER_3 = "abcd123456"
USER_NO_RATINGS = "abcd1234567"


# =============================================================================
# DOCUMENT FIXTURE
# =============================================================================

def create_test_document() -> Dict[str, List[Dict[str, Any]]]:
    """Four butterflies and four users; ratings consistent on both sides."""
    return {
        'butterflies': [
            {
                'id': BUTTERFLY_NO_RATINGS,
                'commonName': 'test-butterfly',
                'species': 'Testium butterflius',
                'article': 'https://example.com/testium_butterflius'
            },
            {
                'id': BUTTERFLY_MULTIPLE_RATINGS,
                'commonName': 'test-butterfly-with-multiple-ratings',
                'species': 'Testium butterflius ratingus',
                'article': 'https://example.com/testium_butterflius_ratingus',
                'ratingByUsers': {
                    USER_1: {'rating': 1, 'review': 'Bad butterfly'},
                    USER_2: {'rating': 5, 'review': 'Great butterfly'},
                    USER_3: {'rating': 3}
                }
            },
            {
                'id': BUTTERFLY_ONE_RATING,
                'commonName': 'test-butterfly-with-one-rating',
                'species': 'Testium butterflius ratingus',
                'article': 'https://example.com/testium_butterflius_ratingus',
                'ratingByUsers': {
                    USER_1: {'rating': 4}
                }
            },
            {
                'id': BUTTERFLY_ONE_RATING_AND_REVIEW,
                'commonName': 'test-butterfly-with-one-rating-and-review',
                'species': 'Testium butterflius ratingus',
                'article': 'https://example.com/testium_butterflius_ratingus',
                'ratingByUsers': {
                    USER_1: {'rating': 3, 'review': 'Decent butterfly'}
                }
            }
        ],
        'users': [
            {
                'id': USER_1,
                'username': 'test-user-1',
                'ratedButterflies': {
                    BUTTERFLY_MULTIPLE_RATINGS: {'rating': 1, 'review': 'Bad butterfly'},
                    BUTTERFLY_ONE_RATING: {'rating': 4},
                    BUTTERFLY_ONE_RATING_AND_REVIEW: {'rating': 3, 'review': 'Decent butterfly'}
                }
            },
            {
                'id': USER_2,
                'username': 'test-user-2',
                'ratedButterflies': {
                    BUTTERFLY_MULTIPLE_RATINGS: {'rating': 5, 'review': 'Great butterfly'}
                }
            },
            {
                'id': USER_3,
                'username': 'test-user-3',
                'ratedButterflies': {
                    BUTTERFLY_MULTIPLE_RATINGS: {'rating': 3}
                }
            },
            {
                'id': USER_NO_RATINGS,
                'username': 'test-user-4'
            }
        ]
    }


# =============================================================================
# COLLABORATORS
# =============================================================================

class FixedIdGenerator(IdGenerator):
    """Hands out the given ids in order."""

    def __init__(self, ids: Iterable[str]):
        super().__init__()
        self._ids = list(ids)

    def generate(self, taken=()) -> str:
        return self._ids.pop(0)


def create_test_backend(ids: Iterable[str] = ()) -> ButterflyBackend:
    """Backend over an in-memory copy of the test document."""
    store = RecordStore(backend=InMemoryDocumentBackend(create_test_document()))
    return ButterflyBackend(store=store, id_generator=FixedIdGenerator(ids))
