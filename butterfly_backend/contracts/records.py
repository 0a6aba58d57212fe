"""
Record Contracts

The three record types held in the record document, plus the audit
entry emitted by the storage layer.

Butterfly and User are mutable: their embedded rating maps are updated
in place by the rating merge engine. Rating is an immutable value that
is shared between the two sides of a merge.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Rating:
    """
    A 0-5 score with an optional free-text review.

    An empty review is normalized to None so that it is omitted
    from the serialized form rather than stored as "".
    """
    rating: int
    review: Optional[str] = None

    def __post_init__(self):
        if not self.review:
            object.__setattr__(self, 'review', None)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization. `review` only when present."""
        data: Dict[str, Any] = {'rating': self.rating}
        if self.review is not None:
            data['review'] = self.review
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Rating':
        # Documents written by older revisions also carry a `date` key; it is not kept.
        return cls(rating=data['rating'], review=data.get('review'))


def _ratings_to_dict(ratings: Dict[str, Rating]) -> Dict[str, Dict[str, Any]]:
    return {key: value.to_dict() for key, value in ratings.items()}


def _ratings_from_dict(data: Optional[Dict[str, Any]]) -> Dict[str, Rating]:
    return {key: Rating.from_dict(value) for key, value in (data or {}).items()}


@dataclass
class Butterfly:
    """A catalog entry identifying a species, annotated with per-user ratings."""
    id: str
    common_name: str
    species: str
    article: str
    rating_by_users: Dict[str, Rating] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Stored form. The rating map is omitted while empty."""
        data: Dict[str, Any] = {
            'id': self.id,
            'commonName': self.common_name,
            'species': self.species,
            'article': self.article,
        }
        if self.rating_by_users:
            data['ratingByUsers'] = _ratings_to_dict(self.rating_by_users)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Butterfly':
        return cls(
            id=data['id'],
            common_name=data['commonName'],
            species=data['species'],
            article=data['article'],
            rating_by_users=_ratings_from_dict(data.get('ratingByUsers')),
        )


@dataclass
class User:
    """A registered participant who may rate butterflies."""
    id: str
    username: str
    rated_butterflies: Dict[str, Rating] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Stored form. The rating map is omitted while empty."""
        data: Dict[str, Any] = {
            'id': self.id,
            'username': self.username,
        }
        if self.rated_butterflies:
            data['ratedButterflies'] = _ratings_to_dict(self.rated_butterflies)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            id=data['id'],
            username=data['username'],
            rated_butterflies=_ratings_from_dict(data.get('ratedButterflies')),
        )


# =============================================================================
# AUDIT
# =============================================================================

class AuditEventType(Enum):
    """Explicit audit event types."""
    STORAGE = "storage"
    ERROR = "error"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: datetime
    action: str
    entity_id: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
