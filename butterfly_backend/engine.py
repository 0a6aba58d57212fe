"""
Engine Orchestration Module

This module provides the unified interface over the storage, query and
core layers. The HTTP binding and the scripts talk only to
ButterflyBackend.

DESIGN PRINCIPLES:
==================
1. One backend instance owns one record store; nothing is global
2. Every mutation commits before it is reported as successful
3. Creation and retrieval share the same lookup + ordering path
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from .contracts.base import IdGenerator
from .contracts.records import Butterfly, User
from .core.merge import RatingMergeEngine
from .query import LookupQueries, butterfly_view, user_view
from .storage import RecordStore, RecordStoreConfig

logger = logging.getLogger(__name__)


@dataclass
class BackendConfig:
    """Unified configuration for the entire backend."""
    storage: RecordStoreConfig = None

    def __post_init__(self):
        self.storage = self.storage or RecordStoreConfig()


class ButterflyBackend:
    """
    Unified Backend for the butterfly ratings service.

    LAYER FLOW:
    ===========
    1. Storage: record document <-> in-memory collections
    2. Query: point lookups and listings (read-only)
    3. Core: rating merge (both sides, one transaction) and rating order

    Public methods return JSON-ready views with rating maps ordered.
    """

    def __init__(
        self,
        config: Optional[BackendConfig] = None,
        store: Optional[RecordStore] = None,
        id_generator: Optional[IdGenerator] = None
    ):
        self._config = config or BackendConfig()
        self._store = store or RecordStore(self._config.storage)
        self._store.load()

        self._ids = id_generator or IdGenerator()
        self._queries = LookupQueries(self._store)
        self._merge = RatingMergeEngine(self._store, self._queries)

    # =========================================================================
    # BUTTERFLIES
    # =========================================================================

    def get_butterfly(self, butterfly_id: str) -> Dict[str, Any]:
        return butterfly_view(self._queries.find_butterfly(butterfly_id))

    def list_butterflies(self) -> List[Dict[str, Any]]:
        return [butterfly_view(b) for b in self._queries.list_butterflies()]

    def create_butterfly(self, common_name: str, species: str, article: str) -> Dict[str, Any]:
        """Store a new butterfly under a fresh id and return it as a fetch would."""
        with self._store.transaction():
            butterfly = Butterfly(
                id=self._ids.generate(self._store.butterfly_ids()),
                common_name=common_name,
                species=species,
                article=article,
            )
            self._store.append_butterfly(butterfly)
            self._store.commit()

        logger.info(f"Created butterfly {butterfly.id} ({butterfly.common_name})")
        return self.get_butterfly(butterfly.id)

    def submit_rating(
        self,
        butterfly_id: str,
        user_id: str,
        rating: int,
        review: Optional[str] = None
    ) -> Dict[str, Any]:
        """Merge a rating into both records; return the butterfly as a fetch would."""
        butterfly = self._merge.submit_rating(butterfly_id, user_id, rating, review)
        return self.get_butterfly(butterfly.id)

    # =========================================================================
    # USERS
    # =========================================================================

    def get_user(self, user_id: str) -> Dict[str, Any]:
        return user_view(self._queries.find_user(user_id))

    def list_users(self) -> List[Dict[str, Any]]:
        return [user_view(u) for u in self._queries.list_users()]

    def create_user(self, username: str) -> Dict[str, Any]:
        """Store a new user under a fresh id and return it as a fetch would."""
        with self._store.transaction():
            user = User(
                id=self._ids.generate(self._store.user_ids()),
                username=username,
            )
            self._store.append_user(user)
            self._store.commit()

        logger.info(f"Created user {user.id} ({user.username})")
        return self.get_user(user.id)

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def queries(self) -> LookupQueries:
        return self._queries
