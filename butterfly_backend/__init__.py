"""
Butterfly Ratings Backend

A small REST service for butterfly records, user records and the
0-5 ratings users attach to butterflies. Persistence is one JSON
document holding two collections: butterflies and users.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Record types (Butterfly, User, Rating), error taxonomy, id generation
   - Imported by every other layer; imports nothing from them

2. STORAGE LAYER (storage/)
   - Responsibility: In-memory collections, load once, commit on every write
   - MUST NOT: Validate requests, order ratings, roll back failed commits

3. QUERY LAYER (query/)
   - Responsibility: Lookups by id, listings, ordered views
   - MUST NOT: Mutate state

4. CORE (core/)
   - Responsibility: Rating merge into both records, rating order policy
   - MUST NOT: Create records implicitly, persist rating order

5. API (api/)
   - Responsibility: Request validation, HTTP routing, error mapping
   - MUST NOT: Touch the store except through ButterflyBackend
"""

__version__ = "1.0.0"

from .engine import ButterflyBackend, BackendConfig

__all__ = ['ButterflyBackend', 'BackendConfig', '__version__']
