"""
Contracts Module

Record types, error taxonomy and identifiers shared by every layer.
No layer may import implementation details from another layer;
they exchange these types instead.
"""

from .base import (
    ErrorCode, RecordKind, ButterflyServiceError, NotFound,
    ValidationFailure, PersistenceFailure, IdGenerator
)
from .records import Rating, Butterfly, User, AuditEventType, AuditLogEntry

__all__ = [
    'ErrorCode', 'RecordKind', 'ButterflyServiceError', 'NotFound',
    'ValidationFailure', 'PersistenceFailure', 'IdGenerator',
    'Rating', 'Butterfly', 'User', 'AuditEventType', 'AuditLogEntry',
]
