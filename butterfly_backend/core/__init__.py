"""
Core Rating Logic

RESPONSIBILITY: Merge ratings into both sides, order ratings for display
ALLOWED INPUTS: Validated rating submissions, rating maps
OUTPUTS: Updated Butterfly records, ordered (key, Rating) sequences

WHAT THIS LAYER MUST NOT DO:
============================
- Validate request shape or rating range (the request validator's job)
- Create butterflies or users as a side effect of rating
- Persist rating order

The merge engine is imported from core.merge directly: it depends on
the query layer, which in turn depends on core.ordering.
"""

from .ordering import order_ratings, ordered_rating_dict

__all__ = ['order_ratings', 'ordered_rating_dict']
