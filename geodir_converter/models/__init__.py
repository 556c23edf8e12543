"""
Typed records for both sides of the conversion.

Legacy rows are validated once, at the store boundary, into the models of
:mod:`.legacy`.  The mapper produces the models of :mod:`.target`, whose
aliases are the WordPress and GeoDirectory column names.
"""

from .legacy import LegacyCategory, LegacyListing, LegacyReview, LegacyUser
from .target import Comment, PlaceDetail, Post, Term, TermTaxonomy, User

__all__ = [
    "Comment",
    "LegacyCategory",
    "LegacyListing",
    "LegacyReview",
    "LegacyUser",
    "PlaceDetail",
    "Post",
    "Term",
    "TermTaxonomy",
    "User",
]
