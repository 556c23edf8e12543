"""
Pure mapping from PhpMyDirectory records to WordPress / GeoDirectory records.

Currently this subpackage exposes the functions of
:mod:`geodir_converter.mappers.record_mapper`.
"""

from .record_mapper import (
    CATEGORY_TAXONOMY,
    POST_TYPE,
    ListingProfile,
    map_category,
    map_category_meta,
    map_listing,
    map_review,
    map_role,
    map_status,
    map_user,
    map_user_meta,
    verify_legacy_password,
)

__all__ = [
    "CATEGORY_TAXONOMY",
    "POST_TYPE",
    "ListingProfile",
    "map_category",
    "map_category_meta",
    "map_listing",
    "map_review",
    "map_role",
    "map_status",
    "map_user",
    "map_user_meta",
    "verify_legacy_password",
]
