"""
Field mapping from PhpMyDirectory records to WordPress / GeoDirectory records.

Every function in this module is pure: the same legacy record always maps
to the same target records, nothing is read from or written to a store,
and no filtering happens here.  Duplicate detection is the importer's job.

Listings can be mapped with two field sets.  The step-based importer and
the ``convert listing`` command historically produced different
``geodir_gd_place_detail`` rows for the same listing (social links,
contact fields, address split, rating count).  Both are kept behind
:class:`ListingProfile` so the difference stays visible and testable:

``ListingProfile.IMPORTER``
    Social handles become profile URLs, ``mail``/``www`` fill ``email``/
    ``website``, both address lines go to ``street``, the location texts
    become city and region, ``votes`` is the rating count.

``ListingProfile.COMMAND``
    Social handles are copied as-is, ``email``/``website``/``mapview``/
    ``mapzoom`` are blank, the address lines become street and city, the
    location texts become region and country, ``rating`` doubles as the
    rating count, ``post_category`` is the primary category only, and
    ``claimed``/``is_featured``/``expire_date`` are set.
"""

from __future__ import annotations

import hashlib
import hmac
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from geodir_converter.models.legacy import LegacyCategory, LegacyListing, LegacyReview, LegacyUser
from geodir_converter.models.target import Comment, PlaceDetail, Post, Term, TermTaxonomy, User

POST_TYPE = "place"
CATEGORY_TAXONOMY = "place-category"
PLACES_PATH = "/places/"
TWITTER_BASE_URL = "http://twitter.com/"
FACEBOOK_BASE_URL = "http://facebook.com/"
DEFAULT_AUTHOR_ID = 1
DEFAULT_DATE = "1970-01-01 00:00:00"

STATUS_MAP: Dict[str, str] = {
    "active": "publish",
    "suspended": "trash",
}

# PMD user group id -> WordPress role
ROLE_MAP: Dict[int, str] = {
    1: "administrator",
    2: "editor",
    3: "author",
}
DEFAULT_ROLE = "subscriber"

CATEGORY_DESCRIPTION_META = "ct_cat_top_desc"
COMMENT_AGENT = "geodir-converter"
LEGACY_PASSWORD_META = ("pmd_password_hash", "pmd_password_salt")


class ListingProfile(str, Enum):
    IMPORTER = "importer"
    COMMAND = "command"


def map_status(value: Optional[str]) -> str:
    """Translate a PMD listing status into a WordPress post status.

    ``active`` becomes ``publish`` and ``suspended`` becomes ``trash``;
    any other value is returned unchanged.  A missing status maps to ``""``.
    """
    if value is None:
        return ""
    return STATUS_MAP.get(value, value)


def map_role(group_id: Optional[int]) -> str:
    return ROLE_MAP.get(group_id or 0, DEFAULT_ROLE)


def listing_slug(listing: LegacyListing) -> str:
    return listing.friendly_url or f"listing-{listing.id}"


def _prefixed(base_url: str, handle: Optional[str]) -> str:
    return f"{base_url}{handle}" if handle else ""


def _category_field(listing: LegacyListing, category_ids: Optional[Iterable[int]]) -> str:
    ids = [str(c) for c in (category_ids or []) if c]
    if ids:
        return ",".join(ids)
    if listing.primary_category_id:
        return str(listing.primary_category_id)
    return ""


def map_listing(
    listing: LegacyListing,
    *,
    site_url: str,
    category_ids: Optional[Iterable[int]] = None,
    profile: ListingProfile = ListingProfile.IMPORTER,
    default_date: str = DEFAULT_DATE,
) -> Tuple[Post, PlaceDetail]:
    """Build the ``posts`` row and the ``geodir_gd_place_detail`` row for a listing.

    :param listing: The validated legacy listing.  Its ``id`` must be set.
    :param site_url: Base URL of the WordPress site, used for the ``guid``.
    :param category_ids: Category ids linked to the listing.  Falls back to
        ``primary_category_id`` when empty.
    :param profile: Which place-detail field set to produce.
    :param default_date: Used when the listing has no creation or update date.
    :return: A ``(Post, PlaceDetail)`` pair.
    """
    if listing.id is None:
        raise ValueError("Cannot map a listing without an id")

    slug = listing_slug(listing)
    title = listing.title or "NO TITLE"
    status = map_status(listing.status)
    created = listing.date or default_date
    updated = listing.date_update or created

    post = Post(
        id=listing.id,
        author=listing.user_id or DEFAULT_AUTHOR_ID,
        title=title,
        slug=slug,
        excerpt=listing.description_short or "",
        content=listing.description or "",
        created_at=created,
        created_at_gmt=created,
        updated_at=updated,
        updated_at_gmt=updated,
        status=status,
        parent_id=0,
        guid=f"{site_url.rstrip('/')}{PLACES_PATH}{slug}",
        type=POST_TYPE,
        comment_status="open",
        ping_status="closed",
        menu_order=0,
        comment_count=0,
    )

    common = dict(
        post_id=listing.id,
        post_title=title,
        post_status=status,
        post_tags="",
        post_category=_category_field(listing, category_ids),
        default_category=listing.primary_category_id or 0,
        featured_image="",
        submit_ip=listing.ip or "",
        overall_rating=listing.rating or 0,
        zip=listing.listing_zip or "",
        latitude=listing.latitude or "",
        longitude=listing.longitude or "",
        mapview="",
        mapzoom="",
        phone=listing.phone or "",
        video="",
        special_offers="",
    )

    if profile == ListingProfile.COMMAND:
        detail = PlaceDetail(
            **{**common, "post_category": str(listing.primary_category_id or "")},
            rating_count=listing.rating or 0,
            street=listing.listing_address1 or "",
            city=listing.listing_address2 or "",
            region=listing.location_text_1 or "",
            country=listing.location_text_2 or "",
            email="",
            website="",
            twitter=listing.twitter_id or "",
            facebook=listing.facebook_page_id or "",
            timing="",
            price="",
            claimed=listing.claimed or 0,
            is_featured=listing.featured or 0,
            expire_date=listing.pagerank_expiration,
            post_dummy=0,
        )
    else:
        street = "\n".join(
            line for line in (listing.listing_address1, listing.listing_address2) if line
        )
        detail = PlaceDetail(
            **common,
            rating_count=(listing.votes or 0) if listing.rating else 0,
            street=street,
            city=listing.location_text_1 or "",
            region=listing.location_text_2 or "",
            country="",
            email=listing.mail or "",
            website=listing.www or "",
            twitter=_prefixed(TWITTER_BASE_URL, listing.twitter_id),
            facebook=_prefixed(FACEBOOK_BASE_URL, listing.facebook_page_id),
            business_hours=listing.hours or "",
            featured=listing.featured or 0,
        )

    return post, detail


def map_category(category: LegacyCategory) -> Tuple[Term, TermTaxonomy]:
    if category.id is None:
        raise ValueError("Cannot map a category without an id")

    term = Term(
        term_id=category.id,
        name=category.title or f"Category {category.id}",
        slug=category.friendly_url or f"category-{category.id}",
    )
    taxonomy = TermTaxonomy(
        term_taxonomy_id=category.id,
        term_id=category.id,
        taxonomy=CATEGORY_TAXONOMY,
        parent=category.parent_id or 0,
        count=category.count_total or 0,
        description=category.description or "",
    )
    return term, taxonomy


def map_category_meta(category: LegacyCategory) -> List[Dict[str, str]]:
    """Return the ``termmeta`` entries for a category: its description, when it has one."""
    if not category.description:
        return []
    return [{"meta_key": CATEGORY_DESCRIPTION_META, "meta_value": category.description}]


def display_name(user: LegacyUser) -> str:
    """First and last name joined by one space, or the login without a first name."""
    if user.user_first_name:
        return f"{user.user_first_name} {user.user_last_name or ''}"
    return user.login or ""


def map_user(user: LegacyUser, *, default_date: str = DEFAULT_DATE) -> User:
    """Map a PMD user to a WordPress user.

    The PMD password hash is copied unchanged.  WordPress cannot verify it,
    so imported users have to reset their password (see :func:`map_user_meta`).
    """
    if user.id is None or not user.login:
        raise ValueError("Cannot map a user without an id and a login")

    return User(
        id=user.id,
        login=user.login,
        password_hash=user.pass_ or "",
        nicename=user.login,
        email=user.user_email or "",
        registered_at=user.created or default_date,
        display_name=display_name(user),
    )


def capabilities_value(role: str) -> str:
    """Serialize ``{role: true}`` the way WordPress stores ``wp_capabilities``."""
    return f'a:1:{{s:{len(role.encode("utf-8"))}:"{role}";b:1;}}'


def map_user_meta(
    user: LegacyUser, *, role: str = DEFAULT_ROLE, table_prefix: str = "wp_"
) -> List[Dict[str, str]]:
    """Return the ``usermeta`` entries (``meta_key``/``meta_value``) for an imported user."""
    meta = [
        ("first_name", user.user_first_name or ""),
        ("last_name", user.user_last_name or ""),
        ("default_password_nag", "1"),
        (f"{table_prefix}capabilities", capabilities_value(role)),
    ]
    hash_key, salt_key = LEGACY_PASSWORD_META
    if user.password_hash:
        meta.append((hash_key, user.password_hash))
    if user.password_salt:
        meta.append((salt_key, user.password_salt))
    return [{"meta_key": key, "meta_value": value} for key, value in meta]


def verify_legacy_password(
    password: str, stored_hash: str, algorithm: Optional[str], salt: Optional[str] = None
) -> bool:
    """Check a login password against the hash copied from PMD.

    PMD hashed ``password + salt`` or ``salt + password`` with ``md5`` or
    ``sha256``; both orders are accepted.  Any other algorithm never matches.
    """
    if algorithm not in ("md5", "sha256") or not stored_hash:
        return False
    salt = salt or ""
    expected = stored_hash.lower()
    for candidate in (password + salt, salt + password):
        digest = hashlib.new(algorithm, candidate.encode("utf-8")).hexdigest()
        if hmac.compare_digest(digest, expected):
            return True
    return False


def map_review(
    review: LegacyReview, *, author: Optional[LegacyUser] = None, default_date: str = DEFAULT_DATE
) -> Comment:
    """Map a PMD review to a comment on the listing it was written for.

    Only ``active`` reviews are approved.  Author name and email come from
    the PMD user who wrote the review, when known.
    """
    if review.id is None or review.listing_id is None:
        raise ValueError("Cannot map a review without an id and a listing id")

    created = review.date or default_date
    name = ""
    if author is not None and (author.user_first_name or author.user_last_name):
        name = f"{author.user_first_name or ''} {author.user_last_name or ''}"
    return Comment(
        id=review.id,
        post_id=review.listing_id,
        user_id=review.user_id or 0,
        author=name,
        author_email=(author.user_email or "") if author is not None else "",
        created_at=created,
        created_at_gmt=created,
        content=review.review or "",
        approved="1" if review.status == "active" else "0",
        agent=COMMENT_AGENT,
    )
