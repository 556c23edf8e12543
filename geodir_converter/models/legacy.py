from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# MySQL "zero" dates are common in PMD dumps and carry no information.
_ZERO_DATE_PREFIX = "0000-00-00"


def _blank_to_none(value: Any) -> Any:
    # Only all-blank strings are missing; other text is kept as-is.
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _normalize_datetime(value: Any) -> Optional[str]:
    """Return ``value`` as a ``YYYY-MM-DD HH:MM:SS`` string, or ``None``."""
    value = _blank_to_none(value)
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d 00:00:00")
    text = str(value).strip()
    if text.startswith(_ZERO_DATE_PREFIX):
        return None
    if len(text) == 10:
        text += " 00:00:00"
    return text


class LegacyRecord(BaseModel):
    """Common behaviour for rows read from the PMD database.

    Columns the converter does not use are ignored, and empty strings are
    treated as missing values so the mapper only has to test for ``None``.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[int] = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_strings(cls, v: Any) -> Any:
        return _blank_to_none(v)


class LegacyListing(LegacyRecord):
    user_id: Optional[int] = None
    title: Optional[str] = None
    friendly_url: Optional[str] = None
    description: Optional[str] = None
    description_short: Optional[str] = Field(
        None, validation_alias=AliasChoices("description_short", "description_Short")
    )
    date: Optional[str] = None
    date_update: Optional[str] = None
    primary_category_id: Optional[int] = None
    ip: Optional[str] = None
    rating: Optional[float] = None
    votes: Optional[int] = None
    listing_address1: Optional[str] = None
    listing_address2: Optional[str] = None
    location_text_1: Optional[str] = None
    location_text_2: Optional[str] = None
    listing_zip: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    phone: Optional[str] = None
    twitter_id: Optional[str] = None
    facebook_page_id: Optional[str] = None
    claimed: Optional[int] = None
    featured: Optional[int] = None
    pagerank_expiration: Optional[str] = None
    status: Optional[str] = None
    www: Optional[str] = None
    mail: Optional[str] = None
    hours: Optional[str] = None

    @field_validator("date", "date_update", "pagerank_expiration", mode="before")
    @classmethod
    def _dates(cls, v: Any) -> Optional[str]:
        return _normalize_datetime(v)

    @field_validator(
        "listing_zip", "latitude", "longitude", "phone", "twitter_id", "facebook_page_id",
        mode="before",
    )
    @classmethod
    def _as_text(cls, v: Any) -> Any:
        # Numeric-looking columns (zip codes, coordinates) are stored as text downstream.
        if isinstance(v, (int, float, Decimal)) and not isinstance(v, bool):
            return str(v)
        return v


class LegacyCategory(LegacyRecord):
    title: Optional[str] = None
    friendly_url: Optional[str] = None
    parent_id: Optional[int] = None
    count_total: Optional[int] = None
    description: Optional[str] = None


class LegacyUser(LegacyRecord):
    login: Optional[str] = None
    pass_: Optional[str] = Field(None, alias="pass")
    user_email: Optional[str] = None
    created: Optional[str] = None
    user_first_name: Optional[str] = None
    user_last_name: Optional[str] = None
    password_hash: Optional[str] = None
    password_salt: Optional[str] = None

    @field_validator("created", mode="before")
    @classmethod
    def _created(cls, v: Any) -> Optional[str]:
        return _normalize_datetime(v)


class LegacyReview(LegacyRecord):
    status: Optional[str] = None
    listing_id: Optional[int] = None
    user_id: Optional[int] = None
    date: Optional[str] = None
    review: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v: Any) -> Optional[str]:
        return _normalize_datetime(v)
