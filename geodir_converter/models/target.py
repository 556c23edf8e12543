from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class TargetRecord(BaseModel):
    """A row destined for a WordPress or GeoDirectory table.

    Field aliases are the column names, so :meth:`to_row` yields the
    mapping handed to :meth:`DuckDBStore.insert`.  Fields left unset
    (``None``) are omitted from the row and fall back to the column
    default.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Post(TargetRecord):
    id: int = Field(..., alias="ID")
    author: int = Field(..., alias="post_author")
    title: str = Field(..., alias="post_title")
    slug: str = Field(..., alias="post_name")
    excerpt: str = Field("", alias="post_excerpt")
    content: str = Field("", alias="post_content")
    created_at: str = Field(..., alias="post_date")
    created_at_gmt: str = Field(..., alias="post_date_gmt")
    updated_at: str = Field(..., alias="post_modified")
    updated_at_gmt: str = Field(..., alias="post_modified_gmt")
    status: str = Field(..., alias="post_status")
    parent_id: int = Field(0, alias="post_parent")
    guid: str
    type: str = Field(..., alias="post_type")
    comment_status: str = "open"
    ping_status: str = "closed"
    menu_order: int = 0
    comment_count: int = 0


class PlaceDetail(TargetRecord):
    post_id: int
    post_title: str
    post_status: str
    post_tags: Optional[str] = None
    post_category: Optional[str] = None
    default_category: Optional[int] = None
    featured_image: Optional[str] = None
    submit_ip: Optional[str] = None
    overall_rating: Optional[float] = None
    rating_count: Optional[float] = None
    street: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    zip: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    mapview: Optional[str] = None
    mapzoom: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None
    video: Optional[str] = None
    special_offers: Optional[str] = None
    business_hours: Optional[str] = None
    timing: Optional[str] = None
    price: Optional[str] = None
    featured: Optional[int] = None
    is_featured: Optional[int] = None
    claimed: Optional[int] = None
    expire_date: Optional[str] = None
    post_dummy: Optional[int] = None


class Term(TargetRecord):
    term_id: int
    name: str
    slug: str


class TermTaxonomy(TargetRecord):
    term_taxonomy_id: int
    term_id: int
    taxonomy: str
    parent: int = 0
    count: int = 0
    description: str = ""


class User(TargetRecord):
    id: int = Field(..., alias="ID")
    login: str = Field(..., alias="user_login")
    password_hash: str = Field("", alias="user_pass")
    nicename: str = Field(..., alias="user_nicename")
    email: str = Field("", alias="user_email")
    registered_at: str = Field(..., alias="user_registered")
    display_name: str


class Comment(TargetRecord):
    id: int = Field(..., alias="comment_ID")
    post_id: int = Field(..., alias="comment_post_ID")
    user_id: int = 0
    author: str = Field("", alias="comment_author")
    author_email: str = Field("", alias="comment_author_email")
    created_at: str = Field(..., alias="comment_date")
    created_at_gmt: str = Field(..., alias="comment_date_gmt")
    content: str = Field("", alias="comment_content")
    approved: str = Field("1", alias="comment_approved")
    agent: str = Field("", alias="comment_agent")
