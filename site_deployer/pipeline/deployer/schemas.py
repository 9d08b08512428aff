"""Pydantic schemas for WordPress REST API responses.

Remote payloads are validated here before they are mapped onto the pipeline's
own result types, so that a structurally unexpected answer surfaces as a
``ResponseFormatError`` at the boundary instead of a ``KeyError`` deep inside
the orchestrator. Unknown fields are ignored; WordPress returns many more
keys than the deployer needs.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from site_deployer.exceptions import ResponseFormatError


class _WPModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class WPRendered(_WPModel):
    """Rendered-content wrapper used for title, content, caption, guid."""

    rendered: str
    protected: bool | None = None


class WPError(_WPModel):
    """Error body returned by WordPress for non-2xx responses."""

    code: str
    message: str
    data: dict[str, Any] | None = None


WPStatus = Literal[
    "publish",
    "future",
    "draft",
    "pending",
    "private",
    "trash",
    "auto-draft",
    "inherit",
]


class WPMediaSize(_WPModel):
    file: str
    width: int
    height: int
    source_url: str
    mime_type: str


class WPMediaDetails(_WPModel):
    width: int | None = None
    height: int | None = None
    file: str | None = None
    sizes: dict[str, WPMediaSize] | None = None


class WPMedia(_WPModel):
    """Attachment object returned by ``/wp/v2/media``."""

    id: int
    date: str | None = None
    date_gmt: str | None = None
    guid: WPRendered | None = None
    modified: str | None = None
    slug: str
    status: str
    type: str | None = None
    link: str
    title: WPRendered
    author: int | None = None
    caption: WPRendered | None = None
    alt_text: str
    media_type: str
    mime_type: str
    source_url: str
    media_details: WPMediaDetails | None = None


class WPPage(_WPModel):
    """Page object returned by ``/wp/v2/pages``."""

    id: int
    date: str | None = None
    date_gmt: str | None = None
    guid: WPRendered | None = None
    modified: str | None = None
    slug: str
    status: WPStatus
    type: str | None = None
    link: str
    title: WPRendered
    content: WPRendered
    excerpt: WPRendered | None = None
    author: int | None = None
    featured_media: int | None = None
    parent: int | None = None
    menu_order: int | None = None
    template: str | None = None
    meta: dict[str, Any] | list[Any] | None = None


class WPUser(_WPModel):
    """Authenticated user, as returned by ``/wp/v2/users/me``."""

    id: int
    name: str
    slug: str
    username: str | None = None
    email: str | None = None
    url: str | None = None
    link: str | None = None
    roles: list[str] = Field(default_factory=list)


def _validate(model: type[_WPModel], data: Any, what: str) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ResponseFormatError(
            f"Unexpected {what} payload from WordPress",
            context={"errors": exc.errors(include_url=False)},
        ) from exc


def parse_wp_page(data: Any) -> WPPage:
    """Validate a page payload, raising ResponseFormatError on mismatch."""
    return _validate(WPPage, data, "page")


def parse_wp_media(data: Any) -> WPMedia:
    """Validate a media payload, raising ResponseFormatError on mismatch."""
    return _validate(WPMedia, data, "media")


def parse_wp_user(data: Any) -> WPUser:
    return _validate(WPUser, data, "user")


def parse_wp_error(data: Any) -> WPError:
    return _validate(WPError, data, "error")


def is_wp_error(data: Any) -> bool:
    """Return True if ``data`` looks like a WordPress error body."""
    try:
        WPError.model_validate(data)
    except ValidationError:
        return False
    return True
