"""Page manager: create, update and upsert WordPress pages by slug.

Maps the pipeline's page input onto ``/wp/v2/pages`` calls and back onto a
flat :class:`Page`. ``create_or_update`` is the upsert the orchestrator relies
on for re-deployability: deploying the same slug twice yields one remote page.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from site_deployer.config import DEFAULT_PAGE_STATUS, LIST_PAGE_SIZE, PAGES_ENDPOINT
from site_deployer.exceptions import AppError

from .client import WordPressClient
from .schemas import WPPage, parse_wp_page

logger = logging.getLogger(__name__)

_WRITABLE_FIELDS = ("title", "slug", "content", "status", "meta", "parent")


@dataclass(frozen=True)
class Page:
    id: int
    slug: str
    title: str
    content: str
    url: str
    status: str
    parent: int | None = None


@dataclass(frozen=True)
class PageInput:
    """Fields accepted when creating a page; ``status`` defaults to draft."""

    title: str
    slug: str
    content: str
    status: str | None = None
    meta: dict[str, Any] | None = None
    parent: int | None = None


def _to_page(wp_page: WPPage) -> Page:
    return Page(
        id=wp_page.id,
        slug=wp_page.slug,
        title=wp_page.title.rendered,
        content=wp_page.content.rendered,
        url=wp_page.link,
        status=wp_page.status,
        parent=wp_page.parent,
    )


def build_request_body(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Keep only known, present (non-None) fields.

    Examples
    --------
    >>> build_request_body({"title": "T", "content": None, "bogus": 1})
    {'title': 'T'}
    """
    return {
        key: fields[key]
        for key in _WRITABLE_FIELDS
        if key in fields and fields[key] is not None
    }


class PageManager:
    """CRUD and upsert for WordPress pages.

    Parameters
    ----------
    client : WordPressClient
        Authenticated REST client.
    """

    def __init__(self, client: WordPressClient) -> None:
        self.client = client

    async def create(self, page: PageInput) -> Page:
        """Create a page. Never publishes unless ``status`` says so."""
        body = build_request_body(
            {
                "title": page.title,
                "slug": page.slug,
                "content": page.content,
                "status": page.status or DEFAULT_PAGE_STATUS,
                "meta": page.meta,
                "parent": page.parent,
            }
        )
        created = _to_page(parse_wp_page(await self.client.post(PAGES_ENDPOINT, body)))
        logger.info(f"Created page '{created.slug}' (id={created.id}, {created.status})")
        return created

    async def update(self, page_id: int, changes: Mapping[str, Any]) -> Page:
        """Partially update a page; only fields present in ``changes`` are sent."""
        body = build_request_body(changes)
        updated = _to_page(
            parse_wp_page(await self.client.put(f"{PAGES_ENDPOINT}/{page_id}", body))
        )
        logger.info(f"Updated page '{updated.slug}' (id={updated.id}, {updated.status})")
        return updated

    async def delete(self, page_id: int, *, force: bool = True) -> None:
        """Delete a page permanently, or move it to the trash when ``force`` is False."""
        await self.client.delete(f"{PAGES_ENDPOINT}/{page_id}", {"force": force})

    async def get_by_slug(self, slug: str, *, status: str | None = None) -> Page | None:
        """Return the first page with ``slug``, or None if there is none.

        Lookup failures propagate: an upsert must not mistake an outage for
        absence and create a duplicate.
        """
        results = await self.client.get(PAGES_ENDPOINT, {"slug": slug, "status": status})
        if not results:
            return None
        return _to_page(parse_wp_page(results[0]))

    async def get_by_id(self, page_id: int) -> Page | None:
        """Return the page, or None if it cannot be fetched for any reason."""
        try:
            data = await self.client.get(f"{PAGES_ENDPOINT}/{page_id}")
            return _to_page(parse_wp_page(data))
        except AppError as exc:
            logger.debug(f"Page {page_id} lookup failed: {exc}")
            return None

    async def list_all(self) -> list[Page]:
        results = await self.client.get(
            PAGES_ENDPOINT, {"per_page": LIST_PAGE_SIZE, "status": "any"}
        )
        return [_to_page(parse_wp_page(item)) for item in results or []]

    async def create_or_update(self, page: PageInput) -> Page:
        """Upsert by slug.

        Parameters
        ----------
        page : PageInput
            Desired state of the page.

        Returns
        -------
        Page
            The updated page when one with the same slug exists, otherwise the
            newly created one.
        """
        existing = await self.get_by_slug(page.slug)
        if existing is not None:
            return await self.update(
                existing.id,
                {
                    "title": page.title,
                    "content": page.content,
                    "status": page.status,
                    "meta": page.meta,
                    "parent": page.parent,
                },
            )
        return await self.create(page)
