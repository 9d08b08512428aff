"""Hand-written fakes shared by the deployer tests.

``FakeSession`` replays a scripted list of responses and records every call.
``FakeWordPress`` is a small in-memory WordPress that speaks enough of the
pages, media and menus routes for end-to-end deployment tests.
"""

from __future__ import annotations

import json
from types import SimpleNamespace
from urllib.parse import parse_qsl, urlsplit

from site_deployer.pipeline.deployer import WordPressClient, WordPressConfig

BASE_URL = "https://wp.example"


def make_config(**overrides) -> WordPressConfig:
    values = {
        "base_url": BASE_URL,
        "username": "admin",
        "app_password": "abcd efgh ijkl",
        "retry_attempts": 0,
        "retry_delay_ms": 100,
    }
    values.update(overrides)
    return WordPressConfig(**values)


def make_client(session, **overrides) -> WordPressClient:
    sleep = overrides.pop("sleep", None)
    limiter = overrides.pop("limiter", None)
    return WordPressClient(
        make_config(**overrides), session=session, sleep=sleep, limiter=limiter
    )


class RecordingSleep:
    """Awaitable replacement for ``asyncio.sleep`` that only records delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay):
        self.delays.append(delay)


class FakeResponse:
    def __init__(self, status=200, body=None, *, text=None, data=b"", headers=None):
        self.status = status
        if text is None:
            text = "" if body is None else json.dumps(body)
        self._text = text
        self._data = data
        self.headers = headers or {}

    async def text(self):
        return self._text

    async def read(self):
        return self._data

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Scripted session: each request pops the next response (or raises it)."""

    def __init__(self, responses=(), downloads=None):
        self.responses = list(responses)
        self.downloads = dict(downloads or {})
        self.calls: list[SimpleNamespace] = []
        self.downloaded: list[str] = []

    def request(self, method, url, **kwargs):
        self.calls.append(SimpleNamespace(method=method, url=url, **kwargs))
        reply = (
            self.responses.pop(0)
            if self.responses
            else FakeResponse(500, {"code": "no_reply", "message": "nothing queued"})
        )
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def get(self, url, **kwargs):
        self.downloaded.append(url)
        reply = self.downloads.get(url, FakeResponse(404))
        if isinstance(reply, BaseException):
            raise reply
        return reply


def page_payload(page_id, slug, *, title="Title", content="", status="draft"):
    return {
        "id": page_id,
        "slug": slug,
        "status": status,
        "link": f"{BASE_URL}/{slug}/",
        "title": {"rendered": title},
        "content": {"rendered": content},
        "parent": 0,
        "meta": {},
    }


def media_payload(media_id, filename="hero.jpg", *, title="hero", alt=""):
    return {
        "id": media_id,
        "slug": filename.rsplit(".", 1)[0],
        "status": "inherit",
        "link": f"{BASE_URL}/?attachment_id={media_id}",
        "title": {"rendered": title},
        "alt_text": alt,
        "media_type": "image",
        "mime_type": "image/jpeg",
        "source_url": f"{BASE_URL}/wp-content/uploads/{media_id}-{filename}",
    }


class FakeWordPress:
    """In-memory WordPress usable as the client's session.

    ``fail(method, path_prefix, status)`` makes matching requests answer with
    an error; ``when`` narrows the match on the decoded JSON body.
    """

    def __init__(self):
        self.pages: dict[int, dict] = {}
        self.media: dict[int, dict] = {}
        self.menus: list[dict] = []
        self.images: dict[str, object] = {}
        self.calls: list[tuple[str, str, dict, object]] = []
        self.downloaded: list[str] = []
        self._failures: list[tuple[str, str, int, object]] = []
        self._next_id = 100

    def add_image(self, url, data=b"\x89PNG fake", content_type="image/png"):
        self.images[url] = FakeResponse(
            200, data=data, headers={"Content-Type": content_type}
        )

    def add_page(self, slug, **fields):
        page_id = self._new_id()
        self.pages[page_id] = page_payload(page_id, slug, **fields)
        return page_id

    def fail(self, method, path_prefix, status=500, *, when=None):
        self._failures.append((method, path_prefix, status, when))

    def calls_to(self, method, path_prefix=""):
        return [c for c in self.calls if c[0] == method and c[1].startswith(path_prefix)]

    def _new_id(self):
        self._next_id += 1
        return self._next_id

    # aiohttp surface -----------------------------------------------------
    def get(self, url, **kwargs):
        self.downloaded.append(url)
        reply = self.images.get(url, FakeResponse(404))
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def request(self, method, url, **kwargs):
        parts = urlsplit(url)
        path = parts.path[len("/wp-json"):] if parts.path.startswith("/wp-json") else parts.path
        query = dict(parse_qsl(parts.query))
        body = json.loads(kwargs["data"]) if "data" in kwargs else None
        self.calls.append((method, path, query, body))

        for fail_method, prefix, status, when in self._failures:
            if method == fail_method and path.startswith(prefix) and (when is None or when(body)):
                return FakeResponse(
                    status, {"code": "injected", "message": f"Injected HTTP {status}"}
                )
        return self._route(method, path, query, body)

    def _route(self, method, path, query, body):
        segments = [s for s in path.split("/") if s]
        resource = segments[2] if len(segments) > 2 else ""
        item_id = int(segments[3]) if len(segments) > 3 else None

        if resource == "pages":
            return self._pages(method, item_id, query, body)
        if resource == "media":
            return self._media(method, item_id, body)
        if resource == "menus" and method == "POST":
            self.menus.append(body)
            return FakeResponse(201, {"id": len(self.menus), **body})
        return FakeResponse(404, {"code": "rest_no_route", "message": "No route"})

    def _not_found(self):
        return FakeResponse(404, {"code": "rest_post_invalid_id", "message": "Invalid post ID."})

    def _pages(self, method, item_id, query, body):
        if method == "GET" and item_id is None:
            found = list(self.pages.values())
            if "slug" in query:
                found = [p for p in found if p["slug"] == query["slug"]]
            return FakeResponse(200, found)
        if method == "POST" and item_id is None:
            page_id = self._new_id()
            self.pages[page_id] = page_payload(
                page_id,
                body["slug"],
                title=body["title"],
                content=body["content"],
                status=body["status"],
            )
            return FakeResponse(201, self.pages[page_id])
        if item_id not in self.pages:
            return self._not_found()
        page = self.pages[item_id]
        if method == "GET":
            return FakeResponse(200, page)
        if method == "PUT":
            for key in ("title", "content"):
                if key in body:
                    page[key] = {"rendered": body[key]}
            for key in ("status", "slug", "meta", "parent"):
                if key in body:
                    page[key] = body[key]
            return FakeResponse(200, page)
        if method == "DELETE":
            del self.pages[item_id]
            return FakeResponse(200, {"deleted": True, "previous": page})
        return FakeResponse(405, {"code": "rest_no_route", "message": "Method not allowed"})

    def _media(self, method, item_id, body):
        if method == "POST" and item_id is None:
            media_id = self._new_id()
            self.media[media_id] = media_payload(
                media_id, body["filename"], title=body["title"], alt=body["alt_text"]
            )
            self.media[media_id]["mime_type"] = body["mime_type"]
            return FakeResponse(201, self.media[media_id])
        if item_id not in self.media:
            return self._not_found()
        if method == "GET":
            return FakeResponse(200, self.media[item_id])
        if method == "DELETE":
            return FakeResponse(200, {"deleted": True, "previous": self.media.pop(item_id)})
        return FakeResponse(405, {"code": "rest_no_route", "message": "Method not allowed"})
