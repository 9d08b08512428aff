"""Tests for PageManager CRUD and slug upserts."""

import pytest

from deploy_fakes import FakeResponse, FakeSession, FakeWordPress, make_client
from site_deployer.exceptions import ServerError
from site_deployer.pipeline.deployer import PageInput, PageManager
from site_deployer.pipeline.deployer.pages import build_request_body


def test_build_request_body_keeps_known_present_fields():
    assert build_request_body(
        {"title": "T", "slug": "t", "content": None, "parent": 0, "extra": 1}
    ) == {"title": "T", "slug": "t", "parent": 0}


@pytest.mark.asyncio
async def test_create_defaults_to_draft():
    wp = FakeWordPress()
    pages = PageManager(make_client(wp))

    page = await pages.create(PageInput(title="About", slug="about", content="<p>a</p>"))

    assert page.status == "draft"
    assert page.url == "https://wp.example/about/"
    _, _, _, body = wp.calls_to("POST", "/wp/v2/pages")[0]
    assert body == {"title": "About", "slug": "about", "content": "<p>a</p>", "status": "draft"}


@pytest.mark.asyncio
async def test_create_or_update_twice_leaves_one_page():
    wp = FakeWordPress()
    pages = PageManager(make_client(wp))

    first = await pages.create_or_update(
        PageInput(title="Home", slug="home", content="v1", status="publish")
    )
    second = await pages.create_or_update(
        PageInput(title="Home!", slug="home", content="v2", status="publish")
    )

    assert first.id == second.id
    assert len(wp.pages) == 1
    assert second.title == "Home!"
    assert second.content == "v2"
    assert len(wp.calls_to("POST", "/wp/v2/pages")) == 1
    assert len(wp.calls_to("PUT", "/wp/v2/pages")) == 1


@pytest.mark.asyncio
async def test_update_sends_only_given_fields():
    wp = FakeWordPress()
    page_id = wp.add_page("contact", title="Contact", content="old")
    pages = PageManager(make_client(wp))

    updated = await pages.update(page_id, {"content": "new"})

    _, path, _, body = wp.calls_to("PUT")[0]
    assert path == f"/wp/v2/pages/{page_id}"
    assert body == {"content": "new"}
    assert updated.title == "Contact"
    assert updated.content == "new"


@pytest.mark.asyncio
async def test_get_by_slug_returns_none_when_absent():
    session = FakeSession([FakeResponse(200, [])])
    pages = PageManager(make_client(session))
    assert await pages.get_by_slug("nope") is None
    assert session.calls[0].url.endswith("/wp/v2/pages?slug=nope")


@pytest.mark.asyncio
async def test_get_by_slug_propagates_lookup_failures():
    wp = FakeWordPress()
    wp.fail("GET", "/wp/v2/pages", status=502)
    pages = PageManager(make_client(wp))

    with pytest.raises(ServerError):
        await pages.create_or_update(PageInput(title="X", slug="x", content=""))
    assert wp.calls_to("POST") == []


@pytest.mark.asyncio
async def test_get_by_id_collapses_failures_to_none():
    wp = FakeWordPress()
    page_id = wp.add_page("team", title="Team")
    pages = PageManager(make_client(wp))

    assert (await pages.get_by_id(page_id)).title == "Team"
    assert await pages.get_by_id(424242) is None


@pytest.mark.asyncio
async def test_delete_to_trash_and_permanently():
    wp = FakeWordPress()
    keep = wp.add_page("old")
    gone = wp.add_page("older")
    pages = PageManager(make_client(wp))

    await pages.delete(keep, force=False)
    await pages.delete(gone)

    queries = [query for _, _, query, _ in wp.calls_to("DELETE")]
    assert queries == [{"force": "false"}, {"force": "true"}]


@pytest.mark.asyncio
async def test_list_all_requests_every_status():
    wp = FakeWordPress()
    wp.add_page("a")
    wp.add_page("b", status="publish")
    pages = PageManager(make_client(wp))

    listed = await pages.list_all()

    assert {p.slug for p in listed} == {"a", "b"}
    _, _, query, _ = wp.calls_to("GET", "/wp/v2/pages")[0]
    assert query == {"per_page": "100", "status": "any"}
