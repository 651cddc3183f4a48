"""Tests for the content-service page and project stores.  The service is replaced by httpx.MockTransport."""

import json
from datetime import datetime, timezone
from unittest.mock import patch

import httpx
import pytest

from pagewright.config import Settings
from pagewright.services.content_client import HttpPageStore, HttpProjectStore
from pagewright.services.publisher import build_publisher
from pagewright.services.stores import InMemoryPageStore, InMemoryProjectStore

_RealAsyncClient = httpx.AsyncClient

CLIENT = "pagewright.services.content_client.httpx.AsyncClient"


def _client_with(handler):
    def factory(*args, **kwargs):
        return _RealAsyncClient(*args, transport=httpx.MockTransport(handler), **kwargs)

    return factory


class TestHttpPageStore:
    async def test_lists_pages_in_scope(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "ok": True,
                    "data": {
                        "items": [
                            {
                                "id": "p1",
                                "slug": "/",
                                "title": "Home",
                                "isHome": True,
                                "documentTree": {"sections": []},
                                "seoFields": {"metaTitle": "Welcome"},
                                "version": 3,
                            },
                            {"_id": "p2", "slug": "about", "editorJson": {"sections": [{}]}},
                            {"slug": "no-id"},
                            "garbage",
                        ]
                    },
                },
            )

        store = HttpPageStore("https://content.example.com/")
        with patch(CLIENT, new=_client_with(handler)):
            pages = await store.list_pages("t1", "proj 1")

        [request] = seen
        assert request.method == "GET"
        assert str(request.url) == "https://content.example.com/projects/proj%201/pages"
        assert request.headers["X-Tenant-Id"] == "t1"

        assert [p.id for p in pages] == ["p1", "p2"]
        home, about = pages
        assert home.is_home
        assert home.title == "Home"
        assert home.seo_fields == {"metaTitle": "Welcome"}
        assert home.version == 3
        assert not about.is_home
        assert about.document_tree == {"sections": [{}]}
        assert about.version == 0

    async def test_bare_list_payload(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"id": "p1", "slug": "/", "is_home": True}])

        store = HttpPageStore("https://content.example.com")
        with patch(CLIENT, new=_client_with(handler)):
            pages = await store.list_pages("t1", "proj")

        assert pages[0].is_home

    async def test_navigation(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/projects/proj/navigation"
            return httpx.Response(
                200,
                json={"data": {"items": [{"label": "About", "pageId": "p2"}, {"label": "Home", "page_id": "p1"}]}},
            )

        store = HttpPageStore("https://content.example.com")
        with patch(CLIENT, new=_client_with(handler)):
            navigation = await store.get_navigation("t1", "proj")

        assert [(n.label, n.page_id) for n in navigation] == [("About", "p2"), ("Home", "p1")]

    async def test_http_error_propagates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, json={"error": "upstream"})

        store = HttpPageStore("https://content.example.com")
        with patch(CLIENT, new=_client_with(handler)):
            with pytest.raises(httpx.HTTPStatusError):
                await store.list_pages("t1", "proj")


class TestHttpProjectStore:
    async def test_get_project(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/projects/proj"
            return httpx.Response(
                200,
                json={
                    "ok": True,
                    "data": {
                        "project": {
                            "id": "proj",
                            "name": "Acme",
                            "siteName": "Acme Co",
                            "defaultLocale": "de",
                            "faviconAssetId": "fav",
                            "latestPublishId": "pub-1",
                            "publishedAt": "2026-01-02T03:04:05+00:00",
                        }
                    },
                },
            )

        store = HttpProjectStore("https://content.example.com")
        with patch(CLIENT, new=_client_with(handler)):
            project = await store.get_project("t1", "proj")

        assert project.id == "proj"
        assert project.tenant_id == "t1"
        assert project.site_name == "Acme Co"
        assert project.default_locale == "de"
        assert project.favicon_asset_id == "fav"
        assert project.latest_publish_id == "pub-1"
        assert project.published_at == datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    async def test_missing_project_is_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "not found"})

        store = HttpProjectStore("https://content.example.com")
        with patch(CLIENT, new=_client_with(handler)):
            assert await store.get_project("t1", "ghost") is None

    async def test_set_latest_publish(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "proj", "latestPublishId": "pub-2"})

        published_at = datetime(2026, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
        store = HttpProjectStore("https://content.example.com")
        with patch(CLIENT, new=_client_with(handler)):
            project = await store.set_latest_publish("t1", "proj", "pub-2", published_at)

        [request] = seen
        assert request.method == "PUT"
        assert request.url.path == "/projects/proj/publication"
        assert request.headers["X-Tenant-Id"] == "t1"
        assert json.loads(request.content) == {
            "latestPublishId": "pub-2",
            "publishedAt": "2026-05-06T07:08:09+00:00",
        }
        assert project.latest_publish_id == "pub-2"

    async def test_clear_latest_publish(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"data": {"id": "proj"}})

        store = HttpProjectStore("https://content.example.com")
        with patch(CLIENT, new=_client_with(handler)):
            project = await store.clear_latest_publish("t1", "proj")

        assert seen == [{"latestPublishId": None, "publishedAt": None}]
        assert project.latest_publish_id is None

    async def test_http_error_propagates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        store = HttpProjectStore("https://content.example.com")
        with patch(CLIENT, new=_client_with(handler)):
            with pytest.raises(httpx.HTTPStatusError):
                await store.clear_latest_publish("t1", "proj")


class TestBuildPublisherWiring:
    def test_content_service_when_configured(self):
        publisher = build_publisher(
            Settings(content_api_url="https://content.example.com", content_api_timeout=3.0)
        )
        assert isinstance(publisher.pages, HttpPageStore)
        assert isinstance(publisher.projects, HttpProjectStore)
        assert publisher.pages.base_url == "https://content.example.com"
        assert publisher.projects.timeout == 3.0

    def test_in_memory_stores_otherwise(self):
        publisher = build_publisher(Settings(content_api_url=None))
        assert isinstance(publisher.pages, InMemoryPageStore)
        assert isinstance(publisher.projects, InMemoryProjectStore)

    async def test_publish_through_content_service(self):
        puts = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "PUT":
                puts.append(json.loads(request.content))
                return httpx.Response(200, json={"id": "proj"})
            if request.url.path.endswith("/pages"):
                return httpx.Response(200, json={"items": [{"id": "p1", "slug": "/", "isHome": True}]})
            if request.url.path.endswith("/navigation"):
                return httpx.Response(200, json={"items": []})
            return httpx.Response(200, json={"id": "proj", "siteName": "Acme"})

        publisher = build_publisher(
            Settings(content_api_url="https://content.example.com", blob_backend="memory")
        )
        with patch(CLIENT, new=_client_with(handler)):
            record = await publisher.publish("t1", "proj")

        assert record.status == "live"
        assert f"{record.artifact_root}/index.html" in publisher.blobs.objects
        assert [body["latestPublishId"] for body in puts] == [record.id]
