"""Root test configuration: session cleanup and a fake WordPress REST API"""

import json
import shutil
from pathlib import Path

import httpx
import pytest

from wppub.client.wordpress import WordPressClient


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["wppub.db", "test.db"]
_CLEANUP_DIRS = [".wppub"]

SITE_URL = "https://blog.example.com"


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()
    for name in _CLEANUP_DIRS:
        p = _PROJECT_ROOT / name
        if p.exists():
            shutil.rmtree(p)


class FakeWordPress:
    """In-memory stand-in for the wp/v2 endpoints, served through httpx.MockTransport."""

    def __init__(self):
        self.posts: dict[int, dict] = {}
        self.categories: list[dict] = [{"id": 1, "name": "Uncategorized", "slug": "uncategorized", "parent": 0}]
        self.tags: list[dict] = []
        self.media: list[dict] = []
        self.requests: list[httpx.Request] = []
        self.fail_with: tuple[int, dict] | None = None
        self._next_id = 100

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with:
            status, payload = self.fail_with
            return httpx.Response(status, json=payload)

        path = request.url.path.split("/wp-json/wp/v2/", 1)[1]
        parts = path.split("/")
        body = json.loads(request.content) if request.content and request.method in ("POST", "PUT") \
            and request.headers.get("content-type", "").startswith("application/json") else None

        if path == "users/me":
            return httpx.Response(200, json={"id": 1, "name": "Admin", "slug": "admin"})

        if parts[0] in ("categories", "tags"):
            terms = self.categories if parts[0] == "categories" else self.tags
            if request.method == "GET":
                return httpx.Response(200, json=terms)
            term = {"id": self._new_id(), "name": body["name"], "slug": body["name"].lower(), "parent": 0}
            terms.append(term)
            return httpx.Response(201, json=term)

        if parts[0] in ("posts", "pages"):
            if len(parts) == 1 and request.method == "POST":
                post_id = self._new_id()
                post = {**body, "id": post_id, "type": parts[0][:-1], "link": f"{SITE_URL}/?p={post_id}"}
                self.posts[post_id] = post
                return httpx.Response(201, json=post)
            post_id = int(parts[1])
            if post_id not in self.posts:
                return httpx.Response(404, json={"code": "rest_post_invalid_id", "message": "Invalid post ID."})
            if request.method == "PUT":
                self.posts[post_id].update(body)
            return httpx.Response(200, json=self.posts[post_id])

        if path == "media":
            item = {"id": self._new_id(), "source_url": f"{SITE_URL}/uploads/file", "title": {"rendered": "file"}}
            self.media.append(item)
            return httpx.Response(201, json=item)

        return httpx.Response(404, json={"code": "rest_no_route", "message": "No route was found."})

    def client(self) -> WordPressClient:
        return WordPressClient(SITE_URL, "admin", "app pass", transport=httpx.MockTransport(self.handler))


@pytest.fixture(name="wp")
def wp_fixture():
    return FakeWordPress()


@pytest.fixture(name="client")
def client_fixture(wp):
    with wp.client() as c:
        yield c
