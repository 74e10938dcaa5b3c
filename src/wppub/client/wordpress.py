"""WordPress REST API client (wp-json/wp/v2) using application-password auth"""

import logging
from typing import Any, Optional

import httpx

from wppub.core.models import ConnectionResult, Media, Post, PublishResult, Term, User


logger = logging.getLogger(__name__)


class WordPressError(Exception):
    """Raised when the WordPress API answers with an error or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _endpoint(post_type: str, post_id: Optional[int] = None) -> str:
    base = 'pages' if post_type == 'page' else 'posts'
    return f'{base}/{post_id}' if post_id is not None else base


class WordPressClient:
    """Thin synchronous client for the endpoints the publisher needs."""

    def __init__(
        self,
        site_url: str,
        username: str,
        application_password: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        ):
        self.site_url = site_url.rstrip('/')
        self._http = httpx.Client(
            base_url=f'{self.site_url}/wp-json/wp/v2/',
            auth=httpx.BasicAuth(username, application_password),
            headers={'Accept': 'application/json'},
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> 'WordPressClient':
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def api_url(self, endpoint: str) -> str:
        return f'{self.site_url}/wp-json/wp/v2/{endpoint}'

    def request(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: Optional[dict] = None,
        **kwargs,
        ) -> Any:
        """Send an authenticated request and return the decoded JSON body."""
        logger.debug("%s %s", method, self.api_url(endpoint))
        try:
            response = self._http.request(method, endpoint, json=json, params=params, **kwargs)
        except httpx.HTTPError as e:
            raise WordPressError(f"Request to {self.api_url(endpoint)} failed: {e}") from e

        logger.debug("Response status: %s", response.status_code)
        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = payload.get('message') if isinstance(payload, dict) else None
            logger.error("API error %s on %s: %s", response.status_code, endpoint, payload)
            raise WordPressError(message or f"HTTP {response.status_code}: Request failed", response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise WordPressError(f"Invalid JSON from {self.api_url(endpoint)}") from e

    def test_connection(self) -> ConnectionResult:
        """Check credentials by fetching the authenticated user."""
        try:
            user = User.model_validate(self.request('GET', 'users/me'))
        except (WordPressError, ValueError) as e:
            return ConnectionResult(success=False, message=str(e) or "Connection failed")
        return ConnectionResult(success=True, message=f"Connected as {user.name}", user=user)

    def get_categories(self) -> list[Term]:
        return [Term.model_validate(c) for c in self.request('GET', 'categories', params={'per_page': 100})]

    def get_tags(self) -> list[Term]:
        return [Term.model_validate(t) for t in self.request('GET', 'tags', params={'per_page': 100})]

    def _get_or_create(self, endpoint: str, kind: str, existing: list[Term], name: str) -> Term:
        for term in existing:
            if term.name.lower() == name.lower():
                return term
        logger.info("Creating %s '%s'", kind, name)
        return Term.model_validate(self.request('POST', endpoint, json={'name': name}))

    def get_or_create_category(self, name: str) -> Term:
        """Return the category named name (case-insensitive), creating it if missing."""
        return self._get_or_create('categories', 'category', self.get_categories(), name)

    def get_or_create_tag(self, name: str) -> Term:
        """Return the tag named name (case-insensitive), creating it if missing."""
        return self._get_or_create('tags', 'tag', self.get_tags(), name)

    def create_post(self, post: Post) -> PublishResult:
        """Create a post or page. API failures are returned, not raised."""
        endpoint = _endpoint(post.type)
        logger.info("Creating %s '%s' (%s, %d chars)", post.type, post.title, post.status, len(post.content))
        try:
            result = self.request('POST', endpoint, json=post.model_dump(exclude_none=True))
        except WordPressError as e:
            logger.error("Error creating %s: %s", post.type, e)
            return PublishResult(success=False, error=str(e) or "Failed to create post")

        if not isinstance(result, dict) or not result.get('id'):
            logger.error("Invalid response creating %s: %s", post.type, result)
            return PublishResult(success=False, error="WordPress returned an invalid response (no post ID)")
        return PublishResult(success=True, post_id=result['id'], post_url=result.get('link'))

    def update_post(self, post_id: int, post: Post) -> PublishResult:
        """Update an existing post or page. API failures are returned, not raised."""
        logger.info("Updating %s #%d '%s'", post.type, post_id, post.title)
        try:
            result = self.request('PUT', _endpoint(post.type, post_id), json=post.model_dump(exclude_none=True))
        except WordPressError as e:
            logger.error("Error updating %s #%d: %s", post.type, post_id, e)
            return PublishResult(success=False, error=str(e) or "Failed to update post")

        if not isinstance(result, dict):
            logger.error("Invalid response updating %s #%d: %s", post.type, post_id, result)
            return PublishResult(success=False, error="WordPress returned an invalid response")
        return PublishResult(success=True, post_id=result.get('id', post_id), post_url=result.get('link'))

    def get_post(self, post_id: int, post_type: str = 'post') -> Optional[dict]:
        """Fetch a post or page by id, or None if it cannot be retrieved."""
        try:
            return self.request('GET', _endpoint(post_type, post_id))
        except WordPressError as e:
            logger.warning("Could not fetch %s #%d: %s", post_type, post_id, e)
            return None

    def upload_media(self, filename: str, data: bytes, mime_type: str) -> Optional[Media]:
        """Upload a file to the media library, or None on failure."""
        try:
            result = self.request(
                'POST', 'media',
                content=data,
                headers={
                    'Content-Type': mime_type,
                    'Content-Disposition': f'attachment; filename="{filename}"',
                },
            )
        except WordPressError as e:
            logger.error("Media upload failed for %s: %s", filename, e)
            return None
        return Media.model_validate(result)
