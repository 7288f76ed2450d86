"""
Minimal async client for the GitHub releases API.

One GithubClient is created per incoming request, carrying that request's
credential, and closed when the request is done. Nothing is cached or reused
across requests.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Dict, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from pigi.core.config import DEFAULT_GITHUB_API_URL
from pigi.domain.models import Asset, Release

logger = logging.getLogger(__name__)

USER_AGENT = "pigi"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_JSON_MEDIA_TYPE = "application/vnd.github+json"
OCTET_STREAM_MEDIA_TYPE = "application/octet-stream"
RELEASES_PER_PAGE = 100

# Upstream response headers passed through to the installer with an asset.
FORWARDED_ASSET_HEADERS = (
    "content-type",
    "content-length",
    "content-encoding",
    "content-disposition",
    "etag",
    "last-modified",
)

_RELEASES = TypeAdapter(List[Release])


class UpstreamError(Exception):
    """Raised when GitHub cannot be reached or does not answer successfully."""


class AssetStream:
    """
    An open asset download whose body has not been read yet.

    Owns both the upstream response and the client that produced it; both are
    released once ``iter_bytes()`` finishes or ``aclose()`` is called.
    """

    def __init__(self, response: httpx.Response, client: httpx.AsyncClient):
        self._response = response
        self._client = client

    @property
    def headers(self) -> Dict[str, str]:
        return {
            name: self._response.headers[name]
            for name in FORWARDED_ASSET_HEADERS
            if name in self._response.headers
        }

    @property
    def media_type(self) -> str:
        return self._response.headers.get("content-type", OCTET_STREAM_MEDIA_TYPE)

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """
        Yield the asset body exactly as GitHub sends it, chunk by chunk.

        Each chunk is read from upstream only when the consumer asks for it.
        """
        try:
            async for chunk in self._response.aiter_raw():
                yield chunk
        except httpx.HTTPError as e:
            logger.warning("Asset download from %s aborted: %s", self._response.url, e)
            raise UpstreamError("Asset download aborted") from e
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        await self._response.aclose()
        await self._client.aclose()


class GithubClient:
    """
    GitHub REST client bound to a single credential.

    Example:

        async with GithubClient(token) as client:
            assets = await client.list_assets("my-org", "my-repo")
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = DEFAULT_GITHUB_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {
            "User-Agent": USER_AGENT,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "Accept": GITHUB_JSON_MEDIA_TYPE,
        }
        if token:
            headers["Authorization"] = f"token {token}"

        # Asset downloads redirect to a storage host; httpx drops the
        # Authorization header when a redirect leaves the API origin.
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "GithubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, url: str, **kwargs) -> httpx.Response:
        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("GitHub request to %s failed: %s", url, e)
            raise UpstreamError(f"Request to {url} failed") from e
        return response

    def _next_page(self, response: httpx.Response) -> Optional[str]:
        next_link = response.links.get("next")
        if not next_link or "url" not in next_link:
            return None
        next_url = httpx.URL(next_link["url"])
        # Never send the credential to a host other than the API itself.
        if next_url.host != self._client.base_url.host:
            logger.warning("Ignoring next page link to foreign host %s", next_url.host)
            return None
        return str(next_url)

    async def list_assets(self, owner: str, repo: str) -> List[Asset]:
        """
        Return the assets of every release of ``owner/repo``.

        Releases are walked in GitHub's order (newest first) and each
        release's assets keep their own order; all pages are followed.
        """
        assets: List[Asset] = []
        url: Optional[str] = f"/repos/{owner}/{repo}/releases"
        params: Optional[Dict[str, int]] = {"per_page": RELEASES_PER_PAGE}

        while url is not None:
            response = await self._get(url, params=params)
            try:
                releases = _RELEASES.validate_json(response.content)
            except ValidationError as e:
                logger.warning("Unexpected releases payload for %s/%s: %s", owner, repo, e)
                raise UpstreamError(f"Malformed releases response for {owner}/{repo}") from e

            for release in releases:
                assets.extend(release.assets)

            url = self._next_page(response)
            # The next link already carries its own query string.
            params = None

        logger.debug("Listed %d assets for %s/%s", len(assets), owner, repo)
        return assets

    async def open_asset_stream(self, owner: str, repo: str, asset_id: int) -> AssetStream:
        """
        Start downloading release asset ``asset_id`` of ``owner/repo``.

        The status is checked before returning, so failures surface here as
        UpstreamError rather than halfway through the body. On success the
        returned AssetStream takes ownership of this client.
        """
        url = f"/repos/{owner}/{repo}/releases/assets/{asset_id}"
        request = self._client.build_request(
            "GET", url, headers={"Accept": OCTET_STREAM_MEDIA_TYPE}
        )
        logger.debug("GET %s (stream)", url)

        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.warning("GitHub request to %s failed: %s", url, e)
            raise UpstreamError(f"Request to {url} failed") from e

        if not response.is_success:
            await response.aclose()
            logger.warning("GitHub request to %s failed with status %d", url, response.status_code)
            raise UpstreamError(f"Request to {url} failed with status {response.status_code}")

        return AssetStream(response, self._client)
