"""Async Docker Registry HTTP API v2 client."""

import re
import ssl
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin

import aiohttp
import certifi
from aiohttp import ClientTimeout

from ..errors import RegistryAuthenticationError, RegistryNotFound
from ..utils.logging import get_logger
from ..utils.performance import PerformanceMonitor

MANIFEST_MEDIA_TYPES = ", ".join([
    "application/vnd.docker.distribution.manifest.v2+json",
    "application/vnd.docker.distribution.manifest.list.v2+json",
    "application/vnd.oci.image.manifest.v1+json",
    "application/vnd.oci.image.index.v1+json",
])

_CHALLENGE_PARAM = re.compile(r'(\w+)="([^"]*)"')
_NEXT_LINK = re.compile(r'<([^>]+)>\s*;\s*rel="?next"?')


def parse_auth_challenge(header: str) -> Tuple[str, Dict[str, str]]:
    """Split a ``WWW-Authenticate`` header into its scheme and parameters.

    Args:
        header: Header value, e.g. ``Bearer realm="https://auth",service="x"``

    Returns:
        Lower-cased scheme and a dict of parameters
    """
    scheme, _, params = header.strip().partition(" ")
    return scheme.lower(), dict(_CHALLENGE_PARAM.findall(params))


def next_page_path(link_header: Optional[str]) -> Optional[str]:
    """Extract the ``rel="next"`` target from a ``Link`` header."""
    if not link_header:
        return None
    match = _NEXT_LINK.search(link_header)
    return match.group(1) if match else None


class DockerRegistryClient:
    """Client for listing tags and resolving manifest digests.

    Handles the bearer-token challenge flow used by Docker Hub and most
    private registries, and plain basic auth.
    """

    def __init__(
        self,
        registry: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """Initialize the registry client.

        Args:
            registry: Registry host, optionally with a port
            username: Optional registry username
            password: Optional registry password
            timeout: Total timeout per request in seconds
            verify_ssl: Verify TLS certificates
            session: Optional aiohttp session for connection reuse
        """
        self.registry = registry
        self.base_url = f"https://{registry}"
        self.logger = get_logger("DockerRegistryClient")
        self.performance_monitor = PerformanceMonitor()
        self._auth = aiohttp.BasicAuth(username, password or "") if username else None
        self._timeout = ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None
        self._tokens: Dict[str, str] = {}

        self._ssl_context = ssl.create_default_context(cafile=certifi.where())
        if not verify_ssl:
            self._ssl_context.check_hostname = False
            self._ssl_context.verify_mode = ssl.CERT_NONE

    async def __aenter__(self) -> "DockerRegistryClient":
        """Async context manager entry."""
        self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        self.logger.debug(f"{self.registry}: {self.performance_monitor.describe()}")
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def tags(self, repo: str) -> List[str]:
        """List all tags of a repository, following pagination.

        Args:
            repo: Repository path, e.g. ``library/ubuntu``

        Returns:
            Tags in registry order
        """
        with self.performance_monitor.measure("tags"):
            tags: List[str] = []
            path: Optional[str] = f"/v2/{repo}/tags/list"

            while path:
                async with await self._request("GET", path, repo) as response:
                    data = await response.json(content_type=None)
                    tags.extend(data.get("tags") or [])
                    path = next_page_path(response.headers.get("Link"))

            self.logger.debug(f"{self.registry}/{repo} has {len(tags)} tags")
            return tags

    async def digest(self, repo: str, tag: str) -> Optional[str]:
        """Get the content digest of a tag's manifest.

        Args:
            repo: Repository path
            tag: Tag name

        Returns:
            Digest such as ``sha256:...``, or None if the registry omits it
        """
        with self.performance_monitor.measure("digest"):
            path = f"/v2/{repo}/manifests/{tag}"
            headers = {"Accept": MANIFEST_MEDIA_TYPES}
            async with await self._request("HEAD", path, repo, headers=headers) as response:
                return response.headers.get("Docker-Content-Digest")

    async def _request(
        self,
        method: str,
        path: str,
        repo: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> aiohttp.ClientResponse:
        url = urljoin(self.base_url, path)
        session = self._get_session()
        request_headers = dict(headers or {})

        token = self._tokens.get(repo)
        if token:
            request_headers["Authorization"] = f"Bearer {token}"

        response = await session.request(method, url, headers=request_headers, auth=None if token else self._auth)

        if response.status == 401 and not token:
            challenge = response.headers.get("WWW-Authenticate", "")
            response.release()
            scheme, params = parse_auth_challenge(challenge)

            if scheme == "bearer":
                token = await self._fetch_token(params, repo)
                self._tokens[repo] = token
                request_headers["Authorization"] = f"Bearer {token}"
                response = await session.request(method, url, headers=request_headers)
            elif scheme == "basic" and self._auth is None:
                raise RegistryAuthenticationError(self.registry)

        if response.status in (401, 403):
            response.release()
            raise RegistryAuthenticationError(self.registry)
        if response.status == 404:
            response.release()
            raise RegistryNotFound(url)
        if response.status >= 400:
            error_text = await response.text()
            response.release()
            self.logger.error(f"Registry error: {response.status} - {error_text}")
            raise aiohttp.ClientResponseError(
                response.request_info,
                response.history,
                status=response.status,
                message=error_text,
            )
        return response

    async def _fetch_token(self, params: Dict[str, str], repo: str) -> str:
        realm = params.get("realm")
        if not realm:
            raise RegistryAuthenticationError(self.registry)

        query = {"scope": params.get("scope") or f"repository:{repo}:pull"}
        if params.get("service"):
            query["service"] = params["service"]

        async with self._get_session().get(realm, params=query, auth=self._auth) as response:
            if response.status in (401, 403):
                raise RegistryAuthenticationError(self.registry)
            response.raise_for_status()
            data = await response.json(content_type=None)

        token = data.get("token") or data.get("access_token")
        if not token:
            raise RegistryAuthenticationError(self.registry)
        return token

    def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session.

        Returns:
            aiohttp ClientSession
        """
        if not self._session or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self._ssl_context)
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                connector=connector
            )
            self._owns_session = True
        return self._session
