"""
Version discovery service.

Queries GitHub for two kinds of version candidates:

- release assets (native binaries) from
  ``GET /repos/{owner}/{repo}/releases/latest`` or ``/releases/tags/{tag}``
- container image tags from the package registry
  ``GET /users/{owner}/packages/container/{package}/versions``

Results are cached per query for a few minutes. Discovery never raises to
its callers: failures are logged and the query degrades to an empty list,
or for registry tags to a single ``latest`` candidate when the filter
allows it.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, unquote, urlparse

import httpx

from ...core.exceptions import DiscoveryError, InvalidArgumentError
from ...core.interfaces.logger import ILogger
from ...core.models.config import DiscoveryConfig
from ...core.models.discovery import CacheKey
from ...core.models.service import DockerImage, NativeDownload, ServiceDefinition
from .cache import VersionCache
from .filtering import BoundedPattern
from .platform import detect_platform

CredentialCallback = Callable[[], Awaitable[str | None]]
TokenSaver = Callable[[str], None]

AUTH_STATUSES = (401, 403, 404)
FALLBACK_TAG = "latest"


@dataclass(frozen=True)
class PackageRef:
    """A container package parsed from its GitHub package page URL."""

    owner: str
    package: str
    repository: str
    image: str


def parse_repository_url(url: str) -> tuple[str, str]:
    """
    Extract (owner, repo) from a GitHub repository URL.

    Accepts ``https://github.com/owner/repo``, with or without a trailing
    ``/releases/`` path.

    Raises:
        DiscoveryError: If the URL has fewer than two path segments
    """
    segments = [s for s in urlparse(url).path.split("/") if s]
    if len(segments) < 2:
        raise DiscoveryError("Cannot parse repository URL", url=url)
    return segments[0], segments[1]


def parse_package_url(url: str) -> PackageRef:
    """
    Parse ``https://github.com/<owner>/<repo>/pkgs/container/<package>``.

    ``<package>`` may be URL-encoded ``repo/image``; the image repository
    becomes ``ghcr.io/<owner>/<repo>`` in that case and ``ghcr.io/<owner>``
    otherwise.

    Raises:
        DiscoveryError: If the URL is not a container package page
    """
    segments = [s for s in urlparse(url).path.split("/") if s]
    if len(segments) < 5 or segments[2] != "pkgs" or segments[3] != "container":
        raise DiscoveryError("Cannot parse container package URL", url=url)

    owner = segments[0]
    package = unquote("/".join(segments[4:]))
    parts = package.split("/")
    if len(parts) > 1:
        return PackageRef(owner, package, f"ghcr.io/{owner}/{parts[0]}", parts[1])
    return PackageRef(owner, package, f"ghcr.io/{owner}", parts[0])


class VersionDiscoveryService:
    """Discovers available versions of services from GitHub."""

    def __init__(
        self,
        config: DiscoveryConfig | None = None,
        *,
        credential_callback: CredentialCallback | None = None,
        save_token: TokenSaver | None = None,
        cache: VersionCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: ILogger | None = None,
    ) -> None:
        """
        Args:
            config: Discovery section of the settings (loaded if omitted)
            credential_callback: Asked for a token when the registry refuses
                an anonymous request; returns None to skip
            save_token: Called with a token that made a request succeed
            cache: Shared result cache
            transport: httpx transport (tests use httpx.MockTransport)
            logger: Logger for diagnostics
        """
        if config is None:
            from ...core.settings import get_settings

            config = get_settings().discovery
        self.config = config
        self.token = config.github_token
        self._credential_callback = credential_callback
        self._save_token = save_token
        self.cache = cache or VersionCache(ttl=config.cache_ttl)
        self._transport = transport
        self._logger = logger

    @property
    def logger(self) -> ILogger:
        """Get logger, resolving from container or creating NullLogger."""
        if self._logger is None:
            from ...core.di import resolve_or_default
            from ..logging import NullLogger

            self._logger = resolve_or_default(ILogger, NullLogger)  # type: ignore[type-abstract]
        return self._logger

    def set_token(self, token: str | None) -> None:
        self.token = token or None

    def _headers(self) -> dict[str, str]:
        headers = {
            "User-Agent": self.config.user_agent,
            "Accept": "application/vnd.github+json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.request_timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    async def _get(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        self.logger.debug("GET %s", url)
        return await client.get(url, headers=self._headers())

    def _pattern(self, filter_regex: str | None) -> BoundedPattern:
        return BoundedPattern(filter_regex, timeout=self.config.regex_timeout, logger=self.logger)

    # -------------------------------------------------------------------------
    # Release assets
    # -------------------------------------------------------------------------

    async def discover_release_assets(
        self,
        repository_url: str,
        filter_regex: str | None = None,
        release_tag: str | None = None,
        whitelist: list[str] | None = None,
    ) -> list[NativeDownload]:
        """
        List downloadable assets of a release whose names match the filter.

        Args:
            repository_url: GitHub repository URL
            filter_regex: Case-insensitive asset name filter
            release_tag: Release to inspect; the latest release if omitted
            whitelist: Archive members to keep when the asset is installed

        Returns:
            Matching downloads, or an empty list on any failure
        """
        key = CacheKey("release-assets", repository_url, filter_regex or "", release_tag or "")
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            owner, repo = parse_repository_url(repository_url)
            pattern = self._pattern(filter_regex)
            path = f"releases/tags/{quote(release_tag, safe='')}" if release_tag else "releases/latest"
            url = f"{self.config.api_url}/repos/{owner}/{repo}/{path}"

            async with self._client() as client:
                response = await self._get(client, url)
            if response.status_code != 200:
                raise DiscoveryError("Release query failed", url=url, status_code=response.status_code)
            release = response.json()
        except (DiscoveryError, InvalidArgumentError) as e:
            self.logger.warning("Release discovery failed: %s", e)
            return []
        except (httpx.HTTPError, ValueError) as e:
            self.logger.warning("Release discovery failed for %s: %s", repository_url, e)
            return []

        downloads = self._parse_release(release, pattern, whitelist or [])
        self.cache.put(key, downloads)
        return downloads

    def _parse_release(
        self, release: dict[str, Any], pattern: BoundedPattern, whitelist: list[str]
    ) -> list[NativeDownload]:
        tag = release.get("tag_name") or "unknown"
        downloads = []
        for asset in release.get("assets") or []:
            name = asset.get("name") or ""
            url = asset.get("browser_download_url") or ""
            if not name or not url or not pattern.matches(name):
                continue
            downloads.append(
                NativeDownload(
                    url=url,
                    version=tag,
                    platform=detect_platform(name),
                    description=name,
                    whitelist=list(whitelist),
                )
            )
        return downloads

    # -------------------------------------------------------------------------
    # Registry tags
    # -------------------------------------------------------------------------

    async def discover_registry_tags(
        self,
        package_url: str,
        filter_regex: str | None = None,
    ) -> list[DockerImage]:
        """
        List container image tags of a package whose names match the filter.

        On an authorization failure the credential callback is asked for a
        token once (only if no token is set) and the request is retried.
        When no usable answer is obtained the result is ``[latest]`` if
        "latest" passes the filter, else empty.
        """
        key = CacheKey("registry-tags", package_url, filter_regex or "")
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            ref = parse_package_url(package_url)
            pattern = self._pattern(filter_regex)
        except (DiscoveryError, InvalidArgumentError) as e:
            self.logger.warning("Registry discovery failed: %s", e)
            return []

        url = (
            f"{self.config.api_url}/users/{quote(ref.owner, safe='')}"
            f"/packages/container/{quote(ref.package, safe='')}/versions"
        )

        try:
            async with self._client() as client:
                response = await self._get(client, url)

                if response.status_code in AUTH_STATUSES:
                    response = await self._retry_with_credentials(client, url, response)
                    if response is None or response.status_code != 200:
                        return self._fallback(ref, pattern)

                if response.status_code != 200:
                    raise DiscoveryError("Registry query failed", url=url, status_code=response.status_code)
                versions = response.json()
        except DiscoveryError as e:
            self.logger.warning("Registry discovery failed: %s", e)
            return []
        except (httpx.HTTPError, ValueError) as e:
            self.logger.warning("Registry discovery failed for %s: %s", package_url, e)
            return self._fallback(ref, pattern)

        images = self._parse_versions(versions, ref, pattern)
        self.cache.put(key, images)
        return images

    async def _retry_with_credentials(
        self, client: httpx.AsyncClient, url: str, response: httpx.Response
    ) -> httpx.Response | None:
        if self.token:
            self.logger.warning("Registry refused the configured token (HTTP %d)", response.status_code)
            return None
        if self._credential_callback is None:
            self.logger.info("Registry requires authentication (HTTP %d)", response.status_code)
            return None

        token = await self._credential_callback()
        if not token:
            return None

        self.set_token(token)
        retried = await self._get(client, url)
        if retried.status_code == 200:
            if self._save_token is not None:
                self._save_token(token)
        else:
            self.logger.warning("Authenticated registry request failed (HTTP %d)", retried.status_code)
        return retried

    def _fallback(self, ref: PackageRef, pattern: BoundedPattern) -> list[DockerImage]:
        if not pattern.matches(FALLBACK_TAG):
            return []
        return [
            DockerImage(
                repository=ref.repository,
                image=ref.image,
                tag=FALLBACK_TAG,
                description="Latest version",
            )
        ]

    def _parse_versions(self, versions: Any, ref: PackageRef, pattern: BoundedPattern) -> list[DockerImage]:
        images: list[DockerImage] = []
        if not isinstance(versions, list):
            return images
        for version in versions:
            tags = (((version or {}).get("metadata") or {}).get("container") or {}).get("tags") or []
            for tag in tags:
                if not isinstance(tag, str) or not pattern.matches(tag):
                    continue
                images.append(
                    DockerImage(
                        repository=ref.repository,
                        image=ref.image,
                        tag=tag,
                        description=f"GHCR - {tag}",
                    )
                )
        return images

    # -------------------------------------------------------------------------
    # Per-service helpers
    # -------------------------------------------------------------------------

    async def container_candidates(self, service: ServiceDefinition) -> list[DockerImage]:
        """Static images from the document plus dynamically discovered ones."""
        source = service.source.docker if service.source else None
        if source is None:
            return []
        candidates = list(source.images)
        if source.dynamic is not None:
            candidates.extend(await self.discover_registry_tags(source.dynamic.repository, source.dynamic.filter))
        return candidates

    async def native_candidates(self, service: ServiceDefinition) -> list[NativeDownload]:
        """Static downloads from the document plus dynamically discovered ones."""
        source = service.source.native if service.source else None
        if source is None:
            return []
        candidates = list(source.downloads)
        if source.dynamic is not None:
            candidates.extend(
                await self.discover_release_assets(
                    source.dynamic.repository,
                    source.dynamic.filter,
                    whitelist=source.dynamic.whitelist,
                )
            )
        return candidates
