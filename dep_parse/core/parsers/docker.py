"""Dockerfile parser: base images from FROM lines."""

import asyncio
import re
from typing import Any, Callable, Iterable, List, Optional

from ...config import ParserSettings
from ...errors import (
    MissingRequiredFile,
    PrivateSourceAuthenticationFailure,
    RegistryAuthenticationError,
    RegistryNotFound,
)
from ...registry import DockerRegistryClient
from ...utils.performance import benchmark
from .base import (
    BaseParser,
    Credential,
    Dependency,
    DependencyFile,
    DependencySet,
    RegistrySource,
    Requirement,
)

# Reference grammar follows docker/distribution's reference/regexp.go
DOMAIN_COMPONENT = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
DOMAIN = rf"(?:{DOMAIN_COMPONENT}(?:\.{DOMAIN_COMPONENT})+)"
# A registry needs a dot or a port, otherwise it is the image's first segment
REGISTRY = rf"(?P<registry>{DOMAIN}(?::[0-9]+)?|{DOMAIN_COMPONENT}:[0-9]+)"

NAME_COMPONENT = r"(?:[a-z0-9]+(?:(?:[._]|__|[-]*)[a-z0-9]+)*)"
IMAGE = rf"(?P<image>{NAME_COMPONENT}(?:/{NAME_COMPONENT})*)"

FROM = r"[Ff][Rr][Oo][Mm]"
TAG = r":(?P<tag>[\w][\w.-]{0,127})"
DIGEST = r"@(?P<digest>[^\s]+)"
NAME = r"\s+(?:AS|as)\s+(?P<name>[a-zA-Z0-9_-]+)"

FROM_LINE = re.compile(
    rf"^{FROM}\s+(?:{REGISTRY}/)?{IMAGE}(?:{TAG})?(?:{DIGEST})?(?:{NAME})?"
)

DOCKER_REGISTRY_CREDENTIAL = "docker_registry"

RegistryClientFactory = Callable[..., Any]


class DockerParser(BaseParser):
    """Parser for Dockerfiles.

    Tagged references are read verbatim. Digest-only references are resolved
    to a tag by asking the registry for the digest of each of the image's
    tags, in registry order, and taking the first match.
    """

    ecosystem = "docker"

    def __init__(
        self,
        dependency_files: Iterable[DependencyFile],
        credentials: Optional[Iterable[Credential]] = None,
        settings: Optional[ParserSettings] = None,
        registry_client_factory: Optional[RegistryClientFactory] = None,
    ) -> None:
        self.registry_client_factory = registry_client_factory or DockerRegistryClient
        super().__init__(dependency_files, credentials, settings)

    def check_required_files(self) -> None:
        # The fetching stage only supplies Dockerfiles, so any file will do
        if not self.dependency_files:
            raise MissingRequiredFile("Dockerfile")

    @benchmark
    def parse(self) -> List[Dependency]:
        """Read base images from every FROM line.

        Must be called from synchronous code: digest-only references are
        resolved with ``asyncio.run()``.

        Raises:
            RuntimeError: If a digest lookup is needed while an event loop is running
        """
        dependency_set = DependencySet()

        for dockerfile in self.dependency_files:
            for line in dockerfile.content.splitlines():
                match = FROM_LINE.match(line)
                if not match:
                    continue

                version = self._version_from(match)
                if not version:
                    self.logger.debug(f"No version found for {line.strip()!r} in {dockerfile.name}")
                    continue

                dependency_set.add(Dependency(
                    name=match.group("image"),
                    version=version,
                    package_manager=self.ecosystem,
                    requirements=[Requirement(
                        requirement=None,
                        file=dockerfile.name,
                        groups=(),
                        source=self._source_from(match),
                    )],
                ))

        return dependency_set.dependencies

    def _version_from(self, match: re.Match) -> Optional[str]:
        if match.group("tag"):
            return match.group("tag")

        return self._version_from_digest(
            registry=match.group("registry"),
            image=match.group("image"),
            digest=match.group("digest"),
        )

    def _source_from(self, match: re.Match) -> RegistrySource:
        return RegistrySource(
            registry=match.group("registry"),
            tag=match.group("tag"),
            digest=match.group("digest"),
        )

    def _version_from_digest(
        self,
        registry: Optional[str],
        image: str,
        digest: Optional[str],
    ) -> Optional[str]:
        if not digest:
            return None

        repo = image if "/" in image else f"library/{image}"
        host = registry or self.settings.default_registry
        self._ensure_no_running_loop()

        try:
            return asyncio.run(self._find_tag_for_digest(host, repo, digest))
        except RegistryAuthenticationError:
            if self._standard_registry(registry):
                raise
            raise PrivateSourceAuthenticationFailure(registry) from None

    def _ensure_no_running_loop(self) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        raise RuntimeError(
            "DockerParser.parse() resolves digests with asyncio.run() and must be called "
            "from synchronous code; from a coroutine, run it in a worker thread "
            "(e.g. await asyncio.to_thread(parser.parse))"
        )

    async def _find_tag_for_digest(self, host: str, repo: str, digest: str) -> Optional[str]:
        async with self._registry_client(host) as client:
            for tag in await client.tags(repo):
                try:
                    tag_digest = await client.digest(repo, tag)
                except RegistryNotFound:
                    # Some listed tags have no manifest, e.g. library/python 2-windowsservercore
                    self.logger.debug(f"No manifest for {host}/{repo}:{tag}")
                    continue

                if tag_digest == digest:
                    return tag

        return None

    def _registry_client(self, host: str) -> Any:
        credential = self._registry_credentials(host)
        return self.registry_client_factory(
            host,
            username=credential.username if credential else None,
            password=credential.password if credential else None,
            timeout=self.settings.registry_timeout,
            verify_ssl=self.settings.verify_ssl,
        )

    def _registry_credentials(self, host: str) -> Optional[Credential]:
        for credential in self.credentials_of_type(DOCKER_REGISTRY_CREDENTIAL):
            if credential.registry == host:
                return credential
        return None

    def _standard_registry(self, registry: Optional[str]) -> bool:
        return registry is None or registry == self.settings.default_registry
