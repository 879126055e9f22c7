"""
Image reference parsing.

An image reference names a repository on a registry plus a tag and/or digest:

    nginx                      -> docker.io/library/nginx:latest
    ghcr.io/user/app:v1.0      -> ghcr.io/user/app:v1.0
    myregistry.com:5000/app    -> myregistry.com:5000/app:latest
    localhost/app@sha256:abc   -> digest-only (only when explicitly allowed)
"""

from dataclasses import dataclass
from typing import Optional


DEFAULT_REGISTRY = "docker.io"
DOCKER_HUB_API_HOST = "registry-1.docker.io"
DOCKER_HUB_ALIASES = frozenset({
    "docker.io",
    "index.docker.io",
    "registry.hub.docker.com",
    "registry-1.docker.io",
})
DEFAULT_TAG = "latest"


def is_docker_hub(registry_host: str) -> bool:
    """True if the host is one of the names Docker Hub is known by"""
    return registry_host.lower().rstrip("/") in DOCKER_HUB_ALIASES


def api_host_for(registry_host: str) -> str:
    """
    Host that serves the v2 API for a registry.

    Docker Hub's marketing hostnames don't serve /v2/, so they are mapped to
    its dedicated API host. Anything else is used as given (minus a trailing slash).
    """
    if is_docker_hub(registry_host):
        return DOCKER_HUB_API_HOST
    return registry_host.rstrip("/")


def _looks_like_host(segment: str) -> bool:
    # A leading path segment is a registry host only if it has a dot or port,
    # or is the local registry sentinel
    return "." in segment or ":" in segment or segment == "localhost"


@dataclass(frozen=True)
class ImageReference:
    """
    Immutable registry/repository/tag/digest identity of an image.

    The constructor accepts a digest-only reference (tag=None with a digest);
    parse() only produces one when called with allow_digest_only=True.
    """
    registry_host: str
    repository_path: str
    tag: Optional[str] = DEFAULT_TAG
    digest: Optional[str] = None

    def __post_init__(self):
        if not self.registry_host:
            raise ValueError("Registry host must not be empty")
        if not self.repository_path:
            raise ValueError(f"Repository not specified for image on {self.registry_host}")
        if not self.tag and not self.digest:
            raise ValueError(f"Tag not specified for image {self.registry_host}/{self.repository_path}")

    @classmethod
    def parse(cls, text: str, allow_digest_only: bool = False) -> 'ImageReference':
        """
        Parse an image reference string.

        Args:
            text: Reference such as "ghcr.io/org/app:1.2.3" or "nginx"
            allow_digest_only: Accept "repo@sha256:..." with no tag

        Raises:
            ValueError: For empty repositories or tags, or a digest-only
                reference when not permitted
        """
        if text is None or not text.strip():
            raise ValueError("Image reference must not be empty")
        remainder = text.strip()

        digest = None
        if "@" in remainder:
            remainder, digest = remainder.split("@", 1)
            if not digest:
                raise ValueError(f"Empty digest in image reference: {text}")

        registry = DEFAULT_REGISTRY
        if "/" in remainder:
            first, rest = remainder.split("/", 1)
            if _looks_like_host(first):
                registry = first
                remainder = rest

        tag = None
        # Only a colon after the last slash separates a tag; earlier ones are ports
        last_segment = remainder.rsplit("/", 1)[-1]
        if ":" in last_segment:
            remainder, tag = remainder.rsplit(":", 1)
            if not tag:
                raise ValueError(f"Empty tag in image reference: {text}")

        if not remainder:
            raise ValueError(f"Repository not specified in image reference: {text}")

        if tag is None:
            if digest is None:
                tag = DEFAULT_TAG
            elif not allow_digest_only:
                raise ValueError(f"Tag not specified for image {text}")

        # Docker Hub uses "library/" prefix for official images
        if is_docker_hub(registry) and "/" not in remainder:
            remainder = f"library/{remainder}"

        return cls(registry_host=registry, repository_path=remainder, tag=tag, digest=digest)

    @property
    def api_host(self) -> str:
        return api_host_for(self.registry_host)

    @property
    def full_name(self) -> str:
        """registry/repository without tag or digest"""
        return f"{self.registry_host}/{self.repository_path}"

    @property
    def full_name_with_tag(self) -> str:
        if self.tag:
            return f"{self.full_name}:{self.tag}"
        return f"{self.full_name}@{self.digest}"

    def with_tag(self, tag: str, digest: Optional[str] = None) -> 'ImageReference':
        """Copy of this reference pointing at another tag"""
        return ImageReference(
            registry_host=self.registry_host,
            repository_path=self.repository_path,
            tag=tag,
            digest=digest,
        )

    def __str__(self) -> str:
        name = self.full_name_with_tag
        if self.tag and self.digest:
            name = f"{name}@{self.digest}"
        return name
