"""
Latest Version Resolver

Answers "which immutable tag currently points at the same content as the
floating tag?" for a repository.

Workflow:
1. Resolve the floating tag's digest (must exist)
2. List every tag of the repository
3. Drop dynamic markers and ignored tags
4. Resolve each remaining tag's digest (bounded fan-out, vanished tags skipped)
5. Keep tags whose digest equals the floating digest, shortest first
6. Pick the longest one that isn't the floating tag itself

Registries commonly put several tags on one build (latest, 1, 1.2, 1.2.3);
by convention the longest is the most specific, so it is the one pinned.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from dockpin.config.settings import Settings
from dockpin.models.ignore_rules import IgnoreRule
from dockpin.models.image import ImageReference
from dockpin.models.registry import Credentials
from dockpin.registry.adapter import RegistryAdapter, RegistryConnection
from dockpin.updates.ignore_filter import relevant_tags
from dockpin.utils.registry_credentials import CredentialsProvider, NullCredentialsProvider

logger = logging.getLogger(__name__)


@dataclass
class StaticTagResolution:
    """Result of resolving a floating tag to its static tag"""
    reference: ImageReference  # the currently configured image
    floating_tag: str
    floating_digest: str
    static_tag: str
    candidates: List[str] = field(default_factory=list)  # ordered by length

    @property
    def changed(self) -> bool:
        """True if the static tag differs from the configured tag"""
        return self.static_tag != self.reference.tag

    @property
    def pinned_reference(self) -> ImageReference:
        return self.reference.with_tag(self.static_tag, self.floating_digest)


def select_static_tag(candidates: List[str], floating_tag: str, current_tag: Optional[str]) -> Optional[str]:
    """
    Pick the static tag from digest-matching candidates.

    Args:
        candidates: Matching tags sorted ascending by length (ties in list order)
        floating_tag: The floating tag; never returned as its own pin
        current_tag: Returned when there is nothing better

    Examples:
        (["v1", "v1.2", "v1.2.3"], "latest", "v1.0.0") → "v1.2.3"
        ([], "latest", "v1.0.0") → "v1.0.0"
        (["v1", "LATEST"], "latest", "v1.0.0") → "v1"
    """
    if not candidates:
        return current_tag
    if len(candidates) == 1:
        return candidates[0]

    longest = candidates[-1]
    if longest.lower() == floating_tag.lower():
        longest = candidates[-2]
    return longest


class LatestVersionResolver:
    """Resolves floating tags to the longest equivalent immutable tag"""

    def __init__(
        self,
        adapter: RegistryAdapter,
        credentials_provider: Optional[CredentialsProvider] = None,
        settings: Optional[Settings] = None,
    ):
        self.adapter = adapter
        self.credentials_provider = credentials_provider or NullCredentialsProvider()
        self.settings = settings or adapter.settings

    def _credentials_for(self, reference: ImageReference) -> Optional[Credentials]:
        return self.credentials_provider.get_credentials(reference.registry_host)

    async def connect(self, reference: ImageReference) -> RegistryConnection:
        return await self.adapter.connect(reference, self._credentials_for(reference))

    async def resolve(
        self,
        reference: ImageReference,
        floating_tag: Optional[str] = None,
        ignore_rules: Iterable[IgnoreRule] = (),
        connection: Optional[RegistryConnection] = None,
    ) -> StaticTagResolution:
        """
        Resolve the static tag equivalent to a floating tag.

        Args:
            reference: Currently configured image; its tag is returned unchanged
                when no better tag can be determined
            floating_tag: Floating tag to resolve (default from settings, "latest")
            ignore_rules: Rules removing tags from consideration
            connection: Existing connection to reuse instead of connecting again

        Raises:
            ImageNotFound: The floating tag doesn't exist
            RegistryError: Any other registry failure; no partial result is returned
        """
        floating_tag = floating_tag or self.settings.floating_tag
        ignore_rules = list(ignore_rules)
        if connection is None:
            connection = await self.connect(reference)

        floating_name = f"{reference.full_name}:{floating_tag}"
        floating_digest = await connection.get_digest(floating_tag)
        logger.debug(f"Got digest for {floating_name} -- {floating_digest}")

        logger.info(f"Getting latest static tag for {floating_name}...")
        tags = await connection.list_tags()
        logger.debug(f"Tags for {reference.full_name}: {tags}")

        if not tags:
            logger.info(f"No tags listed for {reference.full_name}, keeping {reference.tag}")
            return StaticTagResolution(
                reference=reference,
                floating_tag=floating_tag,
                floating_digest=floating_digest,
                static_tag=reference.tag,
            )

        relevant = relevant_tags(
            tags,
            ignore_rules,
            reference.repository_path,
            floating_tag=floating_tag,
            registry_host=reference.registry_host,
        )
        logger.debug(f"Relevant tags for {reference.full_name}: {relevant}")

        records = await connection.get_digests(relevant)
        matching = [record.tag for record in records if record.digest == floating_digest]
        # sorted() is stable, so equal-length tags keep registry order
        candidates = sorted(matching, key=len)
        logger.debug(f"Tags sharing the digest of {floating_name}: {candidates}")

        static_tag = select_static_tag(candidates, floating_tag, reference.tag)
        logger.debug(f"Static tag for {floating_name}: {static_tag}")

        return StaticTagResolution(
            reference=reference,
            floating_tag=floating_tag,
            floating_digest=floating_digest,
            static_tag=static_tag,
            candidates=candidates,
        )

    async def resolve_static_tag(
        self,
        reference: ImageReference,
        floating_tag: Optional[str] = None,
        ignore_rules: Iterable[IgnoreRule] = (),
    ) -> str:
        """Resolve and return only the static tag"""
        resolution = await self.resolve(reference, floating_tag, ignore_rules)
        return resolution.static_tag
