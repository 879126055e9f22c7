"""
Release update planning.

Decides, per configured image, whether its tag and/or digest should move to
the static tag currently equivalent to the floating tag. Nothing is written
anywhere; callers apply the returned ImageUpdate to their own configuration.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from dockpin.models.ignore_rules import IgnoreRule
from dockpin.models.image import ImageReference
from dockpin.updates.latest_resolver import LatestVersionResolver

logger = logging.getLogger(__name__)

LATEST_TAG = "latest"
SNAPSHOT_SUFFIX = "-SNAPSHOT"


class IncorrectDigestError(Exception):
    """The configured tag is the static tag, but its digest isn't the floating tag's"""

    def __init__(self, reference: ImageReference, static_digest: str, floating_digest: str):
        super().__init__(
            f"Static image digest does not match latest image digest for {reference.full_name_with_tag}: "
            f"{static_digest} != {floating_digest}"
        )
        self.reference = reference
        self.static_digest = static_digest
        self.floating_digest = floating_digest


class UpdateAction(Enum):
    """What should happen to a configured image"""
    SKIPPED = "skipped"
    UP_TO_DATE = "up-to-date"
    UPDATE_TAG = "update-tag"
    UPDATE_DIGEST = "update-digest"


@dataclass
class ImageUpdate:
    """Planned change for one configured image"""
    reference: ImageReference
    action: UpdateAction
    new_tag: Optional[str] = None
    new_digest: Optional[str] = None

    @property
    def needs_update(self) -> bool:
        return self.action in (UpdateAction.UPDATE_TAG, UpdateAction.UPDATE_DIGEST)

    @property
    def target(self) -> ImageReference:
        """Reference after applying the update"""
        if not self.needs_update:
            return self.reference
        return self.reference.with_tag(self.new_tag or self.reference.tag, self.new_digest)


def is_dynamic_version(tag: Optional[str]) -> bool:
    """Intentionally moving versions are never pinned"""
    return tag is None or tag == LATEST_TAG or tag.endswith(SNAPSHOT_SUFFIX)


class ReleaseUpdater:
    """Plans tag/digest updates of configured images to their latest releases"""

    def __init__(self, resolver: LatestVersionResolver, ignore_rules: Iterable[IgnoreRule] = ()):
        self.resolver = resolver
        self.ignore_rules = list(ignore_rules)

    async def plan(self, reference: ImageReference, floating_tag: Optional[str] = None) -> ImageUpdate:
        """
        Plan the update of one image.

        Raises:
            IncorrectDigestError: Configured tag is current but its digest has drifted
            RegistryError: Any registry failure
        """
        if is_dynamic_version(reference.tag):
            logger.debug(f"Skipping dynamic version {reference}")
            return ImageUpdate(reference=reference, action=UpdateAction.SKIPPED)

        connection = await self.resolver.connect(reference)
        resolution = await self.resolver.resolve(
            reference,
            floating_tag=floating_tag,
            ignore_rules=self.ignore_rules,
            connection=connection,
        )

        if resolution.changed:
            logger.info(
                f"Updating {reference.full_name} from version {reference.tag} to {resolution.static_tag}"
            )
            return ImageUpdate(
                reference=reference,
                action=UpdateAction.UPDATE_TAG,
                new_tag=resolution.static_tag,
                new_digest=resolution.floating_digest,
            )

        logger.info(f"Already references the latest image: {reference.full_name}:{reference.tag}")
        static_digest = await connection.get_digest(resolution.static_tag)
        if static_digest != resolution.floating_digest:
            raise IncorrectDigestError(reference, static_digest, resolution.floating_digest)

        if reference.digest != static_digest:
            logger.info(f"Setting digest for {reference.full_name} to {static_digest}")
            return ImageUpdate(
                reference=reference,
                action=UpdateAction.UPDATE_DIGEST,
                new_tag=reference.tag,
                new_digest=static_digest,
            )

        logger.debug(f"Image config updates not required: {reference.full_name_with_tag}")
        return ImageUpdate(reference=reference, action=UpdateAction.UP_TO_DATE)

    async def plan_all(
        self,
        references: Iterable[ImageReference],
        floating_tag: Optional[str] = None,
    ) -> List[ImageUpdate]:
        """Plan every image in order; the first error aborts"""
        updates = []
        for reference in references:
            updates.append(await self.plan(reference, floating_tag))
        needing = sum(1 for update in updates if update.needs_update)
        logger.info(f"Planned {len(updates)} images, {needing} need configuration updates")
        return updates
