"""
Updates Module

Floating tag resolution and release update planning.

Architecture:
- LatestVersionResolver: floating tag → longest equivalent immutable tag
- ReleaseUpdater: per-image tag/digest update plans built on the resolver
- ignore_filter: dynamic markers and user ignore rules
"""

from dockpin.updates.latest_resolver import LatestVersionResolver, StaticTagResolution, select_static_tag
from dockpin.updates.release_updater import (
    ImageUpdate,
    IncorrectDigestError,
    ReleaseUpdater,
    UpdateAction,
)

__all__ = [
    'LatestVersionResolver',
    'StaticTagResolution',
    'select_static_tag',
    'ReleaseUpdater',
    'ImageUpdate',
    'IncorrectDigestError',
    'UpdateAction',
]
