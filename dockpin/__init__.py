"""
dockpin

Resolves which immutable tag of a container image repository currently points
at the same content as a floating tag (e.g. "latest"), so the floating
reference can be pinned to a reproducible version plus content digest.
"""

from dockpin.config.settings import Settings
from dockpin.models import Credentials, IgnoreRule, ImageReference
from dockpin.registry import (
    ImageNotFound,
    RegistryAdapter,
    RegistryError,
    RegistryUnreachable,
    Unauthorized,
)
from dockpin.updates import LatestVersionResolver, ReleaseUpdater

__version__ = "0.1.0"

__all__ = [
    'Settings',
    'Credentials',
    'IgnoreRule',
    'ImageReference',
    'RegistryAdapter',
    'RegistryError',
    'RegistryUnreachable',
    'Unauthorized',
    'ImageNotFound',
    'LatestVersionResolver',
    'ReleaseUpdater',
]
