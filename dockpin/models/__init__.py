"""
Data models for dockpin.

Plain dataclasses for registry protocol values, pydantic for user-supplied
ignore rule configuration.
"""

from dockpin.models.image import ImageReference
from dockpin.models.registry import AuthChallenge, Credentials, DigestRecord, RegistryEndpoint, TagPage
from dockpin.models.ignore_rules import IgnoreRule, load_ignore_rules

__all__ = [
    'ImageReference',
    'AuthChallenge',
    'Credentials',
    'DigestRecord',
    'RegistryEndpoint',
    'TagPage',
    'IgnoreRule',
    'load_ignore_rules',
]
