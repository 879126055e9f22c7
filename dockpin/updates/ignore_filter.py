"""
Tag ignore filtering.

Removes intentionally dynamic tags and user-configured ignore rules from a tag
list before digests are compared.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from dockpin.models.ignore_rules import IgnoreRule

logger = logging.getLogger(__name__)

# Always ignored (case-insensitive); they move by definition
DEFAULT_IGNORED_TAGS = frozenset({"latest", "stable"})


def applicable_rules(
    rules: Iterable[IgnoreRule],
    repository: str,
    registry_host: Optional[str] = None,
) -> List[IgnoreRule]:
    """Rules that are unscoped or whose image scope matches the repository"""
    names = [repository]
    if registry_host:
        names.append(f"{registry_host}/{repository}")
    selected = [rule for rule in rules if rule.applies_to(*names)]
    logger.debug(f"Ignore rules for image {repository}: {selected}")
    return selected


def is_ignored(tag: str, rules: Sequence[IgnoreRule], floating_tag: Optional[str] = None) -> bool:
    """
    Check a tag against the built-in dynamic markers and already-scoped rules.

    Args:
        tag: Tag to check
        rules: Rules that apply to the tag's repository (see applicable_rules)
        floating_tag: The floating tag being resolved; never a pin candidate
    """
    lowered = tag.lower()
    if lowered in DEFAULT_IGNORED_TAGS:
        return True
    if floating_tag and lowered == floating_tag.lower():
        return True
    return any(rule.matches(tag) for rule in rules)


def relevant_tags(
    tags: Sequence[str],
    rules: Iterable[IgnoreRule],
    repository: str,
    floating_tag: Optional[str] = None,
    registry_host: Optional[str] = None,
) -> List[str]:
    """
    Filter a tag list down to pin candidates, preserving order.

    Examples:
        (["latest", "1.0", "1.0-rc1"], [IgnoreRule(pattern=".*-rc\\d+", match_type="regex")], "app")
        → ["1.0"]
    """
    rules_for_image = applicable_rules(rules, repository, registry_host)
    return [tag for tag in tags if not is_ignored(tag, rules_for_image, floating_tag)]
