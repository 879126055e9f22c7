"""
Ignore rule models

Ignore rules remove tags from consideration when looking for the static tag
that matches a floating tag. A rule is either an exact tag or a regular
expression (full-string match), optionally scoped to repositories whose name
matches one of the `images` regexes.

YAML file format (list of rules):

    - version: "1.0.0-beta"
    - version: ".*-rc\\d+"
      type: regex
      images:
        - "app/.*"
"""

import logging
import re
from typing import FrozenSet, List, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)


class IgnoreRule(BaseModel):
    """A tag (exact or regex) that should never be chosen as a static tag"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pattern: str = Field(..., min_length=1, alias="version")
    match_type: Literal["exact", "regex"] = Field("exact", alias="type")
    images: FrozenSet[str] = Field(default_factory=frozenset)

    @field_validator('images')
    @classmethod
    def validate_images(cls, v: FrozenSet[str]) -> FrozenSet[str]:
        """Scope patterns must compile"""
        for image_pattern in v:
            try:
                re.compile(image_pattern)
            except re.error as e:
                raise ValueError(f"Invalid image scope pattern {image_pattern!r}: {e}")
        return v

    @model_validator(mode='after')
    def validate_pattern(self) -> 'IgnoreRule':
        if self.match_type == "regex":
            try:
                re.compile(self.pattern)
            except re.error as e:
                raise ValueError(f"Invalid ignore regex {self.pattern!r}: {e}")
        return self

    def applies_to(self, *repository_names: str) -> bool:
        """True if the rule is unscoped or any scope regex fully matches a name"""
        if not self.images:
            return True
        return any(
            re.fullmatch(image_pattern, name)
            for image_pattern in self.images
            for name in repository_names
        )

    def matches(self, tag: str) -> bool:
        if self.match_type == "regex":
            return re.fullmatch(self.pattern, tag) is not None
        return self.pattern == tag


def parse_ignore_rules(data) -> List[IgnoreRule]:
    """Validate already-loaded rule data (a list of mappings)"""
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"Ignore rules must be a list, got {type(data).__name__}")
    try:
        return [IgnoreRule.model_validate(item) for item in data]
    except ValidationError as e:
        raise ValueError(f"Invalid ignore rule: {e}")


def load_ignore_rules(path: str) -> List[IgnoreRule]:
    """
    Load ignore rules from a YAML file.

    Raises:
        ValueError: If the file is missing, isn't valid YAML, or holds invalid rules
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ValueError(f"Ignore rules file not found: {path}")
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing ignore rules file {path}: {e}")

    rules = parse_ignore_rules(data)
    logger.debug(f"Loaded {len(rules)} ignore rules from {path}")
    return rules
