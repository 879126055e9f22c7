"""
Unit tests for ignore rule models and the YAML loader.
"""

import pytest

from dockpin.models.ignore_rules import IgnoreRule, load_ignore_rules, parse_ignore_rules


class TestIgnoreRule:
    """Tests for IgnoreRule matching and scoping"""

    def test_exact_match_is_case_sensitive_equality(self):
        """Exact rules should match only the identical tag"""
        rule = IgnoreRule(pattern="1.0.0-beta")

        assert rule.match_type == "exact"
        assert rule.matches("1.0.0-beta")
        assert not rule.matches("1.0.0-BETA")
        assert not rule.matches("1.0.0-beta.2")

    def test_regex_match_is_full_string(self):
        """Regex rules should match the whole tag, not a prefix"""
        rule = IgnoreRule(pattern=r".*-rc\d+", match_type="regex")

        assert rule.matches("2.0-rc1")
        assert not rule.matches("2.0-rc1-fixed")

    def test_unscoped_rule_applies_everywhere(self):
        """Rules without images should apply to every repository"""
        rule = IgnoreRule(pattern="x")

        assert rule.applies_to("app/foo")
        assert rule.applies_to("anything")

    def test_scoped_rule_applies_only_to_matching_images(self):
        """Scoped rules should apply only to matching repositories"""
        rule = IgnoreRule(pattern="x", images=["app/foo"])

        assert rule.applies_to("app/foo")
        assert not rule.applies_to("app/bar")

    def test_scope_can_match_any_of_the_given_names(self):
        """Scope should match either the repository or the registry-qualified name"""
        rule = IgnoreRule(pattern="x", images=[r"ghcr\.io/app/.*"])

        assert rule.applies_to("app/foo", "ghcr.io/app/foo")
        assert not rule.applies_to("app/foo", "quay.io/app/foo")

    def test_aliases_from_config_file_format(self):
        """Should accept the version/type keys of the config file"""
        rule = IgnoreRule.model_validate({"version": "1.0", "type": "regex"})

        assert rule.pattern == "1.0"
        assert rule.match_type == "regex"

    def test_rules_are_hashable(self):
        """Equal rules should collapse in a set"""
        rules = {IgnoreRule(pattern="a"), IgnoreRule(pattern="a"), IgnoreRule(pattern="b", images=["x"])}

        assert len(rules) == 2

    def test_invalid_regex_rejected(self):
        """Should reject a regex rule that doesn't compile"""
        with pytest.raises(ValueError):
            IgnoreRule(pattern="(unclosed", match_type="regex")

    def test_invalid_scope_regex_rejected(self):
        """Should reject an image scope that doesn't compile"""
        with pytest.raises(ValueError):
            IgnoreRule(pattern="x", images=["[bad"])

    def test_unknown_match_type_rejected(self):
        """Should reject match types other than exact and regex"""
        with pytest.raises(ValueError):
            IgnoreRule(pattern="x", match_type="glob")

    def test_exact_pattern_need_not_be_valid_regex(self):
        """Exact patterns should never be compiled as regex"""
        rule = IgnoreRule(pattern="(weird")

        assert rule.matches("(weird")


class TestLoadIgnoreRules:
    """Tests for reading ignore rules from YAML"""

    def test_loads_rules_from_yaml(self, tmp_path):
        """Should load exact and scoped regex rules from YAML"""
        config = tmp_path / "ignore.yaml"
        config.write_text(
            "- version: '1.0.0-beta'\n"
            "- version: '.*-rc\\d+'\n"
            "  type: regex\n"
            "  images:\n"
            "    - 'app/.*'\n"
        )

        rules = load_ignore_rules(str(config))

        assert len(rules) == 2
        assert rules[0].pattern == "1.0.0-beta"
        assert rules[1].match_type == "regex"
        assert rules[1].images == frozenset({"app/.*"})
        assert rules[1].matches("3.1-rc2")

    def test_empty_file_means_no_rules(self, tmp_path):
        """An empty file should yield no rules"""
        config = tmp_path / "empty.yaml"
        config.write_text("")

        assert load_ignore_rules(str(config)) == []

    def test_missing_file(self, tmp_path):
        """Should report a missing file as ValueError"""
        with pytest.raises(ValueError, match="not found"):
            load_ignore_rules(str(tmp_path / "nope.yaml"))

    def test_malformed_yaml(self, tmp_path):
        """Should report YAML syntax errors as ValueError"""
        config = tmp_path / "bad.yaml"
        config.write_text("- version: [unclosed\n")

        with pytest.raises(ValueError, match="Error parsing"):
            load_ignore_rules(str(config))

    def test_non_list_document(self):
        """Should reject a document that isn't a list"""
        with pytest.raises(ValueError, match="must be a list"):
            parse_ignore_rules({"version": "1.0"})

    def test_rule_without_version(self):
        """Should reject a rule without a version"""
        with pytest.raises(ValueError, match="Invalid ignore rule"):
            parse_ignore_rules([{"type": "exact"}])
