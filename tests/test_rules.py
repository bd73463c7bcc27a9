#!/usr/bin/env python3
"""
Tests for loading and compiling skill rules.

Covers the glob dialect, per-rule validation and document-level errors.
"""

import json

import pytest

from skill_activator import (
    ConfigurationError,
    RuleParseError,
    RuleSet,
    compile_rule,
    glob_to_regex,
    load_rule_set,
    parse_rule_set,
)


# =============================================================================
# Tests for glob_to_regex()
# =============================================================================


class TestGlobToRegex:
    """Test path glob compilation."""

    @pytest.mark.parametrize("path", [
        "src/components/Form.tsx",
        "src/Form.tsx",
        "src/a/b/c/Deep.tsx",
    ])
    def test_double_star_spans_directories(self, path) -> None:
        """Should let ** match zero or more directories."""
        assert glob_to_regex("src/**/*.tsx").fullmatch(path)

    @pytest.mark.parametrize("path", [
        "lib/Form.tsx",
        "src/Form.ts",
        "xsrc/Form.tsx",
    ])
    def test_double_star_keeps_prefix_and_suffix(self, path) -> None:
        """Should still require the literal prefix and extension."""
        assert glob_to_regex("src/**/*.tsx").fullmatch(path) is None

    def test_single_star_stays_in_segment(self) -> None:
        """Should not let * cross a directory separator."""
        regex = glob_to_regex("*.ts")
        assert regex.fullmatch("index.ts")
        assert regex.fullmatch("src/index.ts") is None

    def test_leading_double_star(self) -> None:
        """Should match files at any depth including the root."""
        regex = glob_to_regex("**/*.ts")
        assert regex.fullmatch("a.ts")
        assert regex.fullmatch("a/b/c.ts")

    def test_trailing_double_star(self) -> None:
        """Should match everything below a directory."""
        regex = glob_to_regex(".claude/hooks/**/*")
        assert regex.fullmatch(".claude/hooks/skill-activation-prompt.sh")
        assert regex.fullmatch(".claude/hooks/lib/util.ts")
        assert regex.fullmatch(".claude/skills/x.md") is None

    def test_question_mark(self) -> None:
        """Should match exactly one non-separator character."""
        regex = glob_to_regex("file?.py")
        assert regex.fullmatch("file1.py")
        assert regex.fullmatch("file.py") is None
        assert regex.fullmatch("file/.py") is None

    def test_brace_alternation(self) -> None:
        """Should expand {a,b} into alternatives."""
        regex = glob_to_regex("src/**/*.{ts,tsx}")
        assert regex.fullmatch("src/app.ts")
        assert regex.fullmatch("src/ui/App.tsx")
        assert regex.fullmatch("src/app.js") is None

    def test_character_class_and_negation(self) -> None:
        """Should support [...] and [!...] classes."""
        assert glob_to_regex("v[0-9].txt").fullmatch("v3.txt")
        assert glob_to_regex("v[!0-9].txt").fullmatch("vx.txt")
        assert glob_to_regex("v[!0-9].txt").fullmatch("v3.txt") is None

    def test_regex_metacharacters_are_literal(self) -> None:
        """Should escape dots, plus signs and parentheses."""
        regex = glob_to_regex("a+b(1).ts")
        assert regex.fullmatch("a+b(1).ts")
        assert regex.fullmatch("aab(1)xts") is None

    @pytest.mark.parametrize("pattern", ["src/[abc", "src/*.{ts,tsx"])
    def test_unterminated_patterns_raise(self, pattern) -> None:
        """Should refuse unterminated classes and braces."""
        with pytest.raises(ValueError):
            glob_to_regex(pattern)


# =============================================================================
# Tests for compile_rule()
# =============================================================================


class TestCompileRule:
    """Test validation of a single rule entry."""

    def test_defaults(self) -> None:
        """Should default type, enforcement and priority."""
        rule = compile_rule("x", {"promptTriggers": {"keywords": ["x"]}})
        assert rule.type == "domain"
        assert rule.enforcement == "suggest"
        assert rule.priority == "medium"

    def test_keywords_are_lowercased(self) -> None:
        """Should store keywords lowercased for case-insensitive matching."""
        rule = compile_rule("x", {"promptTriggers": {"keywords": ["UI", "MUI"]}})
        assert rule.keywords == ("ui", "mui")

    def test_trigger_presence_flags(self) -> None:
        """Should record which trigger sections were declared."""
        rule = compile_rule("x", {"fileTriggers": {"pathPatterns": ["*.md"]}})
        assert rule.has_file_triggers
        assert not rule.has_prompt_triggers
        assert rule.trigger_kinds() == ["path"]

    def test_rule_without_triggers_is_valid(self) -> None:
        """Should accept a rule with no triggers at all."""
        rule = compile_rule("x", {"priority": "low"})
        assert rule.trigger_kinds() == []

    def test_invalid_intent_regex(self) -> None:
        """Should report skill id, pattern and reason for a bad regex."""
        with pytest.raises(RuleParseError) as exc_info:
            compile_rule("broken", {"promptTriggers": {"intentPatterns": ["(unclosed"]}})

        error = exc_info.value
        assert error.skill_id == "broken"
        assert error.pattern == "(unclosed"
        assert "invalid regex" in error.reason
        assert "broken" in str(error)

    def test_error_message_format(self) -> None:
        """Should print the pattern as written in the rules file."""
        error = RuleParseError("broken", "invalid regex: missing )", "route((")
        assert str(error) == "broken: invalid regex: missing ) (pattern: route(()"
        assert str(RuleParseError("x", "unknown priority 'urgent'")) == "x: unknown priority 'urgent'"

    def test_invalid_content_regex(self) -> None:
        """Should validate contentPatterns as regexes too."""
        with pytest.raises(RuleParseError):
            compile_rule("x", {"fileTriggers": {"pathPatterns": ["*"], "contentPatterns": ["[a-"]}})

    def test_invalid_glob(self) -> None:
        """Should report unterminated globs."""
        with pytest.raises(RuleParseError) as exc_info:
            compile_rule("x", {"fileTriggers": {"pathPatterns": ["src/[ab"]}})
        assert exc_info.value.pattern == "src/[ab"

    @pytest.mark.parametrize("data,reason", [
        ({"priority": "urgent"}, "unknown priority"),
        ({"type": "workflow"}, "unknown type"),
        ({"enforcement": "maybe"}, "unknown enforcement"),
        ({"promptTriggers": {"keywords": "route"}}, "'keywords' must be a list"),
        ({"promptTriggers": {"intentPatterns": [1, 2]}}, "'intentPatterns' must be a list"),
        ({"promptTriggers": ["route"]}, "'promptTriggers' must be an object"),
        ({"description": 42}, "'description' must be a string"),
    ])
    def test_shape_errors(self, data, reason) -> None:
        """Should turn field shape problems into RuleParseError."""
        with pytest.raises(RuleParseError) as exc_info:
            compile_rule("x", data)
        assert reason in exc_info.value.reason

    def test_rule_must_be_object(self) -> None:
        """Should reject non-object rule entries."""
        with pytest.raises(RuleParseError):
            compile_rule("x", ["route"])


# =============================================================================
# Tests for parse_rule_set()
# =============================================================================


class TestParseRuleSet:
    """Test document-level parsing."""

    def test_loads_in_declaration_order(self, sample_rules) -> None:
        """Should keep the order skills were declared in."""
        rule_set = parse_rule_set(sample_rules)
        assert list(rule_set.rules) == [
            "skill-developer",
            "backend-dev-guidelines",
            "frontend-dev-guidelines",
            "error-tracking",
        ]
        assert rule_set.version == "1.0"
        assert rule_set.description == "Skill activation rules for tests"
        assert rule_set.errors == []

    def test_empty_skills(self) -> None:
        """Should accept an empty skills object."""
        rule_set = parse_rule_set({"skills": {}})
        assert len(rule_set) == 0
        assert not rule_set

    @pytest.mark.parametrize("document", [
        [],
        "skills",
        {"version": "1.0"},
        {"skills": ["a", "b"]},
    ])
    def test_invalid_shape_is_configuration_error(self, document) -> None:
        """Should raise ConfigurationError for a structurally invalid document."""
        with pytest.raises(ConfigurationError):
            parse_rule_set(document)

    def test_bad_rule_is_isolated(self, sample_rules) -> None:
        """Should drop only the bad rule and keep the rest."""
        sample_rules["skills"]["broken"] = {
            "promptTriggers": {"intentPatterns": ["(oops"]},
        }
        rule_set = parse_rule_set(sample_rules)

        assert "broken" not in rule_set
        assert len(rule_set) == 4
        assert len(rule_set.errors) == 1
        assert rule_set.errors[0].skill_id == "broken"


# =============================================================================
# Tests for load_rule_set()
# =============================================================================


class TestLoadRuleSet:
    """Test reading rules documents from disk."""

    def test_loads_json(self, write_rules, sample_rules) -> None:
        """Should load a JSON document and remember its source."""
        path = write_rules(sample_rules)
        rule_set = load_rule_set(path)
        assert len(rule_set) == 4
        assert rule_set.source == path

    def test_loads_yaml(self, write_rules) -> None:
        """Should load YAML documents by suffix."""
        path = write_rules(
            "version: '1.0'\n"
            "skills:\n"
            "  docs:\n"
            "    priority: low\n"
            "    promptTriggers:\n"
            "      keywords: [readme, docs]\n",
            name="skill-rules.yaml",
        )
        rule_set = load_rule_set(path)
        assert list(rule_set.rules) == ["docs"]
        assert rule_set.rules["docs"].keywords == ("readme", "docs")

    def test_missing_file(self, temp_project_dir) -> None:
        """Should raise ConfigurationError for a missing file."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_rule_set(temp_project_dir / "nope.json")

    def test_invalid_json(self, write_rules) -> None:
        """Should raise ConfigurationError for malformed JSON."""
        path = write_rules('{"skills": {')
        with pytest.raises(ConfigurationError, match="invalid JSON"):
            load_rule_set(path)

    def test_invalid_yaml(self, write_rules) -> None:
        """Should raise ConfigurationError for malformed YAML."""
        path = write_rules("skills: [unclosed\n", name="skill-rules.yml")
        with pytest.raises(ConfigurationError, match="invalid YAML"):
            load_rule_set(path)

    def test_duplicate_skill_id_json(self, write_rules) -> None:
        """Should refuse duplicate skill ids instead of keeping the last one."""
        path = write_rules(
            '{"skills": {"a": {"priority": "high"}, "a": {"priority": "low"}}}'
        )
        with pytest.raises(ConfigurationError, match="duplicate key 'a'"):
            load_rule_set(path)

    def test_duplicate_skill_id_yaml(self, write_rules) -> None:
        """Should refuse duplicate keys in YAML as well."""
        path = write_rules(
            "skills:\n  a:\n    priority: high\n  a:\n    priority: low\n",
            name="skill-rules.yaml",
        )
        with pytest.raises(ConfigurationError, match="duplicate key"):
            load_rule_set(path)

    def test_skill_ids_equal_after_str_conversion(self, write_rules) -> None:
        """Should refuse YAML keys 1 and '1' instead of keeping only one."""
        path = write_rules(
            "skills:\n  1:\n    priority: high\n  '1':\n    priority: low\n",
            name="skill-rules.yaml",
        )
        with pytest.raises(ConfigurationError, match="duplicate skill id '1'"):
            load_rule_set(path)

    def test_duplicate_skill_id_in_decoded_document(self) -> None:
        """Should refuse ids that collide once converted to strings."""
        with pytest.raises(ConfigurationError):
            parse_rule_set({"skills": {1: {"priority": "high"}, "1": {"priority": "low"}}})

    def test_empty_rule_set_helper(self) -> None:
        """Should build an empty RuleSet with no source."""
        rule_set = RuleSet.empty()
        assert len(rule_set) == 0
        assert rule_set.source is None

    def test_generated_escapes_survive_round_trip(self, write_rules) -> None:
        """Should read JSON-escaped regexes as the intended pattern."""
        path = write_rules(json.dumps({
            "skills": {"b": {"fileTriggers": {"pathPatterns": ["*"], "contentPatterns": ["router\\."]}}}
        }))
        rule = load_rule_set(path).rules["b"]
        assert rule.content_patterns[0].pattern == "router\\."
