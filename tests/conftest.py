"""Pytest configuration for skill activation tests."""

import json
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

# Add src directory to path for imports - must happen before pytest collects
src_dir = Path(__file__).parent.parent / "src"
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

import skill_activator  # noqa: E402


ENV_VARS = ("CLAUDE_PROJECT_DIR", "SKILL_RULES_PATH", "SKILL_ACTIVATOR_DEBUG")


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """
    Start every test without activator env vars or a real ~/.claude config.

    setenv before delenv makes monkeypatch remember the variable, so anything
    python-dotenv loads during a test is removed again at teardown.
    """
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    config_path = tmp_path / "home" / ".claude" / "skill_config.json"
    monkeypatch.setattr(skill_activator, "get_config_path", lambda: config_path)
    return config_path


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def mock_stdin(monkeypatch):
    """
    Mock sys.stdin with JSON data.

    Usage:
        def test_example(mock_stdin):
            mock_stdin({"prompt": "add a route"})
    """
    import io

    def _mock(data: Any) -> None:
        text = data if isinstance(data, str) else json.dumps(data)
        monkeypatch.setattr("sys.stdin", io.StringIO(text))

    return _mock


@pytest.fixture
def mock_env(monkeypatch):
    """Set environment variables for the duration of a test."""
    def _mock(env_vars: Dict[str, str]) -> None:
        for k, v in env_vars.items():
            monkeypatch.setenv(k, v)

    return _mock


@pytest.fixture
def temp_project_dir(tmp_path):
    """Temporary project directory with .claude/skills/ already created."""
    project = tmp_path / "project"
    (project / ".claude" / "skills").mkdir(parents=True)
    return project


@pytest.fixture
def sample_rules() -> Dict[str, Any]:
    """A rules document close to what the installer generates."""
    return {
        "version": "1.0",
        "description": "Skill activation rules for tests",
        "skills": {
            "skill-developer": {
                "type": "domain",
                "enforcement": "suggest",
                "priority": "medium",
                "promptTriggers": {
                    "keywords": ["skill", "hook"],
                    "intentPatterns": ["how.*create.*skill"],
                },
                "fileTriggers": {
                    "pathPatterns": [".claude/skills/**/*.md", ".claude/hooks/**/*"],
                },
            },
            "backend-dev-guidelines": {
                "type": "domain",
                "enforcement": "suggest",
                "priority": "high",
                "description": "Express routes, controllers and services",
                "promptTriggers": {
                    "keywords": ["route", "controller"],
                    "intentPatterns": ["(create|add|implement).*?(endpoint|API)"],
                },
                "fileTriggers": {
                    "pathPatterns": ["src/**/*.ts"],
                    "contentPatterns": ["router\\.", "export.*Controller"],
                },
            },
            "frontend-dev-guidelines": {
                "type": "guardrail",
                "enforcement": "suggest",
                "priority": "high",
                "promptTriggers": {
                    "keywords": ["component", "MUI"],
                    "intentPatterns": ["(create|add|build).*?(component|UI|page)"],
                },
                "fileTriggers": {
                    "pathPatterns": ["src/**/*.tsx"],
                    "contentPatterns": ["from '@mui/material'"],
                },
            },
            "error-tracking": {
                "type": "domain",
                "enforcement": "suggest",
                "priority": "low",
                "promptTriggers": {
                    "keywords": ["sentry", "error tracking"],
                },
            },
        },
    }


@pytest.fixture
def write_rules(temp_project_dir):
    """
    Write a rules document into the temp project.

    Usage:
        def test_example(write_rules, sample_rules):
            path = write_rules(sample_rules)                   # skill-rules.json
            path = write_rules(text, name="skill-rules.yaml")  # raw text
    """
    def _write(document: Any, name: str = "skill-rules.json") -> Path:
        path = temp_project_dir / ".claude" / "skills" / name
        text = document if isinstance(document, str) else json.dumps(document, indent=2)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
