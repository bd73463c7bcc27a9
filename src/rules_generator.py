#!/usr/bin/env python3
"""
Skill Rules Generator

Detects what kind of project lives in a directory and writes a
skill-rules.json (or .yaml) whose path patterns fit that project's layout:

- skill-developer is always included
- backend-dev-guidelines for Node.js/Express projects
- frontend-dev-guidelines for React projects
- route-tester and error-tracking on request
"""

import sys
import json
import copy
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass

import yaml

from skill_activator import ConfigurationError, parse_rule_set


BACKEND_MARKER_DIRS = ['src', 'api', 'server', 'backend']
BACKEND_DIRS = BACKEND_MARKER_DIRS + ['services']
FRONTEND_DIRS = ['src', 'frontend', 'client', 'web']

BACKEND_FALLBACK_PATHS = ['src/**/*.ts', '**/*.ts']
FRONTEND_FALLBACK_PATHS = ['src/**/*.tsx', '**/*.tsx']

OPTIONAL_SKILLS = ['backend-dev-guidelines', 'frontend-dev-guidelines', 'route-tester', 'error-tracking']


SKILL_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "skill-developer": {
        "type": "domain",
        "enforcement": "suggest",
        "priority": "medium",
        "promptTriggers": {
            "keywords": ["skill", "create skill", "hook", "skill activation"],
            "intentPatterns": [
                "如何.*创建.*skill",
                "how.*create.*skill",
                "skill.*不.*激活",
            ],
        },
        "fileTriggers": {
            "pathPatterns": [
                ".claude/skills/**/*.md",
                ".claude/hooks/**/*",
            ],
        },
    },
    "backend-dev-guidelines": {
        "type": "domain",
        "enforcement": "suggest",
        "priority": "high",
        "promptTriggers": {
            "keywords": ["route", "controller", "service", "api", "endpoint", "middleware"],
            "intentPatterns": [
                "(create|add|implement).*?(route|endpoint|API|controller|service)",
                "(fix|handle).*?(error|exception)",
            ],
        },
        "fileTriggers": {
            "pathPatterns": [],
            "contentPatterns": [
                "router\\.",
                "app\\.(get|post|put|delete)",
                "export.*Controller",
                "export.*Service",
            ],
        },
    },
    "frontend-dev-guidelines": {
        "type": "guardrail",
        "enforcement": "suggest",
        "priority": "high",
        "promptTriggers": {
            "keywords": ["component", "react", "UI", "MUI", "form", "modal"],
            "intentPatterns": [
                "(create|add|build).*?(component|UI|page)",
                "(style|design).*?(component|UI)",
            ],
        },
        "fileTriggers": {
            "pathPatterns": [],
            "contentPatterns": [
                "from '@mui/material'",
                "import.*Grid.*from.*@mui",
            ],
        },
    },
    "route-tester": {
        "type": "domain",
        "enforcement": "suggest",
        "priority": "high",
        "promptTriggers": {
            "keywords": ["test route", "test API", "API testing"],
            "intentPatterns": [
                "(test|debug).*?(route|endpoint|API)",
            ],
        },
    },
    "error-tracking": {
        "type": "domain",
        "enforcement": "suggest",
        "priority": "high",
        "promptTriggers": {
            "keywords": ["sentry", "error tracking", "monitoring"],
            "intentPatterns": [
                "(add|implement).*?(sentry|error tracking)",
            ],
        },
    },
}


@dataclass
class ProjectProfile:
    """What the project looks like from the outside"""
    has_backend: bool = False
    has_frontend: bool = False
    tech_stack: str = ""


def _read_package_json(project_path: Path) -> str:
    try:
        return (project_path / 'package.json').read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError):
        return ""


def detect_project_type(project_path: Path) -> ProjectProfile:
    """Detect backend (Express) and frontend (React/MUI) projects from package.json"""
    package_json = _read_package_json(project_path)
    stack = []
    profile = ProjectProfile()

    if package_json and any((project_path / d).is_dir() for d in BACKEND_MARKER_DIRS):
        if 'express' in package_json:
            profile.has_backend = True
            stack.append('Node.js/Express')

    if 'react' in package_json:
        profile.has_frontend = True
        stack.append('React')
    if '@mui/material' in package_json:
        stack.append('MUI')

    profile.tech_stack = " + ".join(stack)
    return profile


def detect_project_paths(project_path: Path, kind: str) -> List[str]:
    """Path globs for the directories that exist, or the fallback set"""
    paths = []
    if kind == 'backend':
        for d in BACKEND_DIRS:
            if (project_path / d).is_dir():
                paths.append(f"{d}/**/*.ts")
        return paths or list(BACKEND_FALLBACK_PATHS)

    if kind == 'frontend':
        for d in FRONTEND_DIRS:
            if (project_path / d).is_dir():
                paths.extend([f"{d}/**/*.tsx", f"{d}/**/*.ts"])
        return paths or list(FRONTEND_FALLBACK_PATHS)

    raise ValueError(f"unknown path kind: {kind!r}")


def build_skill_rules(project_path: Path,
                      backend: bool = False,
                      frontend: bool = False,
                      route_tester: bool = False,
                      error_tracking: bool = False) -> Dict[str, Any]:
    """Assemble the rules document for the selected skills"""
    skills: Dict[str, Any] = {"skill-developer": copy.deepcopy(SKILL_TEMPLATES["skill-developer"])}

    if backend:
        rule = copy.deepcopy(SKILL_TEMPLATES["backend-dev-guidelines"])
        rule["fileTriggers"]["pathPatterns"] = detect_project_paths(project_path, 'backend')
        skills["backend-dev-guidelines"] = rule

    if frontend:
        rule = copy.deepcopy(SKILL_TEMPLATES["frontend-dev-guidelines"])
        rule["fileTriggers"]["pathPatterns"] = detect_project_paths(project_path, 'frontend')
        skills["frontend-dev-guidelines"] = rule

    if route_tester:
        skills["route-tester"] = copy.deepcopy(SKILL_TEMPLATES["route-tester"])

    if error_tracking:
        skills["error-tracking"] = copy.deepcopy(SKILL_TEMPLATES["error-tracking"])

    return {
        "version": "1.0",
        "description": "Skill activation rules for this project",
        "skills": skills,
    }


def write_skill_rules(document: Dict[str, Any], output_path: Path) -> Path:
    """
    Write the document as JSON, or YAML when the suffix is .yaml/.yml

    The document is compiled first so a broken template never reaches disk.
    """
    rule_set = parse_rule_set(document, source=output_path)
    if rule_set.errors:
        raise ConfigurationError("; ".join(str(e) for e in rule_set.errors))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        if output_path.suffix.lower() in ('.yaml', '.yml'):
            yaml.dump(document, f, allow_unicode=True, default_flow_style=False, sort_keys=False)
        else:
            json.dump(document, f, ensure_ascii=False, indent=2)
            f.write("\n")
    return output_path


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point"""
    import argparse

    parser = argparse.ArgumentParser(
        prog='skill-rules-generate',
        description='Generate skill-rules.json from the project layout',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                               # Detect and print rules for ./
  %(prog)s ./my-app -o .claude/skills/skill-rules.json
  %(prog)s --frontend --route-tester -o rules.yaml
        """
    )

    parser.add_argument('project_path', nargs='?', default='.', help='Project directory')
    parser.add_argument('-o', '--output', help='Output file (default: print to stdout)')
    parser.add_argument('--backend', action='store_true', help='Include backend-dev-guidelines')
    parser.add_argument('--frontend', action='store_true', help='Include frontend-dev-guidelines')
    parser.add_argument('--route-tester', action='store_true', help='Include route-tester')
    parser.add_argument('--error-tracking', action='store_true', help='Include error-tracking')

    args = parser.parse_args(argv)
    project_path = Path(args.project_path)

    if not project_path.is_dir():
        print(f"❌ Not a directory: {project_path}", file=sys.stderr)
        return 1

    profile = detect_project_type(project_path)
    document = build_skill_rules(
        project_path,
        backend=args.backend or profile.has_backend,
        frontend=args.frontend or profile.has_frontend,
        route_tester=args.route_tester,
        error_tracking=args.error_tracking,
    )

    if not args.output:
        print(json.dumps(document, ensure_ascii=False, indent=2))
        return 0

    output_path = write_skill_rules(document, Path(args.output))
    detected = profile.tech_stack or "nothing specific"
    print(f"✅ Wrote {len(document['skills'])} rules to {output_path} (detected: {detected})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
