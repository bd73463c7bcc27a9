#!/usr/bin/env python3
"""
Skill Activation Rules
Rule-based skill suggestion for Claude Code hooks

Features:
- skill-rules.json (or .yaml) with keyword, intent, path and content triggers
- All regex and glob patterns compiled once at load time
- Bad rules are reported and skipped, the rest of the rules keep working
- Deterministic output: priority first, then declaration order

Usage:
  1. As CLI: skill-activator "add a new route handler"
             skill-activator --file src/components/Form.tsx
  2. As Hook: see user-prompt-submit.py and post-tool-use.py
  3. As Module: from skill_activator import load_rule_set, evaluate, PromptEvent
"""

import os
import re
import sys
import json
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple, Union
from dataclasses import dataclass, field

import yaml
from dotenv import load_dotenv


# =============================================================================
# Constants
# =============================================================================

RULES_FILENAMES = ('skill-rules.json', 'skill-rules.yaml', 'skill-rules.yml')

SKILL_TYPES = ('domain', 'guardrail')
ENFORCEMENT_LEVELS = ('suggest', 'warn', 'block')
PRIORITY_RANK = {'high': 0, 'medium': 1, 'low': 2}

# Stronger kinds win when the same skill is matched more than once
TRIGGER_KIND_RANK = {'keyword': 0, 'intent': 1, 'content': 0, 'path': 1}

FILE_EDIT_TOOLS = ('Edit', 'MultiEdit', 'Write', 'NotebookEdit')
MAX_CONTENT_BYTES = 1024 * 1024


# =============================================================================
# User Configuration (for output format toggle)
# =============================================================================

DEFAULT_USER_CONFIG = {
    "output_format": "grouped",  # "grouped" or "compact"
    "max_suggestions": 0,        # 0 = show every match
    "show_descriptions": True,
}


def get_config_path() -> Path:
    """Get path to user config file"""
    return Path.home() / '.claude' / 'skill_config.json'


def load_user_config() -> dict:
    """Load user configuration from ~/.claude/skill_config.json"""
    config_path = get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                user_config = json.load(f)
            if isinstance(user_config, dict):
                # Merge with defaults to ensure all keys exist
                return {**DEFAULT_USER_CONFIG, **user_config}
        except (json.JSONDecodeError, OSError) as e:
            sys.stderr.write(f"skill-rules: ignoring {config_path}: {e}\n")
    return DEFAULT_USER_CONFIG.copy()


def save_user_config(config: dict) -> bool:
    """Save user configuration to ~/.claude/skill_config.json"""
    config_path = get_config_path()
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=2)
        return True
    except OSError:
        return False


def debug_enabled() -> bool:
    return os.environ.get('SKILL_ACTIVATOR_DEBUG', '').strip().lower() in ('1', 'true', 'yes', 'on')


def resolve_project_path(project_path: Optional[Union[str, Path]] = None) -> Path:
    """Explicit path, then CLAUDE_PROJECT_DIR, then the working directory"""
    if project_path:
        return Path(project_path)
    env_dir = os.environ.get('CLAUDE_PROJECT_DIR', '').strip()
    if env_dir:
        return Path(env_dir)
    return Path.cwd()


def load_project_env(project_path: Path) -> bool:
    """Load <project>/.env without overriding variables already set"""
    env_file = project_path / '.env'
    if env_file.is_file():
        return load_dotenv(env_file, override=False)
    return False


def find_rules_file(project_path: Path, rules_path: Optional[Union[str, Path]] = None) -> Path:
    """
    Locate the rules document

    Order: explicit argument, SKILL_RULES_PATH, then
    <project>/.claude/skills/skill-rules.{json,yaml,yml}. When nothing exists
    the default JSON location is returned so the caller gets a clear error.
    """
    if rules_path:
        return Path(rules_path)

    env_path = os.environ.get('SKILL_RULES_PATH', '').strip()
    if env_path:
        return Path(env_path).expanduser()

    skills_dir = project_path / '.claude' / 'skills'
    for name in RULES_FILENAMES:
        candidate = skills_dir / name
        if candidate.is_file():
            return candidate
    return skills_dir / RULES_FILENAMES[0]


# =============================================================================
# Errors
# =============================================================================

class SkillRulesError(Exception):
    """Base class for skill rule errors"""


class ConfigurationError(SkillRulesError):
    """Rules document missing, unreadable or structurally invalid"""


class EventError(SkillRulesError):
    """Hook payload is missing the fields an event needs"""


class RuleParseError(SkillRulesError):
    """A single rule could not be compiled"""

    def __init__(self, skill_id: str, reason: str, pattern: Optional[str] = None):
        self.skill_id = skill_id
        self.reason = reason
        self.pattern = pattern
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.pattern is not None:
            return f"{self.skill_id}: {self.reason} (pattern: {self.pattern})"
        return f"{self.skill_id}: {self.reason}"


# =============================================================================
# Data Model
# =============================================================================

@dataclass(frozen=True)
class PromptEvent:
    """A submitted user prompt"""
    text: str


@dataclass(frozen=True)
class FileEvent:
    """A file created or modified by a tool; content is None for path-only events"""
    path: str
    content: Optional[str] = None


Event = Union[PromptEvent, FileEvent]


@dataclass(frozen=True)
class SkillRule:
    """One compiled rule from the rules document"""
    skill_id: str
    type: str = "domain"
    enforcement: str = "suggest"
    priority: str = "medium"
    description: str = ""
    has_prompt_triggers: bool = False
    has_file_triggers: bool = False
    keywords: Tuple[str, ...] = ()             # lowercased
    intent_patterns: Tuple[Pattern, ...] = ()
    path_patterns: Tuple[Tuple[str, Pattern], ...] = ()
    content_patterns: Tuple[Pattern, ...] = ()

    def trigger_kinds(self) -> List[str]:
        kinds = []
        if self.keywords:
            kinds.append('keyword')
        if self.intent_patterns:
            kinds.append('intent')
        if self.path_patterns:
            kinds.append('path')
        if self.content_patterns:
            kinds.append('content')
        return kinds


@dataclass
class RuleSet:
    """Skill id -> SkillRule, in declaration order"""
    rules: Dict[str, SkillRule] = field(default_factory=dict)
    version: str = ""
    description: str = ""
    source: Optional[Path] = None
    errors: List[RuleParseError] = field(default_factory=list)

    @classmethod
    def empty(cls) -> 'RuleSet':
        return cls()

    def __len__(self) -> int:
        return len(self.rules)

    def __contains__(self, skill_id: str) -> bool:
        return skill_id in self.rules


@dataclass(frozen=True)
class SkillMatch:
    """A skill selected for an event"""
    skill_id: str
    matched_trigger_kind: str  # keyword | intent | path | content
    priority: str

    def to_dict(self) -> Dict[str, str]:
        return {
            'skill': self.skill_id,
            'trigger': self.matched_trigger_kind,
            'priority': self.priority,
        }


# =============================================================================
# Pattern Compilation
# =============================================================================

@lru_cache(maxsize=512)
def glob_to_regex(pattern: str) -> Pattern:
    """
    Compile a path glob into a regex matched with fullmatch()

    `**` spans directories (`src/**/*.ts` also matches `src/a.ts`), `*` and
    `?` stay inside one segment, `[...]` classes and `{a,b}` alternation are
    supported. Raises ValueError for unterminated classes or braces.
    """
    out = []
    i, n = 0, len(pattern)
    brace_depth = 0

    while i < n:
        c = pattern[i]
        if c == '*':
            if pattern.startswith('**', i):
                i += 2
                if i < n and pattern[i] == '/':
                    out.append('(?:.*/)?')
                    i += 1
                else:
                    out.append('.*')
                continue
            out.append('[^/]*')
        elif c == '?':
            out.append('[^/]')
        elif c == '[':
            j = i + 1
            if j < n and pattern[j] in '!^':
                j += 1
            if j < n and pattern[j] == ']':
                j += 1
            while j < n and pattern[j] != ']':
                j += 1
            if j >= n:
                raise ValueError(f"unterminated character class at position {i}")
            body = pattern[i + 1:j].replace('\\', '\\\\')
            if body[0] in '!^':
                body = '^' + body[1:]
            out.append(f'[{body}]')
            i = j
        elif c == '{':
            brace_depth += 1
            out.append('(?:')
        elif c == ',' and brace_depth:
            out.append('|')
        elif c == '}' and brace_depth:
            brace_depth -= 1
            out.append(')')
        else:
            out.append(re.escape(c))
        i += 1

    if brace_depth:
        raise ValueError("unterminated '{' alternation")

    return re.compile(''.join(out))


def _string_list(skill_id: str, section: Dict[str, Any], key: str) -> List[str]:
    value = section.get(key, [])
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise RuleParseError(skill_id, f"'{key}' must be a list of strings")
    return value


def _compile_regexes(skill_id: str, patterns: List[str], flags: int = 0) -> Tuple[Pattern, ...]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, flags))
        except re.error as e:
            raise RuleParseError(skill_id, f"invalid regex: {e}", pattern) from e
    return tuple(compiled)


def _compile_globs(skill_id: str, patterns: List[str]) -> Tuple[Tuple[str, Pattern], ...]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append((pattern, glob_to_regex(pattern)))
        except (ValueError, re.error) as e:
            raise RuleParseError(skill_id, f"invalid glob: {e}", pattern) from e
    return tuple(compiled)


def _trigger_section(skill_id: str, data: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    section = data.get(key)
    if section is None:
        return None
    if not isinstance(section, dict):
        raise RuleParseError(skill_id, f"'{key}' must be an object")
    return section


def compile_rule(skill_id: str, data: Any) -> SkillRule:
    """Validate one rule entry and compile its patterns"""
    if not isinstance(data, dict):
        raise RuleParseError(skill_id, "rule must be an object")

    skill_type = data.get('type', 'domain')
    if skill_type not in SKILL_TYPES:
        raise RuleParseError(skill_id, f"unknown type {skill_type!r}")

    enforcement = data.get('enforcement', 'suggest')
    if enforcement not in ENFORCEMENT_LEVELS:
        raise RuleParseError(skill_id, f"unknown enforcement {enforcement!r}")

    priority = data.get('priority', 'medium')
    if priority not in PRIORITY_RANK:
        raise RuleParseError(skill_id, f"unknown priority {priority!r}")

    description = data.get('description', '')
    if not isinstance(description, str):
        raise RuleParseError(skill_id, "'description' must be a string")

    prompt_triggers = _trigger_section(skill_id, data, 'promptTriggers')
    file_triggers = _trigger_section(skill_id, data, 'fileTriggers')

    keywords: Tuple[str, ...] = ()
    intent_patterns: Tuple[Pattern, ...] = ()
    if prompt_triggers is not None:
        keywords = tuple(k.lower() for k in _string_list(skill_id, prompt_triggers, 'keywords') if k)
        intent_patterns = _compile_regexes(
            skill_id, _string_list(skill_id, prompt_triggers, 'intentPatterns'), re.IGNORECASE)

    path_patterns: Tuple[Tuple[str, Pattern], ...] = ()
    content_patterns: Tuple[Pattern, ...] = ()
    if file_triggers is not None:
        path_patterns = _compile_globs(skill_id, _string_list(skill_id, file_triggers, 'pathPatterns'))
        content_patterns = _compile_regexes(
            skill_id, _string_list(skill_id, file_triggers, 'contentPatterns'))

    return SkillRule(
        skill_id=skill_id,
        type=skill_type,
        enforcement=enforcement,
        priority=priority,
        description=description,
        has_prompt_triggers=prompt_triggers is not None,
        has_file_triggers=file_triggers is not None,
        keywords=keywords,
        intent_patterns=intent_patterns,
        path_patterns=path_patterns,
        content_patterns=content_patterns,
    )


# =============================================================================
# Rules Loading
# =============================================================================

def _reject_duplicate_keys(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    result = {}
    for key, value in pairs:
        if key in result:
            raise ConfigurationError(f"duplicate key {key!r}")
        result[key] = value
    return result


class UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that refuses duplicate mapping keys"""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    None, None, f"duplicate key {key!r}", key_node.start_mark)
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def parse_rule_set(data: Any, source: Optional[Path] = None) -> RuleSet:
    """
    Build a RuleSet from a decoded rules document

    Raises ConfigurationError when the document shape is wrong. Problems in
    individual rules are collected on RuleSet.errors and the rule is dropped.
    """
    if not isinstance(data, dict):
        raise ConfigurationError("rules document must be an object")
    if 'skills' not in data:
        raise ConfigurationError("rules document has no 'skills' object")

    skills = data['skills']
    if skills is None:
        skills = {}
    if not isinstance(skills, dict):
        raise ConfigurationError("'skills' must be an object")

    rule_set = RuleSet(
        version=str(data.get('version', '')),
        description=str(data.get('description', '')),
        source=source,
    )

    for skill_id, rule_data in skills.items():
        skill_id = str(skill_id)
        if skill_id in rule_set.rules or any(e.skill_id == skill_id for e in rule_set.errors):
            raise ConfigurationError(f"duplicate skill id {skill_id!r}")
        try:
            rule_set.rules[skill_id] = compile_rule(skill_id, rule_data)
        except RuleParseError as e:
            rule_set.errors.append(e)

    return rule_set


def load_rule_set(path: Union[str, Path]) -> RuleSet:
    """Read and compile a skill-rules.json / .yaml file"""
    path = Path(path)
    try:
        content = path.read_text(encoding='utf-8')
    except FileNotFoundError as e:
        raise ConfigurationError(f"rules file not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"cannot read rules file {path}: {e}") from e

    if path.suffix.lower() in ('.yaml', '.yml'):
        try:
            data = yaml.load(content, Loader=UniqueKeyLoader)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"invalid YAML in {path}: {e}") from e
    else:
        try:
            data = json.loads(content, object_pairs_hook=_reject_duplicate_keys)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"invalid JSON in {path}: {e}") from e
        except ConfigurationError as e:
            raise ConfigurationError(f"{path}: {e}") from e

    return parse_rule_set(data, source=path)


# =============================================================================
# Matching
# =============================================================================

def _match_prompt(rule: SkillRule, text: str) -> Optional[str]:
    if not rule.has_prompt_triggers:
        return None
    text_lower = text.lower()
    if any(keyword in text_lower for keyword in rule.keywords):
        return 'keyword'
    for pattern in rule.intent_patterns:
        if pattern.search(text):
            return 'intent'
    return None


def _match_file(rule: SkillRule, path: str, content: Optional[str]) -> Optional[str]:
    if not rule.has_file_triggers:
        return None
    if not any(regex.fullmatch(path) for _, regex in rule.path_patterns):
        return None
    # No content supplied: the path match alone decides
    if not rule.content_patterns or content is None:
        return 'path'
    for pattern in rule.content_patterns:
        if pattern.search(content):
            return 'content'
    return None


def sort_matches(matches: List[SkillMatch], rule_set: RuleSet) -> List[SkillMatch]:
    """Deduplicate by skill id and order by priority, then declaration order"""
    best: Dict[str, SkillMatch] = {}
    for match in matches:
        current = best.get(match.skill_id)
        if current is None or (TRIGGER_KIND_RANK[match.matched_trigger_kind]
                               < TRIGGER_KIND_RANK[current.matched_trigger_kind]):
            best[match.skill_id] = match

    order = {skill_id: i for i, skill_id in enumerate(rule_set.rules)}
    return sorted(
        best.values(),
        key=lambda m: (PRIORITY_RANK[m.priority], order.get(m.skill_id, len(order))),
    )


def evaluate(rule_set: Optional[RuleSet], event: Event) -> List[SkillMatch]:
    """Return the skills to suggest for one event; pure, no side effects"""
    if not rule_set or not rule_set.rules:
        return []

    if isinstance(event, PromptEvent):
        if not isinstance(event.text, str):
            return []
        matcher: Callable[[SkillRule], Optional[str]] = lambda rule: _match_prompt(rule, event.text)
    elif isinstance(event, FileEvent):
        # A file event without a path is unusable, never a match for "**/*"
        if not isinstance(event.path, str) or not event.path:
            return []
        content = event.content if isinstance(event.content, str) else None
        matcher = lambda rule: _match_file(rule, event.path, content)
    else:
        raise TypeError(f"unsupported event: {event!r}")

    matches = []
    for rule in rule_set.rules.values():
        kind = matcher(rule)
        if kind:
            matches.append(SkillMatch(rule.skill_id, kind, rule.priority))

    return sort_matches(matches, rule_set)


# =============================================================================
# Hook Input
# =============================================================================

def normalize_event_path(file_path: str, project_path: Optional[Path] = None) -> str:
    """Forward slashes, no leading ./, relative to the project when inside it"""
    path = file_path.replace('\\', '/')

    if project_path is not None and PurePosixPath(path).is_absolute():
        roots = {str(project_path).replace('\\', '/')}
        try:
            roots.add(str(project_path.resolve()).replace('\\', '/'))
        except OSError:
            pass
        for root in sorted(roots, key=len, reverse=True):
            prefix = root.rstrip('/') + '/'
            if path.startswith(prefix):
                path = path[len(prefix):]
                break

    while path.startswith('./'):
        path = path[2:]
    return path


def read_file_content(path: Path) -> Optional[str]:
    """Read up to MAX_CONTENT_BYTES of a file as text; None when unreadable"""
    try:
        if not path.is_file():
            return None
        with open(path, 'rb') as f:
            raw = f.read(MAX_CONTENT_BYTES)
    except OSError:
        return None
    return raw.decode('utf-8', errors='replace')


def event_from_hook_input(data: Any, project_path: Optional[Path] = None) -> Optional[Event]:
    """
    Translate a Claude Code hook payload into an event

    Returns None for tool events that do not touch files. Raises EventError
    when a payload lacks what its event kind needs.
    """
    if not isinstance(data, dict):
        raise EventError("hook input must be a JSON object")

    if data.get('hook_event_name') == 'UserPromptSubmit' or 'prompt' in data:
        prompt = data.get('prompt')
        if not isinstance(prompt, str):
            raise EventError("prompt event without a 'prompt' string")
        return PromptEvent(prompt)

    tool_name = data.get('tool_name')
    if not tool_name:
        raise EventError("hook input has neither 'prompt' nor 'tool_name'")
    if tool_name not in FILE_EDIT_TOOLS:
        return None

    tool_input = data.get('tool_input')
    if not isinstance(tool_input, dict):
        raise EventError(f"{tool_name} event without 'tool_input'")

    file_path = tool_input.get('file_path') or tool_input.get('notebook_path')
    if not isinstance(file_path, str) or not file_path:
        raise EventError(f"{tool_name} event without a file path")

    disk_path = Path(file_path)
    if not disk_path.is_absolute() and project_path is not None:
        disk_path = project_path / disk_path

    content = read_file_content(disk_path)
    if content is None and tool_name == 'Write' and isinstance(tool_input.get('content'), str):
        content = tool_input['content']

    return FileEvent(normalize_event_path(file_path, project_path), content)


# =============================================================================
# Skill Activator
# =============================================================================

class SkillActivator:
    """
    Loads the project's rules once and answers events against them

    A missing or broken rules document never raises here: the error is kept
    on `config_error`, reported on stderr, and every event gets no matches.
    """

    def __init__(self,
                 project_path: Optional[Union[str, Path]] = None,
                 rules_path: Optional[Union[str, Path]] = None,
                 debug: Optional[bool] = None):
        self.project_path = resolve_project_path(project_path)
        load_project_env(self.project_path)
        self.debug = debug_enabled() if debug is None else debug

        self.rules_path = find_rules_file(self.project_path, rules_path)
        self.config_error: Optional[ConfigurationError] = None
        self.rule_set = RuleSet.empty()
        self._descriptions: Dict[str, str] = {}

        try:
            self.rule_set = load_rule_set(self.rules_path)
        except ConfigurationError as e:
            self.config_error = e
            sys.stderr.write(f"skill-rules: {e}\n")

        for error in self.rule_set.errors:
            sys.stderr.write(f"skill-rules: {error}\n")

        self._log(f"loaded {len(self.rule_set)} rules from {self.rules_path}")

    def _log(self, *args):
        if self.debug:
            print("[skill-rules]", *args, file=sys.stderr)

    def detect(self, event: Event) -> List[SkillMatch]:
        matches = evaluate(self.rule_set, event)
        for m in matches:
            self._log(f"{m.skill_id}: {m.matched_trigger_kind} match ({m.priority})")
        if not matches:
            self._log("no skills matched")
        return matches

    def detect_prompt(self, text: str) -> List[SkillMatch]:
        return self.detect(PromptEvent(text))

    def detect_file(self, file_path: str, content: Optional[str] = None) -> List[SkillMatch]:
        return self.detect(FileEvent(normalize_event_path(file_path, self.project_path), content))

    def describe(self, skill_id: str) -> str:
        """Rule description, else the description in <skill>/SKILL.md frontmatter"""
        if skill_id in self._descriptions:
            return self._descriptions[skill_id]

        rule = self.rule_set.rules.get(skill_id)
        description = rule.description if rule else ""
        if not description:
            skill_md = self.rules_path.parent / skill_id / 'SKILL.md'
            frontmatter = parse_frontmatter(skill_md)
            if frontmatter and isinstance(frontmatter.get('description'), str):
                description = frontmatter['description'].strip()

        self._descriptions[skill_id] = description
        return description

    def list_skills(self) -> List[Dict[str, Any]]:
        """List all loaded rules in declaration order"""
        return [
            {
                'name': rule.skill_id,
                'type': rule.type,
                'priority': rule.priority,
                'enforcement': rule.enforcement,
                'triggers': rule.trigger_kinds(),
                'description': self.describe(rule.skill_id),
            }
            for rule in self.rule_set.rules.values()
        ]


def parse_frontmatter(skill_md: Path) -> Optional[Dict]:
    """Parse YAML frontmatter from a SKILL.md file"""
    try:
        content = skill_md.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError):
        return None

    match = re.match(r'^---\s*\n(.*?)\n---\s*(\n|$)', content, re.DOTALL)
    if not match:
        return None

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError:
        return None
    return data if isinstance(data, dict) else None


# =============================================================================
# Output Formatters
# =============================================================================

PRIORITY_HEADINGS = {
    'high': '📚 RECOMMENDED',
    'medium': '💡 SUGGESTED',
    'low': '📌 OPTIONAL',
}

HOOK_TAGS = {
    'prompt': 'user-prompt-submit-hook',
    'file': 'post-tool-use-hook',
}


def format_compact_output(matches: List[SkillMatch]) -> str:
    """Single line: skill names in order"""
    if not matches:
        return ""
    return "Relevant skills: " + ", ".join(m.skill_id for m in matches)


def format_grouped_output(matches: List[SkillMatch],
                          activator: SkillActivator,
                          event_kind: str = 'prompt',
                          show_descriptions: bool = True) -> str:
    """Format matches grouped by priority, inside the hook tag"""
    if not matches:
        return ""

    tag = HOOK_TAGS[event_kind]
    lines = [f"<{tag}>", "SKILL ACTIVATION CHECK", ""]

    if event_kind == 'file':
        lines.append("The file you just changed is covered by these skills:")
    else:
        lines.append("Based on your request, these skills are relevant:")
    lines.append("")

    for priority in PRIORITY_RANK:
        group = [m for m in matches if m.priority == priority]
        if not group:
            continue
        lines.append(f"{PRIORITY_HEADINGS[priority]}:")
        for m in group:
            rule = activator.rule_set.rules.get(m.skill_id)
            marker = " [guardrail]" if rule is not None and rule.type == 'guardrail' else ""
            lines.append(f"  • {m.skill_id}{marker} ({m.matched_trigger_kind} match)")
            if show_descriptions:
                description = activator.describe(m.skill_id)
                if description:
                    lines.append(f"    {description}")
        lines.append("")

    if len(matches) == 1:
        lines.append(f"ACTION: Consider using the Skill tool to activate `{matches[0].skill_id}`.")
    else:
        lines.append("ACTION: Consider using the Skill tool to activate relevant skills.")
    lines.append(f"</{tag}>")

    return "\n".join(lines)


def format_suggestions(matches: List[SkillMatch],
                       activator: SkillActivator,
                       event_kind: str = 'prompt',
                       config: Optional[dict] = None) -> str:
    """Apply user config (format, display limit) and render the matches"""
    config = {**DEFAULT_USER_CONFIG, **(config or {})}

    try:
        max_suggestions = int(config.get('max_suggestions') or 0)
    except (TypeError, ValueError):
        sys.stderr.write(f"skill-rules: ignoring max_suggestions={config.get('max_suggestions')!r}\n")
        max_suggestions = 0
    if max_suggestions > 0:
        matches = matches[:max_suggestions]

    if config.get('output_format') == 'compact':
        return format_compact_output(matches)
    return format_grouped_output(matches, activator, event_kind,
                                 show_descriptions=bool(config.get('show_descriptions', True)))


# =============================================================================
# Hook Integration
# =============================================================================

def _hook_project_path(input_data: Any) -> Optional[str]:
    if os.environ.get('CLAUDE_PROJECT_DIR'):
        return None
    if isinstance(input_data, dict) and isinstance(input_data.get('cwd'), str):
        return input_data['cwd']
    return None


def run_hook(input_data: Any, activator: Optional[SkillActivator] = None) -> Tuple[str, str]:
    """
    Evaluate one hook payload

    Returns (event_kind, formatted_output); output is "" when nothing matched
    or the payload was unusable. Never raises.
    """
    try:
        if activator is None:
            activator = SkillActivator(project_path=_hook_project_path(input_data))

        event = event_from_hook_input(input_data, activator.project_path)
        if event is None:
            return 'file', ""

        event_kind = 'prompt' if isinstance(event, PromptEvent) else 'file'
        matches = activator.detect(event)
        return event_kind, format_suggestions(matches, activator, event_kind, load_user_config())

    except EventError as e:
        sys.stderr.write(f"skill-rules: ignoring event: {e}\n")
        return 'prompt', ""
    except Exception as e:
        # Suggestions are advisory; never break the user's prompt
        sys.stderr.write(f"Skill activator error: {e}\n")
        return 'prompt', ""


def user_prompt_submit_hook(input_data: Any, activator: Optional[SkillActivator] = None) -> str:
    """Hook function for Claude Code UserPromptSubmit event"""
    return run_hook(input_data, activator)[1]


def post_tool_use_hook(input_data: Any, activator: Optional[SkillActivator] = None) -> str:
    """Hook function for Claude Code PostToolUse event"""
    return run_hook(input_data, activator)[1]


# =============================================================================
# CLI
# =============================================================================

def check_rules(activator: SkillActivator) -> int:
    """Print validation results; returns the process exit code"""
    if activator.config_error is not None:
        print(f"❌ {activator.config_error}")
        return 1

    rule_set = activator.rule_set
    print(f"📄 {activator.rules_path}")
    if rule_set.version:
        print(f"   version {rule_set.version}")
    print(f"✅ {len(rule_set)} rules loaded")

    if rule_set.errors:
        print(f"❌ {len(rule_set.errors)} rules skipped:")
        for error in rule_set.errors:
            print(f"   - {error}")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point"""
    import argparse

    parser = argparse.ArgumentParser(
        prog='skill-activator',
        description='Suggest skills from skill-rules.json for a prompt or a changed file',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s "How do I add a new route handler?"
  %(prog)s --file src/components/Form.tsx
  %(prog)s --list
  %(prog)s --check --rules .claude/skills/skill-rules.json
        """
    )

    parser.add_argument('message', nargs='?', help='User prompt to evaluate')
    parser.add_argument('--file', '-f', metavar='PATH', help='Evaluate a file event for PATH')
    parser.add_argument('--no-content', action='store_true',
                        help='With --file, match on the path only')
    parser.add_argument('--rules', '-r', metavar='PATH', help='Rules file (default: auto-detect)')
    parser.add_argument('--project', '-p', metavar='DIR', help='Project directory')
    parser.add_argument('--list', '-l', action='store_true', help='List all rules')
    parser.add_argument('--check', '-c', action='store_true', help='Validate the rules file')
    parser.add_argument('--json', '-j', action='store_true', help='Output in JSON format')
    parser.add_argument('--debug', '-d', action='store_true', help='Trace rule decisions on stderr')

    args = parser.parse_args(argv)

    activator = SkillActivator(
        project_path=args.project,
        rules_path=args.rules,
        debug=args.debug or None,
    )

    if args.check:
        return check_rules(activator)

    if args.list:
        skills = activator.list_skills()
        if args.json:
            print(json.dumps(skills, indent=2))
        else:
            print(f"\n📚 Skill Rules ({len(skills)} total):\n")
            for s in skills:
                triggers = ", ".join(s['triggers']) or "none"
                print(f"  {s['name']:28} [{s['type']:9}] {s['priority']:6} - {triggers}")
            print()
        return 0

    if args.file:
        content = None
        if not args.no_content:
            disk_path = Path(args.file)
            if not disk_path.is_absolute():
                disk_path = activator.project_path / disk_path
            content = read_file_content(disk_path)
        matches = activator.detect_file(args.file, content)
        event_kind = 'file'
    elif args.message:
        matches = activator.detect_prompt(args.message)
        event_kind = 'prompt'
    else:
        parser.print_help()
        return 2

    if args.json:
        result = []
        for m in matches:
            entry = m.to_dict()
            entry['type'] = activator.rule_set.rules[m.skill_id].type
            result.append(entry)
        print(json.dumps(result, indent=2))
    elif matches:
        print(format_suggestions(matches, activator, event_kind, load_user_config()))
    else:
        print("🔍 No matching skills found.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
