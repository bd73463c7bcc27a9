#!/usr/bin/env python3
"""
Skill Activation Installer
Installs the skill activation hooks and a skill-rules.json into a project

Usage:
  python install.py                    # Interactive install into ./
  python install.py --project ../app   # Interactive install into ../app
  python install.py --yes              # Accept detected defaults, no prompts
  python install.py --uninstall        # Remove hooks and their settings entries
"""

import os
import sys
import json
import shutil
import argparse
from pathlib import Path
from typing import Dict, List, Optional

SRC_DIR = Path(__file__).parent / 'src'
sys.path.insert(0, str(SRC_DIR))

from skill_activator import ConfigurationError, RULES_FILENAMES, load_rule_set  # noqa: E402
from rules_generator import (  # noqa: E402
    OPTIONAL_SKILLS,
    build_skill_rules,
    detect_project_type,
    write_skill_rules,
)

HOOK_FILES = ['skill_activator.py', 'user-prompt-submit.py', 'post-tool-use.py']

# Copied from <checkout>/.claude/agents and .claude/commands when present
AGENT_FILES = [
    'code-architecture-reviewer.md',
    'refactor-planner.md',
    'documentation-architect.md',
    'plan-reviewer.md',
    'web-research-specialist.md',
    'code-refactor-master.md',
]
COMMAND_FILES = ['dev-docs.md']

# settings.json event -> (hook script, tool matcher)
HOOK_EVENTS = {
    'UserPromptSubmit': ('user-prompt-submit.py', None),
    'PostToolUse': ('post-tool-use.py', 'Edit|MultiEdit|Write'),
}


# =============================================================================
# Terminal Styling
# =============================================================================

class Style:
    """Terminal colors and styling"""
    SUPPORTS_COLOR = (
        hasattr(sys.stdout, 'isatty') and sys.stdout.isatty()
        and os.environ.get('TERM') != 'dumb'
        and os.environ.get('NO_COLOR') is None
    )

    RESET = '\033[0m' if SUPPORTS_COLOR else ''
    BOLD = '\033[1m' if SUPPORTS_COLOR else ''
    DIM = '\033[2m' if SUPPORTS_COLOR else ''

    RED = '\033[91m' if SUPPORTS_COLOR else ''
    GREEN = '\033[92m' if SUPPORTS_COLOR else ''
    YELLOW = '\033[93m' if SUPPORTS_COLOR else ''
    BLUE = '\033[94m' if SUPPORTS_COLOR else ''
    CYAN = '\033[96m' if SUPPORTS_COLOR else ''


def print_banner():
    """Print the installer banner"""
    s = Style
    print(f"""
{s.GREEN}{s.BOLD}  ╔═══════════════════════════════════════════════╗{s.RESET}
{s.GREEN}{s.BOLD}  ║   Skill Activation Installer                  ║{s.RESET}
{s.GREEN}{s.BOLD}  ║   Project-Level Installation                  ║{s.RESET}
{s.GREEN}{s.BOLD}  ╚═══════════════════════════════════════════════╝{s.RESET}
""")


def print_section(title: str):
    """Print a section header"""
    s = Style
    print(f"\n{s.BOLD}{s.BLUE}▸ {title}{s.RESET}")
    print(f"{s.DIM}{'─' * (len(title) + 2)}{s.RESET}")


def print_step(text: str, status: str = "info"):
    """Print a step with status indicator"""
    s = Style
    icons = {
        "info": f"{s.CYAN}○{s.RESET}",
        "success": f"{s.GREEN}✓{s.RESET}",
        "error": f"{s.RED}✗{s.RESET}",
        "warning": f"{s.YELLOW}!{s.RESET}",
    }
    icon = icons.get(status, icons["info"])
    print(f"  {icon} {text}")


def print_path(label: str, path: Path, exists: Optional[bool] = None):
    """Print a path with optional existence indicator"""
    s = Style
    if exists is None:
        exists = path.exists()

    status = f"{s.GREEN}exists{s.RESET}" if exists else f"{s.DIM}not found{s.RESET}"
    print(f"  {s.DIM}│{s.RESET} {label}: {s.CYAN}{path}{s.RESET} [{status}]")


# =============================================================================
# Paths and Status
# =============================================================================

def get_install_paths(project_path: Path) -> Dict[str, Path]:
    """Get all relevant installation paths for a project"""
    claude_dir = project_path / '.claude'
    return {
        'project': project_path,
        'src_dir': SRC_DIR,
        'claude_dir': claude_dir,
        'hooks_dir': claude_dir / 'hooks',
        'skills_dir': claude_dir / 'skills',
        'agents_dir': claude_dir / 'agents',
        'commands_dir': claude_dir / 'commands',
        'rules_file': claude_dir / 'skills' / RULES_FILENAMES[0],
        'settings': claude_dir / 'settings.json',
        'readme': claude_dir / 'README.md',
    }


def get_installation_status(paths: Dict[str, Path]) -> dict:
    """Check what's currently installed"""
    status = {
        'hooks_installed': all((paths['hooks_dir'] / name).exists() for name in HOOK_FILES),
        'rules_exist': paths['rules_file'].exists(),
        'rule_count': 0,
        'rule_errors': [],
        'settings_configured': False,
        'settings_error': None,
    }

    if status['rules_exist']:
        try:
            rule_set = load_rule_set(paths['rules_file'])
            status['rule_count'] = len(rule_set)
            status['rule_errors'] = [str(e) for e in rule_set.errors]
        except ConfigurationError as e:
            status['rule_errors'] = [str(e)]

    try:
        settings = _read_settings(paths['settings'])
    except (json.JSONDecodeError, OSError) as e:
        settings = None
        status['settings_error'] = f"Cannot read settings.json: {e}"
    if settings is not None:
        status['settings_configured'] = all(
            _has_hook(settings, event, script) for event, (script, _) in HOOK_EVENTS.items()
        )

    return status


def print_status(paths: Dict[str, Path], status: dict):
    """Print current installation status"""
    print_section("Current Status")
    print_path("Hooks   ", paths['hooks_dir'], status['hooks_installed'])
    print_path("Rules   ", paths['rules_file'], status['rules_exist'])
    print_path("Settings", paths['settings'], status['settings_configured'])
    if status['rules_exist']:
        print_step(f"{status['rule_count']} rules in skill-rules.json", "info")
    for error in status['rule_errors']:
        print_step(error, "warning")
    if status['settings_error']:
        print_step(status['settings_error'], "warning")


# =============================================================================
# Installation
# =============================================================================

def install_hooks(paths: Dict[str, Path], verbose: bool = True) -> bool:
    """Copy the activator and both hook scripts into .claude/hooks/"""
    try:
        paths['hooks_dir'].mkdir(parents=True, exist_ok=True)
        for name in HOOK_FILES:
            dest = paths['hooks_dir'] / name
            shutil.copy2(paths['src_dir'] / name, dest)
            if name.endswith('.py') and '-' in name:
                dest.chmod(dest.stat().st_mode | 0o111)
            if verbose:
                print_step(f"Installed {name}", "success")
        return True
    except OSError as e:
        if verbose:
            print_step(f"Failed to install hooks: {e}", "error")
        return False


def install_skills(source_dir: Path, skills: List[str], paths: Dict[str, Path],
                   verbose: bool = True) -> List[str]:
    """Copy skill folders from a local checkout; returns the names copied"""
    installed = []
    for name in skills:
        src = source_dir / name
        dest = paths['skills_dir'] / name
        if not src.is_dir():
            if verbose:
                print_step(f"{name} not found in {source_dir}", "warning")
            continue
        shutil.copytree(src, dest, dirs_exist_ok=True)
        installed.append(name)
        if verbose:
            print_step(f"{name} installed", "success")
    return installed


def create_skill_rules(paths: Dict[str, Path], choices: Dict[str, bool],
                       force: bool = False, verbose: bool = True) -> bool:
    """Write skill-rules.json for the chosen skills"""
    rules_file = paths['rules_file']

    if rules_file.exists() and not force:
        if verbose:
            print_step("skill-rules.json already exists, keeping it (use --force to replace)", "info")
        return False

    document = build_skill_rules(
        paths['project'],
        backend=choices.get('backend-dev-guidelines', False),
        frontend=choices.get('frontend-dev-guidelines', False),
        route_tester=choices.get('route-tester', False),
        error_tracking=choices.get('error-tracking', False),
    )
    write_skill_rules(document, rules_file)

    if verbose:
        print_step(f"Created skill-rules.json with {len(document['skills'])} rules", "success")
        print_step("Path patterns based on the detected project structure", "info")
    return True


def _copy_files(source_dir: Path, names: List[str], dest_dir: Path, kind: str,
                verbose: bool = True) -> List[str]:
    if not source_dir.is_dir():
        if verbose:
            print_step(f"No {kind} in {source_dir}, skipping", "info")
        return []

    copied = []
    for name in names:
        src = source_dir / name
        if not src.is_file():
            if verbose:
                print_step(f"{name} not found in {source_dir}", "warning")
            continue
        dest_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dest_dir / name)
        copied.append(name)

    if verbose and copied:
        print_step(f"Installed {len(copied)} {kind}", "success")
    return copied


def install_agents(source_dir: Path, paths: Dict[str, Path], verbose: bool = True) -> List[str]:
    """Copy the agent definitions from <checkout>/.claude/agents"""
    return _copy_files(source_dir, AGENT_FILES, paths['agents_dir'], "agents", verbose)


def install_commands(source_dir: Path, paths: Dict[str, Path], verbose: bool = True) -> List[str]:
    """Copy the slash commands from <checkout>/.claude/commands"""
    return _copy_files(source_dir, COMMAND_FILES, paths['commands_dir'], "commands", verbose)


def _listing(directory: Path, dirs: bool) -> List[str]:
    if not directory.is_dir():
        return []
    if dirs:
        return sorted(p.name for p in directory.iterdir() if p.is_dir())
    return sorted(p.name for p in directory.glob('*.md'))


def create_readme(paths: Dict[str, Path], force: bool = False, verbose: bool = True) -> bool:
    """Write .claude/README.md describing what is installed"""
    readme = paths['readme']
    if readme.exists() and not force:
        if verbose:
            print_step("README.md already exists, keeping it", "info")
        return False

    skills = _listing(paths['skills_dir'], dirs=True)
    agents = _listing(paths['agents_dir'], dirs=False)
    commands = _listing(paths['commands_dir'], dirs=False)

    lines = [
        "# Claude Code Skill Activation",
        "",
        "This directory contains the skill activation setup for this project.",
        "",
        "## Installed Components",
        "",
        "### Hooks",
        "- **hooks/user-prompt-submit.py** - Suggests skills for each prompt",
        "- **hooks/post-tool-use.py** - Suggests skills for edited files",
        "- **hooks/skill_activator.py** - Rule matcher used by both hooks",
        "",
        "### Configuration",
        "- **settings.json** - Hook registration",
        "- **skills/skill-rules.json** - Skill trigger rules",
        "",
    ]
    if skills:
        lines += ["### Skills"] + [f"- **{name}/**" for name in skills] + [""]
    if agents:
        lines += ["### Agents"] + [f"- **{name}**" for name in agents] + [""]
    if commands:
        lines += ["### Commands"] + [f"- **{name}**" for name in commands] + [""]

    lines += [
        "## Usage",
        "",
        "Skills are suggested based on:",
        "1. Keywords and intent patterns in your prompts",
        "2. Paths of the files you edit",
        "3. Content patterns in those files",
        "",
        "## Customization",
        "",
        "Edit `skills/skill-rules.json` to:",
        "- Adjust path patterns for your project structure",
        "- Add custom keywords",
        "- Change priorities",
        "",
        "Check your changes with `skill-activator --check`.",
        "",
    ]

    readme.parent.mkdir(parents=True, exist_ok=True)
    readme.write_text("\n".join(lines), encoding='utf-8')
    if verbose:
        print_step("Created README.md", "success")
    return True


def _read_settings(settings_path: Path) -> Optional[dict]:
    if not settings_path.exists():
        return None
    with open(settings_path, 'r', encoding='utf-8') as f:
        settings = json.load(f)
    return settings if isinstance(settings, dict) else None


def _hook_groups(settings: dict, event: str) -> List[dict]:
    """Matcher groups for an event; old string-valued entries have none"""
    hooks = settings.get('hooks')
    if not isinstance(hooks, dict):
        return []
    groups = hooks.get(event)
    if not isinstance(groups, list):
        return []
    return [g for g in groups if isinstance(g, dict) and isinstance(g.get('hooks'), list)]


def _runs_script(hook, script: str) -> bool:
    return isinstance(hook, dict) and script in str(hook.get('command', ''))


def _has_hook(settings: dict, event: str, script: str) -> bool:
    for hook_group in _hook_groups(settings, event):
        for hook in hook_group['hooks']:
            if _runs_script(hook, script):
                return True
    return False


def hook_command(script: str) -> str:
    """Command line Claude Code runs for a hook script"""
    return f'"{sys.executable}" "$CLAUDE_PROJECT_DIR/.claude/hooks/{script}"'


def configure_settings_json(paths: Dict[str, Path], verbose: bool = True) -> bool:
    """Register both hooks in .claude/settings.json (idempotent, backs up first)"""
    settings_path = paths['settings']
    try:
        settings = _read_settings(settings_path) or {}
    except (json.JSONDecodeError, OSError) as e:
        if verbose:
            print_step(f"Cannot read settings.json: {e}", "error")
        return False

    hooks = settings.get('hooks')
    if not isinstance(hooks, dict):
        hooks = settings['hooks'] = {}
    changed = False

    for event, (script, matcher) in HOOK_EVENTS.items():
        if _has_hook(settings, event, script):
            continue
        if event in hooks and not isinstance(hooks[event], list):
            # Old installs wrote "UserPromptSubmit": "<script path>"; the backup keeps it
            if verbose:
                print_step(f"Replacing old {event} entry: {hooks[event]!r}", "warning")
            hooks[event] = []
        group = {'hooks': [{'type': 'command', 'command': hook_command(script)}]}
        if matcher:
            group = {'matcher': matcher, **group}
        hooks.setdefault(event, []).append(group)
        changed = True

    if not changed:
        if verbose:
            print_step("Hooks already configured in settings.json", "info")
        return True

    settings_path.parent.mkdir(parents=True, exist_ok=True)
    if settings_path.exists():
        backup = settings_path.with_name('settings.json.backup')
        shutil.copy2(settings_path, backup)
        if verbose:
            print_step(f"Created backup: {backup.name}", "info")

    with open(settings_path, 'w', encoding='utf-8') as f:
        json.dump(settings, f, indent=2)
        f.write("\n")

    if verbose:
        print_step("Configured hooks in settings.json", "success")
    return True


def uninstall(paths: Dict[str, Path], verbose: bool = True) -> bool:
    """Remove installed hooks and their settings.json entries"""
    if verbose:
        print_section("Uninstalling")

    removed = []
    for name in HOOK_FILES:
        target = paths['hooks_dir'] / name
        if target.exists():
            target.unlink()
            removed.append(name)

    try:
        settings = _read_settings(paths['settings'])
    except (json.JSONDecodeError, OSError):
        settings = None

    hooks = settings.get('hooks') if settings is not None else None
    if isinstance(hooks, dict):
        for event, (script, _) in HOOK_EVENTS.items():
            if not isinstance(hooks.get(event), list):
                continue
            groups = []
            for group in hooks[event]:
                if not isinstance(group, dict) or not isinstance(group.get('hooks'), list):
                    groups.append(group)
                    continue
                kept = [h for h in group['hooks'] if not _runs_script(h, script)]
                if kept:
                    groups.append({**group, 'hooks': kept})
            if groups:
                hooks[event] = groups
            elif event in hooks:
                del hooks[event]
                removed.append(f"{event} hook entry")
        with open(paths['settings'], 'w', encoding='utf-8') as f:
            json.dump(settings, f, indent=2)
            f.write("\n")

    if verbose:
        if removed:
            for r in removed:
                print_step(f"Removed {r}", "success")
            print(f"\n  {Style.DIM}Note: skill-rules.json and your skills were preserved{Style.RESET}")
        else:
            print_step("Nothing to uninstall", "info")

    return True


def show_info(paths: Dict[str, Path]):
    """Show what was installed and what to do next"""
    s = Style
    print_section("Configuration")
    print(f"  {s.DIM}│{s.RESET} Location: {s.CYAN}{paths['claude_dir']}{s.RESET}")
    print(f"  {s.DIM}│{s.RESET} Settings: {s.CYAN}{paths['settings']}{s.RESET}")
    print(f"  {s.DIM}│{s.RESET} Rules:    {s.CYAN}{paths['rules_file']}{s.RESET}")

    print_section("Next Steps")
    print(f"  {s.DIM}│{s.RESET} 1. Review skill-rules.json and adjust pathPatterns if needed")
    print(f"  {s.DIM}│{s.RESET} 2. Validate: {s.DIM}skill-activator --check{s.RESET}")
    print(f"  {s.DIM}│{s.RESET} 3. Try it:   {s.DIM}skill-activator \"How do I add a new route?\"{s.RESET}")
    print(f"  {s.DIM}│{s.RESET} 4. Commit .claude/ to version control")
    print()


# =============================================================================
# Interactive Wizard
# =============================================================================

def prompt_yes_no(question: str, default: bool) -> bool:
    """Ask a y/n question; Enter takes the default"""
    hint = "Y/n" if default else "y/N"
    response = input(f"  {question} [{hint}]: ").strip().lower()
    if not response:
        return default
    return response.startswith('y')


def choose_skills(paths: Dict[str, Path], assume_yes: bool = False) -> Dict[str, bool]:
    """Decide which optional skills to configure, defaulting from detection"""
    profile = detect_project_type(paths['project'])
    defaults = {
        'backend-dev-guidelines': profile.has_backend,
        'frontend-dev-guidelines': profile.has_frontend,
        'route-tester': False,
        'error-tracking': False,
    }

    print_section("Detecting Project Type")
    print_step(f"Detected: {profile.tech_stack or 'nothing specific'}", "info")
    if not profile.has_backend and not profile.has_frontend:
        print_step("Could not auto-detect project type", "warning")

    if assume_yes:
        return defaults

    labels = {
        'backend-dev-guidelines': "Install backend-dev-guidelines (Node.js/Express)?",
        'frontend-dev-guidelines': "Install frontend-dev-guidelines (React/MUI)?",
        'route-tester': "Install route-tester (API testing)?",
        'error-tracking': "Install error-tracking (Sentry)?",
    }
    print()
    return {name: prompt_yes_no(labels[name], defaults[name]) for name in OPTIONAL_SKILLS}


def run_install(paths: Dict[str, Path], assume_yes: bool = False, force: bool = False,
                skills_source: Optional[Path] = None) -> bool:
    """Full installation flow"""
    s = Style
    choices = choose_skills(paths, assume_yes)

    print_section("Installing Components")
    ok = install_hooks(paths)

    if skills_source is not None:
        selected = ['skill-developer'] + [name for name, chosen in choices.items() if chosen]
        try:
            install_skills(skills_source, selected, paths)
            # Agents and commands sit next to skills/ in a .claude checkout
            install_agents(skills_source.parent / 'agents', paths)
            install_commands(skills_source.parent / 'commands', paths)
        except OSError as e:
            print_step(f"Failed to copy from {skills_source}: {e}", "error")
            ok = False

    print_section("Creating Configuration")
    try:
        create_skill_rules(paths, choices, force=force)
    except (ConfigurationError, OSError) as e:
        print_step(f"Failed to write skill-rules.json: {e}", "error")
        ok = False
    ok = configure_settings_json(paths) and ok
    try:
        create_readme(paths, force=force)
    except OSError as e:
        print_step(f"Failed to write README.md: {e}", "error")
        ok = False

    print()
    if ok:
        print(f"  {s.GREEN}{s.BOLD}Installation complete!{s.RESET}")
        show_info(paths)
    else:
        print(f"  {s.RED}Installation finished with errors{s.RESET}")
    return ok


# =============================================================================
# Main Entry Point
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Skill Activation Installer',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument('--project', '-p', default='.', help='Project directory (default: ./)')
    parser.add_argument('--yes', '-y', action='store_true',
                        help='Accept detected defaults without prompting')
    parser.add_argument('--force', action='store_true',
                        help='Replace an existing skill-rules.json and README.md')
    parser.add_argument('--skills-from', metavar='DIR',
                        help='Copy skill folders from a local .claude/skills checkout '
                             '(agents/ and commands/ beside it are copied too)')
    parser.add_argument('--uninstall', action='store_true', help='Remove installation')
    parser.add_argument('--status', action='store_true', help='Show installation status')

    args = parser.parse_args(argv)

    project_path = Path(args.project).expanduser().resolve()
    if not project_path.is_dir():
        print_step(f"Path does not exist: {project_path}", "error")
        return 1
    if not os.access(project_path, os.W_OK):
        print_step("Project directory is not writable", "error")
        return 1

    paths = get_install_paths(project_path)
    print_banner()

    if args.status:
        print_status(paths, get_installation_status(paths))
        return 0

    if args.uninstall:
        uninstall(paths)
        return 0

    print_step(f"Installation directory: {paths['claude_dir']}", "info")
    if not args.yes and not prompt_yes_no("Install skill activation into this project?", False):
        print_step("Installation cancelled", "info")
        return 0

    skills_source = Path(args.skills_from).expanduser() if args.skills_from else None
    return 0 if run_install(paths, assume_yes=args.yes, force=args.force,
                            skills_source=skills_source) else 1


if __name__ == "__main__":
    sys.exit(main())
