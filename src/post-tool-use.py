#!/usr/bin/env python3
"""
Claude Code Post Tool Use Hook
Suggests skills whose path and content patterns match an edited file

Registered for Edit|MultiEdit|Write. Plain stdout is not shown to Claude for
PostToolUse, so the suggestion goes out as hookSpecificOutput.additionalContext.
"""

import sys
import json
from pathlib import Path


def main():
    try:
        input_data = json.load(sys.stdin)
    except json.JSONDecodeError:
        sys.exit(0)

    if not isinstance(input_data, dict) or not input_data.get('tool_name'):
        sys.exit(0)

    activator_path = Path(__file__).parent / 'skill_activator.py'

    if activator_path.exists():
        sys.path.insert(0, str(activator_path.parent))
        try:
            from skill_activator import post_tool_use_hook

            additional_context = post_tool_use_hook(input_data)

            if additional_context:
                print(json.dumps({
                    "hookSpecificOutput": {
                        "hookEventName": "PostToolUse",
                        "additionalContext": additional_context,
                    }
                }))

        except ImportError as e:
            sys.stderr.write(f"Skill activator error: {e}\n")

    sys.exit(0)


if __name__ == "__main__":
    main()
