#!/usr/bin/env python3
"""
Claude Code User Prompt Submit Hook
Suggests skills whose keywords or intent patterns match the prompt
"""

import sys
import json
from pathlib import Path


def main():
    # Read JSON input from stdin
    try:
        input_data = json.load(sys.stdin)
    except json.JSONDecodeError:
        # If no valid JSON, exit silently
        sys.exit(0)

    if not isinstance(input_data, dict) or not input_data.get('prompt'):
        sys.exit(0)

    activator_path = Path(__file__).parent / 'skill_activator.py'

    if activator_path.exists():
        sys.path.insert(0, str(activator_path.parent))
        try:
            from skill_activator import user_prompt_submit_hook

            additional_context = user_prompt_submit_hook(input_data)

            if additional_context:
                # Output as plain text - Claude Code will add it to context
                print(additional_context)

        except ImportError as e:
            # Log error but don't block the message
            sys.stderr.write(f"Skill activator error: {e}\n")

    sys.exit(0)


if __name__ == "__main__":
    main()
