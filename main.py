#!/usr/bin/env python3
"""
LOTTO645 Entry Point
====================

Runs the command-line interface:
1. generate  - recommended combination with EV and diagnostics
2. analyze   - frequency analysis plus the recommended combination
3. ev        - expected value for a carryover state

Usage:
    python main.py generate --carryover 2
    python main.py analyze --json
    python main.py ev --carryover 3 --co-winners 12
    python main.py --help
"""

from lotto645.cli import main


if __name__ == '__main__':
    main()
