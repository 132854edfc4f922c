#!/usr/bin/env python3
"""
ReplayGuard - record/replay regression harness

This is a convenience wrapper that calls the packaged CLI.
The actual implementation is in src/replayguard/cli.py

Usage:
    python replayguard.py generate --output target/regression-baseline
    python replayguard.py verify
"""

import sys
from pathlib import Path

# Add src to the path so the wrapper works without installation
sys.path.insert(0, str(Path(__file__).parent / "src"))

from replayguard.cli import main

if __name__ == '__main__':
    sys.exit(main())
