#!/usr/bin/env python3
"""
LocalStub - In-process HTTP stubs for reproducible tests

This is a convenience wrapper that calls the packaged CLI.
The actual implementation is in src/localstub/cli.py

Usage:
    python localstub-server.py serve stubs.yaml --port 8080

For more information, see README.md
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from localstub.cli import main

if __name__ == '__main__':
    main()
