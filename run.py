#!/usr/bin/env python3
"""
Entra ID API Tester

Run this script to check that Entra ID protected API endpoints accept a
client credentials token and answer with a success status.

Usage:
    python run.py                     # Use config.json
    python run.py -c custom.json      # Use custom config
    python run.py -v                  # Show each test stage
    python run.py -q                  # Quiet mode (summary only)
    python run.py --json              # JSON results on stdout
"""

import sys
from api_tester.cli import main

if __name__ == "__main__":
    sys.exit(main())
