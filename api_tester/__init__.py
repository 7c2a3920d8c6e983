"""Entra ID API Tester.

A tool to verify that HTTP API endpoints protected by OAuth 2.0 client
credentials are reachable, accept a freshly acquired bearer token and
answer with a success status.
"""

__version__ = "1.0.0"

from api_tester.cli import main

__all__ = ["main", "__version__"]
