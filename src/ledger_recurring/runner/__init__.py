"""
CLI runner module.

Provides commands:
- recurring: Detect recurring series for an optional date window
- refresh: Recompute the recurring cache
- status: Ledger and cache statistics
- init-config: Write a default config file
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
