"""
CLI runner module.

Provides commands:
- register: Append an entry/exit record
- list / status: Inspect unexported records
- export: Deliver CSV report and photos, then clear
- clear: Discard records without exporting
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
