"""readyup application shells.

This package contains thin I/O layers over packages.core:
- cli: Typer CLI
"""
