"""Utility helpers for the readyup CLI."""

from apps.cli.readyup_cli.utils.async_wrapper import async_command

__all__ = ["async_command"]
