"""readyup CLI commands package.

Command implementations, one module per command:
- up: bring services up in dependency order and report health
- plan: print the startup order without starting anything
- status: one-shot health check of every service
- down: stop services in reverse dependency order

Exit codes shared by the commands.
"""

from __future__ import annotations

EXIT_OK = 0
EXIT_UNHEALTHY = 1
EXIT_CONFIG_ERROR = 2

__all__ = ["EXIT_CONFIG_ERROR", "EXIT_OK", "EXIT_UNHEALTHY"]
