"""Core use cases - Application service orchestration.

Use cases orchestrate workflows across adapters without containing framework-specific code.
"""

from __future__ import annotations

from packages.core.use_cases.bring_up import BringUpUseCase
from packages.core.use_cases.check_status import (
    CheckStatusUseCase,
    DeploymentStatus,
    ServiceHealth,
)
from packages.core.use_cases.tear_down import TearDownUseCase

__all__ = [
    "BringUpUseCase",
    "CheckStatusUseCase",
    "DeploymentStatus",
    "ServiceHealth",
    "TearDownUseCase",
]
