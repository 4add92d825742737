"""Run ID tracking for coordination runs.

Every coordination run gets a run ID stored in a context variable. Tasks
spawned by the coordinator inherit it, so each log record of a run can be
correlated even when services start concurrently.
"""

import uuid
from contextvars import ContextVar
from types import TracebackType

# Context variable for storing the current run ID
_run_id_var: ContextVar[str | None] = ContextVar("run_id", default=None)


def generate_run_id() -> str:
    """Generate a new run ID.

    Returns:
        str: A new UUID4 run ID as a string.
    """
    return str(uuid.uuid4())


def set_run_id(run_id: str | None = None) -> str:
    """Set the run ID for the current context.

    If no run ID is provided, generates a new one.

    Args:
        run_id: Optional run ID to set. If None, generates a new one.

    Returns:
        str: The run ID that was set.
    """
    if run_id is None:
        run_id = generate_run_id()

    _run_id_var.set(run_id)
    return run_id


def get_run_id() -> str | None:
    """Get the run ID for the current context.

    Returns:
        str | None: The current run ID, or None if not set.

    Example:
        >>> set_run_id("test-123")
        'test-123'
        >>> get_run_id()
        'test-123'
    """
    return _run_id_var.get()


def clear_run_id() -> None:
    """Clear the run ID for the current context."""
    _run_id_var.set(None)


class TracingContext:
    """Context manager for managing run IDs.

    Automatically sets and restores run IDs for a code block.

    Example:
        >>> with TracingContext() as run_id:
        ...     print(f"Coordinating run {run_id}")
        ...     # All logging within this block will include the run ID
    """

    def __init__(self, run_id: str | None = None) -> None:
        """Initialize the tracing context.

        Args:
            run_id: Optional run ID. If None, generates a new one.
        """
        self.run_id = run_id
        self.previous_id: str | None = None

    def __enter__(self) -> str:
        self.previous_id = get_run_id()
        self.run_id = set_run_id(self.run_id)
        return self.run_id

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.previous_id is None:
            clear_run_id()
        else:
            set_run_id(self.previous_id)


# Export public API
__all__ = [
    "TracingContext",
    "clear_run_id",
    "generate_run_id",
    "get_run_id",
    "set_run_id",
]
