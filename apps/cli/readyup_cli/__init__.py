"""readyup CLI - Typer command-line interface for dependency-ordered startup."""
