"""Configuration sources that produce ServiceSpecs."""

from packages.loaders.docker_compose import (
    ComposeServiceReader,
    InvalidComposeFileError,
    interpolate,
)

__all__ = ["ComposeServiceReader", "InvalidComposeFileError", "interpolate"]
