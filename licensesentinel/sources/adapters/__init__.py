"""Ecosystem adapters: auto-registered on import."""

from licensesentinel.sources.adapters import (
    swift,  # noqa: F401
    yarn_berry,  # noqa: F401
)
