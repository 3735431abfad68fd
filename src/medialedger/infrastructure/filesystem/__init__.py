"""Filesystem adapters."""

from .scoped_grant import PosixScopedGrant

__all__ = ["PosixScopedGrant"]
